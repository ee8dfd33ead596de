"""Drive VBoxManage and keep NAT port forwards consistent across a host."""

from __future__ import annotations

__version__ = '0.1.0'
