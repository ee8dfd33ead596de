"""CLI package exports for top-level command entry points."""

from __future__ import annotations

from .main import VBoxFleetModalCLI, main

__all__ = ['VBoxFleetModalCLI', 'main']
