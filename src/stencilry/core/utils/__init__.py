"""Shared helpers for Stencilry core modules."""
from __future__ import annotations

from .merge import deep_merge

__all__ = ["deep_merge"]
