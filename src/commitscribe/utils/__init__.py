"""Utility modules for commitscribe."""

from .output import OutputFormatter

__all__ = ["OutputFormatter"]
