"""Database models for the translations service."""

from .translation import Translation

__all__ = ['Translation']
