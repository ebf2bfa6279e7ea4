"""Infrastructure layer implementations."""

from partstock.infrastructure import storage

__all__ = ["storage"]
