"""Data models for the two runtime configuration dialects."""

from . import rc2, v1

__all__ = ["rc2", "v1"]
