"""Dialect translators (one module per supported source dialect)."""

from .base import Translator, field_present
from .rc2 import Rc2Translator

__all__ = ["Translator", "field_present", "Rc2Translator"]
