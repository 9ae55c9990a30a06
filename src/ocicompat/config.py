"""
Translator configuration.

``CompatConfig`` is a frozen dataclass handed to the detector and from
there to every translator it builds. It only tunes output formatting and
how strictly the seccomp enums are mapped; it never changes which fields
are translated.

Example YAML::

    indent: 2
    sort_keys: true
    strict_enums: false
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import yaml


def _flag(data: Dict[str, Any], key: str) -> bool:
    value = data.get(key, False)
    if not isinstance(value, bool):
        raise ValueError(f"config key {key} must be true or false, got {value!r}")
    return value


@dataclass(frozen=True)
class CompatConfig:
    """
    Immutable translator settings.

    Properties:
        indent:
            JSON indentation used by ``decode()``. ``None`` emits compact
            JSON with no whitespace between tokens.

        sort_keys:
            Emit JSON object members in sorted order.

        strict_enums:
            When ``True``, a seccomp action or operator that the target
            dialect does not define is an error. Otherwise it is carried
            over verbatim and logged.
    """

    indent: Optional[int] = None
    sort_keys: bool = False
    strict_enums: bool = False

    @classmethod
    def default(cls) -> CompatConfig:
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CompatConfig:
        """
        Build a config from a plain mapping.

        Missing keys fall back to the defaults. Unknown keys are rejected so
        that a misspelt option does not silently do nothing.

        Raises:
            ValueError: If ``data`` is not a mapping, or contains an unknown key
                or a value of the wrong type
        """
        if data is None:
            return cls.default()
        if not isinstance(data, dict):
            raise ValueError(f"config must be a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(unknown)}")

        indent = data.get("indent")
        if indent is not None and (isinstance(indent, bool) or not isinstance(indent, int)):
            raise ValueError(f"config key indent must be an integer, got {indent!r}")
        return cls(
            indent=indent,
            sort_keys=_flag(data, "sort_keys"),
            strict_enums=_flag(data, "strict_enums"),
        )

    @classmethod
    def from_yaml(cls, text: str) -> CompatConfig:
        return cls.from_dict(yaml.safe_load(text))
