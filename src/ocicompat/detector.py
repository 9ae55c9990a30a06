"""
Dialect detection for OCI runtime configuration documents.

Reads the top-level ``ociVersion`` member of a raw document and picks the
translator for that dialect.

Selection is by substring: a dialect marker such as ``"1.0.0-rc2"`` matches
any version that contains it (``"1.0.0-rc2-dev"`` included). Markers are
tried in registry order and a version matching none of them is an error,
never a silent pass-through.

Adding a dialect means adding its model under ``ocicompat.specs``, a
``Translator`` subclass, and an entry in ``DIALECTS``.
"""
from __future__ import annotations

import json
import logging
from typing import IO, Any, Callable, List, Optional, Tuple, Union

from ocicompat.config import CompatConfig
from ocicompat.errors import DetectError, ReadError, UnknownOCIVersionError
from ocicompat.translators import rc2
from ocicompat.translators.base import Translator

logger = logging.getLogger(__name__)

VERSION_FIELD = "ociVersion"

TranslatorFactory = Callable[[bytes, Optional[CompatConfig]], Translator]

DIALECTS: List[Tuple[str, TranslatorFactory]] = [
    (rc2.DIALECT, rc2.Rc2Translator),
]

_decoder = json.JSONDecoder()
_WHITESPACE = " \t\n\r"


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in _WHITESPACE:
        pos += 1
    return pos


def _scan_member(text: str, key: str) -> Any:
    """
    Return the value of a top-level member without parsing the whole object.

    Members are visited in document order and the scan stops at the first
    member named ``key``; everything after it is never looked at.

    Raises:
        ValueError: If the text is not a JSON object up to that member, or
            the member does not exist
    """
    pos = _skip_whitespace(text, 0)
    if text[pos:pos + 1] != "{":
        raise ValueError("document is not a JSON object")
    pos = _skip_whitespace(text, pos + 1)
    if text[pos:pos + 1] == "}":
        raise ValueError(f"member {key!r} not found")

    while True:
        if text[pos:pos + 1] != '"':
            raise ValueError(f"expected member name at offset {pos}")
        name, pos = _decoder.raw_decode(text, pos)

        pos = _skip_whitespace(text, pos)
        if text[pos:pos + 1] != ":":
            raise ValueError(f"expected ':' at offset {pos}")
        pos = _skip_whitespace(text, pos + 1)
        value, pos = _decoder.raw_decode(text, pos)
        if name == key:
            return value

        pos = _skip_whitespace(text, pos)
        separator = text[pos:pos + 1]
        if separator == ",":
            pos = _skip_whitespace(text, pos + 1)
        elif separator == "}":
            raise ValueError(f"member {key!r} not found")
        else:
            raise ValueError(f"expected ',' or '}}' at offset {pos}")


def read_oci_version(raw: bytes) -> str:
    """
    Extract the ``ociVersion`` string from a raw document.

    Raises:
        DetectError: If the member is missing, is not a string, or the
            document is malformed before it
    """
    try:
        text = raw.decode("utf-8")
        version = _scan_member(text, VERSION_FIELD)
    except (ValueError, RecursionError) as exc:
        raise DetectError(f"error get {VERSION_FIELD}: {exc}") from exc

    if not isinstance(version, str):
        raise DetectError(
            f"error get {VERSION_FIELD}: expected a string, got {type(version).__name__}"
        )
    return version


def detect(raw: bytes, config: Optional[CompatConfig] = None) -> Translator:
    """
    Select and build the translator for a raw document.

    Args:
        raw: The complete JSON document
        config: Settings handed to the translator

    Returns:
        A translator bound to ``raw``

    Raises:
        DetectError: ``ociVersion`` could not be read
        UnknownOCIVersionError: No known dialect matches the version
    """
    version = read_oci_version(raw)
    for marker, factory in DIALECTS:
        if marker in version:
            logger.debug("Selected %s translator for ociVersion %r", marker, version)
            return factory(bytes(raw), config)
    raise UnknownOCIVersionError(version)


def new_compatible(
    spec_file: IO[Union[bytes, str]],
    config: Optional[CompatConfig] = None,
) -> Translator:
    """
    Drain a readable handle and build the translator for its document.

    Text handles are encoded as UTF-8.

    Raises:
        ReadError: The handle could not be read
        DetectError: ``ociVersion`` could not be read
        UnknownOCIVersionError: No known dialect matches the version
    """
    try:
        raw = spec_file.read()
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
    except (OSError, ValueError) as exc:
        raise ReadError(f"error read spec file: {exc}") from exc
    return detect(raw, config)
