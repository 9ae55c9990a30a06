"""
OCI Runtime Configuration Compatibility Package

Lets a tool built against the stable OCI runtime configuration read a
document written in the draft v1.0.0-rc2 dialect, work with it in the
stable dialect, and write it back in the dialect it came from.

Typical use:

    translator = new_compatible(handle)         # pick by ociVersion
    stream = translator.decode()                # draft -> stable JSON
    spec = v1_spec_from_json(stream.read())
    ...
    old = translator.encode(spec)               # stable -> draft value

ARCHITECTURAL GUARANTEE:
------------------------
Only the members whose shape differs between dialects are rewritten
(platform identity, seccomp rules, process capabilities). Everything
else is carried across unchanged.
"""

from ocicompat.config import CompatConfig
from ocicompat.detector import detect, new_compatible, read_oci_version
from ocicompat.errors import (
    CompatError,
    DecodeCarryError,
    DecodeEmitError,
    DecodeParseError,
    DetectError,
    EncodeCarryError,
    ReadError,
    UnknownOCIVersionError,
)
from ocicompat.translators import Rc2Translator, Translator

__version__ = "0.1.0"

__all__ = [
    "CompatConfig",
    "CompatError",
    "DecodeCarryError",
    "DecodeEmitError",
    "DecodeParseError",
    "DetectError",
    "EncodeCarryError",
    "ReadError",
    "Rc2Translator",
    "Translator",
    "UnknownOCIVersionError",
    "detect",
    "new_compatible",
    "read_oci_version",
]
