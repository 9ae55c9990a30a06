"""
Translator contract shared by every supported dialect.

A translator is bound to one raw document. ``decode()`` turns it into a
new-dialect JSON stream; ``encode()`` later turns a new-dialect value back
into the document's original dialect, using what ``decode()`` recorded.

ARCHITECTURAL RULE:
    A translator is single-use and not reentrant.
    Create one per document, call ``decode()`` once, then ``encode()``
    as needed. Nothing is shared between translator instances.
"""

from abc import ABC, abstractmethod
from typing import Any, BinaryIO


class Translator(ABC):
    """Base class for dialect translators."""

    @abstractmethod
    def decode(self) -> BinaryIO:
        """Return the bound document as a new-dialect JSON byte stream."""

    @abstractmethod
    def encode(self, new_spec: Any) -> Any:
        """Return ``new_spec`` converted back into the original dialect."""


def field_present(obj: Any, path: str) -> bool:
    """
    Check whether every link of a dotted attribute path is populated.

    Walks ``path`` (e.g. ``"linux.seccomp.syscalls"``) from ``obj``. A link
    that is ``None`` (an unset option or an absent list) makes the path
    absent. A populated link, including an empty list, counts as present.

    Args:
        obj: Root object to walk from
        path: Dotted attribute names

    Returns:
        True if the final attribute is reachable and not ``None``
    """
    node = obj
    if node is None:
        return False
    for name in path.split("."):
        node = getattr(node, name, None)
        if node is None:
            return False
    return True
