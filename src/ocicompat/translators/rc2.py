"""
Translator for OCI runtime-spec v1.0.0-rc2 documents.

The two dialects share member names and JSON shapes everywhere except in
three places:

    - platform identity (``platform.os`` / ``platform.arch``), which the
      new dialect does not have
    - seccomp rules (one ``name`` per rule vs. a ``names`` list plus
      ``errnoRet``)
    - process capabilities (a flat list vs. five capability sets)

Decode and encode both work the same way: the divergent sub-trees are
rewritten by hand and removed from the source value ("staged"), the rest is
carried across by writing the source value to JSON and reading that JSON
with the target dialect's model, then the staged sub-trees are put back.

The translator records what decode staged so that encode re-shapes exactly
the same sub-trees and restores the original platform identity.
"""
from __future__ import annotations

import copy
import io
import logging
from typing import Any, BinaryIO, Dict, FrozenSet, List, Optional

from ocicompat.config import CompatConfig
from ocicompat.errors import (
    DecodeCarryError,
    DecodeEmitError,
    DecodeParseError,
    EncodeCarryError,
)
from ocicompat.serialization import (
    rc2_spec_from_json,
    rc2_spec_to_json,
    v1_spec_from_json,
    v1_spec_to_json,
)
from ocicompat.specs import rc2, v1
from ocicompat.translators.base import Translator, field_present

logger = logging.getLogger(__name__)

DIALECT = "1.0.0-rc2"

_RC2_ACTIONS: FrozenSet[str] = frozenset(a.value for a in rc2.Action)
_RC2_OPERATORS: FrozenSet[str] = frozenset(o.value for o in rc2.Operator)
_V1_ACTIONS: FrozenSet[str] = frozenset(a.value for a in v1.LinuxSeccompAction)
_V1_OPERATORS: FrozenSet[str] = frozenset(o.value for o in v1.LinuxSeccompOperator)

# JSON members each rule record models; unmodelled members carried across
# a rewrite must not shadow them
_ARG_MEMBERS: FrozenSet[str] = frozenset({"index", "value", "valueTwo", "op"})
_RC2_SYSCALL_MEMBERS: FrozenSet[str] = frozenset({"name", "action", "args"})
_V1_SYSCALL_MEMBERS: FrozenSet[str] = frozenset({"names", "action", "errnoRet", "args"})


def _unmodelled(extra: Dict[str, Any], modelled: FrozenSet[str]) -> Dict[str, Any]:
    return {key: value for key, value in extra.items() if key not in modelled}


def _map_enum(value: str, known: FrozenSet[str], kind: str, target: str, strict: bool) -> str:
    """Carry an enum string across dialects by lexical identity."""
    if value in known:
        return value
    if strict:
        raise ValueError(f"seccomp {kind} {value!r} is not defined by the {target} dialect")
    logger.warning("Carrying seccomp %s %r that the %s dialect does not define", kind, value, target)
    return value


def decode_syscalls(
    syscalls: Optional[List[rc2.Syscall]],
    strict: bool = False,
) -> Optional[List[v1.LinuxSyscall]]:
    """
    Rewrite old-dialect seccomp rules as new-dialect rules.

    Each rule becomes one rule with a single-element ``names`` list and no
    ``errno_ret``. Rule and argument order is preserved. An absent argument
    list stays absent and an empty one stays empty.

    Args:
        syscalls: Old-dialect rules, or ``None``
        strict: Reject actions/operators unknown to the new dialect

    Returns:
        New-dialect rules, or ``None`` when ``syscalls`` is ``None``

    Raises:
        ValueError: In strict mode, for an unknown action or operator
    """
    if syscalls is None:
        return None

    rules = []
    for syscall in syscalls:
        args = None
        if syscall.args is not None:
            args = [
                v1.LinuxSeccompArg(
                    index=arg.index,
                    value=arg.value,
                    value_two=arg.value_two,
                    op=_map_enum(arg.op, _V1_OPERATORS, "operator", "new", strict),
                    extra=_unmodelled(arg.extra, _ARG_MEMBERS),
                )
                for arg in syscall.args
            ]
        rules.append(
            v1.LinuxSyscall(
                names=[syscall.name],
                action=_map_enum(syscall.action, _V1_ACTIONS, "action", "new", strict),
                errno_ret=None,
                args=args,
                extra=_unmodelled(syscall.extra, _V1_SYSCALL_MEMBERS),
            )
        )
    return rules


def encode_syscalls(
    syscalls: Optional[List[v1.LinuxSyscall]],
    strict: bool = False,
) -> Optional[List[rc2.Syscall]]:
    """
    Rewrite new-dialect seccomp rules as old-dialect rules.

    Only the first name of each rule is kept and ``errno_ret`` is dropped.
    Rule and argument order is preserved.

    Raises:
        ValueError: For a rule without names, or in strict mode for an
            action/operator the old dialect does not define
    """
    if syscalls is None:
        return None

    rules = []
    for syscall in syscalls:
        if not syscall.names:
            raise ValueError("seccomp rule has no syscall names")
        if len(syscall.names) > 1:
            logger.debug("Dropping extra syscall names %s from rule for %r",
                         syscall.names[1:], syscall.names[0])

        args = None
        if syscall.args is not None:
            args = [
                rc2.Arg(
                    index=arg.index,
                    value=arg.value,
                    value_two=arg.value_two,
                    op=_map_enum(arg.op, _RC2_OPERATORS, "operator", "v1.0.0-rc2", strict),
                    extra=_unmodelled(arg.extra, _ARG_MEMBERS),
                )
                for arg in syscall.args
            ]
        rules.append(
            rc2.Syscall(
                name=syscall.names[0],
                action=_map_enum(syscall.action, _RC2_ACTIONS, "action", "v1.0.0-rc2", strict),
                args=args,
                extra=_unmodelled(syscall.extra, _RC2_SYSCALL_MEMBERS),
            )
        )
    return rules


def decode_capabilities(capabilities: Optional[List[str]]) -> Optional[v1.LinuxCapabilities]:
    """Lift a flat capability list into all five capability sets."""
    if capabilities is None:
        return None
    # separate copies so that editing one set leaves the others alone
    return v1.LinuxCapabilities(
        bounding=list(capabilities),
        effective=list(capabilities),
        inheritable=list(capabilities),
        permitted=list(capabilities),
        ambient=list(capabilities),
    )


def encode_capabilities(capabilities: Optional[v1.LinuxCapabilities]) -> Optional[List[str]]:
    """Flatten capability sets to the old dialect's list: the effective set."""
    if capabilities is None or capabilities.effective is None:
        return None
    return list(capabilities.effective)


class Rc2Translator(Translator):
    """
    Translator bound to one v1.0.0-rc2 document.

    Properties:
        os, arch:
            Platform identity captured by ``decode()`` and written back by
            ``encode()``. Empty until a successful decode.

        erase_syscalls:
            ``decode()`` found and rewrote ``linux.seccomp.syscalls``, so
            ``encode()`` rewrites it back.

        erase_caps:
            ``decode()`` found and rewrote ``process.capabilities``, so
            ``encode()`` rewrites it back.
    """

    def __init__(self, spec: bytes, config: Optional[CompatConfig] = None):
        if not spec:
            raise ValueError("raw spec document must not be empty")
        self._spec: Optional[bytes] = spec
        self._config = config or CompatConfig.default()
        self._decoded = False
        self.os = ""
        self.arch = ""
        self.erase_syscalls = False
        self.erase_caps = False

    def decode(self) -> BinaryIO:
        """
        Translate the bound document into the new dialect.

        Returns:
            A stream holding the new-dialect JSON document

        Raises:
            DecodeParseError: The raw bytes are not an old-dialect document
            DecodeCarryError: Staging or the JSON carry-over failed
            DecodeEmitError: The new-dialect document could not be written
            RuntimeError: The translator has already decoded its document
        """
        if self._decoded:
            raise RuntimeError("translator has already decoded its document")
        strict = self._config.strict_enums

        try:
            old_spec = rc2_spec_from_json(self._spec)
        except (TypeError, ValueError, RecursionError) as exc:
            raise DecodeParseError(f"error compatible runc v1.0.0-rc2 decode spec file: {exc}") from exc

        platform = old_spec.platform or rc2.Platform()
        self.os = platform.os
        self.arch = platform.arch
        # the new dialect has no platform record
        old_spec.platform = None

        self.erase_syscalls = False
        self.erase_caps = False
        staged_syscalls = None
        staged_caps = None
        try:
            if field_present(old_spec, "linux.seccomp.syscalls"):
                staged_syscalls = decode_syscalls(old_spec.linux.seccomp.syscalls, strict)
                old_spec.linux.seccomp.syscalls = None
                self.erase_syscalls = True
                logger.debug("Staged %d seccomp rules for rewrite", len(staged_syscalls))
        except ValueError as exc:
            raise DecodeCarryError(f"error compatible runc v1.0.0-rc2 stage seccomp syscalls: {exc}") from exc

        if field_present(old_spec, "process.capabilities"):
            staged_caps = decode_capabilities(old_spec.process.capabilities)
            old_spec.process.capabilities = None
            self.erase_caps = True
            logger.debug("Staged %d capabilities for rewrite", len(staged_caps.effective))

        try:
            erase = rc2_spec_to_json(old_spec)
        except (TypeError, ValueError, RecursionError) as exc:
            raise DecodeCarryError(f"error marshal old spec: {exc}") from exc

        try:
            new_spec = v1_spec_from_json(erase)
        except (TypeError, ValueError, RecursionError) as exc:
            raise DecodeCarryError(f"error unmarshal old spec to new spec: {exc}") from exc

        if self.erase_syscalls:
            new_spec.linux.seccomp.syscalls = staged_syscalls
        if self.erase_caps:
            new_spec.process.capabilities = staged_caps

        try:
            out = v1_spec_to_json(new_spec, indent=self._config.indent, sort_keys=self._config.sort_keys)
        except (TypeError, ValueError, RecursionError) as exc:
            raise DecodeEmitError(f"error marshal new spec: {exc}") from exc

        self._decoded = True
        self._spec = None
        return io.BytesIO(out.encode("utf-8"))

    def encode(self, new_spec: v1.Spec) -> rc2.Spec:
        """
        Translate a new-dialect value back into the v1.0.0-rc2 dialect.

        Only the sub-trees that ``decode()`` rewrote are re-shaped; the
        platform identity captured by ``decode()`` is restored. The caller's
        ``new_spec`` is not modified.

        Args:
            new_spec: New-dialect value, usually parsed from ``decode()`` output

        Returns:
            The old-dialect value (not serialised)

        Raises:
            EncodeCarryError: Staging or the JSON carry-over failed
        """
        new_spec = copy.deepcopy(new_spec)
        strict = self._config.strict_enums

        staged_syscalls = None
        staged_caps = None
        if self.erase_syscalls and field_present(new_spec, "linux.seccomp.syscalls"):
            try:
                staged_syscalls = encode_syscalls(new_spec.linux.seccomp.syscalls, strict)
            except ValueError as exc:
                raise EncodeCarryError(
                    f"error compatible runc v1.0.0-rc2 encode seccomp syscalls: {exc}"
                ) from exc
            new_spec.linux.seccomp.syscalls = None

        if self.erase_caps and field_present(new_spec, "process.capabilities"):
            staged_caps = encode_capabilities(new_spec.process.capabilities)
            new_spec.process.capabilities = None

        try:
            erase = v1_spec_to_json(new_spec)
        except (TypeError, ValueError, RecursionError) as exc:
            raise EncodeCarryError(f"error marshal new spec: {exc}") from exc

        try:
            old_spec = rc2_spec_from_json(erase)
        except (TypeError, ValueError, RecursionError) as exc:
            raise EncodeCarryError(f"error unmarshal new spec to old spec: {exc}") from exc

        # new-dialect rules that decode did not stage have no old-dialect shape
        if field_present(old_spec, "linux.seccomp.syscalls") and any(
            "names" in syscall.extra for syscall in old_spec.linux.seccomp.syscalls
        ):
            raise EncodeCarryError(
                "error unmarshal new spec to old spec: seccomp syscalls were not staged by decode"
            )

        if staged_syscalls is not None:
            old_spec.linux.seccomp.syscalls = staged_syscalls
        if staged_caps is not None:
            old_spec.process.capabilities = staged_caps

        if old_spec.platform is None:
            old_spec.platform = rc2.Platform()
        old_spec.platform.os = self.os
        old_spec.platform.arch = self.arch
        return old_spec
