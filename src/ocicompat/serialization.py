"""
Serialization helpers for both runtime configuration dialects.

Provides JSON/YAML round-trip via an intermediate dict representation that
uses the document's own member names (``ociVersion``, ``valueTwo``,
``errnoRet``, ...).

Rules shared by every record:
    - ``None`` attributes are omitted from the output
    - empty lists are written as ``[]``, so absent and empty stay distinct
    - members a record does not model are kept in its ``extra`` mapping
      and written back after the modelled ones; a modelled member always
      wins over an unmodelled one of the same name

Structural mistakes in the input (a list where an object is expected, a
number where a string is expected) raise ``TypeError``.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple, Type, Union

import yaml

from ocicompat.specs import rc2, v1


# ---------------------------------------------------------------------------
# shared helpers
# ---------------------------------------------------------------------------

def _members(d: Any, where: str) -> Dict[str, Any]:
    """Return a shallow copy of a JSON object, or raise if it is not one."""
    if not isinstance(d, dict):
        raise TypeError(f"{where}: expected a JSON object, got {type(d).__name__}")
    return dict(d)


def _take(
    d: Dict[str, Any],
    key: str,
    kind: Union[Type, Tuple[Type, ...]],
    where: str,
    default: Any = None,
) -> Any:
    value = d.pop(key, None)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise TypeError(f"{where}.{key}: unexpected type {type(value).__name__}")
    return value


def _take_strings(d: Dict[str, Any], key: str, where: str) -> Optional[List[str]]:
    values = _take(d, key, list, where)
    if values is None:
        return None
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{where}.{key}: expected strings, got {type(item).__name__}")
    return list(values)


def _take_objects(d: Dict[str, Any], key: str, where: str) -> Optional[List[Any]]:
    return _take(d, key, list, where)


def _compact(pairs: List[Tuple[str, Any]], extra: Dict[str, Any]) -> Dict[str, Any]:
    out = {key: value for key, value in pairs if value is not None}
    modelled = {key for key, _ in pairs}
    out.update((key, value) for key, value in extra.items() if key not in modelled)
    return out


def _dump_json(d: Dict[str, Any], indent: Optional[int], sort_keys: bool) -> str:
    separators = (",", ":") if indent is None else None
    return json.dumps(d, indent=indent, sort_keys=sort_keys, separators=separators)


def _load_json(s: Union[str, bytes], where: str) -> Dict[str, Any]:
    d = json.loads(s)
    if not isinstance(d, dict):
        raise TypeError(f"{where}: expected a JSON object, got {type(d).__name__}")
    return d


# ---------------------------------------------------------------------------
# old dialect (v1.0.0-rc2)
# ---------------------------------------------------------------------------

def rc2_arg_to_dict(a: rc2.Arg) -> Dict[str, Any]:
    return _compact(
        [("index", a.index), ("value", a.value), ("valueTwo", a.value_two), ("op", a.op)],
        a.extra,
    )


def rc2_arg_from_dict(d: Any) -> rc2.Arg:
    m = _members(d, "arg")
    return rc2.Arg(
        index=_take(m, "index", int, "arg", 0),
        value=_take(m, "value", int, "arg", 0),
        value_two=_take(m, "valueTwo", int, "arg", 0),
        op=_take(m, "op", str, "arg", ""),
        extra=m,
    )


def rc2_syscall_to_dict(s: rc2.Syscall) -> Dict[str, Any]:
    args = None if s.args is None else [rc2_arg_to_dict(a) for a in s.args]
    return _compact([("name", s.name), ("action", s.action), ("args", args)], s.extra)


def rc2_syscall_from_dict(d: Any) -> rc2.Syscall:
    m = _members(d, "syscall")
    args = _take_objects(m, "args", "syscall")
    return rc2.Syscall(
        name=_take(m, "name", str, "syscall", ""),
        action=_take(m, "action", str, "syscall", ""),
        args=None if args is None else [rc2_arg_from_dict(a) for a in args],
        extra=m,
    )


def rc2_seccomp_to_dict(s: rc2.Seccomp) -> Dict[str, Any]:
    syscalls = None if s.syscalls is None else [rc2_syscall_to_dict(x) for x in s.syscalls]
    return _compact(
        [
            ("defaultAction", s.default_action),
            ("architectures", s.architectures),
            ("syscalls", syscalls),
        ],
        s.extra,
    )


def rc2_seccomp_from_dict(d: Any) -> rc2.Seccomp:
    m = _members(d, "seccomp")
    syscalls = _take_objects(m, "syscalls", "seccomp")
    return rc2.Seccomp(
        default_action=_take(m, "defaultAction", str, "seccomp"),
        architectures=_take_strings(m, "architectures", "seccomp"),
        syscalls=None if syscalls is None else [rc2_syscall_from_dict(x) for x in syscalls],
        extra=m,
    )


def rc2_linux_to_dict(linux: rc2.Linux) -> Dict[str, Any]:
    seccomp = None if linux.seccomp is None else rc2_seccomp_to_dict(linux.seccomp)
    return _compact([("seccomp", seccomp)], linux.extra)


def rc2_linux_from_dict(d: Any) -> rc2.Linux:
    m = _members(d, "linux")
    seccomp = m.pop("seccomp", None)
    return rc2.Linux(
        seccomp=None if seccomp is None else rc2_seccomp_from_dict(seccomp),
        extra=m,
    )


def rc2_platform_to_dict(p: rc2.Platform) -> Dict[str, Any]:
    # os and arch are always written, even when empty
    return _compact([("os", p.os), ("arch", p.arch)], p.extra)


def rc2_platform_from_dict(d: Any) -> rc2.Platform:
    m = _members(d, "platform")
    return rc2.Platform(
        os=_take(m, "os", str, "platform", ""),
        arch=_take(m, "arch", str, "platform", ""),
        extra=m,
    )


def rc2_root_to_dict(r: rc2.Root) -> Dict[str, Any]:
    return _compact([("path", r.path), ("readonly", r.readonly)], r.extra)


def rc2_root_from_dict(d: Any) -> rc2.Root:
    m = _members(d, "root")
    return rc2.Root(
        path=_take(m, "path", str, "root", ""),
        readonly=_take(m, "readonly", bool, "root"),
        extra=m,
    )


def rc2_process_to_dict(p: rc2.Process) -> Dict[str, Any]:
    return _compact(
        [
            ("terminal", p.terminal),
            ("cwd", p.cwd),
            ("args", p.args),
            ("env", p.env),
            ("capabilities", p.capabilities),
            ("noNewPrivileges", p.no_new_privileges),
        ],
        p.extra,
    )


def rc2_process_from_dict(d: Any) -> rc2.Process:
    m = _members(d, "process")
    return rc2.Process(
        terminal=_take(m, "terminal", bool, "process"),
        cwd=_take(m, "cwd", str, "process"),
        args=_take_strings(m, "args", "process"),
        env=_take_strings(m, "env", "process"),
        capabilities=_take_strings(m, "capabilities", "process"),
        no_new_privileges=_take(m, "noNewPrivileges", bool, "process"),
        extra=m,
    )


def rc2_spec_to_dict(s: rc2.Spec) -> Dict[str, Any]:
    return _compact(
        [
            ("ociVersion", s.oci_version),
            ("platform", None if s.platform is None else rc2_platform_to_dict(s.platform)),
            ("process", None if s.process is None else rc2_process_to_dict(s.process)),
            ("root", None if s.root is None else rc2_root_to_dict(s.root)),
            ("hostname", s.hostname),
            ("linux", None if s.linux is None else rc2_linux_to_dict(s.linux)),
        ],
        s.extra,
    )


def rc2_spec_from_dict(d: Any) -> rc2.Spec:
    m = _members(d, "spec")
    platform = m.pop("platform", None)
    process = m.pop("process", None)
    root = m.pop("root", None)
    linux = m.pop("linux", None)
    return rc2.Spec(
        oci_version=_take(m, "ociVersion", str, "spec", ""),
        platform=None if platform is None else rc2_platform_from_dict(platform),
        process=None if process is None else rc2_process_from_dict(process),
        root=None if root is None else rc2_root_from_dict(root),
        hostname=_take(m, "hostname", str, "spec"),
        linux=None if linux is None else rc2_linux_from_dict(linux),
        extra=m,
    )


def rc2_spec_to_json(s: rc2.Spec, indent: Optional[int] = None, sort_keys: bool = False) -> str:
    return _dump_json(rc2_spec_to_dict(s), indent, sort_keys)


def rc2_spec_from_json(s: Union[str, bytes]) -> rc2.Spec:
    return rc2_spec_from_dict(_load_json(s, "spec"))


def rc2_spec_to_yaml(s: rc2.Spec) -> str:
    return yaml.safe_dump(rc2_spec_to_dict(s), sort_keys=False)


def rc2_spec_from_yaml(s: str) -> rc2.Spec:
    return rc2_spec_from_dict(yaml.safe_load(s))


# ---------------------------------------------------------------------------
# new dialect
# ---------------------------------------------------------------------------

def v1_arg_to_dict(a: v1.LinuxSeccompArg) -> Dict[str, Any]:
    return _compact(
        [("index", a.index), ("value", a.value), ("valueTwo", a.value_two), ("op", a.op)],
        a.extra,
    )


def v1_arg_from_dict(d: Any) -> v1.LinuxSeccompArg:
    m = _members(d, "arg")
    return v1.LinuxSeccompArg(
        index=_take(m, "index", int, "arg", 0),
        value=_take(m, "value", int, "arg", 0),
        value_two=_take(m, "valueTwo", int, "arg", 0),
        op=_take(m, "op", str, "arg", ""),
        extra=m,
    )


def v1_syscall_to_dict(s: v1.LinuxSyscall) -> Dict[str, Any]:
    args = None if s.args is None else [v1_arg_to_dict(a) for a in s.args]
    return _compact(
        [
            ("names", list(s.names)),
            ("action", s.action),
            ("errnoRet", s.errno_ret),
            ("args", args),
        ],
        s.extra,
    )


def v1_syscall_from_dict(d: Any) -> v1.LinuxSyscall:
    m = _members(d, "syscall")
    args = _take_objects(m, "args", "syscall")
    return v1.LinuxSyscall(
        names=_take_strings(m, "names", "syscall") or [],
        action=_take(m, "action", str, "syscall", ""),
        errno_ret=_take(m, "errnoRet", int, "syscall"),
        args=None if args is None else [v1_arg_from_dict(a) for a in args],
        extra=m,
    )


def v1_seccomp_to_dict(s: v1.LinuxSeccomp) -> Dict[str, Any]:
    syscalls = None if s.syscalls is None else [v1_syscall_to_dict(x) for x in s.syscalls]
    return _compact(
        [
            ("defaultAction", s.default_action),
            ("architectures", s.architectures),
            ("flags", s.flags),
            ("syscalls", syscalls),
        ],
        s.extra,
    )


def v1_seccomp_from_dict(d: Any) -> v1.LinuxSeccomp:
    m = _members(d, "seccomp")
    syscalls = _take_objects(m, "syscalls", "seccomp")
    return v1.LinuxSeccomp(
        default_action=_take(m, "defaultAction", str, "seccomp"),
        architectures=_take_strings(m, "architectures", "seccomp"),
        flags=_take_strings(m, "flags", "seccomp"),
        syscalls=None if syscalls is None else [v1_syscall_from_dict(x) for x in syscalls],
        extra=m,
    )


def v1_linux_to_dict(linux: v1.Linux) -> Dict[str, Any]:
    seccomp = None if linux.seccomp is None else v1_seccomp_to_dict(linux.seccomp)
    return _compact([("seccomp", seccomp)], linux.extra)


def v1_linux_from_dict(d: Any) -> v1.Linux:
    m = _members(d, "linux")
    seccomp = m.pop("seccomp", None)
    return v1.Linux(
        seccomp=None if seccomp is None else v1_seccomp_from_dict(seccomp),
        extra=m,
    )


def v1_capabilities_to_dict(c: v1.LinuxCapabilities) -> Dict[str, Any]:
    return _compact(
        [
            ("bounding", c.bounding),
            ("effective", c.effective),
            ("inheritable", c.inheritable),
            ("permitted", c.permitted),
            ("ambient", c.ambient),
        ],
        c.extra,
    )


def v1_capabilities_from_dict(d: Any) -> v1.LinuxCapabilities:
    m = _members(d, "capabilities")
    return v1.LinuxCapabilities(
        bounding=_take_strings(m, "bounding", "capabilities"),
        effective=_take_strings(m, "effective", "capabilities"),
        inheritable=_take_strings(m, "inheritable", "capabilities"),
        permitted=_take_strings(m, "permitted", "capabilities"),
        ambient=_take_strings(m, "ambient", "capabilities"),
        extra=m,
    )


def v1_root_to_dict(r: v1.Root) -> Dict[str, Any]:
    return _compact([("path", r.path), ("readonly", r.readonly)], r.extra)


def v1_root_from_dict(d: Any) -> v1.Root:
    m = _members(d, "root")
    return v1.Root(
        path=_take(m, "path", str, "root", ""),
        readonly=_take(m, "readonly", bool, "root"),
        extra=m,
    )


def v1_process_to_dict(p: v1.Process) -> Dict[str, Any]:
    caps = None if p.capabilities is None else v1_capabilities_to_dict(p.capabilities)
    return _compact(
        [
            ("terminal", p.terminal),
            ("cwd", p.cwd),
            ("args", p.args),
            ("env", p.env),
            ("capabilities", caps),
            ("noNewPrivileges", p.no_new_privileges),
        ],
        p.extra,
    )


def v1_process_from_dict(d: Any) -> v1.Process:
    m = _members(d, "process")
    caps = m.pop("capabilities", None)
    return v1.Process(
        terminal=_take(m, "terminal", bool, "process"),
        cwd=_take(m, "cwd", str, "process"),
        args=_take_strings(m, "args", "process"),
        env=_take_strings(m, "env", "process"),
        capabilities=None if caps is None else v1_capabilities_from_dict(caps),
        no_new_privileges=_take(m, "noNewPrivileges", bool, "process"),
        extra=m,
    )


def v1_spec_to_dict(s: v1.Spec) -> Dict[str, Any]:
    return _compact(
        [
            ("ociVersion", s.oci_version),
            ("process", None if s.process is None else v1_process_to_dict(s.process)),
            ("root", None if s.root is None else v1_root_to_dict(s.root)),
            ("hostname", s.hostname),
            ("linux", None if s.linux is None else v1_linux_to_dict(s.linux)),
        ],
        s.extra,
    )


def v1_spec_from_dict(d: Any) -> v1.Spec:
    m = _members(d, "spec")
    process = m.pop("process", None)
    root = m.pop("root", None)
    linux = m.pop("linux", None)
    return v1.Spec(
        oci_version=_take(m, "ociVersion", str, "spec", ""),
        process=None if process is None else v1_process_from_dict(process),
        root=None if root is None else v1_root_from_dict(root),
        hostname=_take(m, "hostname", str, "spec"),
        linux=None if linux is None else v1_linux_from_dict(linux),
        extra=m,
    )


def v1_spec_to_json(s: v1.Spec, indent: Optional[int] = None, sort_keys: bool = False) -> str:
    return _dump_json(v1_spec_to_dict(s), indent, sort_keys)


def v1_spec_from_json(s: Union[str, bytes]) -> v1.Spec:
    return v1_spec_from_dict(_load_json(s, "spec"))


def v1_spec_to_yaml(s: v1.Spec) -> str:
    return yaml.safe_dump(v1_spec_to_dict(s), sort_keys=False)


def v1_spec_from_yaml(s: str) -> v1.Spec:
    return v1_spec_from_dict(yaml.safe_load(s))
