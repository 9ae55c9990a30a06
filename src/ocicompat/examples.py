"""
Example v1.0.0-rc2 runtime configuration, modelled on the default
``config.json`` that runc of that era generated.

Used by the demo script and the tests as a realistic input document.
"""
import json
from typing import Any, Dict, List, Optional


DEFAULT_CAPABILITIES = ["CAP_AUDIT_WRITE", "CAP_KILL", "CAP_NET_BIND_SERVICE"]


def build_example_rc2_spec(
    os: str = "linux",
    arch: str = "amd64",
    capabilities: Optional[List[str]] = DEFAULT_CAPABILITIES,
    with_seccomp: bool = True,
    oci_version: str = "1.0.0-rc2-dev",
) -> Dict[str, Any]:
    spec: Dict[str, Any] = {
        "ociVersion": oci_version,
        "platform": {"os": os, "arch": arch},
        "process": {
            "terminal": True,
            "user": {"uid": 0, "gid": 0},
            "args": ["sh"],
            "env": [
                "PATH=/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin",
                "TERM=xterm",
            ],
            "cwd": "/",
            "rlimits": [{"type": "RLIMIT_NOFILE", "hard": 1024, "soft": 1024}],
            "noNewPrivileges": True,
        },
        "root": {"path": "rootfs", "readonly": True},
        "hostname": "runc",
        "mounts": [
            {"destination": "/proc", "type": "proc", "source": "proc"},
            {
                "destination": "/dev",
                "type": "tmpfs",
                "source": "tmpfs",
                "options": ["nosuid", "strictatime", "mode=755", "size=65536k"],
            },
        ],
        "hooks": {},
        "linux": {
            "resources": {"devices": [{"allow": False, "access": "rwm"}]},
            "namespaces": [
                {"type": "pid"},
                {"type": "network"},
                {"type": "ipc"},
                {"type": "uts"},
                {"type": "mount"},
            ],
            "maskedPaths": ["/proc/kcore", "/proc/latency_stats"],
            "readonlyPaths": ["/proc/asound", "/proc/bus"],
        },
    }

    if capabilities is not None:
        spec["process"]["capabilities"] = list(capabilities)

    if with_seccomp:
        spec["linux"]["seccomp"] = {
            "defaultAction": "SCMP_ACT_ERRNO",
            "architectures": ["SCMP_ARCH_X86_64", "SCMP_ARCH_X86"],
            "syscalls": [
                {"name": "read", "action": "SCMP_ACT_ALLOW"},
                {
                    "name": "personality",
                    "action": "SCMP_ACT_ALLOW",
                    "args": [{"index": 0, "value": 0, "valueTwo": 0, "op": "SCMP_CMP_EQ"}],
                },
                {
                    "name": "clone",
                    "action": "SCMP_ACT_ALLOW",
                    "args": [
                        {"index": 0, "value": 2080505856, "valueTwo": 0, "op": "SCMP_CMP_MASKED_EQ"},
                    ],
                },
            ],
        }

    return spec


def build_example_rc2_document(**kwargs: Any) -> bytes:
    """Same as ``build_example_rc2_spec`` but serialised to JSON bytes."""
    return json.dumps(build_example_rc2_spec(**kwargs)).encode("utf-8")
