"""
Tests for the v1.0.0-rc2 translator (decode draft -> stable, encode back).

Scenarios follow how a container tool uses the translator:
1. detect the dialect from the raw document
2. decode into the stable dialect and parse the result
3. encode the (possibly edited) stable value back to the draft dialect
"""

import copy
import json
import logging

import pytest

from ocicompat import (
    CompatConfig,
    DecodeCarryError,
    DecodeParseError,
    EncodeCarryError,
    Rc2Translator,
    detect,
)
from ocicompat.examples import build_example_rc2_spec
from ocicompat.serialization import rc2_spec_to_dict, v1_spec_from_dict
from ocicompat.specs import rc2, v1


def _decode(doc, config=None):
    translator = detect(json.dumps(doc).encode("utf-8"), config)
    new_doc = json.loads(translator.decode().read())
    return translator, new_doc


def _roundtrip(doc, config=None):
    translator, new_doc = _decode(doc, config)
    old = translator.encode(v1_spec_from_dict(new_doc))
    return translator, new_doc, old


class TestCapabilities:
    """Flat capability list <-> five capability sets."""

    def test_capabilities_lifted_to_all_sets(self):
        """S1: every set receives the flat list."""
        doc = {
            "ociVersion": "1.0.0-rc2",
            "platform": {"os": "linux", "arch": "amd64"},
            "process": {"capabilities": ["CAP_NET_BIND_SERVICE", "CAP_CHOWN"]},
        }
        translator, new_doc, old = _roundtrip(doc)

        caps = new_doc["process"]["capabilities"]
        assert set(caps) == {"bounding", "effective", "inheritable", "permitted", "ambient"}
        for value in caps.values():
            assert value == ["CAP_NET_BIND_SERVICE", "CAP_CHOWN"]

        assert translator.erase_caps is True
        assert old.process.capabilities == ["CAP_NET_BIND_SERVICE", "CAP_CHOWN"]
        assert old.platform == rc2.Platform(os="linux", arch="amd64")

    def test_encode_uses_effective_set(self):
        """Only the effective set survives encoding."""
        doc = build_example_rc2_spec()
        translator, new_doc = _decode(doc)
        new_spec = v1_spec_from_dict(new_doc)
        new_spec.process.capabilities.effective = ["CAP_KILL"]
        new_spec.process.capabilities.bounding = ["CAP_SYS_ADMIN"]

        old = translator.encode(new_spec)
        assert old.process.capabilities == ["CAP_KILL"]

    def test_absent_capabilities_stay_absent(self):
        """No capabilities in, no capabilities out, in both directions."""
        doc = build_example_rc2_spec(capabilities=None)
        translator, new_doc, old = _roundtrip(doc)

        assert translator.erase_caps is False
        assert "capabilities" not in new_doc["process"]
        assert old.process.capabilities is None
        assert "capabilities" not in rc2_spec_to_dict(old)["process"]

    def test_empty_capabilities_stay_empty(self):
        """An empty list is present, not absent."""
        doc = build_example_rc2_spec(capabilities=[])
        translator, new_doc, old = _roundtrip(doc)

        assert translator.erase_caps is True
        assert new_doc["process"]["capabilities"]["effective"] == []
        assert old.process.capabilities == []


class TestSeccomp:
    """Single-name rules <-> names lists."""

    def test_syscall_rename(self):
        """S2: one name becomes a one-element names list and back."""
        doc = {
            "ociVersion": "1.0.0-rc2",
            "platform": {"os": "linux", "arch": "amd64"},
            "linux": {
                "seccomp": {
                    "syscalls": [
                        {
                            "name": "read",
                            "action": "SCMP_ACT_ALLOW",
                            "args": [{"index": 0, "value": 1, "valueTwo": 0, "op": "SCMP_CMP_EQ"}],
                        }
                    ]
                }
            },
        }
        translator, new_doc, old = _roundtrip(doc)

        assert translator.erase_syscalls is True
        assert new_doc["linux"]["seccomp"]["syscalls"] == [
            {
                "names": ["read"],
                "action": "SCMP_ACT_ALLOW",
                "args": [{"index": 0, "value": 1, "valueTwo": 0, "op": "SCMP_CMP_EQ"}],
            }
        ]
        assert "errnoRet" not in new_doc["linux"]["seccomp"]["syscalls"][0]

        assert old.linux.seccomp.syscalls == [
            rc2.Syscall(
                name="read",
                action="SCMP_ACT_ALLOW",
                args=[rc2.Arg(index=0, value=1, value_two=0, op="SCMP_CMP_EQ")],
            )
        ]
        assert rc2_spec_to_dict(old)["linux"] == doc["linux"]

    def test_order_preserved(self):
        """Rules and arguments keep their order."""
        doc = build_example_rc2_spec()
        translator, new_doc, old = _roundtrip(doc)

        names = [rule["names"] for rule in new_doc["linux"]["seccomp"]["syscalls"]]
        assert names == [["read"], ["personality"], ["clone"]]
        assert [s.name for s in old.linux.seccomp.syscalls] == ["read", "personality", "clone"]

    def test_empty_args_stay_empty(self):
        """An empty argument list is not turned into an absent one."""
        doc = {
            "ociVersion": "1.0.0-rc2",
            "linux": {"seccomp": {"syscalls": [{"name": "read", "action": "SCMP_ACT_ALLOW", "args": []}]}},
        }
        translator, new_doc, old = _roundtrip(doc)

        assert new_doc["linux"]["seccomp"]["syscalls"][0]["args"] == []
        assert old.linux.seccomp.syscalls[0].args == []

    def test_extra_names_dropped_on_encode(self):
        """A rule with two names keeps only the first."""
        doc = build_example_rc2_spec()
        translator, new_doc = _decode(doc)
        new_doc["linux"]["seccomp"]["syscalls"][0]["names"] = ["read", "pread64"]
        new_doc["linux"]["seccomp"]["syscalls"][0]["errnoRet"] = 1

        old = translator.encode(v1_spec_from_dict(new_doc))
        assert old.linux.seccomp.syscalls[0].name == "read"
        assert "errnoRet" not in rc2_spec_to_dict(old)["linux"]["seccomp"]["syscalls"][0]

    def test_rule_without_names_rejected(self):
        """Encoding a rule with no names fails."""
        translator, new_doc = _decode(build_example_rc2_spec())
        new_doc["linux"]["seccomp"]["syscalls"][0]["names"] = []

        with pytest.raises(EncodeCarryError):
            translator.encode(v1_spec_from_dict(new_doc))

    def test_seccomp_without_syscalls_not_staged(self):
        """A profile with no rule list leaves the flag unset."""
        doc = {"ociVersion": "1.0.0-rc2", "linux": {"seccomp": {"defaultAction": "SCMP_ACT_ALLOW"}}}
        translator, new_doc, old = _roundtrip(doc)

        assert translator.erase_syscalls is False
        assert new_doc["linux"]["seccomp"] == {"defaultAction": "SCMP_ACT_ALLOW"}
        assert old.linux.seccomp.syscalls is None

    def test_unknown_action_carried_with_warning(self, caplog):
        """Outside strict mode an unknown action is carried and logged."""
        doc = {
            "ociVersion": "1.0.0-rc2",
            "linux": {"seccomp": {"syscalls": [{"name": "read", "action": "SCMP_ACT_BOGUS"}]}},
        }
        with caplog.at_level(logging.WARNING, logger="ocicompat.translators.rc2"):
            translator, new_doc = _decode(doc)

        assert new_doc["linux"]["seccomp"]["syscalls"][0]["action"] == "SCMP_ACT_BOGUS"
        assert "SCMP_ACT_BOGUS" in caplog.text

    def test_unknown_action_rejected_in_strict_mode(self):
        """Strict mode refuses actions the new dialect does not define."""
        doc = {
            "ociVersion": "1.0.0-rc2",
            "linux": {"seccomp": {"syscalls": [{"name": "read", "action": "SCMP_ACT_BOGUS"}]}},
        }
        translator = detect(json.dumps(doc).encode("utf-8"), CompatConfig(strict_enums=True))
        with pytest.raises(DecodeCarryError):
            translator.decode()

    def test_new_only_action_rejected_on_strict_encode(self):
        """SCMP_ACT_LOG does not exist in the old dialect."""
        config = CompatConfig(strict_enums=True)
        translator, new_doc = _decode(build_example_rc2_spec(), config)
        new_spec = v1_spec_from_dict(new_doc)
        new_spec.linux.seccomp.syscalls[0].action = v1.LinuxSeccompAction.LOG.value

        with pytest.raises(EncodeCarryError):
            translator.encode(new_spec)

    def test_unknown_rule_members_cannot_shadow_names(self):
        """Stray names/errnoRet members on an rc2 rule do not leak into the rewrite."""
        doc = {
            "ociVersion": "1.0.0-rc2",
            "linux": {
                "seccomp": {
                    "syscalls": [
                        {"name": "read", "action": "SCMP_ACT_ALLOW", "names": ["write"], "errnoRet": 1}
                    ]
                }
            },
        }
        translator, new_doc = _decode(doc)

        assert new_doc["linux"]["seccomp"]["syscalls"] == [
            {"names": ["read"], "action": "SCMP_ACT_ALLOW"}
        ]

    def test_unknown_rule_members_cannot_shadow_name(self):
        """A stray name member on a new-dialect rule does not replace names[0]."""
        translator, new_doc = _decode(build_example_rc2_spec())
        new_doc["linux"]["seccomp"]["syscalls"][0]["name"] = "write"

        old = translator.encode(v1_spec_from_dict(new_doc))
        assert old.linux.seccomp.syscalls[0].name == "read"
        assert rc2_spec_to_dict(old)["linux"]["seccomp"]["syscalls"][0]["name"] == "read"

    def test_rules_added_after_decode_rejected(self):
        """Rules decode never staged cannot be forced into the old shape."""
        translator, new_doc = _decode(build_example_rc2_spec(with_seccomp=False))
        assert translator.erase_syscalls is False
        new_doc["linux"]["seccomp"] = {
            "syscalls": [{"names": ["read"], "action": "SCMP_ACT_ALLOW"}]
        }

        with pytest.raises(EncodeCarryError):
            translator.encode(v1_spec_from_dict(new_doc))


class TestAbsentDivergence:
    """Documents without the divergent sub-trees."""

    def test_no_seccomp_no_capabilities(self):
        """S3: nothing staged, shape unchanged after a round trip."""
        doc = {
            "ociVersion": "1.0.0-rc2",
            "platform": {"os": "linux", "arch": "amd64"},
            "process": {"args": ["sh"], "cwd": "/"},
            "linux": {"namespaces": [{"type": "pid"}]},
        }
        translator, new_doc, old = _roundtrip(doc)

        assert translator.erase_syscalls is False
        assert translator.erase_caps is False
        assert "seccomp" not in new_doc["linux"]
        assert "capabilities" not in new_doc["process"]
        assert rc2_spec_to_dict(old) == doc


class TestPlatform:
    """Platform identity is kept by the translator, not the new dialect."""

    def test_platform_restored(self):
        """S6: arm64 survives decode then encode."""
        doc = build_example_rc2_spec(arch="arm64")
        translator, new_doc, old = _roundtrip(doc)

        assert "platform" not in new_doc
        assert (translator.os, translator.arch) == ("linux", "arm64")
        assert old.platform == rc2.Platform(os="linux", arch="arm64")

    def test_encode_without_decode(self):
        """Encoding before decoding yields an empty platform identity."""
        translator = Rc2Translator(b'{"ociVersion": "1.0.0-rc2"}')
        old = translator.encode(v1.Spec(oci_version="1.0.0-rc2", hostname="box"))

        assert old.platform == rc2.Platform(os="", arch="")
        assert old.hostname == "box"


class TestCarryOver:
    """Members outside the divergent areas pass through untouched."""

    def test_non_divergent_members_equal(self):
        """Decode keeps every non-divergent member."""
        doc = build_example_rc2_spec()
        translator, new_doc = _decode(doc)

        for key in ("ociVersion", "root", "hostname", "mounts", "hooks"):
            assert new_doc[key] == doc[key]

        process = dict(new_doc["process"])
        process.pop("capabilities")
        expected = dict(doc["process"])
        expected.pop("capabilities")
        assert process == expected

        linux = dict(new_doc["linux"])
        seccomp = linux.pop("seccomp")
        expected_linux = dict(doc["linux"])
        expected_seccomp = expected_linux.pop("seccomp")
        assert linux == expected_linux
        assert seccomp["defaultAction"] == expected_seccomp["defaultAction"]
        assert seccomp["architectures"] == expected_seccomp["architectures"]

    def test_full_roundtrip(self):
        """Decode then encode reproduces the original document."""
        doc = build_example_rc2_spec()
        translator, new_doc, old = _roundtrip(doc)
        assert rc2_spec_to_dict(old) == doc

    def test_unknown_members_survive(self):
        """Members neither dialect model knows about are carried."""
        doc = build_example_rc2_spec()
        doc["annotations"] = {"org.example/owner": "ops"}
        doc["linux"]["seccomp"]["syscalls"][1]["comment"] = "personality(0) only"
        translator, new_doc, old = _roundtrip(doc)

        assert new_doc["annotations"] == {"org.example/owner": "ops"}
        assert new_doc["linux"]["seccomp"]["syscalls"][1]["comment"] == "personality(0) only"
        assert rc2_spec_to_dict(old) == doc

    def test_encode_leaves_caller_value_alone(self):
        """The new-dialect value handed to encode is not modified."""
        translator, new_doc = _decode(build_example_rc2_spec())
        new_spec = v1_spec_from_dict(new_doc)
        before = copy.deepcopy(new_spec)

        translator.encode(new_spec)
        assert new_spec == before
        assert new_spec.process.capabilities is not None
        assert new_spec.linux.seccomp.syscalls is not None

    def test_encode_twice_is_stable(self):
        """Encode can be called repeatedly with the same result."""
        translator, new_doc = _decode(build_example_rc2_spec())
        new_spec = v1_spec_from_dict(new_doc)
        assert translator.encode(new_spec) == translator.encode(new_spec)


class TestDecodeFailures:
    """Errors raised while decoding."""

    def test_malformed_json(self):
        """S5: truncated input fails to parse."""
        with pytest.raises(DecodeParseError) as exc_info:
            Rc2Translator(b"{").decode()
        assert str(exc_info.value).startswith("error compatible runc v1.0.0-rc2 decode spec file:")
        assert exc_info.value.__cause__ is not None

    def test_wrong_shape(self):
        """New-dialect capabilities in an rc2 document are a parse error."""
        raw = b'{"ociVersion": "1.0.0-rc2", "process": {"capabilities": {"bounding": []}}}'
        with pytest.raises(DecodeParseError) as exc_info:
            Rc2Translator(raw).decode()
        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_not_an_object(self):
        """A top-level array is rejected."""
        with pytest.raises(DecodeParseError):
            Rc2Translator(b"[1, 2]").decode()

    def test_deeply_nested_document(self):
        """Nesting past the parser's depth limit is a parse error."""
        depth = 100000
        raw = (
            b'{"ociVersion": "1.0.0-rc2", "annotations": {"x": '
            + b"[" * depth + b"]" * depth + b"}}"
        )
        with pytest.raises(DecodeParseError):
            Rc2Translator(raw).decode()

    def test_empty_document_rejected(self):
        """A translator needs a non-empty document."""
        with pytest.raises(ValueError):
            Rc2Translator(b"")

    def test_decode_twice(self):
        """A translator decodes exactly once."""
        translator = Rc2Translator(json.dumps(build_example_rc2_spec()).encode("utf-8"))
        translator.decode()
        with pytest.raises(RuntimeError):
            translator.decode()


class TestOutputFormatting:
    """Config options that shape the decoded JSON."""

    def test_compact_by_default(self):
        raw = json.dumps(build_example_rc2_spec()).encode("utf-8")
        out = Rc2Translator(raw).decode().read()
        assert b"\n" not in out
        assert b'"ociVersion":"1.0.0-rc2-dev"' in out

    def test_indent_and_sort_keys(self):
        raw = json.dumps(build_example_rc2_spec()).encode("utf-8")
        config = CompatConfig(indent=2, sort_keys=True)
        out = Rc2Translator(raw, config).decode().read()

        assert b'\n  "hostname"' in out
        keys = list(json.loads(out).keys())
        assert keys == sorted(keys)
