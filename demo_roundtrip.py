#!/usr/bin/env python3
"""
Demo: translate a v1.0.0-rc2 config.json to the stable dialect and back.

Prints the stable-dialect document as YAML, then the re-encoded
v1.0.0-rc2 document as JSON.
"""

import io
import logging

from ocicompat import new_compatible
from ocicompat.examples import build_example_rc2_document
from ocicompat.serialization import rc2_spec_to_json, v1_spec_from_json, v1_spec_to_yaml


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    handle = io.BytesIO(build_example_rc2_document(arch="arm64"))
    translator = new_compatible(handle)

    print("=" * 80)
    print("STABLE DIALECT (decoded)")
    print("=" * 80)
    new_spec = v1_spec_from_json(translator.decode().read())
    print(v1_spec_to_yaml(new_spec))

    # A caller would edit the stable value here.
    new_spec.hostname = "demo"

    print("=" * 80)
    print("v1.0.0-rc2 DIALECT (re-encoded)")
    print("=" * 80)
    old_spec = translator.encode(new_spec)
    print(rc2_spec_to_json(old_spec, indent=2))


if __name__ == "__main__":
    main()
