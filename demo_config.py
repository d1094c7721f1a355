#!/usr/bin/env python3
"""
Config Demo: wp-config.php → edits → introspection

Shows the full workflow:
1. Write an example wp-config.php
2. Locate definitions in the text
3. Update, add and remove definitions
4. Execute the file and list what it defines (needs php)
"""

import shutil
import tempfile
from pathlib import Path

from wpconf.examples import build_example_config
from wpconf.introspector import ConfigIntrospector
from wpconf.model import Kind, TransformOptions
from wpconf.serialization import format_entries
from wpconf.transformer import ConfigTransformer


def main():
    workdir = Path(tempfile.mkdtemp(prefix="wpconf-demo-"))
    path = workdir / "wp-config.php"
    path.write_text(build_example_config(debug=None), encoding="utf-8")

    print("=" * 80)
    print("CONFIG DEMO: wp-config.php → Edits → Introspection")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Locate
    # =========================================================================
    transformer = ConfigTransformer(path)
    print("\n1. LOCATING DEFINITIONS...")
    for kind, name in [(Kind.CONSTANT, "DB_NAME"), (Kind.CONSTANT, "DB_PASSWORD"),
                       (Kind.VARIABLE, "table_prefix"), (Kind.CONSTANT, "WP_DEBUG")]:
        definition = transformer.find(kind, name)
        if definition is None:
            print(f"   ✗ {kind.value} {name}: not defined")
        else:
            print(f"   ✓ {kind.value} {name} = {definition.raw_value}")

    # =========================================================================
    # STEP 2: Edit
    # =========================================================================
    print("\n2. EDITING...")
    transformer.update(Kind.CONSTANT, "DB_NAME", "blog")
    print("   ✓ Updated DB_NAME")
    result = transformer.update(Kind.CONSTANT, "WP_DEBUG", "true", TransformOptions(raw=True))
    print(f"   ✓ {'Added' if result.created else 'Updated'} WP_DEBUG")
    transformer.remove(Kind.CONSTANT, "DB_COLLATE")
    print("   ✓ Removed DB_COLLATE")

    print("\n   Resulting file:")
    print("-" * 80)
    for line in path.read_text(encoding="utf-8").splitlines():
        print(f"   {line}")

    # =========================================================================
    # STEP 3: Introspect
    # =========================================================================
    print("\n3. INTROSPECTING...")
    if shutil.which("php") is None:
        print("   php not found, skipping")
    else:
        entries = ConfigIntrospector().list_entries(path)
        print(format_entries(entries, "table"))

    print("\n" + "=" * 80)
    print(f"DEMO COMPLETE! Files are in {workdir}")
    print("=" * 80)


if __name__ == "__main__":
    main()
