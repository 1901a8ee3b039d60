#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import List

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from statemount.config.loader import SYSTEMS_FILE, ConfigLoader
from statemount.config.validation import ConfigValidator, ValidationError

import yaml


def validate_systems(loader: ConfigLoader) -> List[ValidationError]:
    """Validate every named system in systems.yaml."""
    errors = []
    path = loader.config_dir / SYSTEMS_FILE
    if not path.exists():
        return errors

    with open(path) as f:
        systems = (yaml.safe_load(f) or {}).get("systems", {})

    for name in systems:
        for error in ConfigValidator.validate_system_config(loader.load_system_config(name)):
            errors.append(ValidationError(
                field=f"systems.{name}.{error.field}",
                message=error.message,
                value=error.value
            ))
    return errors


def main():
    """Main validation function."""
    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    loader = ConfigLoader.create(config_dir)
    print(f"Validating statemount configuration in {loader.config_dir}...")

    errors = ConfigValidator.validate_config(loader.merge_config())
    errors.extend(validate_systems(loader))

    if errors:
        print(f"Found {len(errors)} validation errors:")
        for error in errors:
            print(f"  - {error.field}: {error.message} (value: {error.value!r})")
        sys.exit(1)

    print("All configuration validation passed!")
    sys.exit(0)


if __name__ == "__main__":
    main()
