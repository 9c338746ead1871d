#!/usr/bin/env python3
"""Practice catalog validation script."""

import sys
from pathlib import Path
from typing import List, Optional

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from breath_app.config.loader import PracticeLoader
from breath_app.config.validation import ConfigValidator, ValidationError, ensure_runnable
from breath_app.errors import ConfigurationError


def validate_practice(loader: PracticeLoader, practice_id: str) -> List[ValidationError]:
    """Validate one catalog practice, raw and parsed."""
    errors = ConfigValidator.validate_practice(loader.load_raw_practice(practice_id))
    if not errors:
        ensure_runnable(loader.get_practice(practice_id))
    return errors


def main(config_dir: Optional[str] = None) -> None:
    """Main validation function."""
    loader = PracticeLoader.create(Path(config_dir) if config_dir else None)
    print(f"🔍 Validating practice catalog {loader.catalog_file}...")

    practice_ids = loader.list_practices()
    if not practice_ids:
        print("❌ No practices found")
        sys.exit(1)

    all_valid = True

    for practice_id in practice_ids:
        print(f"\n🫁 Validating {practice_id}...")

        try:
            errors = validate_practice(loader, practice_id)

            if errors:
                print(f"❌ Found {len(errors)} validation errors:")
                for error in errors:
                    print(f"  • {error.field}: {error.message} (value: {error.value})")
                all_valid = False
            else:
                print(f"✅ {practice_id} is valid")

        except ConfigurationError as e:
            print(f"❌ Error validating {practice_id}: {e}")
            all_valid = False

    if all_valid:
        print(f"\n🎉 All {len(practice_ids)} practices passed validation!")
        sys.exit(0)
    else:
        print("\n❌ Practice validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
