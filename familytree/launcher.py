"""FamilyTree launcher.

Provides a stable entry point that runs preflight checks before importing
GTK-related modules, which gives clearer error messages on new systems.
"""

from __future__ import annotations

from familytree.settings import configure_logging


def main() -> int:
    from familytree.preflight import run_preflight_or_die

    configure_logging()
    run_preflight_or_die(require_display=True, check_deps=True)

    from familytree.app import main as app_main

    return int(app_main())


if __name__ == "__main__":
    raise SystemExit(main())
