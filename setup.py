#!/usr/bin/env python3
"""Setup script for FamilyTree."""

import os
import sys
from setuptools import setup, find_packages


def _run_install_preflight() -> None:
    """Fail fast on unsupported environments.

    Note: installing from a wheel will not execute setup.py, so we also
    enforce this at runtime via `familytree.launcher`.
    """
    if os.environ.get("FAMILYTREE_SKIP_PREFLIGHT") == "1":
        return
    try:
        from familytree.preflight import run_preflight_or_die
        # Install-time constraints: Python version only. No display is needed
        # to install, and deps are not there before pip installs them.
        run_preflight_or_die(require_display=False, check_deps=False)
    except SystemExit:
        raise
    except Exception as exc:  # pylint: disable=broad-except
        sys.stderr.write("\nFamilyTree preflight error while installing:\n")
        sys.stderr.write(str(exc) + "\n")
        raise SystemExit(1)


_run_install_preflight()

setup(
    name="familytree",
    version="1.0.0",
    description="Drag-to-grow family tree editor for GTK 4",
    author="FamilyTree Project",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "familytree": ["theme.css"],
    },
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "PyGObject>=3.46.0",
        "pycairo>=1.25.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "familytree=familytree.launcher:main",
            "familytree-snapshot=familytree.cli:main",
        ],
        "gui_scripts": [
            "familytree-gui=familytree.launcher:main",
        ],
    },
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Environment :: X11 Applications :: GTK",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Graphics :: Editors",
    ],
)
