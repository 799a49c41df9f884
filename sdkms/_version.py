"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Version information, read from the VERSION file next to the package.
"""

from pathlib import Path


def get_version() -> str:
    version_file = Path(__file__).parent.parent / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    return "unknown"


__version__ = get_version()
