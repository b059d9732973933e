# provision/os_variants.py
# -*- coding: utf-8 -*-
"""
Supported operating system variants.

The provisioning steps are the same on every supported host; the variant only
decides where PHP packages come from (Sury's repository on Debian, the ondrej
PPA on Ubuntu).
"""

import enum
import logging
from pathlib import Path
from typing import NamedTuple, Optional, Tuple

from common.system_utils import read_os_release

module_logger = logging.getLogger(__name__)


class PhpSource(enum.Enum):
    SURY = "sury"
    ONDREJ_PPA = "ondrej-ppa"


class OsVariant(NamedTuple):
    distro_id: str
    version_id: str
    codename: str
    php_source: PhpSource

    @property
    def label(self) -> str:
        return f"{self.distro_id.capitalize()} {self.version_id} ({self.codename})"


SUPPORTED_VARIANTS: Tuple[OsVariant, ...] = (
    OsVariant("debian", "10", "buster", PhpSource.SURY),
    OsVariant("debian", "11", "bullseye", PhpSource.SURY),
    OsVariant("debian", "12", "bookworm", PhpSource.SURY),
    OsVariant("ubuntu", "20.04", "focal", PhpSource.ONDREJ_PPA),
    OsVariant("ubuntu", "22.04", "jammy", PhpSource.ONDREJ_PPA),
)


def describe_host(os_release_path: Path) -> str:
    """Short description of the host for error messages."""
    try:
        fields = read_os_release(os_release_path)
    except OSError as e:
        return f"unreadable {os_release_path} ({e.strerror or e})"
    return (
        fields.get("PRETTY_NAME")
        or f"{fields.get('ID', 'unknown')} {fields.get('VERSION_ID', '')}".strip()
    )


def detect_os_variant(os_release_path: Path) -> Optional[OsVariant]:
    """
    Match the host's os-release against SUPPORTED_VARIANTS.

    Returns None when the file is unreadable or the host is not supported.
    """
    try:
        fields = read_os_release(os_release_path)
    except OSError as e:
        module_logger.debug(f"Cannot read {os_release_path}: {e}")
        return None

    distro_id = fields.get("ID", "").lower()
    version_id = fields.get("VERSION_ID", "")
    for variant in SUPPORTED_VARIANTS:
        if variant.distro_id == distro_id and variant.version_id == version_id:
            return variant
    return None
