"""Version lookup for Org Bullets, read from the installed distribution."""
from __future__ import annotations

import os
import re
from importlib import metadata
from typing import Optional

__all__ = ["__version__", "DIST_NAME", "DEV_MODE_ENV_VAR", "installed_version", "is_dev_build"]

DIST_NAME = "org-bullets"
DEV_MODE_ENV_VAR = "ORG_BULLETS_DEV_MODE"
UNKNOWN_VERSION = "0+unknown"

_DEV_RELEASE = re.compile(r"[._-]?dev\d*(\+.*)?$")
_DISABLED = {"0", "false", "no", "off"}


def installed_version(dist_name: str = DIST_NAME) -> str:
    try:
        return metadata.version(dist_name)
    except metadata.PackageNotFoundError:
        return UNKNOWN_VERSION


__version__ = installed_version()


def is_dev_build(version: Optional[str] = None) -> bool:
    """Dev releases (``1.2.dev0``) log at DEBUG unless ``ORG_BULLETS_DEV_MODE`` says otherwise.

    Any non-empty value of the variable other than an explicit off value
    (``0``/``false``/``no``/``off``) forces dev mode on.
    """

    override = os.getenv(DEV_MODE_ENV_VAR, "").strip().lower()
    if override:
        return override not in _DISABLED
    identifier = (__version__ if version is None else version).strip().lower()
    return bool(_DEV_RELEASE.search(identifier))
