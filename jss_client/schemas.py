"""Pydantic models for structured API data.

These models describe payloads the connection itself has to understand,
as opposed to resource payloads, which are handled by APIObject subclasses.
"""

import re
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import InvalidDataError

MINIMUM_SERVER_VERSION = "10.4.0"

_VERSION_RE = re.compile(r"^\s*(\d+)\.(\d+)(?:\.(\d+))?")


def parse_jss_version(raw_version: str) -> Tuple[int, int, int]:
    """Parse a JSS version string such as ``10.25.2-t1603133223``.

    Build suffixes are ignored; a missing patch level counts as 0.

    Raises:
        InvalidDataError: If the string does not start with a version number
    """
    match = _VERSION_RE.match(raw_version or "")
    if not match:
        raise InvalidDataError(f"Unparseable JSS version: {raw_version!r}")
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch or 0)


class ServerInfo(BaseModel):
    """What the JSS reports about itself and the API user on connect."""

    model_config = ConfigDict(extra="ignore")

    raw_version: str = Field(alias="version", description="Version string as reported")
    name: Optional[str] = Field(default=None, description="Name of the API account")
    license_type: Optional[str] = Field(default=None, description="JSS license type")
    product: Optional[str] = Field(default=None, description="Licensed product")
    privileges: Optional[Any] = Field(default=None, description="Privileges of the API account")

    @property
    def version(self) -> Tuple[int, int, int]:
        return parse_jss_version(self.raw_version)

    def is_supported(self, minimum: str = MINIMUM_SERVER_VERSION) -> bool:
        return self.version >= parse_jss_version(minimum)
