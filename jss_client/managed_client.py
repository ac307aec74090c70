"""Settings of the Jamf management agent installed on this machine.

When the host running the library is itself an enrolled client, the agent's
preference file tells us which JSS it reports to. Those values are used as
connection defaults after explicit options and persisted configuration.
"""

import logging
import plistlib
from pathlib import Path
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

JAMF_BINARY = Path("/usr/local/jamf/bin/jamf")
JAMF_PLIST = Path("/Library/Preferences/com.jamfsoftware.jamf.plist")


class ManagedClient:
    """Read-only view of the local agent's JSS settings."""

    def __init__(
        self,
        plist_path: Union[str, Path] = JAMF_PLIST,
        binary_path: Union[str, Path] = JAMF_BINARY,
    ):
        self.plist_path = Path(plist_path)
        self.binary_path = Path(binary_path)
        self._prefs: Optional[Dict[str, Any]] = None

    @property
    def installed(self) -> bool:
        """True if the agent binary and its preference file are present."""
        return self.binary_path.exists() and self.plist_path.is_file()

    def _read_prefs(self) -> Dict[str, Any]:
        if self._prefs is None:
            try:
                with open(self.plist_path, "rb") as f:
                    self._prefs = plistlib.load(f)
            except (OSError, plistlib.InvalidFileException) as e:
                logger.debug(f"Could not read {self.plist_path}: {e}")
                self._prefs = {}
        return self._prefs

    def _jss_url(self):
        url = self._read_prefs().get("jss_url")
        return urlparse(url) if url else None

    @property
    def jss_server(self) -> Optional[str]:
        url = self._jss_url()
        return url.hostname if url else None

    @property
    def jss_port(self) -> Optional[int]:
        url = self._jss_url()
        if not url:
            return None
        if url.port:
            return url.port
        return 443 if url.scheme == "https" else 80

    @property
    def jss_protocol(self) -> Optional[str]:
        url = self._jss_url()
        return url.scheme if url else None
