"""Resolution of connection parameters.

Every connection parameter is taken from the first source that has a value:

1. options passed explicitly by the caller
2. persisted configuration (``JSSConfig``)
3. the local Jamf management agent, if this host is enrolled
4. module defaults

The port is special: only an explicitly requested port is used. Otherwise
hosts under ``jamfcloud.com`` get 443 and everything else gets 8443, whatever
the configuration or the agent say. SSL is used
when the caller (or the agent's protocol) says so, otherwise whenever the
port is a known SSL port.
"""

import getpass
import logging
import ssl
import sys
from typing import IO, Any, Optional

from pydantic import BaseModel, Field

from .config import (
    ConnectionOptions,
    JSSConfig,
    PasswordPrompt,
    PasswordSource,
    StdinPassword,
)
from .exceptions import InvalidDataError, MissingConfigurationError, MissingDataError
from .managed_client import ManagedClient

logger = logging.getLogger(__name__)

RSRC_BASE = "JSSResource"

HTTP_PORT = 9006
SSL_PORT = 8443
HTTPS_SSL_PORT = 443
SSL_PORTS = (SSL_PORT, HTTPS_SSL_PORT)

JAMFCLOUD_DOMAIN = "jamfcloud.com"
JAMFCLOUD_PORT = HTTPS_SSL_PORT

DFT_OPEN_TIMEOUT = 60
DFT_TIMEOUT = 60
DFT_SSL_VERSION = "TLSv1_2"


class ResolvedOptions(BaseModel):
    """Fully resolved connection parameters."""

    name: Optional[str] = None
    server: str
    server_path: Optional[str] = None
    port: int
    user: str
    pw: PasswordSource = Field(repr=False)
    use_ssl: bool
    verify_cert: bool
    ssl_version: str
    timeout: float
    open_timeout: float

    @property
    def protocol(self) -> str:
        return "https" if self.use_ssl else "http"

    @property
    def rest_url(self) -> str:
        return build_rest_url(self.protocol, self.server, self.port, self.server_path)


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def default_port(server: Optional[str]) -> int:
    """Port to use when no source specifies one."""
    if server and server.lower().rstrip(".").endswith(JAMFCLOUD_DOMAIN):
        return JAMFCLOUD_PORT
    return SSL_PORT


def normalize_server_path(server_path: Optional[str]) -> Optional[str]:
    """Strip leading slashes and ensure one trailing slash."""
    if not server_path:
        return None
    path = server_path.lstrip("/")
    if not path:
        return None
    if not path.endswith("/"):
        path += "/"
    return path


def build_rest_url(
    protocol: str, server: str, port: int, server_path: Optional[str] = None
) -> str:
    """Build the REST base URL, e.g. ``https://jss.example.com:8443/JSSResource``."""
    return f"{protocol}://{server}:{port}/{normalize_server_path(server_path) or ''}{RSRC_BASE}"


def verify_basic_args(server: Optional[str], user: Optional[str], pw: Any) -> None:
    """Fail before connecting if a required parameter is missing everywhere.

    Raises:
        MissingConfigurationError: If server, user, or password source is absent
    """
    if not server:
        raise MissingConfigurationError("No JSS server specified, or in configuration.")
    if not user:
        raise MissingConfigurationError("No JSS user specified, or in configuration.")
    if pw is None:
        raise MissingConfigurationError(f"Missing password for user '{user}'")


def resolve_options(
    options: ConnectionOptions,
    config: Optional[JSSConfig] = None,
    client: Optional[ManagedClient] = None,
) -> ResolvedOptions:
    """Resolve explicit options against configuration, agent and defaults.

    Args:
        options: Options given by the caller
        config: Persisted configuration (empty if not given)
        client: Local management agent (ignored if not installed)

    Returns:
        ResolvedOptions with every field populated

    Raises:
        MissingConfigurationError: If server, user, or password is missing
        InvalidDataError: If the TLS version is unknown
    """
    config = config or JSSConfig()

    agent_server = agent_use_ssl = None
    if client is not None and client.installed:
        agent_server = client.jss_server
        protocol = client.jss_protocol
        if protocol:
            agent_use_ssl = protocol.endswith("s")

    server = _first(options.server, config.api_server_name, agent_server)
    user = _first(options.user, config.api_username)
    verify_basic_args(server, user, options.pw)

    # configured and agent ports never override the default
    port = options.port if options.port is not None else default_port(server)

    use_ssl = _first(options.use_ssl, agent_use_ssl)
    if use_ssl is None:
        use_ssl = port in SSL_PORTS

    ssl_version = _first(options.ssl_version, config.api_ssl_version, DFT_SSL_VERSION)
    if ssl_version not in ssl.TLSVersion.__members__:
        raise InvalidDataError(f"Unknown TLS version '{ssl_version}'")

    resolved = ResolvedOptions(
        name=options.name,
        server=server,
        server_path=normalize_server_path(_first(options.server_path, config.api_server_path)),
        port=port,
        user=user,
        pw=options.pw,
        use_ssl=use_ssl,
        verify_cert=_first(options.verify_cert, config.api_verify_cert, True),
        ssl_version=ssl_version,
        timeout=_first(options.timeout, config.api_timeout, DFT_TIMEOUT),
        open_timeout=_first(options.open_timeout, config.api_timeout_open, DFT_OPEN_TIMEOUT),
    )
    logger.debug(f"Resolved connection options: {resolved!r}")
    return resolved


def build_ssl_context(verify_cert: bool = True, ssl_version: str = DFT_SSL_VERSION) -> ssl.SSLContext:
    """Build the TLS context handed to the HTTP client."""
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion[ssl_version]
    if not verify_cert:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def acquire_password(
    pw: PasswordSource, user: str, server: str, stdin: Optional[IO[str]] = None
) -> str:
    """Turn a password source into the password itself.

    Args:
        pw: A literal password, PROMPT, or StdinPassword(line=n)
        user: Username, for the prompt
        server: Server name, for the prompt
        stdin: Stream to read from for StdinPassword (default sys.stdin)

    Raises:
        MissingDataError: If the requested input line does not exist
    """
    if isinstance(pw, PasswordPrompt):
        return getpass.getpass(f"Enter the password for JSS user {user}@{server}:")

    if isinstance(pw, StdinPassword):
        stream = stdin if stdin is not None else sys.stdin
        for number, line in enumerate(stream, start=1):
            if number == pw.line:
                return line.rstrip("\r\n")
        raise MissingDataError(f"No line {pw.line} on input for the password of '{user}'")

    return pw
