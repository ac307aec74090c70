"""JSS Classic API connection management.

This module provides the APIConnection class, which owns one authenticated
session to one JSS and issues requests against ``JSSResource/`` paths.

Key points of the Classic API:
- HTTP Basic auth on every request
- GET can return JSON or XML, selected with the Accept header
- PUT/POST/DELETE send and receive XML
- Errors come back as HTML pages; the status code is what matters

Each connection owns its object cache, so several connections (to several
servers, or as several users) can be used side by side without mixing data.
Concurrent reads through one connection are safe; connecting or
disconnecting a connection while other threads use it is not.
"""

import logging
import re
import threading
from typing import Any, Dict, Optional, Union

import httpx
from pydantic import ValidationError

from .config import ConnectionOptions, JSSConfig, get_config
from .exceptions import (
    APIRequestError,
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
    ConflictError,
    InvalidDataError,
    JSSTimeoutError,
    JSSTransportError,
    MissingDataError,
    NotConnectedError,
    ResourceNotFoundError,
    ServerError,
    UnsupportedServerError,
)
from .managed_client import ManagedClient
from .object_cache import ObjectCache
from .schemas import MINIMUM_SERVER_VERSION, ServerInfo
from .transport import (
    DFT_OPEN_TIMEOUT,
    DFT_TIMEOUT,
    RSRC_BASE,
    SSL_PORT,
    acquire_password,
    build_ssl_context,
    resolve_options,
)

logger = logging.getLogger(__name__)

# Low-privilege resource read on connect to check credentials and version
TEST_PATH = "jssuser"

XML_HEADER = '<?xml version="1.0" encoding="UTF-8" standalone="no"?>'

# Unauthenticated request used to recognise a JSS before connecting
SERVER_CHECK_PATH = f"{RSRC_BASE}/accounts"
SERVER_CHECK_CONTENT = "<p>The request requires user authentication</p>"
SERVER_CHECK_TIMEOUT = 10

GET_FORMATS = ("json", "xml")

MIME_JSON = "application/json"
MIME_XML = "application/xml"
XML_HEADERS = {"Content-Type": MIME_XML, "Accept": MIME_XML}

_CONFLICT_PATTERNS = (
    re.compile(r"<p>(The server has not .*?)(?:<|$)", re.S),
    re.compile(r"<p>Error: (.*?)</p>", re.S),
)
_BAD_REQUEST_PATTERNS = (
    re.compile(r">Bad Request</p>\s*<p>(.*?)</p>\s*<p>You can get technical detail", re.S),
)
_PARAGRAPH_RE = re.compile(r"<p[^>]*>(.*?)</p>", re.S)


def _error_message(body: str, patterns, default: str) -> str:
    """Best-effort extraction of a readable reason from an HTML error page."""
    for pattern in patterns:
        match = pattern.search(body)
        if match:
            return match.group(1).strip()
    paragraphs = [p.strip() for p in _PARAGRAPH_RE.findall(body) if p.strip()]
    return " ".join(paragraphs) or default


def escape_carriage_returns(xml: str) -> str:
    """The JSS XML parser rejects literal CRs, so send them as a character reference."""
    return xml.replace("\r", "&#13;")


def valid_server(server: str, port: int = SSL_PORT) -> bool:
    """Check whether a JSS answers at server:port, over https then http.

    No credentials are sent; a JSS answers the request with its
    authentication-required page. Certificates are not verified.
    """
    for protocol in ("https", "http"):
        url = f"{protocol}://{server}:{port}/{SERVER_CHECK_PATH}"
        try:
            response = httpx.get(url, verify=False, timeout=SERVER_CHECK_TIMEOUT)
        except httpx.HTTPError as e:
            logger.debug(f"No JSS at {url}: {e}")
            continue
        if SERVER_CHECK_CONTENT in response.text:
            return True
    return False


class APIConnection:
    """Manages one REST connection to a JSS.

    A connection is either fully disconnected or fully connected. Passing
    options to the constructor connects immediately; otherwise call
    connect() before making requests.
    """

    def __init__(
        self,
        options: Optional[Union[ConnectionOptions, Dict[str, Any]]] = None,
        *,
        config: Optional[JSSConfig] = None,
        client: Optional[ManagedClient] = None,
        **kwargs: Any,
    ):
        """Initialize the connection.

        Args:
            options: ConnectionOptions (or a dict of them)
            config: Persisted configuration; loaded from files/env if not given
            client: Local management agent; the default location if not given
            **kwargs: Individual connection options, overriding ``options``
        """
        self._config = config
        self._managed_client = client

        self.name: Optional[str] = None
        self._name_is_derived = False

        # Session state
        self._connected = False
        self._client: Optional[httpx.Client] = None
        self._user: Optional[str] = None
        self._server_host: Optional[str] = None
        self._server_path: Optional[str] = None
        self._port: Optional[int] = None
        self._protocol: Optional[str] = None
        self._rest_url: Optional[str] = None
        self._verify_cert: Optional[bool] = None
        self._server: Optional[ServerInfo] = None
        self._timeout: float = DFT_TIMEOUT
        self._open_timeout: float = DFT_OPEN_TIMEOUT
        # values set through the properties, kept across reconnects
        self._timeout_override: Optional[float] = None
        self._open_timeout_override: Optional[float] = None

        self.last_http_response: Optional[httpx.Response] = None

        # Caches
        self.object_cache = ObjectCache(self.get)
        self.ext_attr_definition_cache: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._ext_attr_lock = threading.RLock()

        opts = self._build_options(options, kwargs)
        self.name = opts.name
        if opts.model_fields_set - {"name"}:
            self.connect(opts)

    @staticmethod
    def _build_options(
        options: Optional[Union[ConnectionOptions, Dict[str, Any]]],
        overrides: Dict[str, Any],
    ) -> ConnectionOptions:
        if isinstance(options, ConnectionOptions):
            if not overrides:
                return options
            options = {field: getattr(options, field) for field in options.model_fields_set}
        try:
            return ConnectionOptions(**{**(options or {}), **overrides})
        except ValidationError as e:
            raise InvalidDataError(f"Invalid connection options: {e}") from e

    # --- Connection lifecycle ---

    def connect(
        self,
        options: Optional[Union[ConnectionOptions, Dict[str, Any]]] = None,
        **kwargs: Any,
    ) -> str:
        """Connect, or reconnect, to a JSS.

        Any existing session and all cached data are dropped first. The
        credentials and server version are checked with one GET request.

        Args:
            options: ConnectionOptions (or a dict of them)
            **kwargs: Individual connection options, overriding ``options``

        Returns:
            The hostname of the connected server

        Raises:
            MissingConfigurationError: If server, user or password is missing
            InvalidDataError: If an option value is invalid
            AuthenticationError: If the credentials are rejected
            UnsupportedServerError: If the server is too old
        """
        opts = self._build_options(options, kwargs)

        self._reset_session()
        self.flush_cache()

        config = self._config if self._config is not None else get_config()
        managed_client = (
            self._managed_client if self._managed_client is not None else ManagedClient()
        )
        resolved = resolve_options(opts, config, managed_client)

        self._user = resolved.user
        self._server_host = resolved.server
        self._server_path = resolved.server_path
        self._port = resolved.port
        self._protocol = resolved.protocol
        self._rest_url = resolved.rest_url
        self._verify_cert = resolved.verify_cert
        if opts.timeout is not None:
            self._timeout_override = None
        if opts.open_timeout is not None:
            self._open_timeout_override = None
        self._timeout = (
            self._timeout_override if self._timeout_override is not None else resolved.timeout
        )
        self._open_timeout = (
            self._open_timeout_override
            if self._open_timeout_override is not None
            else resolved.open_timeout
        )

        password = acquire_password(resolved.pw, resolved.user, resolved.server)

        try:
            verify = (
                build_ssl_context(resolved.verify_cert, resolved.ssl_version)
                if resolved.use_ssl
                else True
            )
            self._client = httpx.Client(
                base_url=self._rest_url,
                auth=httpx.BasicAuth(self._user, password),
                verify=verify,
                timeout=self._httpx_timeout(),
            )
            self._verify_server_version()
        except Exception:
            self._reset_session()
            raise

        if opts.name:
            self.name = opts.name
            self._name_is_derived = False
        elif self.name is None or self._name_is_derived:
            self.name = f"{self._user}@{self._server_host}:{self._port}"
            self._name_is_derived = True

        logger.info(
            f"Connected to JSS {self._server.raw_version} at {self._rest_url} as {self._user}"
        )
        return self._server_host

    def _verify_server_version(self) -> None:
        """Check credentials and the server version with one request.

        Raises:
            AuthenticationError: If the server answers 401
            UnsupportedServerError: If the version is below the minimum
        """
        self._connected = True
        try:
            data = self.get(TEST_PATH)
        except AuthorizationError as e:
            raise AuthenticationError(
                f"Incorrect JSS username or password for "
                f"'{self._user}@{self._server_host}:{self._port}'."
            ) from e

        try:
            self._server = ServerInfo.model_validate(data["user"])
        except (KeyError, TypeError, ValidationError) as e:
            raise InvalidDataError(f"Unexpected response from {TEST_PATH}: {e}") from e

        if not self._server.is_supported(MINIMUM_SERVER_VERSION):
            self._connected = False
            raise UnsupportedServerError(
                f"JSS version {self._server.raw_version} too low. "
                f"Must be >= {MINIMUM_SERVER_VERSION}"
            )

    def disconnect(self) -> None:
        """Drop the session and cached data. Safe to call repeatedly."""
        if not self._connected and self._client is None:
            logger.warning(f"Not connected to a JSS (connection '{self.name}')")
            return

        host = self._server_host
        self._reset_session()
        self.flush_cache()
        logger.info(f"Disconnected from JSS {host}")

    def _reset_session(self) -> None:
        if self._client is not None:
            try:
                self._client.close()
            except (httpx.HTTPError, RuntimeError) as e:
                logger.debug(f"Error closing HTTP client: {e}")
            self._client = None
        self._connected = False
        self._user = None
        self._server_host = None
        self._server_path = None
        self._port = None
        self._protocol = None
        self._rest_url = None
        self._verify_cert = None
        self._server = None

    def _validate_connected(self) -> None:
        if not self._connected or self._client is None:
            raise NotConnectedError(
                f"Connection '{self.name}' not connected. Call connect() first."
            )

    # --- Properties ---

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def user(self) -> Optional[str]:
        return self._user

    @property
    def server_host(self) -> Optional[str]:
        return self._server_host

    @property
    def server_path(self) -> Optional[str]:
        return self._server_path

    @property
    def port(self) -> Optional[int]:
        return self._port

    @property
    def protocol(self) -> Optional[str]:
        return self._protocol

    @property
    def rest_url(self) -> Optional[str]:
        return self._rest_url

    @property
    def verify_cert(self) -> Optional[bool]:
        return self._verify_cert

    @property
    def server(self) -> Optional[ServerInfo]:
        """Server information read while connecting, or None."""
        return self._server

    @property
    def hostname(self) -> Optional[str]:
        """The connected host, else the configured one, else the agent's."""
        if self._server_host:
            return self._server_host
        config = self._config if self._config is not None else get_config()
        if config.api_server_name:
            return config.api_server_name
        managed_client = (
            self._managed_client if self._managed_client is not None else ManagedClient()
        )
        return managed_client.jss_server if managed_client.installed else None

    host = hostname

    def _httpx_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self._timeout, connect=self._open_timeout)

    @property
    def timeout(self) -> float:
        return self._timeout

    @timeout.setter
    def timeout(self, value: float) -> None:
        self._timeout = value
        self._timeout_override = value
        if self._client is not None:
            self._client.timeout = self._httpx_timeout()

    @property
    def open_timeout(self) -> float:
        return self._open_timeout

    @open_timeout.setter
    def open_timeout(self, value: float) -> None:
        self._open_timeout = value
        self._open_timeout_override = value
        if self._client is not None:
            self._client.timeout = self._httpx_timeout()

    # --- Requests ---

    def _send(self, method: str, rsrc: str, **kwargs: Any) -> httpx.Response:
        """Send one request and classify the response.

        Raises:
            JSSTimeoutError: If the request times out
            JSSTransportError: If the request cannot be completed
            APIRequestError: (or a subclass) on a non-2xx response
        """
        logger.debug(f"{method.upper()} {self._rest_url}/{rsrc}")
        send = getattr(self._client, method)
        try:
            response = send(rsrc, **kwargs)
        except httpx.TimeoutException as e:
            raise JSSTimeoutError(
                f"Request timeout after {self._timeout}s: {method.upper()} {rsrc}"
            ) from e
        except httpx.HTTPError as e:
            raise JSSTransportError(f"HTTP error: {e}") from e

        self.last_http_response = response
        if not 200 <= response.status_code < 300:
            self._handle_http_error(response)
        return response

    def _handle_http_error(self, response: httpx.Response) -> None:
        """Raise the exception matching a non-2xx response."""
        status = response.status_code
        body = response.text if isinstance(response.text, str) else ""

        if status == 404:
            raise ResourceNotFoundError("Not Found", status)
        elif status == 409:
            raise ConflictError(_error_message(body, _CONFLICT_PATTERNS, "Conflict"), status)
        elif status == 400:
            raise BadRequestError(
                _error_message(body, _BAD_REQUEST_PATTERNS, "Bad Request"), status
            )
        elif status == 401:
            raise AuthorizationError("You are not authorized to do that.", status)
        elif 500 <= status <= 599:
            raise ServerError("There was an internal server error", status)
        else:
            raise APIRequestError(
                f"There was an error processing your request, status: {status}", status
            )

    def get(self, rsrc: str, format: str = "json", raw_json: bool = False) -> Any:
        """Read a resource.

        Args:
            rsrc: Resource path below JSSResource/, e.g. 'computers/id/12'
            format: 'json' for a parsed dict, 'xml' for the raw XML text
            raw_json: With format 'json', return the unparsed JSON text

        Returns:
            Parsed JSON dict, or the response text
        """
        self._validate_connected()
        if format not in GET_FORMATS:
            raise InvalidDataError("format must be 'json' or 'xml'")

        response = self._send(
            "get", rsrc, headers={"Accept": MIME_JSON if format == "json" else MIME_XML}
        )
        if format == "json" and not raw_json:
            try:
                return response.json()
            except ValueError as e:
                raise InvalidDataError(f"Invalid JSON returned for {rsrc}") from e
        return response.text

    def put(self, rsrc: str, xml: str) -> str:
        """Update a resource with an XML document. Returns the XML response."""
        self._validate_connected()
        response = self._send(
            "put", rsrc, content=escape_carriage_returns(xml), headers=XML_HEADERS
        )
        return response.text

    def post(self, rsrc: str, xml: Optional[str] = None) -> str:
        """Create a resource from an XML document. Returns the XML response."""
        self._validate_connected()
        content = escape_carriage_returns(xml) if xml is not None else None
        response = self._send("post", rsrc, content=content, headers=XML_HEADERS)
        return response.text

    def delete(self, rsrc: str) -> str:
        """Delete a resource. Returns the XML response."""
        self._validate_connected()
        if not rsrc:
            raise MissingDataError("Missing resource path to delete")
        response = self._send("delete", rsrc, headers=XML_HEADERS)
        return response.text

    # --- Caches ---

    def flush_cache(self, key: Any = None) -> None:
        """Drop cached data.

        Args:
            key: None to drop everything; a resource class or list key to
                drop that type's list and derived maps; an extendable class
                (Computer, MobileDevice, User) to drop only its extension
                attribute definitions.
        """
        if key is None:
            self.object_cache.flush()
            with self._ext_attr_lock:
                self.ext_attr_definition_cache.clear()
        elif isinstance(key, type) and getattr(key, "EXT_ATTRIB_CLASS", None) is not None:
            with self._ext_attr_lock:
                self.ext_attr_definition_cache.pop(key.RSRC_OBJECT_KEY, None)
        else:
            self.object_cache.flush(key)

    def ext_attr_definitions(
        self, extendable_cls: Any, refresh: bool = False
    ) -> Dict[str, Dict[str, Any]]:
        """Extension attributes defined for an extendable class, by name."""
        cache_key = extendable_cls.RSRC_OBJECT_KEY
        with self._ext_attr_lock:
            if refresh or cache_key not in self.ext_attr_definition_cache:
                items = self.object_cache.list(extendable_cls.EXT_ATTRIB_CLASS, refresh)
                self.ext_attr_definition_cache[cache_key] = {item["name"]: item for item in items}
            return self.ext_attr_definition_cache[cache_key]

    # --- Misc ---

    def __str__(self) -> str:
        if self._connected:
            return f"Using {self._rest_url} as user {self._user}"
        return "not connected"

    def __repr__(self) -> str:
        return f"<APIConnection name={self.name!r} connected={self._connected}>"

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._connected:
            self.disconnect()
        return False

    def __del__(self):
        try:
            if getattr(self, "_client", None) is not None:
                self._client.close()
        except (AttributeError, RuntimeError, httpx.HTTPError):
            pass
