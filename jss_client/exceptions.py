"""Shared exceptions for the JSS API client."""

from typing import Optional


class JSSError(Exception):
    """Base class for all errors raised by jss_client."""

    pass


class MissingDataError(JSSError):
    """A required value was not provided by the caller."""

    pass


class MissingConfigurationError(MissingDataError):
    """A connection parameter is absent from every configuration source."""

    pass


class InvalidDataError(JSSError):
    """Caller-supplied data failed local validation."""

    pass


class AlreadyExistsError(JSSError):
    """An object with the same unique identifier already exists."""

    pass


class UnsupportedOperationError(JSSError):
    """The operation is not valid for this resource type or in this context."""

    pass


class NotConnectedError(JSSError):
    """An API call was attempted before a successful connect()."""

    pass


class AuthenticationError(JSSError):
    """The server rejected the credentials while connecting."""

    pass


class UnsupportedServerError(JSSError):
    """The server reported a version older than the minimum supported one."""

    pass


class NoSuchItemError(JSSError):
    """The requested object does not exist on the server."""

    pass


class APIRequestError(JSSError):
    """The server answered an API request with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ResourceNotFoundError(NoSuchItemError, APIRequestError):
    """HTTP 404: the requested resource path does not exist."""

    pass


class ConflictError(APIRequestError):
    """HTTP 409: the server refused a write because of a state conflict."""

    pass


class BadRequestError(APIRequestError):
    """HTTP 400: the request content was malformed."""

    pass


class AuthorizationError(APIRequestError):
    """HTTP 401 on an authenticated call: insufficient privileges."""

    pass


class ServerError(APIRequestError):
    """HTTP 5xx."""

    pass


class JSSTransportError(JSSError):
    """The HTTP request could not be completed."""

    pass


class JSSTimeoutError(JSSTransportError):
    """The HTTP request timed out."""

    pass
