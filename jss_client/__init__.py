"""Client for the Jamf Pro (JSS) Classic REST API."""

from .api_connection import APIConnection, valid_server
from .api_object import NEW_OBJECT, APIObject, ObjectState
from .config import PROMPT, ConnectionOptions, JSSConfig, StdinPassword, get_config, load_config
from .connection_context import (
    ConnectionRegistry,
    active_connection,
    new_api_connection,
    use_api_connection,
    use_default_connection,
    using_connection,
)
from .exceptions import (
    AlreadyExistsError,
    APIRequestError,
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
    ConflictError,
    InvalidDataError,
    JSSError,
    JSSTimeoutError,
    JSSTransportError,
    MissingConfigurationError,
    MissingDataError,
    NoSuchItemError,
    NotConnectedError,
    ResourceNotFoundError,
    ServerError,
    UnsupportedOperationError,
    UnsupportedServerError,
)
from .managed_client import ManagedClient
from .resources import (
    ADmitMac,
    Building,
    Category,
    Computer,
    ComputerExtensionAttribute,
    Department,
    DirectoryBinding,
    MobileDevice,
    MobileDeviceExtensionAttribute,
    Policy,
    User,
    UserExtensionAttribute,
)

__version__ = "0.1.0"
