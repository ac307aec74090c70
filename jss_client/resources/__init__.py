"""Resource types shipped with jss_client."""

from .category import Building, Category, Department
from .computer import Computer
from .directory_binding import ADmitMac, DirectoryBinding, DirectoryBindingType
from .extension_attribute import (
    ComputerExtensionAttribute,
    ExtensionAttribute,
    MobileDeviceExtensionAttribute,
    UserExtensionAttribute,
)
from .mobile_device import MobileDevice
from .policy import Policy
from .user import User

__all__ = [
    "ADmitMac",
    "Building",
    "Category",
    "Computer",
    "ComputerExtensionAttribute",
    "Department",
    "DirectoryBinding",
    "DirectoryBindingType",
    "ExtensionAttribute",
    "MobileDevice",
    "MobileDeviceExtensionAttribute",
    "Policy",
    "User",
    "UserExtensionAttribute",
]
