"""Mobile devices, sectioned and extendable."""

from typing import Any, Dict, Optional
from xml.etree.ElementTree import Element, SubElement

from ..api_object import APIObject
from ..extendable import Extendable
from .extension_attribute import MobileDeviceExtensionAttribute


class MobileDevice(Extendable, APIObject):
    """A managed iOS or tvOS device. Update only, like computers."""

    RSRC_BASE = "mobiledevices"
    RSRC_LIST_KEY = "mobile_devices"
    RSRC_OBJECT_KEY = "mobile_device"
    VALID_DATA_KEYS = ("udid", "serial_number")
    OTHER_LOOKUP_KEYS = {
        "serial_number": "serialnumber",
        "udid": "udid",
        "mac_address": "macaddress",
    }
    UPDATABLE = True
    SECTIONED = True
    EXT_ATTRIB_CLASS = MobileDeviceExtensionAttribute

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        self._asset_tag = self.general.get("asset_tag")

    @property
    def udid(self) -> Optional[str]:
        return self.general.get("udid")

    @property
    def serial_number(self) -> Optional[str]:
        return self.general.get("serial_number")

    @property
    def wifi_mac_address(self) -> Optional[str]:
        return self.general.get("wifi_mac_address")

    @property
    def phone_number(self) -> Optional[str]:
        return self.general.get("phone_number")

    @property
    def model(self) -> Optional[str]:
        return self.general.get("model")

    @property
    def os_version(self) -> Optional[str]:
        return self.general.get("os_version")

    @property
    def managed(self) -> bool:
        return bool(self.general.get("managed"))

    @property
    def location(self) -> Dict[str, Any]:
        return self.sections.get("location", {})

    @property
    def asset_tag(self) -> Optional[str]:
        return self._asset_tag

    @asset_tag.setter
    def asset_tag(self, value: Optional[str]) -> None:
        value = value or None
        if value == self._asset_tag:
            return
        self._asset_tag = value
        self.should_update()

    def _rest_xml_element(self) -> Element:
        root = super()._rest_xml_element()
        SubElement(self._general_element(root), "asset_tag").text = self._asset_tag or ""
        return root
