"""Computers, sectioned and extendable."""

from typing import Any, Dict, Optional
from xml.etree.ElementTree import Element, SubElement

from ..api_object import APIObject
from ..extendable import Extendable
from .extension_attribute import ComputerExtensionAttribute


class Computer(Extendable, APIObject):
    """A managed computer.

    Computers are enrolled, not created, so only updates are supported.
    Look them up by id, name, serial_number, udid or mac_address.
    """

    RSRC_BASE = "computers"
    RSRC_LIST_KEY = "computers"
    RSRC_OBJECT_KEY = "computer"
    VALID_DATA_KEYS = ("udid", "serial_number")
    OTHER_LOOKUP_KEYS = {
        "serial_number": "serialnumber",
        "udid": "udid",
        "mac_address": "macaddress",
    }
    UPDATABLE = True
    SECTIONED = True
    EXT_ATTRIB_CLASS = ComputerExtensionAttribute

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
    def mac_address(self) -> Optional[str]:
        return self.general.get("mac_address")

    @property
    def ip_address(self) -> Optional[str]:
        return self.general.get("ip_address")

    @property
    def platform(self) -> Optional[str]:
        return self.general.get("platform")

    @property
    def managed(self) -> bool:
        management = self.general.get("remote_management") or {}
        return bool(management.get("managed"))

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
