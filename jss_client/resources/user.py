"""JSS users (people the devices are assigned to, not API accounts)."""

from typing import Any, List, Optional
from xml.etree.ElementTree import Element, SubElement

from ..api_object import APIObject
from ..extendable import Extendable
from .extension_attribute import UserExtensionAttribute


class User(Extendable, APIObject):
    RSRC_BASE = "users"
    RSRC_LIST_KEY = "users"
    RSRC_OBJECT_KEY = "user"
    VALID_DATA_KEYS = ("full_name", "email")
    CREATABLE = True
    UPDATABLE = True
    EXT_ATTRIB_CLASS = UserExtensionAttribute

    def __init__(
        self,
        *,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self._full_name = self.general.get("full_name")
        self._email = self.general.get("email")
        if full_name is not None:
            self.full_name = full_name
        if email is not None:
            self.email = email

    @property
    def full_name(self) -> Optional[str]:
        return self._full_name

    @full_name.setter
    def full_name(self, value: Optional[str]) -> None:
        value = value or None
        if value == self._full_name:
            return
        self._full_name = value
        self.should_update()

    @property
    def email(self) -> Optional[str]:
        return self._email

    @email.setter
    def email(self, value: Optional[str]) -> None:
        value = value or None
        if value == self._email:
            return
        self._email = value
        self.should_update()

    @property
    def phone_number(self) -> Optional[str]:
        return self.general.get("phone_number")

    @property
    def position(self) -> Optional[str]:
        return self.general.get("position")

    @property
    def computer_ids(self) -> List[Any]:
        links = self.general.get("links") or {}
        return [item.get("id") for item in links.get("computers") or [] if isinstance(item, dict)]

    def _rest_xml_element(self) -> Element:
        root = super()._rest_xml_element()
        SubElement(root, "full_name").text = self._full_name or ""
        SubElement(root, "email").text = self._email or ""
        return root
