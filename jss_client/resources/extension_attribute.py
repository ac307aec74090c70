"""Extension attribute definitions for computers, mobile devices and users."""

from typing import Any, List, Optional
from xml.etree.ElementTree import Element, SubElement

from ..api_object import APIObject
from ..exceptions import InvalidDataError, UnsupportedOperationError

DATA_TYPE_STRING = "String"
DATA_TYPE_INTEGER = "Integer"
DATA_TYPE_DATE = "Date"
DATA_TYPES = (DATA_TYPE_STRING, DATA_TYPE_INTEGER, DATA_TYPE_DATE)

INPUT_TYPE_FIELD = "Text Field"
INPUT_TYPE_POPUP = "Pop-up Menu"
INPUT_TYPE_SCRIPT = "script"
INPUT_TYPE_LDAP = "LDAP Attribute Mapping"
INPUT_TYPES = (INPUT_TYPE_FIELD, INPUT_TYPE_POPUP, INPUT_TYPE_SCRIPT, INPUT_TYPE_LDAP)

WEB_DISPLAY_CHOICES = (
    "General",
    "Operating System",
    "Hardware",
    "User and Location",
    "Purchasing",
    "Extension Attributes",
)
DEFAULT_WEB_DISPLAY = "Extension Attributes"


class ExtensionAttribute(APIObject):
    """Common behavior of extension attribute definitions.

    Not usable directly; use one of the concrete subclasses.
    """

    CREATABLE = True
    UPDATABLE = True

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        general = self.general
        self._description = general.get("description", "")
        self._data_type = general.get("data_type", DATA_TYPE_STRING)
        input_type = general.get("input_type") or {}
        self._input_type = input_type.get("type", INPUT_TYPE_FIELD)
        choices = input_type.get("popup_choices") or []
        if isinstance(choices, dict):
            choices = choices.get("choice") or []
        self._popup_choices: List[str] = [str(choice) for choice in choices]
        self._web_display = general.get("inventory_display", DEFAULT_WEB_DISPLAY)

    @property
    def description(self) -> str:
        return self._description

    @description.setter
    def description(self, value: Optional[str]) -> None:
        value = value or ""
        if value == self._description:
            return
        self._description = value
        self.should_update()

    @property
    def data_type(self) -> str:
        return self._data_type

    @data_type.setter
    def data_type(self, value: str) -> None:
        if value not in DATA_TYPES:
            raise InvalidDataError(f"data_type must be one of: {', '.join(DATA_TYPES)}")
        if value == self._data_type:
            return
        self._data_type = value
        self.should_update()

    @property
    def input_type(self) -> str:
        return self._input_type

    @input_type.setter
    def input_type(self, value: str) -> None:
        if value not in INPUT_TYPES:
            raise InvalidDataError(f"input_type must be one of: {', '.join(INPUT_TYPES)}")
        if value == self._input_type:
            return
        self._input_type = value
        if value != INPUT_TYPE_POPUP:
            self._popup_choices = []
        self.should_update()

    @property
    def popup_choices(self) -> List[str]:
        return list(self._popup_choices)

    @popup_choices.setter
    def popup_choices(self, choices: List[str]) -> None:
        if self._input_type != INPUT_TYPE_POPUP:
            raise InvalidDataError(
                f"popup_choices can only be set when input_type is '{INPUT_TYPE_POPUP}'"
            )
        if not isinstance(choices, (list, tuple)):
            raise InvalidDataError("popup_choices must be a list of strings")
        self._popup_choices = [str(choice) for choice in choices]
        self.should_update()

    @property
    def web_display(self) -> str:
        return self._web_display

    @web_display.setter
    def web_display(self, value: str) -> None:
        if value not in WEB_DISPLAY_CHOICES:
            raise InvalidDataError(
                f"web_display must be one of: {', '.join(WEB_DISPLAY_CHOICES)}"
            )
        if value == self._web_display:
            return
        self._web_display = value
        self.should_update()

    def _rest_xml_element(self) -> Element:
        root = super()._rest_xml_element()
        SubElement(root, "description").text = self._description
        SubElement(root, "data_type").text = self._data_type
        input_type = SubElement(root, "input_type")
        SubElement(input_type, "type").text = self._input_type
        if self._popup_choices:
            choices = SubElement(input_type, "popup_choices")
            for choice in self._popup_choices:
                SubElement(choices, "choice").text = choice
        SubElement(root, "inventory_display").text = self._web_display
        return root


class ComputerExtensionAttribute(ExtensionAttribute):
    RSRC_BASE = "computerextensionattributes"
    RSRC_LIST_KEY = "computer_extension_attributes"
    RSRC_OBJECT_KEY = "computer_extension_attribute"


class MobileDeviceExtensionAttribute(ExtensionAttribute):
    RSRC_BASE = "mobiledeviceextensionattributes"
    RSRC_LIST_KEY = "mobile_device_extension_attributes"
    RSRC_OBJECT_KEY = "mobile_device_extension_attribute"


class UserExtensionAttribute(ExtensionAttribute):
    """User extension attributes: no scripts, no LDAP mapping, fixed display."""

    RSRC_BASE = "userextensionattributes"
    RSRC_LIST_KEY = "user_extension_attributes"
    RSRC_OBJECT_KEY = "user_extension_attribute"

    @ExtensionAttribute.input_type.setter
    def input_type(self, value: str) -> None:
        if value in (INPUT_TYPE_SCRIPT, INPUT_TYPE_LDAP):
            raise InvalidDataError(f"User Extension Attribute input_type cannot be '{value}'")
        ExtensionAttribute.input_type.fset(self, value)

    @ExtensionAttribute.web_display.setter
    def web_display(self, value: str) -> None:
        raise UnsupportedOperationError("User Extension Attributes web_display cannot be set")

    def _rest_xml_element(self) -> Element:
        root = super()._rest_xml_element()
        root.remove(root.find("inventory_display"))
        return root
