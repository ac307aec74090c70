"""Extension attribute values for computers, mobile devices and users.

Classes mixing in Extendable set ``EXT_ATTRIB_CLASS`` to the resource class
of their extension attribute definitions. The definitions are cached by the
connection (see ``APIConnection.ext_attr_definitions``).
"""

import logging
from typing import Any, ClassVar, Dict, List, Optional
from xml.etree.ElementTree import Element, SubElement

from .exceptions import NoSuchItemError

logger = logging.getLogger(__name__)


class Extendable:
    """Mixin for APIObject subclasses whose payload has extension_attributes."""

    EXT_ATTRIB_CLASS: ClassVar[Optional[type]] = None

    def __init__(self, **kwargs: Any):
        self._changed_ext_attrs: Dict[str, Any] = {}
        super().__init__(**kwargs)

    def _ext_attr_items(self) -> List[Dict[str, Any]]:
        # flat payloads nest the list one level deeper
        raw = self._field("extension_attributes", [])
        if isinstance(raw, dict):
            raw = raw.get("extension_attribute", [])
        if isinstance(raw, dict):
            raw = [raw]
        return [item for item in raw if isinstance(item, dict)]

    @property
    def ext_attrs(self) -> Dict[str, Any]:
        """Current extension attribute values by name, unsaved changes included."""
        values = {item.get("name"): item.get("value") for item in self._ext_attr_items()}
        values.update(self._changed_ext_attrs)
        return values

    def set_ext_attr(self, name: str, value: Any) -> None:
        """Set an extension attribute value, to be sent on the next update().

        Raises:
            NoSuchItemError: If no extension attribute with that name is defined
        """
        if name not in self.api.ext_attr_definitions(type(self)):
            raise NoSuchItemError(
                f"No {self.EXT_ATTRIB_CLASS.RSRC_OBJECT_KEY} named '{name}'"
            )
        if name not in self._changed_ext_attrs and self.ext_attrs.get(name) == value:
            return
        self._changed_ext_attrs[name] = value
        self.should_update()
        logger.debug(f"Set extension attribute '{name}' on {self.RSRC_OBJECT_KEY} '{self.name}'")

    def _add_ext_attr_xml(self, root: Element) -> None:
        """Append the changed extension attributes to the object element."""
        if not self._changed_ext_attrs:
            return
        container = SubElement(root, "extension_attributes")
        for name, value in self._changed_ext_attrs.items():
            ea = SubElement(container, "extension_attribute")
            SubElement(ea, "name").text = name
            SubElement(ea, "value").text = "" if value is None else str(value)

    def _commit_ext_attrs(self) -> None:
        items = self._ext_attr_items()
        by_name = {item.get("name"): item for item in items}
        for name, value in self._changed_ext_attrs.items():
            if name in by_name:
                by_name[name]["value"] = value
            else:
                items.append({"name": name, "value": value})
        if self.SECTIONED or "extension_attributes" in self._sections:
            self._sections["extension_attributes"] = items
        else:
            self._general["extension_attributes"] = items
        self._changed_ext_attrs = {}

    def _rest_xml_element(self) -> Element:
        root = super()._rest_xml_element()
        self._add_ext_attr_xml(root)
        return root

    def create(self) -> Any:
        new_id = super().create()
        self._commit_ext_attrs()
        return new_id

    def update(self) -> Any:
        had_changes = self.need_to_update
        result = super().update()
        if had_changes:
            self._commit_ext_attrs()
        return result
