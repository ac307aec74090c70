"""Policies."""

from typing import Any, Optional
from xml.etree.ElementTree import Element, SubElement

from ..api_object import APIObject
from ..exceptions import InvalidDataError, NoSuchItemError
from .category import Category

NO_CATEGORY = "No category assigned"


class Policy(APIObject):
    RSRC_BASE = "policies"
    RSRC_LIST_KEY = "policies"
    RSRC_OBJECT_KEY = "policy"
    CREATABLE = True
    UPDATABLE = True
    SECTIONED = True

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        self._enabled = bool(self.general.get("enabled", False))
        category = self.general.get("category")
        if isinstance(category, dict):
            category = category.get("name")
        self._category = None if category in (None, NO_CATEGORY) else category

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        if not isinstance(value, bool):
            raise InvalidDataError("enabled must be true or false")
        if value == self._enabled:
            return
        self._enabled = value
        self.should_update()

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    @property
    def category(self) -> Optional[str]:
        return self._category

    @category.setter
    def category(self, name: Optional[str]) -> None:
        """Assign a category by name; None or "" removes the category.

        Raises:
            NoSuchItemError: If no category has that name
        """
        name = name or None
        if name == self._category:
            return
        if name is not None and name not in Category.all_names(api=self.api):
            raise NoSuchItemError(f"No category named '{name}'")
        self._category = name
        self.should_update()

    @property
    def frequency(self) -> Optional[str]:
        return self.general.get("frequency")

    @property
    def scope(self) -> Any:
        return self.sections.get("scope", {})

    def _rest_xml_element(self) -> Element:
        root = super()._rest_xml_element()
        general = self._general_element(root)
        SubElement(general, "enabled").text = "true" if self._enabled else "false"
        category = SubElement(general, "category")
        SubElement(category, "name").text = self._category or NO_CATEGORY
        return root
