"""Categories, departments and buildings: flat, named resources."""

from typing import Any, Optional
from xml.etree.ElementTree import Element, SubElement

from ..api_object import APIObject
from ..exceptions import InvalidDataError

DEFAULT_PRIORITY = 9
MIN_PRIORITY = 1
MAX_PRIORITY = 20


class Category(APIObject):
    """A category, used to group policies, packages and scripts."""

    RSRC_BASE = "categories"
    RSRC_LIST_KEY = "categories"
    RSRC_OBJECT_KEY = "category"
    CREATABLE = True
    UPDATABLE = True

    def __init__(self, *, priority: Optional[int] = None, **kwargs: Any):
        super().__init__(**kwargs)
        self._priority = self.general.get("priority", DEFAULT_PRIORITY)
        if priority is not None:
            if self.in_jss:
                self.priority = priority
            else:
                self._priority = self._validate_priority(priority)

    @staticmethod
    def _validate_priority(value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidDataError("Category priority must be an integer")
        if not MIN_PRIORITY <= value <= MAX_PRIORITY:
            raise InvalidDataError(
                f"Category priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}"
            )
        return value

    @property
    def priority(self) -> int:
        return self._priority

    @priority.setter
    def priority(self, value: int) -> None:
        value = self._validate_priority(value)
        if value == self._priority:
            return
        self._priority = value
        self.should_update()

    def _rest_xml_element(self) -> Element:
        root = super()._rest_xml_element()
        SubElement(root, "priority").text = str(self._priority)
        return root


class Department(APIObject):
    RSRC_BASE = "departments"
    RSRC_LIST_KEY = "departments"
    RSRC_OBJECT_KEY = "department"
    CREATABLE = True
    UPDATABLE = True


class Building(APIObject):
    RSRC_BASE = "buildings"
    RSRC_LIST_KEY = "buildings"
    RSRC_OBJECT_KEY = "building"
    CREATABLE = True
    UPDATABLE = True
