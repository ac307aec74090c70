"""Generic lifecycle of JSS API objects.

APIObject is the parent of every resource class. Subclasses describe their
resource with class attributes (see ``connection_protocol.ResourceType``):

- ``RSRC_BASE``: base of the REST resources, e.g. 'computergroups' in
  ``JSSResource/computergroups/id/12``
- ``RSRC_LIST_KEY``: key of the list in the JSON output of ``RSRC_BASE``
- ``RSRC_OBJECT_KEY``: key of the object in the JSON output of one object
- ``VALID_DATA_KEYS``: keys, besides id and name, that must be present when
  building an object from ``data``. Objects whose payload is split into
  sections must have them in the 'general' section.
- ``OTHER_LOOKUP_KEYS``: extra lookup keyword -> URL segment, e.g.
  ``{"serial_number": "serialnumber"}``
- ``CREATABLE`` / ``UPDATABLE``
- ``SECTIONED``: the payload has a 'general' section plus others

An object is built in exactly one of three ways::

    Category(data=payload)           # payload already fetched
    Category(id="new", name="Apps")  # new, not yet in the JSS
    Category(name="Apps")            # looked up through the API

Every object belongs to the connection it was built with (``api=``, or the
active connection) and uses it for all later calls.
"""

import copy
import logging
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple
from urllib.parse import quote
from xml.etree import ElementTree
from xml.etree.ElementTree import Element, SubElement

from .api_connection import XML_HEADER
from .connection_context import active_connection
from .connection_protocol import JSSConnectionProtocol
from .exceptions import (
    AlreadyExistsError,
    InvalidDataError,
    MissingDataError,
    NoSuchItemError,
    UnsupportedOperationError,
)

logger = logging.getLogger(__name__)

NEW_OBJECT = "new"
NO_SITE = "None"


class ObjectState(Enum):
    NEW = "new"
    PERSISTED = "persisted"


class APIObject:
    """Base class of all JSS API objects."""

    RSRC_BASE: ClassVar[Optional[str]] = None
    RSRC_LIST_KEY: ClassVar[Optional[str]] = None
    RSRC_OBJECT_KEY: ClassVar[Optional[str]] = None
    VALID_DATA_KEYS: ClassVar[Tuple[str, ...]] = ()
    OTHER_LOOKUP_KEYS: ClassVar[Dict[str, str]] = {}
    CREATABLE: ClassVar[bool] = False
    UPDATABLE: ClassVar[bool] = False
    # payload split into "general" and other sections
    SECTIONED: ClassVar[bool] = False

    # always required in :data
    REQUIRED_DATA_KEYS: ClassVar[Tuple[str, ...]] = ("id", "name")
    DEFAULT_LOOKUP_KEYS: ClassVar[Dict[str, str]] = {"id": "id", "name": "name"}

    # --- Class methods ---

    @classmethod
    def _require_concrete(cls, operation: str) -> None:
        if cls.RSRC_LIST_KEY is None or cls.RSRC_BASE is None:
            raise UnsupportedOperationError(
                f".{operation} can only be called on subclasses of APIObject"
            )

    @staticmethod
    def _connection(api: Optional[JSSConnectionProtocol]) -> JSSConnectionProtocol:
        return api if api is not None else active_connection()

    @classmethod
    def all(
        cls, refresh: bool = False, api: Optional[JSSConnectionProtocol] = None
    ) -> List[Dict[str, Any]]:
        """Summaries (at least id and name) of every object of this class.

        The list is cached by the connection; pass ``refresh=True`` to
        query the server again.
        """
        cls._require_concrete("all")
        return cls._connection(api).object_cache.list(cls, refresh)

    @classmethod
    def all_ids(cls, refresh: bool = False, api: Optional[JSSConnectionProtocol] = None) -> List[Any]:
        cls._require_concrete("all_ids")
        return cls._connection(api).object_cache.ids_of(cls, refresh)

    @classmethod
    def all_names(
        cls, refresh: bool = False, api: Optional[JSSConnectionProtocol] = None
    ) -> List[Any]:
        cls._require_concrete("all_names")
        return cls._connection(api).object_cache.names_of(cls, refresh)

    @classmethod
    def map_all_ids_to(
        cls, other_key: str, refresh: bool = False, api: Optional[JSSConnectionProtocol] = None
    ) -> Dict[Any, Any]:
        """Map ids to another key of the summaries, e.g. ``map_all_ids_to("name")``.

        Summaries without ``other_key`` map to None. Invert the result to
        map the other key to ids.
        """
        cls._require_concrete("map_all_ids_to")
        return cls._connection(api).object_cache.map(cls, other_key, refresh)

    @classmethod
    def xml_list(cls, items: List[Dict[str, Any]], content: str = "name") -> Element:
        """Build a ``<list_key><object_key><content>`` element from summaries."""
        cls._require_concrete("xml_list")
        root = Element(cls.RSRC_LIST_KEY)
        for item in items:
            member = SubElement(root, cls.RSRC_OBJECT_KEY)
            SubElement(member, content).text = str(item[content])
        return root

    @classmethod
    def fetch(cls, api: Optional[JSSConnectionProtocol] = None, **lookup: Any) -> "APIObject":
        """Look up one object, e.g. ``Computer.fetch(serial_number="C02X")``."""
        cls._require_concrete("fetch")
        return cls(api=api, **lookup)

    @classmethod
    def make(cls, name: str, api: Optional[JSSConnectionProtocol] = None, **kwargs: Any) -> "APIObject":
        """Build a new object, not yet saved to the JSS."""
        cls._require_concrete("make")
        return cls(api=api, id=NEW_OBJECT, name=name, **kwargs)

    # --- Construction ---

    def __init__(
        self,
        *,
        api: Optional[JSSConnectionProtocol] = None,
        data: Optional[Dict[str, Any]] = None,
        id: Any = None,
        name: Optional[str] = None,
        **lookup: Any,
    ):
        """Build the object from data, as a new object, or by lookup.

        Args:
            api: Connection to use (default: the active connection)
            data: Payload of a previous API query for this object
            id: JSS id to look up, or "new" to build a new object
            name: Name to look up, or the name of a new object
            **lookup: Other lookup keys declared in OTHER_LOOKUP_KEYS

        Raises:
            InvalidDataError: If data lacks required keys
            NoSuchItemError: If the object is not in the JSS
            MissingDataError: If no usable lookup key or name was given
            AlreadyExistsError: If a new object's name is taken
            UnsupportedOperationError: If new objects of this class can't be created
        """
        type(self)._require_concrete("__init__")
        unknown = set(lookup) - set(self.OTHER_LOOKUP_KEYS)
        if unknown:
            raise TypeError(
                f"{type(self).__name__}() got unexpected keyword arguments: "
                f"{', '.join(sorted(unknown))}"
            )

        self.api = self._connection(api)

        if data is not None:
            init_data = self._init_from_data(data)
        elif id == NEW_OBJECT:
            init_data = self._init_new(name)
        else:
            init_data = self._init_from_lookup({"id": id, "name": name, **lookup})

        self._parse_init_data(init_data)

    def _init_from_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise InvalidDataError(f":data for a {self.RSRC_OBJECT_KEY} must be a dict")

        general = data.get("general")
        to_check = general if isinstance(general, dict) else data
        required = self.REQUIRED_DATA_KEYS + tuple(self.VALID_DATA_KEYS)
        missing = [key for key in required if key not in to_check]
        if missing:
            raise InvalidDataError(
                f":data is not valid JSON for a {self.RSRC_OBJECT_KEY} from the API. "
                f"Missing keys: {', '.join(missing)}"
            )

        if to_check["id"] not in type(self).all_ids(api=self.api):
            raise NoSuchItemError(f"No {self.RSRC_OBJECT_KEY} with JSS id: {to_check['id']}")

        return copy.deepcopy(data)

    def _init_new(self, name: Optional[str]) -> Dict[str, Any]:
        if not self.CREATABLE:
            raise UnsupportedOperationError(
                f"Creating {self.RSRC_LIST_KEY} isn't yet supported. "
                "Please use other Casper workflows."
            )
        if not name:
            raise MissingDataError(f"You must provide a name for a new {self.RSRC_OBJECT_KEY}.")
        if name in type(self).all_names(api=self.api):
            raise AlreadyExistsError(
                f"A {self.RSRC_OBJECT_KEY} already exists with the name '{name}'"
            )
        return {"name": name}

    def _init_from_lookup(self, supplied: Dict[str, Any]) -> Dict[str, Any]:
        lookup_keys = {**self.DEFAULT_LOOKUP_KEYS, **self.OTHER_LOOKUP_KEYS}
        lookup_key = next((key for key in lookup_keys if supplied.get(key) is not None), None)
        if lookup_key is None:
            raise MissingDataError(f"Args must include {', '.join(lookup_keys)}, or data")

        value = supplied[lookup_key]
        rsrc = f"{self.RSRC_BASE}/{lookup_keys[lookup_key]}/{quote(str(value), safe='')}"
        try:
            response = self.api.get(rsrc)
        except NoSuchItemError:
            raise NoSuchItemError(
                f"No {self.RSRC_OBJECT_KEY} found matching {lookup_key} '{value}'"
            ) from None

        try:
            return response[self.RSRC_OBJECT_KEY]
        except (KeyError, TypeError) as e:
            raise InvalidDataError(
                f"Response for {rsrc} has no '{self.RSRC_OBJECT_KEY}' object"
            ) from e

    def _parse_init_data(self, init_data: Dict[str, Any]) -> None:
        """Split the payload into general fields and sections, dropping empty strings.

        The server sends "" for "no value"; those become absent keys.
        """
        general = init_data.get("general")
        self._sectioned = isinstance(general, dict)
        self._sections: Dict[str, Any] = {}

        if self._sectioned:
            self._general = {k: v for k, v in general.items() if v != ""}
            for key, value in init_data.items():
                if key == "general":
                    continue
                if isinstance(value, dict):
                    value = {k: v for k, v in value.items() if v != ""}
                elif value == "":
                    continue
                self._sections[key] = value
        else:
            self._general = {k: v for k, v in init_data.items() if v != ""}

        self.init_data = init_data

        self._id = self._general.get("id")
        self._name = self._general.get("name")
        site = self._general.get("site")
        if isinstance(site, dict):
            site = site.get("name")
        self.site = site or NO_SITE

        if self._id is not None:
            self._in_jss = True
            self._need_to_update = False
        else:
            self._in_jss = False
            self._need_to_update = True
        self._set_rest_rsrc()

    def _set_rest_rsrc(self) -> None:
        if self._in_jss:
            self._rest_rsrc = f"{self.RSRC_BASE}/id/{self._id}"
        else:
            self._rest_rsrc = f"{self.RSRC_BASE}/name/{quote(str(self._name), safe='')}"

    # --- Attributes ---

    @property
    def id(self) -> Any:
        return self._id

    @property
    def name(self) -> Optional[str]:
        return self._name

    @name.setter
    def name(self, new_name: str) -> None:
        if not self.UPDATABLE:
            raise UnsupportedOperationError(f"Editing {self.RSRC_LIST_KEY} isn't yet supported.")
        if new_name == self._name:
            return
        if not new_name:
            raise MissingDataError("Name can't be empty")
        if new_name in type(self).all_names(api=self.api):
            raise AlreadyExistsError(
                f"A {self.RSRC_OBJECT_KEY} already exists with the name '{new_name}'"
            )
        self._name = new_name
        if not self._in_jss:
            self._set_rest_rsrc()
        self._need_to_update = True

    @property
    def in_jss(self) -> bool:
        return self._in_jss

    @property
    def need_to_update(self) -> bool:
        return self._need_to_update

    def should_update(self) -> None:
        """Mark the object as having unsaved changes."""
        self._need_to_update = True

    @property
    def rest_rsrc(self) -> str:
        """REST resource of this object, relative to JSSResource/."""
        return self._rest_rsrc

    @property
    def state(self) -> ObjectState:
        return ObjectState.PERSISTED if self._in_jss else ObjectState.NEW

    @property
    def general(self) -> Dict[str, Any]:
        """Flat attributes: the whole payload, or its 'general' section."""
        return self._general

    @property
    def sections(self) -> Dict[str, Any]:
        """Every top-level section other than 'general' (empty for flat payloads)."""
        return self._sections

    def _field(self, key: str, default: Any = None) -> Any:
        if key in self._general:
            return self._general[key]
        return self._sections.get(key, default)

    # --- Create / update / delete ---

    def create(self) -> Any:
        """Create this object in the JSS.

        Returns:
            The new JSS id

        Raises:
            UnsupportedOperationError: If the class is not creatable
            AlreadyExistsError: If the object is already in the JSS
        """
        if not self.CREATABLE:
            raise UnsupportedOperationError(f"Creating {self.RSRC_LIST_KEY} isn't yet supported.")
        if self._in_jss:
            raise AlreadyExistsError(
                f"This {self.RSRC_OBJECT_KEY} already exists. Use update() to save changes."
            )

        response = self.api.post(f"{self.RSRC_BASE}/id/0", self.rest_xml())
        self._id = self._returned_id(response)
        self._in_jss = True
        self._need_to_update = False
        self._set_rest_rsrc()
        self.api.flush_cache(self.RSRC_LIST_KEY)
        logger.info(f"Created {self.RSRC_OBJECT_KEY} '{self._name}' with id {self._id}")
        return self._id

    def update(self) -> Any:
        """Save changes to the JSS. Does nothing if there are none.

        Raises:
            UnsupportedOperationError: If the class is not updatable
            NoSuchItemError: If the object is not in the JSS yet
        """
        if not self.UPDATABLE:
            raise UnsupportedOperationError(f"Editing {self.RSRC_LIST_KEY} isn't yet supported.")
        if not self._in_jss:
            raise NoSuchItemError(
                f"{self.RSRC_OBJECT_KEY} '{self._name}' is not in the JSS. Use create() first."
            )
        if not self._need_to_update:
            return self._id

        self.api.put(self.rest_rsrc, self.rest_xml())
        self._need_to_update = False
        self.api.flush_cache(self.RSRC_LIST_KEY)
        logger.info(f"Updated {self.RSRC_OBJECT_KEY} '{self._name}' (id {self._id})")
        return self._id

    def save(self) -> Any:
        """Create the object if it is new, else update it."""
        return self.update() if self._in_jss else self.create()

    def delete(self) -> None:
        """Delete this object from the JSS.

        The instance survives as a new, unsaved object with the same name.
        Does nothing if the object is not in the JSS.
        """
        if not self._in_jss:
            return None

        self.api.delete(self.rest_rsrc)
        logger.info(f"Deleted {self.RSRC_OBJECT_KEY} '{self._name}' (id {self._id})")
        self._id = None
        self._in_jss = False
        self._need_to_update = True
        self._set_rest_rsrc()
        self.api.flush_cache(self.RSRC_LIST_KEY)
        return None

    @staticmethod
    def _returned_id(response: str) -> int:
        """Read the id the JSS returns after a POST, e.g. ``<category><id>12</id></category>``."""
        try:
            id_text = ElementTree.fromstring(response).findtext("id")
        except ElementTree.ParseError as e:
            raise InvalidDataError(f"Unparseable response to create: {response!r}") from e
        if not id_text or not id_text.strip().isdigit():
            raise InvalidDataError(f"No id in response to create: {response!r}")
        return int(id_text)

    # --- XML ---

    def rest_xml(self) -> str:
        """XML document sent when creating or updating this object."""
        return XML_HEADER + ElementTree.tostring(self._rest_xml_element(), encoding="unicode")

    def _rest_xml_element(self) -> Element:
        """The object's XML element. Most subclasses extend this."""
        root = Element(self.RSRC_OBJECT_KEY)
        general = SubElement(root, "general") if self.SECTIONED else root
        SubElement(general, "name").text = self._name
        return root

    def _general_element(self, root: Element) -> Element:
        """Where flat attributes go in the object element."""
        return root.find("general") if self.SECTIONED else root

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self._id!r} name={self._name!r}>"
