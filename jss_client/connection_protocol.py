"""Protocols shared by the connection and the object layer.

``ResourceType`` is the descriptor every resource class provides; the object
cache and APIObject only ever read these class attributes.
``JSSConnectionProtocol`` is the connection surface resource objects use,
so anything implementing it (APIConnection, or a test double) can back them.
"""

from typing import (
    Any,
    ClassVar,
    Dict,
    Optional,
    Protocol,
    Tuple,
    runtime_checkable,
)


class ResourceType(Protocol):
    """Descriptor of one kind of API resource."""

    # e.g. 'computergroups' in JSSResource/computergroups/id/12
    RSRC_BASE: ClassVar[str]
    # key of the list in the JSON output of JSSResource/<RSRC_BASE>
    RSRC_LIST_KEY: ClassVar[str]
    # key of the object in the JSON output of a single object
    RSRC_OBJECT_KEY: ClassVar[str]
    # keys required in :data besides id and name
    VALID_DATA_KEYS: ClassVar[Tuple[str, ...]]
    # extra lookup keys, mapped to their URL segment
    OTHER_LOOKUP_KEYS: ClassVar[Dict[str, str]]
    CREATABLE: ClassVar[bool]
    UPDATABLE: ClassVar[bool]


@runtime_checkable
class JSSConnectionProtocol(Protocol):
    """Connection interface needed by resource objects."""

    @property
    def connected(self) -> bool: ...

    @property
    def name(self) -> Optional[str]: ...

    @property
    def object_cache(self) -> Any: ...

    def get(self, rsrc: str, format: str = "json", raw_json: bool = False) -> Any: ...

    def put(self, rsrc: str, xml: str) -> str: ...

    def post(self, rsrc: str, xml: Optional[str] = None) -> str: ...

    def delete(self, rsrc: str) -> str: ...

    def flush_cache(self, key: Any = None) -> None: ...

    def ext_attr_definitions(
        self, extendable_cls: Any, refresh: bool = False
    ) -> Dict[str, Dict[str, Any]]: ...
