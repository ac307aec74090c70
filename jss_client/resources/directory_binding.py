"""Directory bindings and their type-specific settings.

Only ADmitMac settings are modeled; bindings of other types keep their
settings untouched (they are not sent back on update).
"""

import logging
from typing import Any, Callable, Dict, List, Optional
from xml.etree.ElementTree import Element, SubElement

from ..api_object import APIObject
from ..exceptions import InvalidDataError

logger = logging.getLogger(__name__)

HOME_FOLDER_TYPE = {
    "network": "Network",
    "local": "Local",
    "either": "Either",
    "mobile": "Mobile",
}

BINDING_TYPES = (
    "Active Directory",
    "Open Directory",
    "PowerBroker Identity Services",
    "ADmitMac",
    "Centrify",
)


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _is_optional_str(value: Any) -> bool:
    return value is None or isinstance(value, str)


def _is_id(value: Any) -> bool:
    return value is None or isinstance(value, str) or _is_int(value)


def _xml_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class _Setting:
    """A validated binding setting; assigning it marks the binding for update."""

    def __init__(self, check: Callable[[Any], bool], requirement: str):
        self.check = check
        self.requirement = requirement

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: Any, objtype: Optional[type] = None) -> Any:
        if obj is None:
            return self
        return obj._settings.get(self.name)

    def __set__(self, obj: Any, value: Any) -> None:
        if not self.check(value):
            raise InvalidDataError(f"{self.name} must be {self.requirement}.")
        obj._settings[self.name] = value
        obj._changed()


class DirectoryBindingType:
    """Settings specific to one kind of directory binding."""

    XML_KEY: str = ""

    def __init__(self, init_data: Optional[Dict[str, Any]] = None, container: Any = None):
        self.container = container
        self._settings: Dict[str, Any] = {}

    def _changed(self) -> None:
        if self.container is not None:
            self.container.should_update()

    def type_setting_xml(self) -> Element:
        raise NotImplementedError


class ADmitMac(DirectoryBindingType):
    """Settings of an ADmitMac binding."""

    XML_KEY = "admitmac"

    require_confirmation = _Setting(_is_bool, "true or false")
    default_shell = _Setting(_is_str, "empty or a string")
    mount_network_home = _Setting(_is_bool, "true or false")
    place_home_folders = _Setting(_is_str, "a string")
    mount_style = _Setting(_is_str, "a string")
    uid = _Setting(_is_id, "a string, integer, or None")
    user_gid = _Setting(_is_id, "a string, integer, or None")
    gid = _Setting(_is_id, "a string, integer, or None")
    cached_credentials = _Setting(_is_int, "an integer")
    add_user_to_local = _Setting(_is_bool, "true or false")
    users_ou = _Setting(_is_optional_str, "either a string or None")
    groups_ou = _Setting(_is_optional_str, "either a string or None")
    printers_ou = _Setting(_is_optional_str, "either a string or None")
    shared_folders_ou = _Setting(_is_optional_str, "either a string or None")

    PLAIN_SETTINGS = (
        "require_confirmation",
        "default_shell",
        "mount_network_home",
        "place_home_folders",
        "mount_style",
        "uid",
        "user_gid",
        "gid",
        "cached_credentials",
        "add_user_to_local",
        "users_ou",
        "groups_ou",
        "printers_ou",
        "shared_folders_ou",
    )

    def __init__(self, init_data: Optional[Dict[str, Any]] = None, container: Any = None):
        """Load settings as read from the server, without validating them.

        ``local_home`` is the exception: it must be one of the
        HOME_FOLDER_TYPE values (or keys), since the server only sends those.
        """
        super().__init__(init_data, container)
        init_data = init_data or {}
        for name in self.PLAIN_SETTINGS:
            self._settings[name] = init_data.get(name)

        local_home = init_data.get("local_home")
        if local_home in HOME_FOLDER_TYPE:
            local_home = HOME_FOLDER_TYPE[local_home]
        elif local_home is not None and local_home not in HOME_FOLDER_TYPE.values():
            raise InvalidDataError(
                f"Local Home must be one of {', '.join(HOME_FOLDER_TYPE.values())}."
            )
        self._local_home = local_home

        admin_group = init_data.get("admin_group")
        if admin_group is None or admin_group == "":
            self._admin_groups: List[str] = []
        elif isinstance(admin_group, str):
            self._admin_groups = admin_group.split(",")
        else:
            self._admin_groups = list(admin_group)

    @property
    def local_home(self) -> Optional[str]:
        return self._local_home

    @local_home.setter
    def local_home(self, key: str) -> None:
        """Set from a HOME_FOLDER_TYPE key, e.g. ``"network"``."""
        if key not in HOME_FOLDER_TYPE:
            raise InvalidDataError(f"local_home must be one of: {', '.join(HOME_FOLDER_TYPE)}.")
        self._local_home = HOME_FOLDER_TYPE[key]
        self._changed()

    @property
    def admin_groups(self) -> List[str]:
        return list(self._admin_groups)

    @admin_groups.setter
    def admin_groups(self, groups: List[str]) -> None:
        if not isinstance(groups, list):
            raise InvalidDataError(
                "A list must be provided, please use add_admin_group and "
                "remove_admin_group for individual group additions and removals."
            )
        self._admin_groups = list(groups)
        self._changed()

    def add_admin_group(self, group: str) -> List[str]:
        if not isinstance(group, str):
            raise InvalidDataError("Admin group must be a string.")
        if group in self._admin_groups:
            raise InvalidDataError(f'Admin group "{group}" already is in the list of admin groups.')
        self._admin_groups.append(group)
        self._changed()
        return self.admin_groups

    def remove_admin_group(self, group: str) -> List[str]:
        if not isinstance(group, str):
            raise InvalidDataError("Admin group being removed must be a string.")
        if group not in self._admin_groups:
            raise InvalidDataError(f"Admin group {group} is not in the current admin group(s).")
        self._admin_groups.remove(group)
        self._changed()
        return self.admin_groups

    def type_setting_xml(self) -> Element:
        settings = Element(self.XML_KEY)
        for name in (
            "require_confirmation",
            "local_home",
            "mount_style",
            "default_shell",
            "mount_network_home",
            "place_home_folders",
            "uid",
            "user_gid",
            "gid",
            "add_user_to_local",
            "cached_credentials",
            "users_ou",
            "groups_ou",
            "printers_ou",
            "shared_folders_ou",
        ):
            value = getattr(self, name)
            if name == "mount_style" and isinstance(value, str):
                value = value.lower()
            SubElement(settings, name).text = _xml_text(value)
        SubElement(settings, "admin_group").text = ",".join(self._admin_groups)
        return settings


TYPE_SETTINGS_CLASSES: Dict[str, type] = {"ADmitMac": ADmitMac}


class DirectoryBinding(APIObject):
    """A directory binding, with its type-specific settings in ``type_settings``."""

    RSRC_BASE = "directorybindings"
    RSRC_LIST_KEY = "directory_bindings"
    RSRC_OBJECT_KEY = "directory_binding"
    CREATABLE = True
    UPDATABLE = True

    def __init__(
        self,
        *,
        type: Optional[str] = None,
        domain: Optional[str] = None,
        priority: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        general = self.general
        self._domain = general.get("domain")
        self._priority = general.get("priority", 1)
        self._type = general.get("type")
        self.type_settings: Optional[DirectoryBindingType] = None
        if self._type is not None:
            self._load_type_settings(general.get("type_settings") or {})

        if type is not None:
            self.type = type
        if domain is not None:
            self.domain = domain
        if priority is not None:
            self.priority = priority

    def _load_type_settings(self, raw: Dict[str, Any]) -> None:
        settings_class = TYPE_SETTINGS_CLASSES.get(self._type)
        if settings_class is None:
            logger.debug(f"No typed settings for directory binding type '{self._type}'")
            self.type_settings = None
            return
        self.type_settings = settings_class(raw.get(settings_class.XML_KEY), container=self)

    @property
    def type(self) -> Optional[str]:
        return self._type

    @type.setter
    def type(self, value: str) -> None:
        """Change the binding type; typed settings start out empty."""
        if value not in BINDING_TYPES:
            raise InvalidDataError(f"type must be one of: {', '.join(BINDING_TYPES)}")
        if value == self._type:
            return
        self._type = value
        self._load_type_settings({})
        self.should_update()

    @property
    def domain(self) -> Optional[str]:
        return self._domain

    @domain.setter
    def domain(self, value: str) -> None:
        if not isinstance(value, str) or not value:
            raise InvalidDataError("domain must be a non-empty string")
        if value == self._domain:
            return
        self._domain = value
        self.should_update()

    @property
    def priority(self) -> int:
        return self._priority

    @priority.setter
    def priority(self, value: int) -> None:
        if not _is_int(value) or value < 1:
            raise InvalidDataError("priority must be a positive integer")
        if value == self._priority:
            return
        self._priority = value
        self.should_update()

    def _rest_xml_element(self) -> Element:
        root = super()._rest_xml_element()
        SubElement(root, "priority").text = str(self._priority)
        SubElement(root, "domain").text = self._domain or ""
        if self._type is not None:
            SubElement(root, "type").text = self._type
        if self.type_settings is not None:
            type_settings = SubElement(root, "type_settings")
            type_settings.append(self.type_settings.type_setting_xml())
        return root
