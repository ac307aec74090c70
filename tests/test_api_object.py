"""Tests for the generic APIObject lifecycle."""

from xml.etree import ElementTree

import pytest

from jss_client.api_connection import XML_HEADER
from jss_client.api_object import NEW_OBJECT, APIObject, ObjectState
from jss_client.connection_context import using_connection
from jss_client.exceptions import (
    AlreadyExistsError,
    InvalidDataError,
    MissingDataError,
    NoSuchItemError,
    UnsupportedOperationError,
)
from jss_client.resources import Category, Computer

from .helpers import ok_response, route_get

CATEGORY_LIST = {"categories": [{"id": 1, "name": "Apps"}, {"id": 2, "name": "Mac Apps"}]}
APPS = {"category": {"id": 1, "name": "Apps", "priority": 5}}
MAC_APPS = {"category": {"id": 2, "name": "Mac Apps", "priority": 9}}
COMPUTER_LIST = {"computers": [{"id": 10, "name": "mac-1"}]}
MAC_1 = {
    "computer": {
        "general": {
            "id": 10,
            "name": "mac-1",
            "udid": "55900BDC-347C-58B1-D249-F32244B11D30",
            "serial_number": "C02A",
            "asset_tag": "",
            "site": {"id": -1, "name": "None"},
        },
        "location": {"username": "", "building": "HQ"},
        "purchasing": "",
        "extension_attributes": [],
    }
}

PAYLOADS = {
    "categories": CATEGORY_LIST,
    "categories/id/1": APPS,
    "categories/name/Apps": APPS,
    "categories/name/Mac%20Apps": MAC_APPS,
    "computers": COMPUTER_LIST,
    "computers/serialnumber/C02A": MAC_1,
}


@pytest.fixture
def requested(connection, mock_http):
    """Route GETs to PAYLOADS; yields the list of requested paths."""
    return route_get(mock_http, PAYLOADS)


class ReadOnlyThing(APIObject):
    RSRC_BASE = "things"
    RSRC_LIST_KEY = "things"
    RSRC_OBJECT_KEY = "thing"


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestLookup:
    def test_by_id(self, connection, requested):
        cat = Category(api=connection, id=1)
        assert requested == ["categories/id/1"]
        assert cat.id == 1
        assert cat.name == "Apps"
        assert cat.priority == 5
        assert cat.in_jss
        assert cat.state is ObjectState.PERSISTED
        assert not cat.need_to_update
        assert cat.rest_rsrc == "categories/id/1"
        assert cat.api is connection

    def test_by_name_is_escaped(self, connection, requested):
        cat = Category(api=connection, name="Mac Apps")
        assert requested == ["categories/name/Mac%20Apps"]
        assert cat.id == 2

    def test_other_lookup_key(self, connection, requested):
        computer = Computer(api=connection, serial_number="C02A")
        assert requested == ["computers/serialnumber/C02A"]
        assert computer.id == 10

    def test_not_found(self, connection, requested):
        with pytest.raises(NoSuchItemError, match="name 'Nope'"):
            Category(api=connection, name="Nope")

    def test_no_lookup_key(self, connection, requested):
        with pytest.raises(MissingDataError):
            Category(api=connection)
        assert requested == []

    def test_unknown_keyword(self, connection, requested):
        with pytest.raises(TypeError, match="serial_number"):
            Category(api=connection, serial_number="C02A")

    def test_response_without_object(self, connection, mock_http):
        route_get(mock_http, {"categories/id/1": {"wrong": {}}})
        with pytest.raises(InvalidDataError):
            Category(api=connection, id=1)

    def test_uses_active_connection(self, connection, requested):
        with using_connection(connection):
            cat = Category(id=1)
        assert cat.api is connection

    def test_base_class_cannot_be_built(self, connection):
        with pytest.raises(UnsupportedOperationError):
            APIObject(api=connection, id=1)


class TestFromData:
    def test_valid_data(self, connection, requested):
        cat = Category(api=connection, data=APPS["category"])
        assert requested == ["categories"]
        assert cat.in_jss
        assert cat.priority == 5

    def test_data_is_copied(self, connection, requested):
        data = {"id": 1, "name": "Apps", "priority": ""}
        Category(api=connection, data=data)
        assert data["priority"] == ""

    def test_missing_keys_are_named(self, connection, requested):
        data = {"general": {"id": 10, "name": "mac-1"}}
        with pytest.raises(InvalidDataError, match="udid, serial_number"):
            Computer(api=connection, data=data)
        assert requested == []

    def test_unknown_id(self, connection, requested):
        with pytest.raises(NoSuchItemError, match="99"):
            Category(api=connection, data={"id": 99, "name": "Ghost"})

    def test_empty_strings_are_stripped(self, connection, requested):
        computer = Computer(api=connection, data=MAC_1["computer"])
        assert "asset_tag" not in computer.general
        assert computer.asset_tag is None
        assert computer.location == {"building": "HQ"}
        assert "purchasing" not in computer.sections
        assert computer.site == "None"


class TestNewObjects:
    def test_new(self, connection, requested):
        cat = Category(api=connection, id=NEW_OBJECT, name="Tools")
        assert cat.id is None
        assert not cat.in_jss
        assert cat.state is ObjectState.NEW
        assert cat.need_to_update
        assert cat.rest_rsrc == "categories/name/Tools"

    def test_make(self, connection, requested):
        cat = Category.make("Tools", api=connection, priority=3)
        assert cat.priority == 3
        assert not cat.in_jss

    def test_name_required(self, connection, requested):
        with pytest.raises(MissingDataError):
            Category(api=connection, id=NEW_OBJECT)

    def test_name_must_be_unique(self, connection, requested):
        with pytest.raises(AlreadyExistsError):
            Category(api=connection, id=NEW_OBJECT, name="Apps")

    def test_not_creatable(self, connection, requested):
        with pytest.raises(UnsupportedOperationError):
            Computer(api=connection, id=NEW_OBJECT, name="mac-2")
        assert requested == []


# ---------------------------------------------------------------------------
# Create / update / delete
# ---------------------------------------------------------------------------


class TestCreate:
    def test_create(self, connection, mock_http, requested):
        mock_http.post.return_value = ok_response(
            text='<?xml version="1.0" encoding="UTF-8"?><category><id>12</id></category>'
        )
        cat = Category(api=connection, id=NEW_OBJECT, name="Tools")
        assert "categories" in connection.object_cache

        new_id = cat.create()

        assert new_id == 12
        assert cat.id == 12
        assert cat.in_jss
        assert not cat.need_to_update
        assert cat.rest_rsrc == "categories/id/12"
        assert "categories" not in connection.object_cache

        call = mock_http.post.call_args
        assert call[0][0] == "categories/id/0"
        element = ElementTree.fromstring(call.kwargs["content"][len(XML_HEADER):])
        assert element.tag == "category"
        assert element.findtext("name") == "Tools"
        assert element.findtext("priority") == "9"

    def test_create_twice(self, connection, requested):
        cat = Category(api=connection, id=1)
        with pytest.raises(AlreadyExistsError):
            cat.create()

    def test_create_without_id_in_response(self, connection, mock_http, requested):
        mock_http.post.return_value = ok_response(text="<category/>")
        cat = Category(api=connection, id=NEW_OBJECT, name="Tools")
        with pytest.raises(InvalidDataError):
            cat.create()

    def test_save_creates_new_objects(self, connection, mock_http, requested):
        mock_http.post.return_value = ok_response(text="<category><id>13</id></category>")
        cat = Category(api=connection, id=NEW_OBJECT, name="Tools")
        assert cat.save() == 13
        mock_http.put.assert_not_called()


class TestUpdate:
    def test_rename_and_update(self, connection, mock_http, requested):
        cat = Category(api=connection, id=1)
        cat.name = "Applications"
        assert cat.need_to_update
        assert cat.rest_rsrc == "categories/id/1"

        assert cat.update() == 1

        call = mock_http.put.call_args
        assert call[0][0] == "categories/id/1"
        assert "<name>Applications</name>" in call.kwargs["content"]
        assert not cat.need_to_update

    def test_update_without_changes(self, connection, mock_http, requested):
        cat = Category(api=connection, id=1)
        cat.update()
        mock_http.put.assert_not_called()

    def test_update_new_object(self, connection, requested):
        cat = Category(api=connection, id=NEW_OBJECT, name="Tools")
        with pytest.raises(NoSuchItemError):
            cat.update()

    def test_save_updates_existing_objects(self, connection, mock_http, requested):
        cat = Category(api=connection, id=1)
        cat.priority = 2
        cat.save()
        mock_http.put.assert_called_once()
        mock_http.post.assert_not_called()

    def test_rename_new_object_changes_path(self, connection, requested):
        cat = Category(api=connection, id=NEW_OBJECT, name="Tools")
        cat.name = "Gadgets"
        assert cat.rest_rsrc == "categories/name/Gadgets"

    def test_rename_to_same_name(self, connection, requested):
        cat = Category(api=connection, id=1)
        cat.name = "Apps"
        assert not cat.need_to_update

    def test_rename_to_empty(self, connection, requested):
        cat = Category(api=connection, id=1)
        with pytest.raises(MissingDataError):
            cat.name = ""

    def test_rename_to_taken_name(self, connection, requested):
        cat = Category(api=connection, id=1)
        with pytest.raises(AlreadyExistsError):
            cat.name = "Mac Apps"

    def test_not_updatable(self, connection, mock_http):
        route_get(
            mock_http,
            {"things/id/4": {"thing": {"id": 4, "name": "widget"}}},
        )
        thing = ReadOnlyThing(api=connection, id=4)
        with pytest.raises(UnsupportedOperationError):
            thing.name = "gadget"
        with pytest.raises(UnsupportedOperationError):
            thing.update()
        with pytest.raises(UnsupportedOperationError):
            thing.create()


class TestDelete:
    def test_delete_resets_to_new(self, connection, mock_http, requested):
        cat = Category(api=connection, id=1)
        Category.all_ids(api=connection)

        assert cat.delete() is None

        mock_http.delete.assert_called_once()
        assert mock_http.delete.call_args[0][0] == "categories/id/1"
        assert cat.id is None
        assert not cat.in_jss
        assert cat.need_to_update
        assert cat.state is ObjectState.NEW
        assert cat.rest_rsrc == "categories/name/Apps"
        assert "categories" not in connection.object_cache

    def test_delete_twice_is_a_noop(self, connection, mock_http, requested):
        cat = Category(api=connection, id=1)
        cat.delete()
        cat.delete()
        mock_http.delete.assert_called_once()

    def test_delete_new_object(self, connection, mock_http, requested):
        Category(api=connection, id=NEW_OBJECT, name="Tools").delete()
        mock_http.delete.assert_not_called()


# ---------------------------------------------------------------------------
# Class operations and XML
# ---------------------------------------------------------------------------


class TestClassOperations:
    def test_all(self, connection, requested):
        assert Category.all(api=connection) == CATEGORY_LIST["categories"]
        assert Category.all_ids(api=connection) == [1, 2]
        assert Category.all_names(api=connection) == ["Apps", "Mac Apps"]
        assert requested == ["categories"]

    def test_refresh(self, connection, requested):
        Category.all(api=connection)
        Category.all(refresh=True, api=connection)
        assert requested == ["categories", "categories"]

    def test_map_all_ids_to(self, connection, requested):
        assert Category.map_all_ids_to("name", api=connection) == {1: "Apps", 2: "Mac Apps"}

    def test_fetch(self, connection, requested):
        assert Category.fetch(api=connection, name="Apps").id == 1

    def test_xml_list(self):
        element = Category.xml_list([{"id": 1, "name": "Apps"}, {"id": 2, "name": "Misc"}])
        assert element.tag == "categories"
        assert [c.findtext("name") for c in element.findall("category")] == ["Apps", "Misc"]

    def test_xml_list_by_id(self):
        element = Category.xml_list([{"id": 1, "name": "Apps"}], content="id")
        assert element.find("category").findtext("id") == "1"

    @pytest.mark.parametrize(
        "operation",
        [
            lambda api: APIObject.all(api=api),
            lambda api: APIObject.all_ids(api=api),
            lambda api: APIObject.all_names(api=api),
            lambda api: APIObject.map_all_ids_to("name", api=api),
            lambda api: APIObject.xml_list([]),
            lambda api: APIObject.fetch(api=api, id=1),
        ],
    )
    def test_base_class_operations_unsupported(self, connection, operation):
        with pytest.raises(UnsupportedOperationError):
            operation(connection)


class TestRestXml:
    def test_header_and_root(self, connection, requested):
        xml = Category(api=connection, id=1).rest_xml()
        assert xml.startswith(XML_HEADER)
        element = ElementTree.fromstring(xml[len(XML_HEADER):])
        assert element.tag == "category"
        assert element.findtext("name") == "Apps"

    def test_sectioned_name_goes_in_general(self, connection, requested):
        computer = Computer(api=connection, serial_number="C02A")
        element = ElementTree.fromstring(computer.rest_xml()[len(XML_HEADER):])
        assert element.find("general").findtext("name") == "mac-1"

    def test_repr(self, connection, requested):
        assert repr(Category(api=connection, id=1)) == "<Category id=1 name='Apps'>"
