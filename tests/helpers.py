"""Mock HTTP responses shared by the unit tests."""

from unittest.mock import MagicMock

import httpx

JSSUSER_PAYLOAD = {
    "user": {
        "name": "apiuser",
        "version": "10.30.1-t1620233462",
        "license_type": "Commercial",
        "product": "JAMF PRO",
        "privileges": {"privilege": ["Read Computers"]},
    }
}

NOT_FOUND_PAGE = (
    "<html><head><title>Status page</title></head><body>"
    "<p>Not Found</p><p>The server has not found anything matching the request URI</p>"
    "</body></html>"
)


def ok_response(json_data=None, text=""):
    """Build a mock httpx.Response with status 200."""
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = 200
    resp.text = text
    if json_data is not None:
        resp.json.return_value = json_data
    else:
        resp.json.side_effect = ValueError("no json")
    return resp


def error_response(status_code, text="error"):
    """Build a mock httpx.Response with an error status."""
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = status_code
    resp.text = text
    resp.json.side_effect = ValueError("no json")
    return resp


def route_get(mock_client, payloads):
    """Answer GETs from a {resource path: JSON payload} mapping, 404 otherwise.

    Returns the list of requested paths, in order.
    """
    requested = []

    def _get(rsrc, **kwargs):
        requested.append(rsrc)
        if rsrc in payloads:
            return ok_response(payloads[rsrc])
        return error_response(404, NOT_FOUND_PAGE)

    mock_client.get.side_effect = _get
    return requested
