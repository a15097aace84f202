import json

from vendor_leads.services.vendor_response import (
    GenericFormatter,
    LendingTreeFormatter,
    create_http_response,
    create_preflight_response,
    create_vendor_response,
    get_formatter,
)


def test_lendingtree_success():
    body = create_vendor_response("lendingtree", {"leadId": "abc123"}, True)
    assert body == {
        "leadAcknowledgement": {
            "leadExternalId": "abc123",
            "partnerDecision": "accepted",
            "attemptRetransmit": False,
        }
    }


def test_lendingtree_error():
    body = create_vendor_response("lendingtree", {"errorMessage": "boom"}, False)
    assert body["leadAcknowledgement"] == {
        "leadExternalId": None,
        "partnerDecision": "rejected",
        "attemptRetransmit": True,
    }


def test_formatter_lookup_is_case_insensitive():
    assert isinstance(get_formatter("LendingTree"), LendingTreeFormatter)
    assert isinstance(get_formatter("acme"), GenericFormatter)
    assert isinstance(get_formatter(None), GenericFormatter)


def test_generic_success():
    body = create_vendor_response("acme", {"leadId": "x"}, True)
    assert body == {"status": "success", "message": "Leads processed asynchronously."}


def test_generic_error_messages():
    assert create_vendor_response("acme", {"errorMessage": "boom"}, False) == {
        "status": "error",
        "message": "boom",
    }
    assert create_vendor_response("unknown", {"error": "Vendor name cannot be empty."}, False)[
        "message"
    ] == "Vendor name cannot be empty."
    assert create_vendor_response("acme", {}, False)["message"] == "Failed to process leads request."


def test_http_response_headers():
    response = create_http_response(200, "acme", {"leadId": "x"}, True)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
    assert response.headers["access-control-allow-headers"] == "Content-Type, vendor"
    assert json.loads(response.body) == {"status": "success", "message": "Leads processed asynchronously."}


def test_preflight_response():
    response = create_preflight_response()

    assert response.status_code == 200
    assert response.headers["access-control-allow-methods"] == "POST, PUT, PATCH, OPTIONS"
    assert response.headers["access-control-max-age"] == "86400"
    assert json.loads(response.body) == {"message": "CORS preflight successful"}
