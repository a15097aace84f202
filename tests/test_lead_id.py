import re
from decimal import Decimal

import pytest

from vendor_leads.schemas.leads import VendorConfig
from vendor_leads.services.lead_id import generate_unique_lead_id, resolve_lead_id
from vendor_leads.utils.object_utils import get_nested_property

FALLBACK_ID = re.compile(r"^\d{13}_[0-9a-z]{6}$")

CONFIG = {
    "lendingtree": VendorConfig(leadIdProperty="Internal_LeadID"),
    "nested": VendorConfig(leadIdProperty="user.id"),
    "applicants": VendorConfig(leadIdProperty="applicants.0.ref"),
    "noproperty": VendorConfig(),
}


def test_get_nested_property():
    lead = {"user": {"profile": {"id": "p1"}}, "items": [{"id": "i0"}, {"id": "i1"}]}
    assert get_nested_property(lead, "user.profile.id") == "p1"
    assert get_nested_property(lead, "items.1.id") == "i1"

    assert get_nested_property(lead, "user.missing.id") is None
    assert get_nested_property(lead, "user.profile.id.deeper") is None
    assert get_nested_property(lead, "items.5.id") is None
    assert get_nested_property(lead, "items.-1.id") is None
    assert get_nested_property(None, "user.id") is None
    assert get_nested_property(lead, "") is None


def test_resolve_direct_property():
    lead = {"Internal_LeadID": "abc123", "name": "Jane"}
    assert resolve_lead_id(lead, CONFIG, "lendingtree") == "abc123"


def test_resolve_is_case_insensitive_on_vendor():
    lead = {"Internal_LeadID": "abc123"}
    assert resolve_lead_id(lead, CONFIG, "LendingTree") == "abc123"


def test_resolve_dotted_path():
    assert resolve_lead_id({"user": {"id": "x9"}}, CONFIG, "nested") == "x9"
    assert resolve_lead_id({"applicants": [{"ref": "a-1"}]}, CONFIG, "applicants") == "a-1"


def test_resolve_missing_intermediate_falls_back():
    lead_id = resolve_lead_id({"account": {"id": "x9"}}, CONFIG, "nested")
    assert FALLBACK_ID.match(lead_id)


@pytest.mark.parametrize("value", [None, "", 0, False, {"nested": "object"}, ["a"]])
def test_resolve_unusable_values_fall_back(value):
    lead_id = resolve_lead_id({"Internal_LeadID": value}, CONFIG, "lendingtree")
    assert FALLBACK_ID.match(lead_id)


def test_resolve_numeric_id_is_stringified():
    assert resolve_lead_id({"Internal_LeadID": 12345}, CONFIG, "lendingtree") == "12345"
    assert resolve_lead_id({"Internal_LeadID": Decimal("12345")}, CONFIG, "lendingtree") == "12345"


def test_resolve_integral_float_matches_decimal():
    assert resolve_lead_id({"Internal_LeadID": 12.0}, CONFIG, "lendingtree") == "12"
    assert resolve_lead_id({"Internal_LeadID": Decimal("12.0")}, CONFIG, "lendingtree") == "12"
    assert resolve_lead_id({"Internal_LeadID": 12.5}, CONFIG, "lendingtree") == "12.5"


def test_resolve_unknown_vendor_or_property_falls_back():
    assert FALLBACK_ID.match(resolve_lead_id({"id": "1"}, CONFIG, "acme"))
    assert FALLBACK_ID.match(resolve_lead_id({"id": "1"}, CONFIG, "noproperty"))
    assert FALLBACK_ID.match(resolve_lead_id({"id": "1"}, CONFIG, None))
    assert FALLBACK_ID.match(resolve_lead_id({"id": "1"}, {}, "lendingtree"))


def test_resolve_without_lead():
    assert FALLBACK_ID.match(resolve_lead_id(None, CONFIG, "lendingtree"))
    assert FALLBACK_ID.match(resolve_lead_id({}, CONFIG, "lendingtree"))


def test_resolve_non_object_lead():
    assert FALLBACK_ID.match(resolve_lead_id(["a", "b"], CONFIG, "lendingtree"))
    assert FALLBACK_ID.match(resolve_lead_id("raw", CONFIG, "lendingtree"))


def test_generate_unique_lead_id_with_request_id():
    lead_id = generate_unique_lead_id({"requestId": "req-1"})
    assert re.match(r"^req-1_\d{13}_[0-9a-z]{6}$", lead_id)


def test_generate_unique_lead_id_is_not_repeated():
    ids = {generate_unique_lead_id() for _ in range(50)}
    assert len(ids) == 50
