import json

from botocore.exceptions import ClientError, EndpointConnectionError

from vendor_leads.core.config import Settings
from vendor_leads.services.vendors_config import VendorsConfigProvider, parse_vendors_config


def test_parse_vendors_config_lowercases_keys():
    config = parse_vendors_config(json.dumps({
        "LendingTree": {"leadIdProperty": "Internal_LeadID"},
        "acme": {},
        "other": None,
    }))
    assert set(config) == {"lendingtree", "acme", "other"}
    assert config["lendingtree"].lead_id_property == "Internal_LeadID"
    assert config["acme"].lead_id_property is None


def test_load_reads_parameter(vendors_config_provider, ssm):
    config = vendors_config_provider.load()

    assert config["lendingtree"].lead_id_property == "Internal_LeadID"
    assert config["nested"].lead_id_property == "user.id"
    assert ssm.calls == [{"Name": "/test/vendor-leads/vendors-config", "WithDecryption": False}]


def test_load_missing_parameter_returns_empty(vendors_config_provider, ssm):
    ssm.value = None
    assert vendors_config_provider.load() == {}


def test_load_access_denied_returns_empty(vendors_config_provider, ssm):
    ssm.error = ClientError(
        {"Error": {"Code": "AccessDeniedException", "Message": "denied"}},
        "GetParameter",
    )
    assert vendors_config_provider.load() == {}


def test_load_unreachable_store_returns_empty(vendors_config_provider, ssm):
    ssm.error = EndpointConnectionError(endpoint_url="https://ssm.us-east-1.amazonaws.com")
    assert vendors_config_provider.load() == {}


def test_load_malformed_value_returns_empty(vendors_config_provider, ssm):
    ssm.value = "{not json"
    assert vendors_config_provider.load() == {}

    ssm.value = json.dumps(["lendingtree"])
    assert vendors_config_provider.load() == {}

    ssm.value = json.dumps({"lendingtree": {"leadIdProperty": ["not", "a", "string"]}})
    assert vendors_config_provider.load() == {}


def test_cache_serves_repeat_loads(ssm):
    settings = Settings(_env_file=None, STAGE="test", VENDORS_CONFIG_CACHE_TTL_SECONDS=60)
    provider = VendorsConfigProvider(ssm, settings)

    first = provider.load()
    second = provider.load()

    assert first == second
    assert len(ssm.calls) == 1

    provider.invalidate()
    provider.load()
    assert len(ssm.calls) == 2


def test_failed_loads_are_not_cached(ssm):
    settings = Settings(_env_file=None, STAGE="test", VENDORS_CONFIG_CACHE_TTL_SECONDS=60)
    provider = VendorsConfigProvider(ssm, settings)

    ssm.error = EndpointConnectionError(endpoint_url="https://ssm.us-east-1.amazonaws.com")
    assert provider.load() == {}

    ssm.error = None
    assert "lendingtree" in provider.load()
    assert len(ssm.calls) == 2
