import pytest
from pydantic import ValidationError

from vendor_leads.core.config import Settings


def test_stage_derived_names():
    settings = Settings(_env_file=None, STAGE="prod")

    assert settings.vendor_leads_table_name == "prod-vendor-leads"
    assert settings.event_bus_name == "prod-salesforce-event-bus"
    assert settings.vendors_config_parameter == "/prod/vendor-leads/vendors-config"


def test_explicit_names_win():
    settings = Settings(
        _env_file=None,
        STAGE="prod",
        VENDOR_LEADS_TABLE_NAME="leads",
        SALESFORCE_EVENT_BUS_NAME="bus",
        VENDORS_CONFIG_PARAMETER="/vendors",
    )

    assert settings.vendor_leads_table_name == "leads"
    assert settings.event_bus_name == "bus"
    assert settings.vendors_config_parameter == "/vendors"


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.event_source == "vendorleads.upsert"
    assert settings.event_detail_type == "LeadsReceived"
    assert settings.dispatch_batch_size == 10
    assert settings.store_write_max_attempts == 3
    assert settings.vendors_config_cache_ttl_seconds == 60


@pytest.mark.parametrize(
    "overrides",
    [
        {"ENVIRONMENT": "qa"},
        {"LOG_LEVEL": "LOUD"},
        {"LOG_FORMAT": "xml"},
        {"DISPATCH_BATCH_SIZE": 11},
        {"DISPATCH_BATCH_SIZE": 0},
        {"STORE_WRITE_MAX_ATTEMPTS": 0},
    ],
)
def test_invalid_settings(overrides):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)
