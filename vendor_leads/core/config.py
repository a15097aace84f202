from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    stage: str = Field(default="dev", validation_alias="STAGE")
    service_name: str = Field(default="vendor-leads", validation_alias="SERVICE_NAME")
    version: str = Field(default="1.0.0", validation_alias="SERVICE_VERSION")

    # Server
    api_host: str = Field(default="0.0.0.0", validation_alias="API_HOST")
    api_port: int = Field(default=8000, validation_alias="API_PORT")
    api_prefix: str = Field(default="", validation_alias="API_PREFIX")

    # AWS
    aws_region: Optional[str] = Field(default=None, validation_alias="AWS_REGION")
    aws_endpoint_url: Optional[str] = Field(default=None, validation_alias="AWS_ENDPOINT_URL")

    # Queue (leads -> store)
    leads_queue_url: str = Field(default="", validation_alias="LEADS_TO_DYNAMODB_SQS_URL")

    # Store
    vendor_leads_table_name: str = Field(default="", validation_alias="VENDOR_LEADS_TABLE_NAME")
    store_write_max_attempts: int = Field(default=3, validation_alias="STORE_WRITE_MAX_ATTEMPTS")
    store_write_base_delay_ms: int = Field(default=100, validation_alias="STORE_WRITE_BASE_DELAY_MS")
    store_write_max_delay_ms: int = Field(default=2000, validation_alias="STORE_WRITE_MAX_DELAY_MS")

    # Event bus (leads -> Salesforce)
    event_bus_name: str = Field(default="", validation_alias="SALESFORCE_EVENT_BUS_NAME")
    event_source: str = Field(default="vendorleads.upsert", validation_alias="SALESFORCE_EVENT_BUS_RULE_SOURCE")
    event_detail_type: str = Field(default="LeadsReceived", validation_alias="SALESFORCE_EVENT_BUS_RULE_DETAIL_TYPE")

    # Vendors config
    vendors_config_parameter: str = Field(default="", validation_alias="VENDORS_CONFIG_PARAMETER")
    vendors_config_cache_ttl_seconds: int = Field(default=60, validation_alias="VENDORS_CONFIG_CACHE_TTL_SECONDS")

    # Dispatch
    dispatch_batch_size: int = Field(default=10, validation_alias="DISPATCH_BATCH_SIZE")

    # Store writer worker
    worker_wait_time_seconds: int = Field(default=20, validation_alias="WORKER_WAIT_TIME_SECONDS")
    worker_max_messages: int = Field(default=10, validation_alias="WORKER_MAX_MESSAGES")
    worker_visibility_timeout: int = Field(default=30, validation_alias="WORKER_VISIBILITY_TIMEOUT")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    # Monitoring
    sentry_dsn: Optional[str] = Field(default=None, validation_alias="SENTRY_DSN")

    @field_validator("environment")
    def validate_environment(cls, v):
        valid_envs = ["development", "testing", "staging", "production"]
        if v not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v):
        valid_formats = ["json", "console"]
        if v not in valid_formats:
            raise ValueError(f"log_format must be one of {valid_formats}")
        return v

    @field_validator("dispatch_batch_size", "worker_max_messages")
    def validate_batch_size(cls, v):
        # SQS SendMessageBatch / ReceiveMessage and EventBridge PutEvents cap at 10.
        if not 1 <= v <= 10:
            raise ValueError("batch sizes must be between 1 and 10")
        return v

    @field_validator("store_write_max_attempts")
    def validate_max_attempts(cls, v):
        if v < 1:
            raise ValueError("store_write_max_attempts must be at least 1")
        return v

    @model_validator(mode="after")
    def derive_stage_names(self):
        if not self.vendor_leads_table_name:
            self.vendor_leads_table_name = f"{self.stage}-vendor-leads"
        if not self.event_bus_name:
            self.event_bus_name = f"{self.stage}-salesforce-event-bus"
        if not self.vendors_config_parameter:
            self.vendors_config_parameter = f"/{self.stage}/vendor-leads/vendors-config"
        return self

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
