from typing import Optional

import botocore.session
from botocore.exceptions import BotoCoreError
from botocore.utils import InstanceMetadataRegionFetcher
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from .errors import ConfigurationError

DEFAULT_TEMPFILE = "/tmp/mackerel-plugin-elb"


class Settings(BaseSettings):
    region: str = Field("", description="AWS region. Empty means resolve at startup.")
    access_key_id: str = Field("", description="AWS access key id.")
    secret_access_key: str = Field("", description="AWS secret access key.")
    tempfile: str = Field(
        DEFAULT_TEMPFILE, description="State file holding the previous run's values."
    )
    max_concurrency: int = Field(
        4, ge=1, description="Number of CloudWatch series fetched concurrently."
    )
    connect_timeout: float = Field(5.0, gt=0, description="botocore connect timeout.")
    read_timeout: float = Field(10.0, gt=0, description="botocore read timeout.")
    log_level: str = Field("WARNING", description="Root log level.")
    log_json: bool = Field(False, description="Emit JSON log lines on stderr.")
    plugin_meta: str = Field(
        "",
        validation_alias="MACKEREL_AGENT_PLUGIN_META",
        description="Set by mackerel-agent when it asks for graph definitions.",
    )

    @field_validator("tempfile")
    def ensure_tempfile(cls, value: str) -> str:
        if not value:
            raise ValueError("tempfile must not be empty")
        return value

    @model_validator(mode="after")
    def ensure_key_pair(self) -> "Settings":
        if bool(self.access_key_id) != bool(self.secret_access_key):
            raise ValueError(
                "access_key_id and secret_access_key must be given together"
            )
        return self

    @property
    def meta_mode(self) -> bool:
        return bool(self.plugin_meta)

    class Config:
        env_prefix = "ELB_PLUGIN_"
        populate_by_name = True


def resolve_region(region: str) -> str:
    """Return ``region``, or the ambient one when it is empty.

    Looks at the botocore configuration chain first (environment, shared
    config) and then at the EC2 instance metadata service.
    """
    if region:
        return region

    try:
        configured: Optional[str] = botocore.session.Session().get_config_variable("region")
    except BotoCoreError as exc:
        raise ConfigurationError(f"Could not read AWS configuration: {exc}") from exc
    if configured:
        return configured

    discovered = InstanceMetadataRegionFetcher(timeout=1, num_attempts=1).retrieve_region()
    if discovered:
        return discovered

    raise ConfigurationError(
        "AWS region is not set; pass --region or set AWS_DEFAULT_REGION"
    )
