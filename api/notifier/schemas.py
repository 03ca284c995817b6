"""Pydantic schemas for provider configuration and dispatch results."""

from typing import Optional, Union

from pydantic import BaseModel, Field


class ProviderConfig(BaseModel):
    name: str = Field(..., description="Unique name used in logs and dispatch results")
    type: str = Field(..., description="Provider type: zulip, opsgenie, alertmanager, githubdispatch")
    address: str = Field(..., description="Endpoint URL, or repository URL for GitHub")
    channel: str = Field("", description="Zulip <channel>/<topic>")
    username: str = ""
    password: str = ""
    token: str = Field("", description="API key or static token")
    proxy: str = ""
    ca_file: Optional[str] = Field(None, description="PEM bundle trusted for the endpoint")
    cert_file: Optional[str] = Field(None, description="Client certificate (PEM)")
    key_file: Optional[str] = Field(None, description="Client certificate key (PEM)")
    secret: dict[str, Union[str, bytes]] = Field(
        default_factory=dict,
        description="Extra secret data, e.g. githubAppID / githubAppPrivateKey",
    )


class FailedDelivery(BaseModel):
    provider: str
    error: str
    code: str
    details: dict = {}


class DispatchSummary(BaseModel):
    delivered: list[str] = []
    failed: list[FailedDelivery] = []
