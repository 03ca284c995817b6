"""Opsgenie provider."""

import json
import logging
import ssl
from typing import Optional

from notifier.errors import ConfigurationError
from notifier.events import Event
from notifier.providers.base import Provider
from notifier.providers.validate import require_header_value, require_url
from notifier.transport import post_message, with_header, with_proxy, with_tls_config

logger = logging.getLogger(__name__)


class Opsgenie(Provider):
    """Create Opsgenie alerts through the Alert API."""

    @property
    def provider_type(self) -> str:
        return "opsgenie"

    def __init__(
        self,
        endpoint: str,
        proxy_url: str = "",
        tls_config: Optional[ssl.SSLContext] = None,
        api_key: str = "",
    ):
        self.endpoint = str(require_url(endpoint, "Opsgenie endpoint"))
        if not api_key:
            raise ConfigurationError("Opsgenie API key must be specified")
        self.proxy_url = proxy_url
        self.tls_config = tls_config
        self.api_key = require_header_value(api_key, "Opsgenie API key")

    async def post(self, event: Event) -> None:
        await post_message(
            self.endpoint,
            json.dumps(build_alert(event)),
            with_proxy(self.proxy_url),
            with_tls_config(self.tls_config),
            with_header("Authorization", f"GenieKey {self.api_key}"),
        )
        logger.debug("Created Opsgenie alert for %s", event.object_ref())


def build_alert(event: Event) -> dict:
    """
    Build the alert body.

    Missing metadata is fine; details always carry at least the severity.
    """
    details = dict(event.metadata or {})
    details["severity"] = event.severity.value

    obj = event.involved_object
    return {
        "message": f"{obj.kind}/{obj.name}",
        "description": event.message,
        "details": details,
    }
