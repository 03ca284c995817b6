"""Prometheus Alertmanager provider."""

import json
import logging
import ssl
from datetime import datetime, timedelta, timezone
from typing import Optional

from notifier.events import META_SUMMARY_KEY, Event
from notifier.providers.base import Provider
from notifier.providers.validate import require_header_value, require_url
from notifier.transport import (
    post_message,
    with_basic_auth,
    with_header,
    with_proxy,
    with_tls_config,
)

logger = logging.getLogger(__name__)

ALERT_DURATION = timedelta(hours=1)


class Alertmanager(Provider):
    """
    Push events to the Alertmanager v2 alerts endpoint.

    Each event becomes one firing alert that resolves itself after an hour
    unless the same event is posted again.
    """

    @property
    def provider_type(self) -> str:
        return "alertmanager"

    def __init__(
        self,
        endpoint: str,
        proxy_url: str = "",
        tls_config: Optional[ssl.SSLContext] = None,
        token: str = "",
        username: str = "",
        password: str = "",
    ):
        self.endpoint = str(require_url(endpoint, "Alertmanager endpoint"))
        self.proxy_url = proxy_url
        self.tls_config = tls_config
        self.token = require_header_value(token, "Alertmanager token")
        self.username = username
        self.password = password

    async def post(self, event: Event) -> None:
        options = [with_proxy(self.proxy_url), with_tls_config(self.tls_config)]
        if self.token:
            options.append(with_header("Authorization", f"Bearer {self.token}"))
        else:
            options.append(with_basic_auth(self.username, self.password))

        await post_message(self.endpoint, json.dumps(build_alerts(event)), *options)
        logger.debug("Sent Alertmanager alert for %s", event.object_ref())


def build_alerts(event: Event) -> list[dict]:
    """Build the alert list; Alertmanager only accepts arrays."""
    metadata = event.metadata or {}
    obj = event.involved_object

    annotations = {"message": event.message}
    labels = {}
    for k, v in metadata.items():
        if k == META_SUMMARY_KEY:
            annotations["summary"] = v
        else:
            labels[k] = v

    labels.update({
        "alertname": f"Flux{obj.kind}{_title(event.reason)}",
        "severity": event.severity.value,
        "reason": event.reason,
        "timestamp": _rfc3339(event.timestamp),
        "kind": obj.kind,
        "name": obj.name,
        "namespace": obj.namespace,
        "reportingcontroller": event.reporting_controller,
    })

    return [
        {
            "status": "firing",
            "labels": labels,
            "annotations": annotations,
            "startsAt": _rfc3339(event.timestamp),
            "endsAt": _rfc3339(event.timestamp + ALERT_DURATION),
        }
    ]


def _title(reason: str) -> str:
    # Keep CamelCase reasons intact, only the first letter is raised
    return reason[:1].upper() + reason[1:]


def _rfc3339(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
