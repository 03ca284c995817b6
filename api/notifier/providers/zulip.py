"""Zulip provider."""

import logging
import ssl
from typing import Optional
from urllib.parse import urlencode

from notifier.errors import ConfigurationError
from notifier.events import Event, Severity
from notifier.providers.base import Provider
from notifier.providers.validate import require_url
from notifier.transport import (
    post_message,
    with_basic_auth,
    with_content_type,
    with_proxy,
    with_tls_config,
)

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/api/v1/messages"


class Zulip(Provider):
    """
    Post events as stream messages through the Zulip REST API.

    The channel is configured as ``<channel>/<topic>``; authentication is
    the bot's email and API key sent as basic auth.
    """

    @property
    def provider_type(self) -> str:
        return "zulip"

    def __init__(
        self,
        endpoint: str,
        channel: str,
        proxy_url: str = "",
        tls_config: Optional[ssl.SSLContext] = None,
        username: str = "",
        password: str = "",
    ):
        url = require_url(endpoint, "Zulip endpoint")
        self.endpoint = str(url.copy_with(path=MESSAGES_PATH))

        stream, sep, topic = channel.partition("/")
        if not sep or not stream or not topic:
            raise ConfigurationError(
                f"invalid Zulip channel format, expected <channel>/<topic>, got '{channel}'"
            )
        self.channel = stream
        self.topic = topic

        self.proxy_url = proxy_url
        self.tls_config = tls_config
        self.username = username
        self.password = password

    async def post(self, event: Event) -> None:
        payload = urlencode({
            "type": "stream",
            "to": self.channel,
            "topic": self.topic,
            "content": format_content(event),
        })

        await post_message(
            self.endpoint,
            payload,
            with_proxy(self.proxy_url),
            with_tls_config(self.tls_config),
            with_basic_auth(self.username, self.password),
            with_content_type("application/x-www-form-urlencoded"),
        )
        logger.debug("Posted %s to Zulip stream %s", event.object_ref(), self.channel)


def format_content(event: Event) -> str:
    """Render the markdown message body for an event."""
    obj = event.object_ref()
    if event.severity == Severity.ERROR:
        header = f"⚠️ Error: `{obj}`"
    else:
        header = f"ℹ️ Info: `{obj}`"

    metadata = event.metadata or {}
    lines = [f"- **{k}**: `{metadata[k]}`" for k in sorted(metadata)]

    return f"{header}\n\n`{event.message}`\n\nMetadata:\n" + "\n".join(lines)
