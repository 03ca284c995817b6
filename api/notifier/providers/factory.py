"""Build provider instances from configuration."""

import logging
import ssl
from typing import Optional

from notifier.errors import ConfigurationError
from notifier.providers.alertmanager import Alertmanager
from notifier.providers.base import Provider
from notifier.providers.github import GitHubDispatch
from notifier.providers.opsgenie import Opsgenie
from notifier.providers.validate import suggest_provider_type
from notifier.providers.zulip import Zulip
from notifier.schemas import ProviderConfig

logger = logging.getLogger(__name__)


def build_provider(config: ProviderConfig) -> Provider:
    """Instantiate a provider from its configuration."""
    tls_config = build_tls_config(config)

    if config.type == "zulip":
        return Zulip(
            config.address,
            config.channel,
            proxy_url=config.proxy,
            tls_config=tls_config,
            username=config.username,
            password=config.password,
        )
    elif config.type == "opsgenie":
        return Opsgenie(
            config.address,
            proxy_url=config.proxy,
            tls_config=tls_config,
            api_key=config.token,
        )
    elif config.type == "alertmanager":
        return Alertmanager(
            config.address,
            proxy_url=config.proxy,
            tls_config=tls_config,
            token=config.token,
            username=config.username,
            password=config.password,
        )
    elif config.type == "githubdispatch":
        return GitHubDispatch.from_secret(
            config.address,
            config.secret,
            token=config.token,
            proxy_url=config.proxy,
            tls_config=tls_config,
        )

    message = f"Unknown provider type: {config.type}"
    suggestion = suggest_provider_type(config.type)
    if suggestion:
        message += f" (did you mean '{suggestion}'?)"
    raise ConfigurationError(message)


def build_providers(configs: list[ProviderConfig]) -> dict[str, Provider]:
    """Build every configured provider, keyed by name. Any invalid entry fails the whole set."""
    providers = {}
    for config in configs:
        try:
            providers[config.name] = build_provider(config)
        except ConfigurationError as e:
            raise ConfigurationError(f"provider '{config.name}': {e.message}", e.details) from e
        logger.info("Configured %s provider '%s'", config.type, config.name)
    return providers


def build_tls_config(config: ProviderConfig) -> Optional[ssl.SSLContext]:
    """Create an SSL context when the config names CA or client certificate files."""
    if not (config.ca_file or config.cert_file):
        return None
    try:
        ctx = ssl.create_default_context(cafile=config.ca_file)
        if config.cert_file:
            ctx.load_cert_chain(config.cert_file, keyfile=config.key_file)
    except (OSError, ssl.SSLError) as e:
        raise ConfigurationError(f"invalid TLS configuration: {e}") from e
    return ctx
