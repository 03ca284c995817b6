"""Construction-time validation shared by providers."""

from typing import Optional

import httpx

from notifier.errors import ConfigurationError

VALID_PROVIDER_TYPES = {"zulip", "opsgenie", "alertmanager", "githubdispatch"}

# Common typos -> correct type
_PROVIDER_SUGGESTIONS: dict[str, str] = {
    "zullip": "zulip",
    "zulipchat": "zulip",
    "opsgenei": "opsgenie",
    "ops-genie": "opsgenie",
    "genie": "opsgenie",
    "alert-manager": "alertmanager",
    "alertmanger": "alertmanager",
    "prometheus": "alertmanager",
    "github": "githubdispatch",
    "github-dispatch": "githubdispatch",
    "githubapp": "githubdispatch",
}


def suggest_provider_type(input_type: str) -> Optional[str]:
    """Return a suggestion if the input looks like a typo of a valid type."""
    if input_type in VALID_PROVIDER_TYPES:
        return None
    return _PROVIDER_SUGGESTIONS.get(input_type.lower())


def require_url(value: str, label: str) -> httpx.URL:
    """
    Parse *value* as an absolute http(s) URL.

    Raises ConfigurationError naming *label* when the value is empty,
    unparsable, uses another scheme, or has no host.
    """
    if not value:
        raise ConfigurationError(f"invalid {label} URL: address must not be empty")
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"invalid {label} URL: {e}") from e
    if url.scheme not in ("http", "https"):
        raise ConfigurationError(f"invalid {label} URL: scheme must be http or https")
    if not url.host:
        raise ConfigurationError(f"invalid {label} URL: missing host")
    return url


def require_header_value(value: str, label: str) -> str:
    """Reject credentials that cannot be sent in an HTTP header."""
    try:
        value.encode("ascii")
    except UnicodeEncodeError as e:
        raise ConfigurationError(
            f"invalid {label}: non-ASCII character at position {e.start}"
        ) from e
    return value
