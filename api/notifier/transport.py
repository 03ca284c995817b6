"""Outbound HTTP delivery shared by every provider."""

import logging
import ssl
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

import httpx

from notifier.errors import CancellationError, DeliveryError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/json"
DEFAULT_TIMEOUT = 15.0


@dataclass
class RequestOptions:
    """Mutable request-building context that transport options write into."""
    method: str = "POST"
    proxy: Optional[str] = None
    verify: Union[ssl.SSLContext, bool] = True
    auth: Optional[tuple[str, str]] = None
    headers: dict[str, str] = field(
        default_factory=lambda: {"Content-Type": DEFAULT_CONTENT_TYPE}
    )
    timeout: float = DEFAULT_TIMEOUT


RequestOption = Callable[[RequestOptions], None]

# Tests swap this for one returning an httpx.MockTransport
_transport_factory: Optional[Callable[[], httpx.AsyncBaseTransport]] = None


def set_transport_factory(
    factory: Optional[Callable[[], httpx.AsyncBaseTransport]],
) -> None:
    """Route every outbound request through transports built by *factory*."""
    global _transport_factory
    _transport_factory = factory


def set_default_timeout(seconds: float) -> None:
    global DEFAULT_TIMEOUT
    DEFAULT_TIMEOUT = seconds


# --- Options ---


def with_proxy(proxy_url: str) -> RequestOption:
    def apply(opts: RequestOptions) -> None:
        if proxy_url:
            opts.proxy = proxy_url
    return apply


def with_tls_config(tls_config: Optional[ssl.SSLContext]) -> RequestOption:
    def apply(opts: RequestOptions) -> None:
        if tls_config is not None:
            opts.verify = tls_config
    return apply


def with_basic_auth(username: str, password: str) -> RequestOption:
    def apply(opts: RequestOptions) -> None:
        if username:
            opts.auth = (username, password)
    return apply


def with_content_type(content_type: str) -> RequestOption:
    def apply(opts: RequestOptions) -> None:
        opts.headers["Content-Type"] = content_type or DEFAULT_CONTENT_TYPE
    return apply


def with_header(name: str, value: str) -> RequestOption:
    def apply(opts: RequestOptions) -> None:
        if value:
            opts.headers[name] = value
    return apply


# --- Dispatch ---


def build_request_options(*options: RequestOption) -> RequestOptions:
    """Apply *options* in order to a fresh context; later options win."""
    opts = RequestOptions(timeout=DEFAULT_TIMEOUT)
    for option in options:
        option(opts)
    return opts


def client_kwargs(opts: RequestOptions) -> dict:
    """Translate a request context into ``httpx.AsyncClient`` arguments."""
    if _transport_factory is not None:
        return {"timeout": opts.timeout, "transport": _transport_factory()}
    kwargs = {"timeout": opts.timeout, "verify": opts.verify}
    if opts.proxy:
        kwargs["proxy"] = opts.proxy
    return kwargs


async def post_message(
    url: str,
    body: Union[bytes, str],
    *options: RequestOption,
) -> httpx.Response:
    """
    Send one request to *url* and classify the outcome.

    The content type defaults to JSON and can be overridden through
    *options*.

    Raises:
        CancellationError: the request timed out.
        DeliveryError: the request failed in transit or got a non-2xx reply.
            Headers or a URL that cannot be encoded fail the same way.
    """
    opts = build_request_options(*options)

    try:
        async with httpx.AsyncClient(**client_kwargs(opts)) as client:
            response = await client.request(
                method=opts.method,
                url=url,
                headers=opts.headers,
                content=body,
                auth=opts.auth,
            )
    except httpx.TimeoutException as e:
        raise CancellationError(f"request to {_redact(url)} timed out: {e}") from e
    except httpx.HTTPError as e:
        raise DeliveryError(f"failed to send request to {_redact(url)}: {e}") from e
    except (httpx.InvalidURL, UnicodeEncodeError) as e:
        raise DeliveryError(f"cannot build request to {_redact(url)}: {e}") from e

    if not 200 <= response.status_code < 300:
        raise DeliveryError(
            f"request to {_redact(url)} failed with status {response.status_code}",
            status_code=response.status_code,
            body=response.text,
        )

    logger.debug("%s %s -> %d", opts.method, _redact(url), response.status_code)
    return response


def _redact(url: str) -> str:
    """Drop credentials and query strings before a URL reaches logs or errors."""
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError):
        return "<invalid url>"
    return f"{parsed.scheme}://{parsed.netloc.decode('ascii')}{parsed.path}"
