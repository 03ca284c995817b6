"""GitHub repository addressing and GitHub App authentication."""

import asyncio
import logging
import ssl
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, Union

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from notifier.errors import (
    AuthenticationError,
    CancellationError,
    ConfigurationError,
    DeliveryError,
)
from notifier.providers.validate import require_url
from notifier.transport import post_message, with_header, with_proxy, with_tls_config

logger = logging.getLogger(__name__)

PUBLIC_HOST = "github.com"
PUBLIC_API_BASE = "https://api.github.com"
ACCEPT_HEADER = "application/vnd.github+json"
API_VERSION = "2022-11-28"

# JWT lifetime is capped at 10 minutes by GitHub; iat is backdated for clock drift
JWT_BACKDATE = timedelta(seconds=60)
JWT_LIFETIME = timedelta(minutes=9)

# Tokens are treated as expired this long before GitHub says so
REFRESH_MARGIN = timedelta(seconds=60)


@dataclass(frozen=True)
class RepositoryIdentity:
    host: str
    owner: str
    repo: str
    is_enterprise: bool

    @property
    def api_base(self) -> str:
        if self.is_enterprise:
            return f"https://{self.host}/api/v3"
        return PUBLIC_API_BASE


def parse_repository_url(address: str) -> RepositoryIdentity:
    """
    Parse ``https://<host>/<owner>/<repo>`` into a repository identity.

    A trailing slash or ``.git`` suffix is tolerated; any other path shape
    (missing owner/repo, extra segments) is rejected.
    """
    url = require_url(address, "GitHub repository")
    if url.scheme != "https":
        raise ConfigurationError(f"invalid GitHub repository URL '{address}': https is required")

    path = url.path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    segments = path.split("/")
    if len(segments) != 2 or not all(segments):
        raise ConfigurationError(
            f"invalid GitHub repository URL '{address}': expected https://<host>/<owner>/<repo>"
        )

    host = url.netloc.decode("ascii")
    return RepositoryIdentity(
        host=host,
        owner=segments[0],
        repo=segments[1],
        is_enterprise=url.host != PUBLIC_HOST,
    )


@dataclass(frozen=True)
class GitHubAppCredentials:
    """Identity of a GitHub App installation."""
    app_id: str = ""
    installation_id: str = ""
    private_key: Union[bytes, str] = b""
    base_url: str = ""

    @classmethod
    def from_secret(cls, secret: Optional[dict]) -> Optional["GitHubAppCredentials"]:
        """
        Read app fields from secret data.

        Keys: githubAppID, githubAppInstallationID, githubAppPrivateKey,
        githubAppBaseURL. Values may be str or bytes. Returns None when the
        secret has none of them.
        """
        if not secret:
            return None
        fields = {
            "app_id": secret_text(secret, "githubAppID"),
            "installation_id": secret_text(secret, "githubAppInstallationID"),
            "private_key": secret.get("githubAppPrivateKey") or b"",
            "base_url": secret_text(secret, "githubAppBaseURL"),
        }
        if not (fields["app_id"] or fields["installation_id"] or fields["private_key"]):
            return None
        return cls(**fields)


def select_app_auth(
    token: str,
    app: Optional[GitHubAppCredentials],
) -> Optional[GitHubAppCredentials]:
    """
    Decide between static-token and app authentication.

    Complete app details take precedence over a static token. Returns the
    app credentials to use, or None when the static token applies.
    """
    if app is not None and app.app_id:
        if not app.installation_id:
            raise ConfigurationError(
                "app installation ID must be provided to use github app authentication"
            )
        if not app.private_key:
            raise ConfigurationError(
                "private key must be provided to use github app authentication"
            )
        return app
    if not token:
        raise ConfigurationError("github token or github app details must be specified")
    return None


def load_private_key(pem: Union[bytes, str]) -> rsa.RSAPrivateKey:
    if isinstance(pem, str):
        pem = pem.encode()
    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"failed to parse github app private key: {e}") from e
    if not isinstance(key, rsa.RSAPrivateKey):
        raise ConfigurationError("github app private key must be an RSA key")
    return key


@dataclass(frozen=True)
class AppToken:
    value: str
    expires_at: datetime


class TokenState(str, Enum):
    UNINITIALIZED = "uninitialized"
    VALID = "valid"
    EXPIRED = "expired"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AppTokenSource:
    """
    Supplies installation access tokens for one GitHub App installation.

    The token is fetched on first use, reused until it is about to expire,
    then exchanged again. One exchange runs at a time; concurrent callers
    wait for it and share the result.
    """

    def __init__(
        self,
        credentials: GitHubAppCredentials,
        api_base: str = PUBLIC_API_BASE,
        proxy_url: str = "",
        tls_config: Optional[ssl.SSLContext] = None,
        clock: Callable[[], datetime] = _utcnow,
        refresh_margin: timedelta = REFRESH_MARGIN,
    ):
        self.credentials = credentials
        self._signing_key = load_private_key(credentials.private_key)
        base = credentials.base_url or api_base
        self.base_url = str(require_url(base, "GitHub App base")).rstrip("/")
        self.proxy_url = proxy_url
        self.tls_config = tls_config
        self._clock = clock
        self._refresh_margin = refresh_margin
        self._token: Optional[AppToken] = None
        self._lock = asyncio.Lock()

    @property
    def expires_at(self) -> Optional[datetime]:
        return self._token.expires_at if self._token else None

    @property
    def state(self) -> TokenState:
        if self._token is None:
            return TokenState.UNINITIALIZED
        if self._clock() < self._token.expires_at - self._refresh_margin:
            return TokenState.VALID
        return TokenState.EXPIRED

    async def token(self) -> str:
        """Return a currently valid installation token, exchanging if needed."""
        async with self._lock:
            state = self.state
            if state is TokenState.VALID:
                return self._token.value
            if state is TokenState.EXPIRED:
                logger.info(
                    "GitHub App token for installation %s expired, refreshing",
                    self.credentials.installation_id,
                )
                self._token = None
            self._token = await self._exchange()
            return self._token.value

    async def _exchange(self) -> AppToken:
        installation_id = self.credentials.installation_id
        url = f"{self.base_url}/app/installations/{installation_id}/access_tokens"

        try:
            assertion = self._sign_assertion()
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise AuthenticationError(f"failed to sign github app assertion: {e}") from e

        try:
            response = await post_message(
                url,
                b"",
                with_proxy(self.proxy_url),
                with_tls_config(self.tls_config),
                with_header("Authorization", f"Bearer {assertion}"),
                with_header("Accept", ACCEPT_HEADER),
                with_header("X-GitHub-Api-Version", API_VERSION),
            )
        except CancellationError:
            raise
        except DeliveryError as e:
            raise AuthenticationError(
                f"failed to exchange github app credentials: {e.message}",
                {"status_code": e.status_code, "body": e.body},
            ) from e

        try:
            data = response.json()
            token = AppToken(
                value=data["token"],
                expires_at=_parse_timestamp(data["expires_at"]),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise AuthenticationError(f"malformed github app token response: {e}") from e

        logger.info(
            "Obtained GitHub App token for installation %s, expires at %s",
            installation_id,
            token.expires_at.isoformat(),
        )
        return token

    def _sign_assertion(self) -> str:
        now = self._clock()
        claims = {
            "iat": int((now - JWT_BACKDATE).timestamp()),
            "exp": int((now + JWT_LIFETIME).timestamp()),
            "iss": str(self.credentials.app_id),
        }
        return jwt.encode(claims, self._signing_key, algorithm="RS256")


def _parse_timestamp(raw: str) -> datetime:
    """Parse GitHub's ISO 8601 timestamps (``2024-01-01T00:00:00Z``)."""
    ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def secret_text(secret: dict, key: str) -> str:
    """Read *key* from secret data as stripped text; bytes must be UTF-8."""
    value = secret.get(key)
    if value is None:
        return ""
    if isinstance(value, bytes):
        try:
            value = value.decode()
        except UnicodeDecodeError as e:
            raise ConfigurationError(f"secret key '{key}' is not valid UTF-8") from e
    return str(value).strip()
