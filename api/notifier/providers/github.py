"""GitHub provider: repository dispatch and commit status updates."""

import json
import logging
import ssl
from typing import Optional

from notifier.errors import DeliveryError
from notifier.events import (
    META_COMMIT_STATUS_KEY,
    META_COMMIT_STATUS_UPDATE_VALUE,
    META_REVISION_KEY,
    Event,
    Severity,
)
from notifier.providers.base import Provider
from notifier.providers.github_app import (
    ACCEPT_HEADER,
    API_VERSION,
    AppTokenSource,
    GitHubAppCredentials,
    parse_repository_url,
    secret_text,
    select_app_auth,
)
from notifier.providers.validate import require_header_value
from notifier.transport import post_message, with_header, with_proxy, with_tls_config

logger = logging.getLogger(__name__)

# GitHub API field limits
EVENT_TYPE_MAX_LEN = 100
DESCRIPTION_MAX_LEN = 140


class GitHubDispatch(Provider):
    """
    Deliver events to a GitHub repository.

    Regular events trigger a ``repository_dispatch`` so workflows can react
    to them. Events flagged as commit status updates set the status of the
    reported revision instead.

    Authenticates with a static token, or as a GitHub App installation when
    complete app details are supplied (these win over a token).
    """

    @property
    def provider_type(self) -> str:
        return "githubdispatch"

    def __init__(
        self,
        address: str,
        token: str = "",
        proxy_url: str = "",
        tls_config: Optional[ssl.SSLContext] = None,
        app: Optional[GitHubAppCredentials] = None,
    ):
        self.repository = parse_repository_url(address)
        self.owner = self.repository.owner
        self.repo = self.repository.repo
        self.api_base = self.repository.api_base
        self.proxy_url = proxy_url
        self.tls_config = tls_config

        app = select_app_auth(token, app)
        if app is not None:
            self.token = ""
            self.token_source: Optional[AppTokenSource] = AppTokenSource(
                app,
                api_base=self.api_base,
                proxy_url=proxy_url,
                tls_config=tls_config,
            )
        else:
            self.token = require_header_value(token, "GitHub token")
            self.token_source = None

    @classmethod
    def from_secret(
        cls,
        address: str,
        secret: Optional[dict] = None,
        token: str = "",
        proxy_url: str = "",
        tls_config: Optional[ssl.SSLContext] = None,
    ) -> "GitHubDispatch":
        """
        Build the provider from secret data.

        Secret shape: {
            "token": str,
            "githubAppID": str,
            "githubAppInstallationID": str,
            "githubAppPrivateKey": str | bytes,
            "githubAppBaseURL": str,
        }
        """
        secret = secret or {}
        if not token:
            token = secret_text(secret, "token")
        return cls(
            address,
            token=token,
            proxy_url=proxy_url,
            tls_config=tls_config,
            app=GitHubAppCredentials.from_secret(secret),
        )

    @property
    def repo_url(self) -> str:
        return f"{self.api_base}/repos/{self.owner}/{self.repo}"

    async def post(self, event: Event) -> None:
        if event.has_metadata(META_COMMIT_STATUS_KEY, META_COMMIT_STATUS_UPDATE_VALUE):
            url, body = self.commit_status_request(event)
        else:
            url, body = self.dispatch_request(event)

        authorization = await self._authorization()
        await post_message(
            url,
            json.dumps(body),
            with_proxy(self.proxy_url),
            with_tls_config(self.tls_config),
            with_header("Authorization", authorization),
            with_header("Accept", ACCEPT_HEADER),
            with_header("X-GitHub-Api-Version", API_VERSION),
        )
        logger.debug("Posted %s to GitHub %s/%s", event.object_ref(), self.owner, self.repo)

    def dispatch_request(self, event: Event) -> tuple[str, dict]:
        """Target and body of a repository_dispatch for *event*."""
        body = {
            "event_type": event.object_ref()[:EVENT_TYPE_MAX_LEN],
            "client_payload": event.model_dump(mode="json", by_alias=True),
        }
        return f"{self.repo_url}/dispatches", body

    def commit_status_request(self, event: Event) -> tuple[str, dict]:
        """
        Target and body of a commit status update for *event*.

        Raises DeliveryError when the event does not name a revision.
        """
        sha = parse_revision((event.metadata or {}).get(META_REVISION_KEY, ""))
        if not sha:
            raise DeliveryError(
                f"commit status update for {event.object_ref()} has no revision metadata"
            )

        obj = event.involved_object
        body = {
            "state": commit_state(event),
            "description": event.message[:DESCRIPTION_MAX_LEN],
            "context": f"{obj.kind.lower()}/{obj.name}",
        }
        return f"{self.repo_url}/statuses/{sha}", body

    async def _authorization(self) -> str:
        if self.token_source is not None:
            return f"Bearer {await self.token_source.token()}"
        return f"token {self.token}"


def commit_state(event: Event) -> str:
    if event.severity == Severity.ERROR:
        return "failure"
    if event.reason == "Progressing":
        return "pending"
    return "success"


def parse_revision(revision: str) -> str:
    """
    Extract the commit SHA from a revision string.

    Accepts ``<ref>@sha1:<sha>``, the older ``<ref>/<sha>`` and a bare SHA.
    """
    revision = revision.strip()
    if ":" in revision:
        return revision.rsplit(":", 1)[1]
    if "/" in revision:
        return revision.rsplit("/", 1)[1]
    return revision
