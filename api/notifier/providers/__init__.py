"""Notification provider implementations."""

from notifier.providers.alertmanager import Alertmanager
from notifier.providers.base import Provider
from notifier.providers.factory import build_provider, build_providers
from notifier.providers.github import GitHubDispatch
from notifier.providers.github_app import AppTokenSource, GitHubAppCredentials
from notifier.providers.opsgenie import Opsgenie
from notifier.providers.zulip import Zulip

__all__ = [
    "Alertmanager",
    "AppTokenSource",
    "GitHubAppCredentials",
    "GitHubDispatch",
    "Opsgenie",
    "Provider",
    "Zulip",
    "build_provider",
    "build_providers",
]
