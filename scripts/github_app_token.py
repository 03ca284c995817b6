#!/usr/bin/env python3
"""
Check GitHub App credentials by exchanging them for an installation token.

Reads the app details from the environment and prints when the obtained
token expires. The token itself is never printed.

Usage:
    export GITHUB_APP_ID=123
    export GITHUB_APP_INSTALLATION_ID=456
    export GITHUB_APP_PRIVATE_KEY_PATH=config/github/app.pem
    export GITHUB_APP_BASE_URL=https://github.example.com/api/v3   # optional
    python scripts/github_app_token.py
"""

import asyncio
import os
import sys
from pathlib import Path

from notifier.errors import NotifierError
from notifier.providers.github_app import AppTokenSource, GitHubAppCredentials


async def main() -> int:
    app_id = os.environ.get("GITHUB_APP_ID", "")
    installation_id = os.environ.get("GITHUB_APP_INSTALLATION_ID", "")
    key_path = Path(os.environ.get("GITHUB_APP_PRIVATE_KEY_PATH", "config/github/app.pem"))

    if not app_id or not installation_id:
        print("ERROR: GITHUB_APP_ID and GITHUB_APP_INSTALLATION_ID must be set.")
        return 1
    if not key_path.exists():
        print(f"ERROR: {key_path} not found.")
        print()
        print("To create a private key:")
        print("  1. Open the GitHub App settings page")
        print("  2. Under 'Private keys', click 'Generate a private key'")
        print("  3. Save the downloaded PEM file and point GITHUB_APP_PRIVATE_KEY_PATH at it")
        return 1

    credentials = GitHubAppCredentials(
        app_id=app_id,
        installation_id=installation_id,
        private_key=key_path.read_bytes(),
        base_url=os.environ.get("GITHUB_APP_BASE_URL", ""),
    )

    try:
        source = AppTokenSource(credentials)
        await source.token()
    except NotifierError as e:
        print(f"ERROR: {e}")
        return 1

    print(f"Token obtained for installation {installation_id} via {source.base_url}")
    print(f"Token expires at {source.expires_at.isoformat()}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
