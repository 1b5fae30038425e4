from __future__ import annotations

import logging
from typing import Callable

from .client_secrets import find_client_secrets_file, load_client_identity
from .config import CALLBACK_HOST, CALLBACK_PORT, YOUTUBE_SCOPES_READONLY, get_config_dir, get_default_credentials_path
from .oauth import OAuthSessionManager
from .token_store import TokenStore


LOG = logging.getLogger("ytdata")

STEPS = [
    ("Google Cloud Project", [
        "Go to https://console.cloud.google.com/ and create or select a project.",
    ]),
    ("Enable YouTube Data API v3", [
        "Open https://console.cloud.google.com/apis/library/youtube.googleapis.com",
        "Click 'Enable'.",
    ]),
    ("Create OAuth2 credentials", [
        "Open https://console.cloud.google.com/apis/credentials",
        "Configure the consent screen if prompted ('External', add yourself as a test user).",
        "Create Credentials > OAuth client ID > Application type 'Web application'.",
        f"Add http://{CALLBACK_HOST}:{CALLBACK_PORT}/ to 'Authorized redirect URIs'.",
        "Download the JSON file.",
    ]),
    ("Place the credentials file", [
        f"Put it in {get_config_dir()} (or the current directory).",
        "The name looks like client_secret_XXXXX.apps.googleusercontent.com.json",
    ]),
]


def run_setup(prompt: Callable[[str], str] = input) -> None:
    print("YouTube Data CLI Setup")
    print("======================")
    for n, (title, lines) in enumerate(STEPS, start=1):
        print()
        print(f"Step {n}: {title}")
        for line in lines:
            print(f"  - {line}")
        prompt("Press Enter when done... ")

    print()
    print("Verifying setup...")
    secrets_path = find_client_secrets_file()
    print(f"Found client secrets file: {secrets_path}")

    identity = load_client_identity(secrets_path)
    print("Client secrets file is valid")

    print()
    print("Testing authentication...")
    session = OAuthSessionManager(
        identity,
        TokenStore(get_default_credentials_path()),
        scopes=YOUTUBE_SCOPES_READONLY,
    )
    session.get_credentials()

    print("Authentication successful. You can now run:")
    print("  ytdata liked         # Fetch your liked videos")
    print("  ytdata subscriptions # Fetch your subscribed channels")
    print("  ytdata playlists     # Fetch your playlists")
