from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

VERSION = "0.1.0"

YOUTUBE_SCOPES_READONLY = ["https://www.googleapis.com/auth/youtube.readonly"]

CALLBACK_HOST = "localhost"
CALLBACK_PORT = 8080
CALLBACK_TIMEOUT_SECONDS = 5 * 60
CALLBACK_SHUTDOWN_GRACE_SECONDS = 5.0

PAGE_SIZE = 50
BATCH_SIZE = 50

APP_DIR_NAME = "ytdata"
CREDENTIALS_FILE = "youtube_credentials.json"

DEFAULT_LIKED_OUTPUT = "liked_videos.jsonl"
DEFAULT_SUBSCRIPTIONS_OUTPUT = "subscriptions.jsonl"
DEFAULT_PLAYLISTS_OUTPUT = "playlists.jsonl"


def _user_config_root() -> Optional[Path]:
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        return Path(appdata) if appdata else None

    if sys.platform == "darwin":
        home = os.environ.get("HOME")
        return Path(home) / "Library" / "Application Support" if home else None

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg and os.path.isabs(xdg):
        return Path(xdg)
    home = os.environ.get("HOME")
    return Path(home) / ".config" if home else None


def get_config_dir() -> Path:
    """
    Per-user directory for ytdata files.
    Falls back to ~/.ytdata, then to the current directory.
    """
    root = _user_config_root()
    if root is not None:
        return root / APP_DIR_NAME

    try:
        return Path.home() / f".{APP_DIR_NAME}"
    except RuntimeError:
        return Path(".")


def get_default_credentials_path() -> Path:
    return get_config_dir() / CREDENTIALS_FILE


@dataclass(frozen=True)
class ExportConfig:
    output_path: str
    client_secrets: Optional[str] = None
    token_path: str = ""

    verbose: bool = False

    def resolved_token_path(self) -> Path:
        return Path(self.token_path) if self.token_path else get_default_credentials_path()
