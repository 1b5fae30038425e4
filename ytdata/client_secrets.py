from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .config import CALLBACK_HOST, CALLBACK_PORT, get_config_dir
from .errors import ConfigError


LOG = logging.getLogger("ytdata")

CLIENT_SECRETS_GLOB = "client_secret_*.apps.googleusercontent.com.json"
SETUP_HINT = "Run 'ytdata setup' for guided setup instructions."

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
DEFAULT_REDIRECT_URI = f"http://{CALLBACK_HOST}:{CALLBACK_PORT}/"


@dataclass(frozen=True)
class ClientIdentity:
    client_id: str
    client_secret: str
    auth_uri: str = GOOGLE_AUTH_URI
    token_uri: str = GOOGLE_TOKEN_URI
    redirect_uri: str = DEFAULT_REDIRECT_URI

    def client_config(self) -> Dict[str, Any]:
        return {
            "web": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": self.auth_uri,
                "token_uri": self.token_uri,
                "redirect_uris": [self.redirect_uri],
            }
        }


def default_search_dirs() -> list:
    script_dir = Path(sys.argv[0]).resolve().parent if sys.argv and sys.argv[0] else Path(".")
    return [Path("."), get_config_dir(), script_dir]


def find_client_secrets_file(search_dirs: Optional[Iterable[Path]] = None) -> Path:
    dirs = list(search_dirs) if search_dirs is not None else default_search_dirs()
    for d in dirs:
        try:
            matches = sorted(Path(d).glob(CLIENT_SECRETS_GLOB))
        except OSError as e:
            LOG.warning("Error searching in %s: %s", d, e)
            continue
        if matches:
            LOG.debug("Found client secrets file: %s", matches[0])
            return matches[0]

    raise ConfigError(f"No client secrets file found. {SETUP_HINT}")


def load_client_identity(path: Path) -> ClientIdentity:
    """
    Read and validate a client secrets document.
    Only "Web application" clients are accepted since the redirect goes to
    the local callback listener.
    """
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Client secrets file not found at: {p}. {SETUP_HINT}")

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read client secrets file {p}: {e}. {SETUP_HINT}") from e
    except ValueError as e:
        raise ConfigError(f"Invalid client secrets file {p}: invalid JSON format. {SETUP_HINT}") from e

    web = data.get("web") if isinstance(data, dict) else None
    if not isinstance(web, dict):
        web = {}

    client_id = str(web.get("client_id") or "")
    client_secret = str(web.get("client_secret") or "")
    if not client_id or not client_secret:
        raise ConfigError(
            f"Invalid client secrets file {p}: must be web application type with valid "
            f"client_id and client_secret. {SETUP_HINT}"
        )

    return ClientIdentity(
        client_id=client_id,
        client_secret=client_secret,
        auth_uri=str(web.get("auth_uri") or GOOGLE_AUTH_URI),
        token_uri=str(web.get("token_uri") or GOOGLE_TOKEN_URI),
    )


def resolve_client_secrets(explicit: Optional[str]) -> Path:
    if explicit:
        return Path(explicit)
    return find_client_secrets_file()
