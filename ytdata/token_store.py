from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser
from google.oauth2.credentials import Credentials

from .client_secrets import ClientIdentity
from .errors import TokenFileError


LOG = logging.getLogger("ytdata")

EXPIRY_LEEWAY = timedelta(seconds=60)


def _utcnow() -> datetime:
    # google-auth keeps expiry as naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _parse_expiry(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    dt = date_parser.isoparse(str(value))
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    # a zero time means "no expiry"
    if dt.year <= 1:
        return None
    return dt


def _format_expiry(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() + "Z"


@dataclass
class Token:
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "Bearer"
    expiry: Optional[datetime] = None
    scopes: List[str] = field(default_factory=list)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expiry is None:
            return False
        now = now or _utcnow()
        return now >= self.expiry - EXPIRY_LEEWAY

    def can_refresh(self) -> bool:
        return bool(self.refresh_token)

    def is_usable(self) -> bool:
        """An expired token is still usable while it carries a refresh credential."""
        return bool(self.access_token) and (not self.is_expired() or self.can_refresh())

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "access_token": self.access_token,
            "token_type": self.token_type,
        }
        if self.refresh_token:
            data["refresh_token"] = self.refresh_token
        if self.expiry is not None:
            data["expiry"] = _format_expiry(self.expiry)
        if self.scopes:
            data["scopes"] = list(self.scopes)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Token":
        if not isinstance(data, dict):
            raise ValueError("token document must be a JSON object")

        access = data.get("access_token") or data.get("token")
        if not access or not isinstance(access, str):
            raise ValueError("token document has no access_token")

        scopes = data.get("scopes") or []
        if isinstance(scopes, str):
            scopes = scopes.split()

        return cls(
            access_token=access,
            refresh_token=data.get("refresh_token") or None,
            token_type=str(data.get("token_type") or "Bearer"),
            expiry=_parse_expiry(data.get("expiry")),
            scopes=[str(s) for s in scopes],
        )

    @classmethod
    def from_credentials(cls, creds: Credentials) -> "Token":
        return cls(
            access_token=creds.token,
            refresh_token=creds.refresh_token,
            expiry=creds.expiry,
            scopes=list(creds.scopes or []),
        )

    def to_credentials(self, identity: ClientIdentity) -> Credentials:
        return Credentials(
            token=self.access_token,
            refresh_token=self.refresh_token,
            token_uri=identity.token_uri,
            client_id=identity.client_id,
            client_secret=identity.client_secret,
            scopes=list(self.scopes) or None,
            expiry=self.expiry,
        )


class TokenStore:
    def __init__(self, path) -> None:
        self.path = Path(path)

    def load(self) -> Optional[Token]:
        """
        Return the persisted token, or None when no token file exists.
        Raises TokenFileError when the file is present but unreadable.
        """
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return Token.from_dict(data)
        except (OSError, ValueError, OverflowError) as e:
            raise TokenFileError(f"Failed to read token file {self.path}: {e}") from e

    def save(self, token: Token) -> None:
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

        payload = json.dumps(token.to_dict())
        fd = os.open(str(self.path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)

        # O_CREAT mode only applies to new files
        os.chmod(self.path, 0o600)
        LOG.debug("Token saved to %s", self.path)
