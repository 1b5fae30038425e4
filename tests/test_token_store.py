from __future__ import annotations

import json
import os
import stat
import sys
from datetime import datetime, timedelta

import pytest

from ytdata.errors import TokenFileError
from ytdata.token_store import Token, TokenStore


posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")


def _token(**overrides) -> Token:
    values = dict(
        access_token="access-1",
        refresh_token="refresh-1",
        expiry=datetime(2030, 1, 2, 3, 4, 5),
        scopes=["https://www.googleapis.com/auth/youtube.readonly"],
    )
    values.update(overrides)
    return Token(**values)


def test_load_missing_file_returns_none(tmp_path):
    assert TokenStore(tmp_path / "nope.json").load() is None


def test_save_then_load_is_semantically_equal(tmp_path):
    store = TokenStore(tmp_path / "nested" / "dir" / "token.json")
    token = _token()

    store.save(token)
    loaded = store.load()

    assert loaded == token
    assert loaded.expiry == datetime(2030, 1, 2, 3, 4, 5)


@posix_only
def test_save_writes_owner_only_file(tmp_path):
    path = tmp_path / "cfg" / "token.json"
    TokenStore(path).save(_token())

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


@posix_only
def test_save_tightens_permissions_of_existing_file(tmp_path):
    path = tmp_path / "token.json"
    path.write_text("{}", encoding="utf-8")
    os.chmod(path, 0o644)

    TokenStore(path).save(_token())

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_saved_document_fields(tmp_path):
    path = tmp_path / "token.json"
    TokenStore(path).save(_token(refresh_token=None))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["access_token"] == "access-1"
    assert data["token_type"] == "Bearer"
    assert data["expiry"] == "2030-01-02T03:04:05Z"
    assert "refresh_token" not in data


@pytest.mark.parametrize("content", ["not json", "[]", '{"token_type": "Bearer"}', '{"access_token": "a", "expiry": "soon"}'])
def test_corrupt_file_raises_token_file_error(tmp_path, content):
    path = tmp_path / "token.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(TokenFileError):
        TokenStore(path).load()


def test_offset_expiry_is_normalised_to_utc(tmp_path):
    path = tmp_path / "token.json"
    path.write_text(json.dumps({
        "access_token": "a",
        "token_type": "Bearer",
        "refresh_token": "r",
        "expiry": "2024-05-01T14:00:00.123456+02:00",
    }), encoding="utf-8")

    token = TokenStore(path).load()

    assert token.expiry == datetime(2024, 5, 1, 12, 0, 0, 123456)


def test_zero_expiry_means_no_expiry():
    token = Token.from_dict({"access_token": "a", "expiry": "0001-01-01T00:00:00Z"})
    assert token.expiry is None
    assert not token.is_expired()


def test_expired_token_usable_only_with_refresh_credential():
    past = datetime(2000, 1, 1)
    assert _token(expiry=past).is_usable()
    assert not _token(expiry=past, refresh_token=None).is_usable()


def test_near_expiry_counts_as_expired():
    now = datetime(2030, 1, 1, 12, 0, 0)
    token = _token(expiry=now + timedelta(seconds=30))
    assert token.is_expired(now=now)
    assert not token.is_expired(now=now - timedelta(minutes=5))
