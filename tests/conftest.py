"""Shared fakes for the YouTube API resource objects."""

from __future__ import annotations

import json
import logging
import socket
from typing import Any, Callable, Dict, List

import httplib2
import pytest
from googleapiclient.errors import HttpError

from ytdata.client_secrets import ClientIdentity


class FakeCall:
    def __init__(self, result: Any) -> None:
        self._result = result

    def execute(self) -> Any:
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


class FakeListEndpoint:
    """Mimics `youtube.<resource>()` exposing `.list(**kwargs).execute()`."""

    def __init__(self, responder: Callable[[Dict[str, Any]], Any]) -> None:
        self.responder = responder
        self.calls: List[Dict[str, Any]] = []

    def list(self, **kwargs: Any) -> FakeCall:
        self.calls.append(kwargs)
        return FakeCall(self.responder(kwargs))


def paged_responder(pages: List[List[Dict[str, Any]]]) -> Callable[[Dict[str, Any]], Any]:
    def respond(kwargs: Dict[str, Any]) -> Dict[str, Any]:
        idx = int(kwargs.get("pageToken") or 0)
        resp: Dict[str, Any] = {"items": pages[idx]}
        if idx + 1 < len(pages):
            resp["nextPageToken"] = str(idx + 1)
        return resp

    return respond


def make_pages(*sizes: int, prefix: str = "item") -> List[List[Dict[str, Any]]]:
    pages = []
    n = 0
    for size in sizes:
        pages.append([{"id": f"{prefix}-{n + i}"} for i in range(size)])
        n += size
    return pages


def channels_responder(kwargs: Dict[str, Any]) -> Dict[str, Any]:
    ids = kwargs["id"].split(",")
    # the API does not promise input order inside a batch
    return {"items": [{"kind": "youtube#channel", "id": cid} for cid in reversed(ids)]}


def make_http_error(status: int, reason: str = "") -> HttpError:
    resp = httplib2.Response({"status": status})
    content = json.dumps({"error": {"message": f"HTTP {status}", "errors": [{"reason": reason}]}}).encode("utf-8")
    return HttpError(resp, content)


class FakeYouTube:
    def __init__(self, videos=None, subscriptions=None, playlists=None, channels=None) -> None:
        empty = paged_responder([[]])
        self.videos_endpoint = FakeListEndpoint(videos or empty)
        self.subscriptions_endpoint = FakeListEndpoint(subscriptions or empty)
        self.playlists_endpoint = FakeListEndpoint(playlists or empty)
        self.channels_endpoint = FakeListEndpoint(channels or channels_responder)

    def videos(self) -> FakeListEndpoint:
        return self.videos_endpoint

    def subscriptions(self) -> FakeListEndpoint:
        return self.subscriptions_endpoint

    def playlists(self) -> FakeListEndpoint:
        return self.playlists_endpoint

    def channels(self) -> FakeListEndpoint:
        return self.channels_endpoint


def port_is_free(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            s.bind((host, port))
        except OSError:
            return False
    return True


@pytest.fixture
def identity() -> ClientIdentity:
    return ClientIdentity(client_id="client-id", client_secret="client-secret")


@pytest.fixture(autouse=True)
def _reset_ytdata_logger():
    yield
    logger = logging.getLogger("ytdata")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
