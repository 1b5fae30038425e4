from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError
from httplib2 import HttpLib2Error

from .config import BATCH_SIZE, PAGE_SIZE
from .errors import NetworkError, QuotaExceededError


LOG = logging.getLogger("ytdata")

LIKED_VIDEO_PARTS = "snippet,contentDetails,statistics"
SUBSCRIPTION_PARTS = "snippet"
PLAYLIST_PARTS = "snippet,contentDetails,status"
CHANNEL_PARTS = ",".join([
    "snippet", "contentDetails", "statistics", "topicDetails",
    "status", "brandingSettings", "localizations",
])

ListCall = Callable[..., Any]


def _http_error_reason(err: HttpError) -> str:
    try:
        data = json.loads(err.content.decode("utf-8", errors="ignore"))
        errors = data.get("error", {}).get("errors", [])
        if errors and isinstance(errors, list):
            return str(errors[0].get("reason") or "")
    except (AttributeError, ValueError):
        return ""
    return ""


def _raise_network_error(err: Exception, context: str) -> None:
    if not isinstance(err, HttpError):
        raise NetworkError(f"Network error while {context}: {err}") from err

    reason = _http_error_reason(err)
    status = getattr(err.resp, "status", None)

    if reason == "quotaExceeded":
        raise QuotaExceededError(
            "YouTube API quota exceeded. Wait for the daily quota reset or use another Google Cloud project."
        ) from err

    raise NetworkError(
        f"API error while {context}. Status {status}. Reason {reason or 'unknown'}") from err


def chunked(lst: List[str], n: int) -> Iterable[List[str]]:
    for i in range(0, len(lst), n):
        yield lst[i:i + n]


def iter_pages(
    list_call: ListCall,
    context: str,
    page_size: int = PAGE_SIZE,
    **params: Any,
) -> Iterator[Dict[str, Any]]:
    """
    Walk a cursor-paginated list endpoint, yielding items in page order.

    The first request carries no pageToken; iteration stops on the first
    response without a nextPageToken.
    """
    page_token: Optional[str] = None
    pages = 0

    while True:
        kwargs = dict(params, maxResults=page_size)
        if page_token:
            kwargs["pageToken"] = page_token

        try:
            resp = list_call(**kwargs).execute()
        except (HttpError, HttpLib2Error, GoogleAuthError, OSError) as e:
            _raise_network_error(e, context)

        pages += 1
        items = resp.get("items", [])
        LOG.debug("%s: page %s returned %s items", context, pages, len(items))
        yield from items

        page_token = resp.get("nextPageToken")
        if not page_token:
            break


def fetch_all_pages(
    list_call: ListCall,
    context: str,
    page_size: int = PAGE_SIZE,
    **params: Any,
) -> List[Dict[str, Any]]:
    return list(iter_pages(list_call, context, page_size=page_size, **params))


def iter_batches(
    list_call: ListCall,
    ids: List[str],
    context: str,
    batch_size: int = BATCH_SIZE,
    **params: Any,
) -> Iterator[Dict[str, Any]]:
    """
    Look up ids in consecutive chunks of at most batch_size, one call per chunk.
    Chunk order is kept; order inside a chunk is whatever the API returns.
    """
    for batch in chunked(ids, batch_size):
        try:
            resp = list_call(id=",".join(batch), **params).execute()
        except (HttpError, HttpLib2Error, GoogleAuthError, OSError) as e:
            _raise_network_error(e, context)

        items = resp.get("items", [])
        LOG.debug("%s: batch of %s ids returned %s items", context, len(batch), len(items))
        yield from items


def resolve_in_batches(
    list_call: ListCall,
    ids: List[str],
    context: str,
    batch_size: int = BATCH_SIZE,
    **params: Any,
) -> List[Dict[str, Any]]:
    return list(iter_batches(list_call, ids, context, batch_size=batch_size, **params))


def list_liked_videos(youtube) -> Iterator[Dict[str, Any]]:
    return iter_pages(
        youtube.videos().list,
        "fetching liked videos",
        part=LIKED_VIDEO_PARTS,
        myRating="like",
    )


def list_subscriptions(youtube) -> List[Dict[str, Any]]:
    return fetch_all_pages(
        youtube.subscriptions().list,
        "fetching subscriptions",
        part=SUBSCRIPTION_PARTS,
        mine=True,
    )


def list_playlists(youtube) -> Iterator[Dict[str, Any]]:
    return iter_pages(
        youtube.playlists().list,
        "fetching playlists",
        part=PLAYLIST_PARTS,
        mine=True,
    )


def subscription_channel_ids(subscriptions: Iterable[Dict[str, Any]]) -> List[str]:
    ids: List[str] = []
    for sub in subscriptions:
        channel_id = (
            (sub.get("snippet") or {}).get("resourceId") or {}).get("channelId")
        if not channel_id:
            LOG.warning("Subscription %s has no channel id, skipped", sub.get("id", "?"))
            continue
        ids.append(channel_id)
    return ids


def get_channels(youtube, channel_ids: List[str]) -> Iterator[Dict[str, Any]]:
    return iter_batches(
        youtube.channels().list,
        channel_ids,
        "fetching channel details",
        part=CHANNEL_PARTS,
    )
