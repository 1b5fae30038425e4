from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from .client_secrets import load_client_identity, resolve_client_secrets
from .config import YOUTUBE_SCOPES_READONLY, ExportConfig
from .errors import ConfigError
from .jsonl_writer import JSONLWriter
from .oauth import OAuthSessionManager
from .token_store import TokenStore
from .youtube_api import (
    get_channels,
    list_liked_videos,
    list_playlists,
    list_subscriptions,
    subscription_channel_ids,
)


LOG = logging.getLogger("ytdata")


def export_liked(youtube, writer: JSONLWriter) -> None:
    for video in list_liked_videos(youtube):
        writer.write(video)


def export_subscriptions(youtube, writer: JSONLWriter) -> None:
    subscriptions = list_subscriptions(youtube)
    LOG.info("Fetched subscriptions: %s", len(subscriptions))

    channel_ids = subscription_channel_ids(subscriptions)
    for channel in get_channels(youtube, channel_ids):
        writer.write(channel)


def export_playlists(youtube, writer: JSONLWriter) -> None:
    for playlist in list_playlists(youtube):
        writer.write(playlist)


EXPORTS: Dict[str, Callable[..., None]] = {
    "liked": export_liked,
    "subscriptions": export_subscriptions,
    "playlists": export_playlists,
}


def build_session(cfg: ExportConfig) -> OAuthSessionManager:
    secrets_path = resolve_client_secrets(cfg.client_secrets)
    identity = load_client_identity(secrets_path)
    LOG.debug("Using client secrets: %s", secrets_path)

    return OAuthSessionManager(
        identity,
        TokenStore(cfg.resolved_token_path()),
        scopes=YOUTUBE_SCOPES_READONLY,
    )


def run_export(kind: str, cfg: ExportConfig, session: Optional[OAuthSessionManager] = None) -> int:
    try:
        export = EXPORTS[kind]
    except KeyError:
        raise ConfigError(f"Unknown export: {kind}") from None

    LOG.info("Starting %s export", kind)

    if session is None:
        session = build_session(cfg)

    youtube = session.build_service()

    with JSONLWriter(cfg.output_path) as writer:
        export(youtube, writer)

    session.sync_refreshed_token()

    LOG.info("Records written: %s", writer.count)
    LOG.info("Output written: %s", cfg.output_path)
    return writer.count
