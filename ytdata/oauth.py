from __future__ import annotations

import html
import logging
import queue
import threading
import webbrowser
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Callable, Optional, Sequence, Tuple
from urllib.parse import parse_qs, urlparse

import requests
from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from .client_secrets import ClientIdentity
from .config import (
    CALLBACK_HOST,
    CALLBACK_PORT,
    CALLBACK_SHUTDOWN_GRACE_SECONDS,
    CALLBACK_TIMEOUT_SECONDS,
    YOUTUBE_SCOPES_READONLY,
)
from .errors import AuthError, TokenFileError
from .token_store import Token, TokenStore


LOG = logging.getLogger("ytdata")

SUCCESS_PAGE = """<!DOCTYPE html>
<html>
<head>
<title>Authorization Complete</title>
<meta charset="utf-8">
</head>
<body style="font-family: Arial, sans-serif; text-align: center; padding: 50px;">
<h2>&#9989; Authorization Complete</h2>
<p>You can close this window and return to the terminal.</p>
</body>
</html>"""

ERROR_PAGE = """<!DOCTYPE html>
<html>
<head>
<title>Authorization Error</title>
<meta charset="utf-8">
</head>
<body style="font-family: Arial, sans-serif; text-align: center; padding: 50px;">
<h2>Authorization Error</h2>
<p>{message}</p>
<p>Please close this window and check the terminal.</p>
</body>
</html>"""

# handoff slot payloads
OUTCOME_CODE = "code"
OUTCOME_ERROR = "error"

Outcome = Tuple[str, str]


class _CallbackHandler(BaseHTTPRequestHandler):
    server: "_CallbackHTTPServer"

    def log_message(self, format, *args) -> None:
        LOG.debug("callback %s - %s", self.address_string(), format % args)

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        if parsed.path != "/":
            self._send_page(404, ERROR_PAGE.format(message="Not found."))
            return

        query = parse_qs(parsed.query)
        code = (query.get("code") or [""])[0]

        if code:
            if self.server.offer((OUTCOME_CODE, code)):
                self._send_page(200, SUCCESS_PAGE)
            else:
                self._send_page(409, ERROR_PAGE.format(
                    message="This authorization request was already handled."))
            return

        denied = (query.get("error") or [""])[0]
        message = f"authorization denied: {denied}" if denied else "no authorization code received"
        self.server.offer((OUTCOME_ERROR, message))
        self._send_page(400, ERROR_PAGE.format(message=html.escape(message.capitalize()) + "."))

    def _send_page(self, status: int, page: str) -> None:
        body = page.encode("utf-8")
        try:
            self.send_response(status)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
        except OSError as e:
            LOG.warning("Failed to write callback response: %s", e)


class _CallbackHTTPServer(HTTPServer):
    def __init__(self, address, handoff: "queue.Queue[Outcome]") -> None:
        super().__init__(address, _CallbackHandler)
        self.handoff = handoff
        self.resolved = False
        self._lock = threading.Lock()

    def offer(self, outcome: Outcome) -> bool:
        """Place an outcome in the single slot. Only the first one is ever kept."""
        with self._lock:
            if self.resolved:
                LOG.debug("Ignoring extra callback outcome: %s", outcome[0])
                return False
            try:
                self.handoff.put_nowait(outcome)
            except queue.Full:
                return False
            self.resolved = True
            return True


class CallbackServer:
    """
    One-shot local listener for the OAuth redirect.

    Every instance owns its own HTTP server and handoff slot, so repeated or
    concurrent exchanges never share registration state.
    """

    def __init__(self, host: str = CALLBACK_HOST, port: int = CALLBACK_PORT) -> None:
        self.host = host
        self.port = port
        self._handoff: "queue.Queue[Outcome]" = queue.Queue(maxsize=1)
        self._httpd: Optional[_CallbackHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def server_port(self) -> int:
        if self._httpd is None:
            return self.port
        return self._httpd.server_address[1]

    @property
    def redirect_uri(self) -> str:
        return f"http://{self.host}:{self.server_port}/"

    def start(self) -> None:
        try:
            self._httpd = _CallbackHTTPServer((self.host, self.port), self._handoff)
        except OSError as e:
            raise AuthError(
                f"Failed to start OAuth callback server on {self.host}:{self.port}: {e}") from e

        self._thread = threading.Thread(
            target=self._httpd.serve_forever,
            kwargs={"poll_interval": 0.1},
            name="ytdata-oauth-callback",
            daemon=True,
        )
        self._thread.start()
        LOG.debug("OAuth callback server listening on %s", self.redirect_uri)

    def wait(self, timeout: float) -> str:
        """Block until a code, an error, or the timeout. Returns the code."""
        try:
            kind, value = self._handoff.get(timeout=timeout)
        except queue.Empty:
            raise AuthError("authorization timeout - please try again") from None

        if kind == OUTCOME_CODE:
            return value
        raise AuthError(value)

    def stop(self, grace: float = CALLBACK_SHUTDOWN_GRACE_SECONDS) -> None:
        httpd, thread = self._httpd, self._thread
        if httpd is None:
            return
        try:
            if thread is not None and thread.is_alive():
                stopper = threading.Thread(target=httpd.shutdown, daemon=True)
                stopper.start()
                stopper.join(grace)
                if stopper.is_alive():
                    LOG.warning("OAuth callback server did not stop within %.1fs", grace)
        finally:
            try:
                httpd.server_close()
            except OSError as e:
                LOG.warning("Failed to shutdown callback server gracefully: %s", e)
            self._httpd = None
            self._thread = None

    def __enter__(self) -> "CallbackServer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def default_flow_factory(identity: ClientIdentity, scopes: Sequence[str], redirect_uri: str) -> Flow:
    return Flow.from_client_config(
        identity.client_config(),
        scopes=list(scopes),
        redirect_uri=redirect_uri,
    )


class OAuthSessionManager:
    """
    Authorization-code session for the YouTube Data API.

    A persisted token is reused (refreshing it when needed); otherwise a full
    interactive exchange is run through a local callback listener.
    """

    def __init__(
        self,
        identity: ClientIdentity,
        token_store: TokenStore,
        scopes: Sequence[str] = tuple(YOUTUBE_SCOPES_READONLY),
        host: str = CALLBACK_HOST,
        port: int = CALLBACK_PORT,
        timeout: float = CALLBACK_TIMEOUT_SECONDS,
        flow_factory: Callable[..., Any] = default_flow_factory,
        open_browser: Callable[[str], bool] = webbrowser.open,
        request_factory: Callable[[], Any] = Request,
    ) -> None:
        self.identity = identity
        self.token_store = token_store
        self.scopes = list(scopes)
        self.host = host
        self.port = port
        self.timeout = timeout
        self._flow_factory = flow_factory
        self._open_browser = open_browser
        self._request_factory = request_factory

        self._credentials: Optional[Credentials] = None
        self._persisted: Optional[Token] = None

    def load_token(self) -> Optional[Token]:
        try:
            return self.token_store.load()
        except TokenFileError as e:
            LOG.warning("%s", e)
            return None

    def refresh_if_needed(self, creds: Credentials) -> bool:
        """
        Renew the access token when it is expired or about to expire.
        Returns True when a refresh happened. Raises AuthError when the
        refresh credential is missing or rejected.
        """
        if creds.valid:
            return False
        if not creds.refresh_token:
            raise AuthError("access token expired and no refresh token is available")

        try:
            creds.refresh(self._request_factory())
        except (RefreshError, TransportError) as e:
            raise AuthError(f"token refresh failed: {e}") from e

        LOG.debug("Access token refreshed")
        return True

    def persist_if_changed(self, token: Token, original: Optional[Token] = None) -> bool:
        if original is not None and token == original:
            return False
        try:
            self.token_store.save(token)
        except OSError as e:
            LOG.warning("Failed to save credentials: %s", e)
            return False
        return True

    def run_authorization(self) -> Token:
        server = CallbackServer(self.host, self.port)
        server.start()
        try:
            try:
                flow = self._flow_factory(self.identity, self.scopes, server.redirect_uri)
                auth_url, _state = flow.authorization_url(access_type="offline", prompt="consent")
            except ValueError as e:
                raise AuthError(f"invalid OAuth client configuration: {e}") from e

            LOG.info("Opening browser for authorization...")
            self._launch_browser(auth_url)

            code = server.wait(self.timeout)
        finally:
            server.stop()

        try:
            flow.fetch_token(code=code)
        except (OAuth2Error, requests.RequestException, ValueError) as e:
            raise AuthError(f"unable to retrieve token from web: {e}") from e

        return Token.from_credentials(flow.credentials)

    def _launch_browser(self, url: str) -> None:
        opened = False
        try:
            opened = bool(self._open_browser(url))
        except webbrowser.Error as e:
            LOG.warning("Failed to open browser: %s", e)
        if not opened:
            LOG.info("Go to: %s", url)
        else:
            LOG.info("If the browser did not open, go to: %s", url)

    def get_credentials(self) -> Credentials:
        stored = self.load_token()

        if stored is not None and stored.is_usable():
            creds = stored.to_credentials(self.identity)
            try:
                self.refresh_if_needed(creds)
            except AuthError as e:
                LOG.warning("Stored credentials could not be refreshed (%s). Starting authorization.", e)
            else:
                self._remember(creds, stored)
                return creds
        elif stored is not None:
            LOG.info("Stored credentials expired. Starting authorization.")

        try:
            token = self.run_authorization()
        except AuthError as e:
            raise AuthError(f"oauth flow failed: {e}") from e

        creds = token.to_credentials(self.identity)
        self._remember(creds, None)
        return creds

    def _remember(self, creds: Credentials, persisted: Optional[Token]) -> None:
        self._credentials = creds
        self._persisted = persisted
        self.sync_refreshed_token()

    def sync_refreshed_token(self) -> bool:
        """Persist the live credentials if they changed since the last save."""
        if self._credentials is None:
            return False
        current = Token.from_credentials(self._credentials)
        if not self.persist_if_changed(current, self._persisted):
            return False
        self._persisted = current
        return True

    def build_service(self):
        return build("youtube", "v3", credentials=self.get_credentials())
