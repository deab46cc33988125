"""One-shot local listener that catches the OAuth redirect.

Google sends the browser back to ``http://localhost:3000/?code=...``. The
handler exchanges the code straight away, prints the refresh token and tells
the serve loop which exit status to finish with. Requests without a code
(favicon lookups, stray reloads) are dropped without a reply and the
listener keeps waiting.
"""
import logging
import webbrowser
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Optional
from urllib.parse import urlparse, parse_qs

from .auth import GoogleAuth, REDIRECT_PORT, REDIRECT_URI
from .config import AppConfig

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = b"Authentication successful! Please check your console."
FAILURE_MESSAGE = b"Authentication failed."


class OAuthHandler(BaseHTTPRequestHandler):
    server_version = "StepReportOAuth/1.0"
    # Drop connections that never send a request (browser preconnects)
    timeout = 5

    def do_GET(self):
        qs = parse_qs(urlparse(self.path).query)
        code = qs.get("code", [None])[0]
        if not code:
            logger.debug("Ignoring request without code: %s", self.path)
            return

        try:
            token = self.server.auth.exchange_code(code)
        except Exception:
            logger.exception("Error exchanging authorization code")
            self._reply(500, FAILURE_MESSAGE)
            self.server.exit_code = 1
            return

        print("Your refresh token is:", token.refresh_token)
        print("Please save it in your .env file as GOOGLE_REFRESH_TOKEN")
        self._reply(200, SUCCESS_MESSAGE)
        self.server.exit_code = 0

    def _reply(self, status: int, body: bytes) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


class OAuthCatcher(HTTPServer):
    """HTTPServer carrying the auth helper and the flow's exit status."""

    def __init__(self, auth: GoogleAuth, port: int = REDIRECT_PORT, host: str = "localhost") -> None:
        super().__init__((host, port), OAuthHandler)
        self.auth = auth
        self.exit_code: Optional[int] = None

    def serve_until_code(self) -> int:
        """Handle requests one by one until a code has been exchanged, then close."""
        try:
            while self.exit_code is None:
                self.handle_request()
        finally:
            self.server_close()
        return self.exit_code


def run_oauth_catcher(config: AppConfig, port: int = REDIRECT_PORT, open_browser: bool = True) -> int:
    """Run the interactive authorization flow. Returns the process exit status."""
    auth = GoogleAuth(config)
    server = OAuthCatcher(auth, port=port)

    auth_url = auth.build_auth_url()
    print("Authorize this app by visiting this url:", auth_url)
    print(
        f"NOTE: Make sure to add {REDIRECT_URI} to your authorized redirect URIs "
        "in the Google Cloud Platform Console."
    )
    print(f"Server is listening on http://localhost:{server.server_address[1]}")
    if open_browser:
        webbrowser.open(auth_url)

    return server.serve_until_code()
