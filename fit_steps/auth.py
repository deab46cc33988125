import asyncio
import logging
import time
import urllib.parse
from dataclasses import dataclass
from typing import Optional

import aiohttp
import requests

from .config import AppConfig

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/fitness.activity.read"]
REDIRECT_PORT = 3000
REDIRECT_URI = f"http://localhost:{REDIRECT_PORT}"


@dataclass
class TokenInfo:
    """Container for access/refresh token information."""
    access_token: str
    refresh_token: Optional[str]
    expires_at: int


class GoogleAuth:
    """Builds the consent URL, exchanges auth codes and refreshes access tokens.

    Nothing is persisted: the refresh token is handed back to the caller and
    the user stores it in their environment.
    """
    AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(self, config: AppConfig, redirect_uri: str = REDIRECT_URI) -> None:
        self.config = config
        self.redirect_uri = redirect_uri
        self.token: Optional[TokenInfo] = None
        self._lock = asyncio.Lock()

    def build_auth_url(self) -> str:
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "access_type": "offline",
            "prompt": "consent",
        }
        return self.AUTH_URL + "?" + urllib.parse.urlencode(params)

    def exchange_code(self, code: str) -> TokenInfo:
        """Trade a one-time authorization code for tokens.

        Raises ``requests.HTTPError`` on a rejected exchange and
        ``RuntimeError`` when Google answers without a refresh token.
        """
        resp = requests.post(self.TOKEN_URL, data={
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code": code,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }, timeout=30)
        resp.raise_for_status()
        data = resp.json()
        if not data.get("refresh_token"):
            raise RuntimeError("Token response did not include a refresh token")
        token = TokenInfo(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_at=int(time.time()) + int(data.get("expires_in", 0)),
        )
        self.token = token
        logger.info("Exchanged code for tokens, expires_at=%s", token.expires_at)
        return token

    async def refresh(self, session: aiohttp.ClientSession) -> TokenInfo:
        refresh_token = self.config.require_refresh_token()
        timeout = aiohttp.ClientTimeout(total=30)
        resp = await session.post(self.TOKEN_URL, data={
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }, timeout=timeout)
        resp.raise_for_status()
        data = await resp.json()
        token = TokenInfo(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", refresh_token),
            expires_at=int(time.time()) + int(data.get("expires_in", 0)),
        )
        self.token = token
        logger.info("Refreshed access token, expires_at=%s", token.expires_at)
        return token

    async def ensure_token(self, session: aiohttp.ClientSession) -> str:
        """Return a usable access token, refreshing at most once for concurrent callers."""
        async with self._lock:
            if not self.token or self.token.expires_at - int(time.time()) < 60:
                await self.refresh(session)
        return self.token.access_token
