from __future__ import annotations

import logging
from typing import Dict, Optional

from .config import AUTH_PATH, CLIENT_ID
from .errors import AuthenticationError
from .models import ConnectionSettings
from .transport import Transport


logger = logging.getLogger(__name__)


class SessionManager:
    """Owns the bearer token for one appliance configuration.

    The token is fetched lazily, reused until `invalidate()` and fetched
    again on the next `get_token()`.
    """

    def __init__(self, transport: Transport, settings: ConnectionSettings) -> None:
        self._transport = transport
        self._settings = settings
        self._token: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self._token

    async def _login(self) -> str:
        resp = await self._transport.request(
            "POST",
            AUTH_PATH,
            json={
                "username": self._settings.username,
                "password": self._settings.password,
                "client_id": CLIENT_ID,
                "grant_type": "password",
            },
        )
        try:
            data = resp.json()
        except ValueError:
            data = None
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise AuthenticationError()
        logger.info("authenticated to %s as %s", self._transport.base_url, self._settings.username)
        return str(token)

    async def get_token(self) -> str:
        if not self._token:
            self._token = await self._login()
        return self._token

    def invalidate(self) -> None:
        if self._token is not None:
            logger.info("session token invalidated")
        self._token = None

    async def auth_headers(self) -> Dict[str, str]:
        token = await self.get_token()
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
