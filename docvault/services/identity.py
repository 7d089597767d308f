"""Client for the external identity service (GoTrue-style REST API).

Only the calls this application needs: password sign-in, sign-out and
account sign-up on behalf of an admin.
"""

from typing import Any, Dict, Optional

import httpx

from docvault.core.config import settings
from docvault.core.exceptions import AuthError, TransportError, ValidationError
from docvault.core.logging import get_logger
from docvault.schemas.schemas import PendingAccount, Role, SessionTokens

logger = get_logger("identity")


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    for key in ("error_description", "msg", "message", "error"):
        if isinstance(body, dict) and body.get(key):
            return str(body[key])
    return f"HTTP {resp.status_code}"


class IdentityClient:
    """Thin async wrapper; each method is one HTTP round trip."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.IDENTITY_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.IDENTITY_API_KEY
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"apikey": self.api_key} if self.api_key else {}
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=settings.IDENTITY_TIMEOUT_SECONDS,
            transport=self._transport,
        )

    async def _post(self, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.post(path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"Identity service unreachable: {e}") from e

    async def sign_in(self, email: str, password: str) -> SessionTokens:
        resp = await self._post(
            "/token", params={"grant_type": "password"}, json={"email": email, "password": password}
        )
        if resp.status_code in (400, 401, 403):
            raise AuthError(_error_message(resp))
        if resp.is_error:
            raise TransportError(_error_message(resp))
        return SessionTokens(**resp.json())

    async def sign_out(self, access_token: str) -> None:
        resp = await self._post("/logout", headers={"Authorization": f"Bearer {access_token}"})
        # An expired token is already signed out
        if resp.is_error and resp.status_code != 401:
            raise TransportError(_error_message(resp))

    async def sign_up(
        self, email: str, password: str, display_name: str, role: Role
    ) -> PendingAccount:
        payload: Dict[str, Any] = {
            "email": email,
            "password": password,
            "data": {"display_name": display_name, "role": role.value},
        }
        resp = await self._post("/signup", json=payload)
        if resp.status_code in (400, 422):
            raise ValidationError(_error_message(resp))
        if resp.is_error:
            raise TransportError(_error_message(resp))
        body = resp.json()
        user = body.get("user", body)
        logger.info("Provisioned account %s (%s)", email, role.value)
        return PendingAccount(
            id=user.get("id"),
            email=user.get("email", email),
            confirmation_sent=bool(user.get("confirmation_sent_at")) or not user.get("email_confirmed_at"),
        )
