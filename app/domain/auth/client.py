"""
Supabase Auth client

Thin httpx wrapper over the GoTrue endpoints used by the email link and
OAuth callback: PKCE code exchange and OTP token verification.
"""

import logging
from typing import Optional

import httpx

from ...config import SUPABASE_ANON_KEY, SUPABASE_URL

logger = logging.getLogger(__name__)


class AuthProviderError(Exception):
    """Raised when the auth provider rejects a code or token"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class SupabaseAuthClient:
    def __init__(self, base_url: Optional[str], anon_key: Optional[str]):
        self.base_url = (base_url or "").rstrip("/")
        self.anon_key = anon_key

    async def _post(self, path: str, payload: dict, params: Optional[dict] = None) -> dict:
        if not self.base_url or not self.anon_key:
            raise AuthProviderError("Auth provider is not configured")

        headers = {"apikey": self.anon_key, "Content-Type": "application/json"}
        async with httpx.AsyncClient(timeout=15.0) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/auth/v1{path}", json=payload, params=params, headers=headers
                )
            except httpx.HTTPError as e:
                logger.error(f"❌ Auth provider request failed: {e}")
                raise AuthProviderError("Auth provider unavailable") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("error_description") or body.get("msg") or body.get("message") or "Authentication failed"
            logger.warning(f"⚠️ Auth provider returned {response.status_code} for {path}: {message}")
            raise AuthProviderError(message)

        return response.json()

    async def exchange_code_for_session(self, code: str, code_verifier: Optional[str]) -> dict:
        """Exchange a PKCE auth code for a session"""
        return await self._post(
            "/token",
            {"auth_code": code, "code_verifier": code_verifier or ""},
            params={"grant_type": "pkce"},
        )

    async def verify_otp(self, token_hash: str, otp_type: str) -> dict:
        """Verify an email token hash (signup confirmation, recovery, magic link)"""
        return await self._post("/verify", {"token_hash": token_hash, "type": otp_type})


supabase_auth_client = SupabaseAuthClient(SUPABASE_URL, SUPABASE_ANON_KEY)


def get_auth_client() -> SupabaseAuthClient:
    return supabase_auth_client
