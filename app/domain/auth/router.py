"""Auth router - Completes email link and OAuth sign-in flows"""

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from ...auth import ACCESS_TOKEN_COOKIE
from ...config import APP_URL, ENVIRONMENT
from .client import AuthProviderError, SupabaseAuthClient, get_auth_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

REFRESH_TOKEN_COOKIE = "sb-refresh-token"
CODE_VERIFIER_COOKIE = "sb-code-verifier"
DEFAULT_NEXT = "/en/dashboard"


def _redirect(path: str) -> RedirectResponse:
    return RedirectResponse(url=f"{APP_URL.rstrip('/')}{path}", status_code=303)


def _error_redirect(message: str) -> RedirectResponse:
    return _redirect(f"/en/forgot-password?error={quote(message)}")


def _safe_next(next_path: Optional[str]) -> str:
    # Only same-site paths; "//host" would leave the app
    if not next_path or not next_path.startswith("/") or next_path.startswith("//"):
        return DEFAULT_NEXT
    return next_path


def _set_session_cookies(response: RedirectResponse, session: dict) -> None:
    secure = ENVIRONMENT == "production"
    access_token = session.get("access_token")
    if access_token:
        response.set_cookie(
            key=ACCESS_TOKEN_COOKIE,
            value=access_token,
            max_age=session.get("expires_in", 3600),
            httponly=True,
            secure=secure,
            samesite="lax",
            path="/",
        )
    refresh_token = session.get("refresh_token")
    if refresh_token:
        response.set_cookie(
            key=REFRESH_TOKEN_COOKIE,
            value=refresh_token,
            max_age=60 * 60 * 24 * 30,
            httponly=True,
            secure=secure,
            samesite="lax",
            path="/",
        )
    response.delete_cookie(CODE_VERIFIER_COOKIE, path="/")


@router.get("/callback")
async def auth_callback(
    request: Request,
    code: Optional[str] = None,
    token_hash: Optional[str] = None,
    type: Optional[str] = None,
    next: Optional[str] = None,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
):
    """
    Landing endpoint for auth provider links.

    - `error` from the provider goes to forgot-password with the message
    - `code` is a PKCE code exchanged for a session
    - `token_hash` + `type` is an email OTP; recovery goes to reset-password
    - anything else goes home
    """
    next_path = _safe_next(next)

    if error:
        logger.warning(f"⚠️ Auth callback error: {error} ({error_description})")
        return _error_redirect(error_description or error)

    if code:
        try:
            session = await auth_client.exchange_code_for_session(
                code, request.cookies.get(CODE_VERIFIER_COOKIE)
            )
            response = _redirect(next_path)
            _set_session_cookies(response, session)
            logger.info("✅ Auth code exchanged for session")
            return response
        except AuthProviderError as e:
            # Falls through to token verification or home
            logger.warning(f"⚠️ Auth code exchange failed: {e.message}")

    if token_hash and type:
        try:
            session = await auth_client.verify_otp(token_hash, type)
        except AuthProviderError as e:
            return _error_redirect(e.message)

        response = _redirect("/en/reset-password" if type == "recovery" else next_path)
        _set_session_cookies(response, session)
        return response

    return _redirect("/")
