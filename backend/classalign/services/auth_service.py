"""
Auth Service - Sign-up and sign-in through Supabase Auth (GoTrue).
Passwords never touch our tables; Supabase owns the accounts and we issue
our own app token once Supabase has accepted the credentials.
"""
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from classalign.services.auth_tokens import AppUser
from classalign.services.supabase_client import supabase_request

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AuthError(Exception):
    """Raised when Supabase rejects a sign-up or sign-in."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class SignUpResult:
    user: AppUser
    pending_confirmation: bool


def display_name(metadata: Optional[Dict[str, Any]], email: str) -> str:
    """Prefer full_name, then name, then the e-mail address."""
    metadata = metadata or {}
    return metadata.get("full_name") or metadata.get("name") or email


def _user_from_body(user: Dict[str, Any], fallback_email: str) -> AppUser:
    email = user.get("email") or fallback_email
    return AppUser(
        id=str(user.get("id", "")),
        email=email,
        name=display_name(user.get("user_metadata"), email),
    )


def _error_message(body: Dict[str, Any], default: str) -> str:
    return body.get("msg") or body.get("error_description") or body.get("message") or default


def _redirect_url() -> str:
    return os.getenv("APP_URL", "http://localhost:3000").rstrip("/") + "/dashboard"


def sign_up(email: str, password: str, full_name: Optional[str] = None) -> SignUpResult:
    """
    Create a Supabase account.

    When the project requires e-mail confirmation Supabase returns the user
    without `email_confirmed_at`; the caller should then tell the user to
    check their inbox instead of signing them in.

    Raises:
        AuthError: on invalid input or when Supabase refuses the account
    """
    email = (email or "").strip()
    if not email or "@" not in email:
        raise AuthError("A valid email is required.")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

    payload: Dict[str, Any] = {
        "email": email,
        "password": password,
        "data": {"full_name": full_name} if full_name else {},
        "options": {"emailRedirectTo": _redirect_url()},
    }
    response = supabase_request("POST", "/auth/v1/signup", json=payload)
    try:
        body = response.json() or {}
    except ValueError:
        body = {}

    if response.status_code >= 400:
        message = _error_message(body, "Unable to create account.")
        logger.info(f"Sign-up rejected for {email}: {response.status_code} {message}")
        raise AuthError(message, response.status_code)

    # Newer GoTrue versions return the user at the top level.
    user_body = body.get("user") or body
    user = _user_from_body(user_body, email)
    pending = not user_body.get("email_confirmed_at")
    return SignUpResult(user=user, pending_confirmation=pending)


def sign_in(email: str, password: str) -> AppUser:
    """
    Exchange e-mail and password for the Supabase user.

    Raises:
        AuthError: 401 when the credentials are rejected
    """
    response = supabase_request(
        "POST",
        "/auth/v1/token?grant_type=password",
        json={"email": (email or "").strip(), "password": password or ""},
    )
    try:
        body = response.json() or {}
    except ValueError:
        body = {}

    if response.status_code >= 400:
        raise AuthError(_error_message(body, "Incorrect email or password."), 401)

    user_body = body.get("user") or {}
    if not user_body.get("id"):
        raise AuthError("Incorrect email or password.", 401)
    return _user_from_body(user_body, email)
