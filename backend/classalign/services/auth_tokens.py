import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import jwt as pyjwt
from flask import Response, jsonify, request

JWT_ALGORITHM = "HS256"
DEFAULT_JWT_SECRET = "dev-secret-key-change-in-production"


def _jwt_secret() -> str:
    return os.getenv("JWT_SECRET_KEY", DEFAULT_JWT_SECRET)


@dataclass
class AppUser:
    """The authenticated caller, as carried in the app token."""
    id: str
    email: str
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email or "User"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "name": self.display_name}


def issue_app_token(user: AppUser, stay_logged_in: bool = False) -> str:
    ttl = timedelta(days=30 if stay_logged_in else 7)
    payload = {
        "sub": user.id,
        "email": user.email,
        "name": user.name,
        "exp": datetime.now(timezone.utc) + ttl,
    }
    return pyjwt.encode(payload, _jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_app_token(token: str) -> Dict[str, Any]:
    return pyjwt.decode(token, _jwt_secret(), algorithms=[JWT_ALGORITHM])


def _extract_token_from_request() -> str:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    query_token = request.args.get("token", "")
    if query_token:
        return query_token
    raise pyjwt.InvalidTokenError("Missing bearer token")


def decode_app_token_from_request() -> Dict[str, Any]:
    token = _extract_token_from_request()
    return decode_app_token(token)


def current_user() -> AppUser:
    """Decode the request's token. Raises pyjwt.InvalidTokenError if it carries no user."""
    payload = decode_app_token_from_request()
    user_id = payload.get("sub", "")
    email = payload.get("email", "")
    if not user_id or not email:
        raise pyjwt.InvalidTokenError("Invalid token payload")
    return AppUser(id=user_id, email=email, name=payload.get("name"))


def require_user() -> Tuple[Optional[AppUser], Optional[Tuple[Response, int]]]:
    """
    (user, None) for a valid token, otherwise (None, 401 response).
    Routes return the response as-is when it is set.
    """
    try:
        return current_user(), None
    except pyjwt.ExpiredSignatureError:
        return None, (jsonify({"error": "Token expired"}), 401)
    except pyjwt.InvalidTokenError:
        return None, (jsonify({"error": "Invalid token"}), 401)
