import logging
import os
import time
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout

logger = logging.getLogger(__name__)


class SupabaseError(Exception):
    """Base exception for Supabase-related errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class SupabaseConnectionError(SupabaseError, ConnectionError):
    """Raised when Supabase cannot be reached after all retries."""
    pass


class SupabaseTimeoutError(SupabaseError, Timeout):
    """Raised when every attempt to reach Supabase timed out."""
    pass


class SupabaseServerError(SupabaseError):
    """Raised when Supabase keeps answering with a 5xx status."""

    def __init__(self, message: str, status_code: int, original_error: Optional[Exception] = None):
        super().__init__(message, original_error)
        self.status_code = status_code


class SupabaseClientError(SupabaseError):
    """Raised when Supabase rejects a request with a 4xx status."""

    def __init__(self, message: str, status_code: int, response_body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class SupabaseConfigError(SupabaseError, RuntimeError):
    """Raised when the Supabase URL or keys are missing."""
    pass


def _get_env(key: str, default: str = "") -> str:
    """Get environment variable, stripping whitespace."""
    return (os.getenv(key) or default).strip()


SUPABASE_URL = _get_env("SUPABASE_URL").rstrip("/")
SUPABASE_ANON_KEY = _get_env("SUPABASE_ANON_KEY")
SUPABASE_SERVICE_KEY = _get_env("SUPABASE_SERVICE_ROLE_KEY") or _get_env("SUPABASE_ACCESS_TOKEN")

DEFAULT_TIMEOUT = int(_get_env("SUPABASE_TIMEOUT", "60"))
MAX_RETRIES = int(_get_env("SUPABASE_MAX_RETRIES", "3"))
INITIAL_BACKOFF = float(_get_env("SUPABASE_INITIAL_BACKOFF", "1.0"))

CLASSES_TABLE = "classes"


def supabase_configured() -> bool:
    return bool(SUPABASE_URL and SUPABASE_ANON_KEY and SUPABASE_SERVICE_KEY)


def ensure_supabase_env() -> None:
    if supabase_configured():
        return
    missing = []
    if not SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not SUPABASE_ANON_KEY:
        missing.append("SUPABASE_ANON_KEY")
    if not SUPABASE_SERVICE_KEY:
        missing.append("SUPABASE_SERVICE_ROLE_KEY or SUPABASE_ACCESS_TOKEN")
    raise SupabaseConfigError(f"Missing Supabase configuration: {', '.join(missing)}")


def supabase_headers() -> Dict[str, str]:
    """Default headers; every request is made with the service key."""
    return {
        "apikey": SUPABASE_ANON_KEY or "",
        "Authorization": f"Bearer {SUPABASE_SERVICE_KEY}",
        "Content-Type": "application/json",
    }


def table_path(table: str, order: Optional[str] = None, select: Optional[str] = None, **filters: Any) -> str:
    """
    Build a PostgREST path such as
    /rest/v1/classes?user_id=eq.<id>&select=*&order=created_at.asc

    Filter values are URL-encoded and compared with `eq`.
    """
    params = [f"{column}=eq.{quote(str(value), safe='')}" for column, value in filters.items()]
    if select:
        params.append(f"select={select}")
    if order:
        params.append(f"order={order}")
    query = "&".join(params)
    return f"/rest/v1/{table}" + (f"?{query}" if query else "")


def _backoff(attempt: int) -> float:
    return INITIAL_BACKOFF * (2 ** attempt)


def supabase_request(
    method: str,
    path: str,
    timeout: Optional[int] = None,
    max_retries: Optional[int] = None,
    raise_on_error: bool = False,
    **kwargs: Any
) -> requests.Response:
    """
    Make a request to Supabase, retrying connection errors, timeouts and 5xx
    responses with exponential backoff.

    Args:
        method: HTTP method (GET, POST, PATCH, DELETE)
        path: API path (e.g., /rest/v1/classes?user_id=eq.<id>)
        timeout: Request timeout in seconds (default: SUPABASE_TIMEOUT or 60)
        max_retries: Retries for transient errors (default: SUPABASE_MAX_RETRIES or 3)
        raise_on_error: Raise for 4xx/5xx instead of returning the response
        **kwargs: Passed through to requests.request()

    Raises:
        SupabaseConfigError: If Supabase configuration is missing
        SupabaseConnectionError: If unable to connect after retries
        SupabaseTimeoutError: If every attempt timed out
        SupabaseServerError: 5xx after retries (only with raise_on_error)
        SupabaseClientError: 4xx (only with raise_on_error)
        SupabaseError: For other request failures
    """
    ensure_supabase_env()

    url = f"{SUPABASE_URL}{path}"
    headers = {**supabase_headers(), **kwargs.pop("headers", {})}
    request_timeout = timeout if timeout is not None else DEFAULT_TIMEOUT
    retries = max_retries if max_retries is not None else MAX_RETRIES
    verb = method.upper()

    for attempt in range(retries + 1):
        is_last = attempt == retries
        try:
            logger.debug(f"Supabase request attempt {attempt + 1}/{retries + 1}: {verb} {path}")
            response = requests.request(
                method=verb,
                url=url,
                headers=headers,
                timeout=request_timeout,
                **kwargs,
            )
        except ConnectionError as e:
            if is_last:
                logger.error(f"Failed to connect to Supabase after {retries + 1} attempts: {e}")
                raise SupabaseConnectionError(
                    f"Failed to connect to Supabase after {retries + 1} attempts",
                    original_error=e,
                ) from e
            logger.warning(f"Connection error to Supabase, retrying in {_backoff(attempt):.1f}s: {e}")
            time.sleep(_backoff(attempt))
            continue
        except Timeout as e:
            if is_last:
                logger.error(f"Supabase request timed out after {retries + 1} attempts: {e}")
                raise SupabaseTimeoutError(
                    f"Supabase request timed out after {retries + 1} attempts",
                    original_error=e,
                ) from e
            logger.warning(f"Supabase request timed out, retrying in {_backoff(attempt):.1f}s: {e}")
            time.sleep(_backoff(attempt))
            continue
        except RequestException as e:
            logger.error(f"Unexpected request error to Supabase: {e}")
            raise SupabaseError(f"Unexpected error making request to Supabase: {e}", original_error=e) from e

        status = response.status_code
        if 500 <= status < 600:
            if not is_last:
                logger.warning(
                    f"Supabase returned {status}, retrying in {_backoff(attempt):.1f}s "
                    f"(attempt {attempt + 1}/{retries + 1})"
                )
                time.sleep(_backoff(attempt))
                continue
            logger.error(f"Supabase request failed after {retries + 1} attempts: {verb} {path} returned {status}")
            if raise_on_error:
                raise SupabaseServerError(f"Supabase server error: {status}", status_code=status)
            return response

        if 400 <= status < 500:
            logger.debug(f"Supabase client response: {verb} {path} returned {status}")
            if raise_on_error:
                raise SupabaseClientError(
                    f"Supabase client error: {status}",
                    status_code=status,
                    response_body=response.text,
                )
            return response

        logger.debug(f"Supabase request successful: {verb} {path}")
        return response

    raise SupabaseError("Supabase request failed unexpectedly")


def check_connection(timeout: Optional[int] = None) -> bool:
    """Return True if the Supabase REST endpoint answers without a 5xx."""
    if not supabase_configured():
        logger.warning("Supabase is not configured, cannot check connection")
        return False

    try:
        response = requests.get(
            f"{SUPABASE_URL}/rest/v1/",
            headers=supabase_headers(),
            timeout=timeout if timeout is not None else 10,
        )
    except RequestException as e:
        logger.warning(f"Supabase connection check failed: {e}")
        return False

    if response.status_code >= 500:
        logger.warning(f"Supabase connection check failed with status {response.status_code}")
        return False
    return True
