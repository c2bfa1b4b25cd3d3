import os
import re
from typing import Dict, Optional

from openai import OpenAI

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "mistralai/mistral-7b-instruct:free"


def llm_api_key() -> Optional[str]:
    return os.getenv("OPENAI_API_KEY") or os.getenv("OPENROUTER_API_KEY")


def llm_model() -> str:
    return os.getenv("OPENAI_MODEL", DEFAULT_MODEL)


def llm_headers() -> Dict[str, str]:
    """OpenRouter attribution headers; other OpenAI-compatible hosts ignore them."""
    return {
        "HTTP-Referer": os.getenv("APP_URL", "http://localhost:3000"),
        "X-Title": "ClassAlign",
    }


def get_client() -> Optional[OpenAI]:
    """An OpenAI-compatible client, or None when no API key is configured."""
    api_key = llm_api_key()
    if not api_key:
        return None
    return OpenAI(
        api_key=api_key,
        base_url=os.getenv("OPENAI_BASE_URL") or DEFAULT_BASE_URL,
        default_headers=llm_headers(),
    )


def clean_json_string(s: str) -> str:
    """
    Removes markdown code blocks and other noise from a JSON string.
    """
    s = re.sub(r'```json\s*', '', s, flags=re.IGNORECASE)
    s = re.sub(r'```\s*', '', s)
    return s.strip()
