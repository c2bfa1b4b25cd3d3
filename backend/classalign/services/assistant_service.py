"""
Assistant Service - Free-form schedule advice from the language model.
Stateless: each question is sent on its own, optionally with the user's
current schedule attached.
"""
import json
import logging
from typing import Any, List, Optional

from classalign.services import llm_client

logger = logging.getLogger(__name__)

NO_SUGGESTION = "No suggestion available."

SYSTEM_PROMPT = """
You are an expert class schedule generator and assistant.
- When asked, create weekly class schedules for students, ensuring no time or room conflicts.
- Distribute subjects efficiently across the week.
- If the user asks for a schedule (e.g., "Make me a schedule for 5 subjects"), generate a realistic timetable.
- If the user provides a current schedule, analyze and suggest improvements.
- Always respond in clear, organized text or tables.
"""


class AssistantError(Exception):
    """Raised when the language model cannot be reached or is not configured."""
    pass


def build_user_message(prompt: str, schedule: Optional[List[Any]] = None) -> str:
    if not schedule:
        return prompt
    return f"{prompt}\n\nHere is my current schedule:\n{json.dumps(schedule, indent=2)}"


def ask_ai_scheduler(prompt: str, schedule: Optional[List[Any]] = None) -> str:
    """
    Ask the model for schedule advice.

    Raises:
        AssistantError: if no API key is configured or the request fails
    """
    client = llm_client.get_client()
    if client is None:
        raise AssistantError("AI assistant is not configured")

    try:
        response = client.chat.completions.create(
            model=llm_client.llm_model(),
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_message(prompt, schedule)},
            ],
        )
    except Exception as e:
        logger.exception("AI error")
        raise AssistantError("AI failed to respond") from e

    choices = getattr(response, "choices", None) or []
    if not choices:
        return NO_SUGGESTION
    return (choices[0].message.content or "").strip() or NO_SUGGESTION
