"""
Intent Parser - Turns a chat command into a structured schedule intent.

Two strategies:
- LLM: the model is asked for a JSON object {action, subject, day, time}.
- Regex: a fixed set of phrasings ("add a Math class on Monday at 9:00",
  "move Math class to Tuesday at 10:00", "delete Math class",
  "delete all classes").

The LLM is used when an API key is configured and INTENT_PARSER is not
'regex'; any LLM failure falls back to the regex parser.
"""
import json
import logging
import os
import re
from typing import Any, Dict, List, Optional

from classalign.models.schedule_types import WEEKDAYS, ClassEntry, Intent, IntentAction, normalize_day
from classalign.services import llm_client

logger = logging.getLogger(__name__)

NOT_UNDERSTOOD = "Sorry, I couldn't understand your request."

_TIME_TOKEN = r"\d{1,2}(?::\d{2})?\s*(?:[ap]\.?m\b\.?)?"
_TIME = r"(" + _TIME_TOKEN + r"(?:\s*-\s*" + _TIME_TOKEN + r")?)"
_ADD_RE = re.compile(r"\badd (?:an? )?(.+?) class on (\w+) at " + _TIME, re.IGNORECASE)
_DELETE_ALL_RE = re.compile(
    r"\b(?:delete|remove|clear) (?:all(?: of)?(?: my)? classes|everything|my (?:whole |entire )?schedule)\b"
    r"|\b(?:delete|remove|clear) all\s*[.!]?\s*$",
    re.IGNORECASE,
)
_EDIT_RE = re.compile(r"\b(?:edit|move|change|reschedule) (?:my )?(?:the )?(.+?) class (.+)", re.IGNORECASE)
_DELETE_RE = re.compile(r"\b(?:delete|remove|drop) (?:my )?(?:the )?(.+?) class", re.IGNORECASE)
_EDIT_DAY_RE = re.compile(r"\b(to|on) (\w+)", re.IGNORECASE)
_EDIT_TIME_RE = re.compile(r"\b(?:at|to) " + _TIME, re.IGNORECASE)

INTENT_SYSTEM_PROMPT = f"""
You convert a student's request about their weekly class schedule into JSON.
Respond with ONLY a JSON object with these keys:
  "action": one of "add", "edit", "delete", "delete_all"
  "subject": the class name, or null
  "day": one of {", ".join(WEEKDAYS)}, or null
  "time": "HH:MM - HH:MM" or "HH:MM" in 24-hour time, or null
For "edit", "day" and "time" are the NEW values (null if unchanged).
If the request is not one of these actions, respond with {{"error": "<short reason>"}}.
"""


def _clean_time(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    text = raw.strip().rstrip(".").strip()
    return text or None


def parse_intent_regex(prompt: str) -> Intent:
    """Match the supported phrasings. Never raises; unknown text yields an error intent."""
    text = (prompt or "").strip()

    match = _ADD_RE.search(text)
    if match:
        day = normalize_day(match.group(2))
        if day is None:
            return Intent.failed(f"Unknown day: {match.group(2)}")
        return Intent(
            action=IntentAction.ADD,
            subject=match.group(1).strip(),
            day=day,
            time=_clean_time(match.group(3)),
        )

    if _DELETE_ALL_RE.search(text):
        return Intent(action=IntentAction.DELETE_ALL)

    match = _EDIT_RE.search(text)
    if match:
        rest = match.group(2)
        # "on Monday to Tuesday": the day after "to" is the new one.
        days = {}
        for preposition, candidate in _EDIT_DAY_RE.findall(rest):
            normalized = normalize_day(candidate)
            if normalized:
                days.setdefault(preposition.lower(), normalized)
        day = days.get("to") or days.get("on")
        time_match = _EDIT_TIME_RE.search(rest)
        new_time = _clean_time(time_match.group(1)) if time_match else None
        if day is None and new_time is None:
            return Intent.failed("Tell me the new day or time for the class.")
        return Intent(action=IntentAction.EDIT, subject=match.group(1).strip(), day=day, time=new_time)

    match = _DELETE_RE.search(text)
    if match:
        return Intent(action=IntentAction.DELETE, subject=match.group(1).strip())

    return Intent.failed(NOT_UNDERSTOOD)


def intent_from_payload(data: Dict[str, Any]) -> Intent:
    """Validate a model-produced dict into an Intent."""
    if not isinstance(data, dict):
        return Intent.failed(NOT_UNDERSTOOD)
    if data.get("error"):
        return Intent.failed(str(data["error"]))

    try:
        action = IntentAction(str(data.get("action") or "").strip().lower())
    except ValueError:
        return Intent.failed(NOT_UNDERSTOOD)

    subject = (data.get("subject") or "").strip() or None
    day = normalize_day(data.get("day")) if data.get("day") else None
    time = _clean_time(data.get("time"))

    if action in (IntentAction.ADD, IntentAction.EDIT, IntentAction.DELETE) and not subject:
        return Intent.failed("Which class do you mean?")
    if action == IntentAction.ADD and (day is None or time is None):
        return Intent.failed("Please give a weekday and a time for the new class.")
    if action == IntentAction.EDIT and day is None and time is None:
        return Intent.failed("Tell me the new day or time for the class.")

    return Intent(action=action, subject=subject, day=day, time=time)


def parse_intent_llm(prompt: str, schedule: Optional[List[ClassEntry]] = None) -> Intent:
    """
    Ask the model for the intent.

    Raises:
        RuntimeError: if no API key is configured
        openai.OpenAIError / json.JSONDecodeError: if the call or its output fails
    """
    client = llm_client.get_client()
    if client is None:
        raise RuntimeError("LLM intent parsing is not configured")

    user_content = prompt
    if schedule:
        listing = "\n".join(f"- {c.subject}: {c.day} {c.time}" for c in schedule)
        user_content = f"{prompt}\n\nCurrent classes:\n{listing}"

    response = client.chat.completions.create(
        model=llm_client.llm_model(),
        response_format={"type": "json_object"},
        temperature=0,
        messages=[
            {"role": "system", "content": INTENT_SYSTEM_PROMPT},
            {"role": "user", "content": user_content},
        ],
    )
    content = response.choices[0].message.content or ""
    return intent_from_payload(json.loads(llm_client.clean_json_string(content)))


def _use_llm() -> bool:
    mode = os.getenv("INTENT_PARSER", "").strip().lower()
    if mode == "regex":
        return False
    return bool(llm_client.llm_api_key())


def parse_intent(prompt: str, schedule: Optional[List[ClassEntry]] = None) -> Intent:
    """Parse a schedule command, preferring the LLM and falling back to regex."""
    if _use_llm():
        try:
            return parse_intent_llm(prompt, schedule)
        except Exception as e:
            logger.warning(f"LLM intent parsing failed, falling back to regex: {e}")
    return parse_intent_regex(prompt)
