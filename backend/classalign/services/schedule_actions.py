"""
Schedule Actions - Apply a parsed chat intent to the user's classes.
Every action ends with a full re-fetch of the user's class list.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from classalign.models.schedule_types import ClassEntry, Intent, IntentAction
from classalign.services import classes_service
from classalign.services.classes_service import ClassesError
from classalign.services.intent_parser import NOT_UNDERSTOOD

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    reply: str
    intent: Intent
    schedule: List[ClassEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reply": self.reply,
            "intent": self.intent.to_dict(),
            "schedule": [c.to_dict() for c in self.schedule],
        }


def _add(user_id: str, intent: Intent) -> str:
    try:
        classes_service.add_class(user_id, {"subject": intent.subject, "day": intent.day, "time": intent.time})
    except ClassesError as e:
        logger.info(f"Chat add failed for user {user_id}: {e}")
        return "Failed to add class."
    return f"Added {intent.subject} class on {intent.day} at {intent.time}."


def _edit(user_id: str, intent: Intent) -> str:
    matches = classes_service.find_classes_by_subject(user_id, intent.subject)
    if not matches:
        return f"I couldn't find a {intent.subject} class."

    changes = {}
    if intent.day:
        changes["day"] = intent.day
    if intent.time:
        changes["time"] = intent.time
    target = matches[0]
    try:
        updated = classes_service.update_class(user_id, target.id, changes)
    except ClassesError as e:
        logger.info(f"Chat edit failed for class {target.id}: {e}")
        return "Failed to update class."
    return f"Updated {updated.subject} class to {updated.day} at {updated.time}."


def _delete(user_id: str, intent: Intent) -> str:
    try:
        removed = classes_service.delete_classes_by_subject(user_id, intent.subject)
    except ClassesError as e:
        logger.info(f"Chat delete failed for user {user_id}: {e}")
        return "Failed to delete class."
    if not removed:
        return f"I couldn't find a {intent.subject} class."
    return f"Deleted {intent.subject} class."


def _delete_all(user_id: str, intent: Intent) -> str:
    try:
        removed = classes_service.delete_all_classes(user_id)
    except ClassesError as e:
        logger.info(f"Chat delete-all failed for user {user_id}: {e}")
        return "Failed to delete all classes."
    return f"Deleted all classes ({removed} removed)."


_HANDLERS = {
    IntentAction.ADD: _add,
    IntentAction.EDIT: _edit,
    IntentAction.DELETE: _delete,
    IntentAction.DELETE_ALL: _delete_all,
}


def apply_intent(user_id: str, intent: Intent) -> ActionResult:
    """
    Run the intent against Supabase and return the reply with the refreshed schedule.

    Raises:
        ClassesError: if the refreshed class list cannot be loaded
    """
    if intent.is_error:
        reply = NOT_UNDERSTOOD if intent.error in (None, NOT_UNDERSTOOD) else f"{NOT_UNDERSTOOD} {intent.error}"
    else:
        reply = _HANDLERS[intent.action](user_id, intent)

    return ActionResult(reply=reply, intent=intent, schedule=classes_service.list_classes(user_id))
