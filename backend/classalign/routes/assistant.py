from flask import Blueprint, jsonify, request

from classalign.services.assistant_service import AssistantError, ask_ai_scheduler
from classalign.services.auth_tokens import require_user
from classalign.services.classes_service import ClassesError, list_classes
from classalign.services.intent_parser import parse_intent
from classalign.services.schedule_actions import apply_intent

assistant_bp = Blueprint("assistant", __name__)


@assistant_bp.route("/ai-schedule", methods=["POST"])
def ai_schedule():
    """
    Free-form scheduling advice.

    Request Body:
        { "prompt": "Make me a schedule for 5 subjects", "schedule": [...] (optional) }

    Returns:
        200: { "reply": "..." }
        500: { "message": "AI failed to respond" }
    """
    data = request.get_json(silent=True) or {}
    prompt = str(data.get("prompt") or "").strip()
    schedule = data.get("schedule")

    if not prompt:
        return jsonify({"message": "Prompt is required"}), 400
    if schedule is not None and not isinstance(schedule, list):
        return jsonify({"message": "schedule must be an array"}), 400

    try:
        reply = ask_ai_scheduler(prompt, schedule)
    except AssistantError:
        return jsonify({"message": "AI failed to respond"}), 500

    return jsonify({"reply": reply}), 200


@assistant_bp.route("/ai-schedule-action", methods=["POST"])
def ai_schedule_action():
    """
    Apply a natural-language command ("add a Math class on Monday at 09:00")
    to the signed-in user's classes.

    Returns:
        200: { "reply": "...", "intent": {...}, "schedule": [...] }
    """
    user, auth_error = require_user()
    if auth_error:
        return auth_error

    data = request.get_json(silent=True) or {}
    prompt = str(data.get("prompt") or "").strip()
    if not prompt:
        return jsonify({"error": "Prompt is required"}), 400

    try:
        intent = parse_intent(prompt, list_classes(user.id))
        result = apply_intent(user.id, intent)
    except ClassesError as e:
        return jsonify({"error": str(e)}), 500

    return jsonify(result.to_dict()), 200
