"""
Classes API Routes - CRUD for the signed-in user's weekly classes, plus the
calendar grid and dashboard statistics derived from them.

Every mutation responds with the user's full, freshly fetched class list.
"""
from datetime import date

from flask import Blueprint, jsonify, request

from classalign.services.auth_tokens import require_user
from classalign.services.classes_service import (
    ClassNotFoundError,
    ClassValidationError,
    ClassesError,
    add_class,
    delete_all_classes,
    delete_class,
    list_classes,
    update_class,
)
from classalign.services.schedule_stats import compute_schedule_stats
from classalign.services.time_grid import build_time_grid

classes_bp = Blueprint("classes", __name__)


def _class_list_response(user_id: str, status_code: int = 200):
    classes = list_classes(user_id)
    return jsonify({"classes": [c.to_dict() for c in classes]}), status_code


@classes_bp.route("/classes", methods=["GET"])
def get_classes():
    """
    List the user's classes in creation order.

    Returns:
        { "classes": [...] }
    """
    user, auth_error = require_user()
    if auth_error:
        return auth_error

    try:
        return _class_list_response(user.id)
    except ClassesError as e:
        return jsonify({"error": str(e)}), 500


@classes_bp.route("/classes", methods=["POST"])
def create_class():
    """
    Add a class.

    Request Body:
        {
            "subject": "Advanced Calculus",
            "day": "Monday",
            "time": "09:00 - 10:30",
            "room": "Room A-101",       (optional)
            "professor": "Dr. Smith",   (optional)
            "color": "#a3a3a3"          (optional)
        }

    Returns:
        201: { "classes": [...] }
        400: Missing subject/day/time or unknown day
    """
    user, auth_error = require_user()
    if auth_error:
        return auth_error

    data = request.get_json(silent=True) or {}
    try:
        add_class(user.id, data)
        return _class_list_response(user.id, 201)
    except ClassValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ClassesError as e:
        return jsonify({"error": str(e)}), 500


@classes_bp.route("/classes/<class_id>", methods=["PATCH"])
def modify_class(class_id: str):
    """
    Update one class; only the fields present in the body change.

    Returns:
        200: { "classes": [...] }
        400: Invalid field values
        404: Not found
    """
    user, auth_error = require_user()
    if auth_error:
        return auth_error

    data = request.get_json(silent=True) or {}
    try:
        update_class(user.id, class_id, data)
        return _class_list_response(user.id)
    except ClassValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ClassNotFoundError:
        return jsonify({"error": "Class not found"}), 404
    except ClassesError as e:
        return jsonify({"error": str(e)}), 500


@classes_bp.route("/classes/<class_id>", methods=["DELETE"])
def remove_class(class_id: str):
    user, auth_error = require_user()
    if auth_error:
        return auth_error

    try:
        delete_class(user.id, class_id)
        return _class_list_response(user.id)
    except ClassNotFoundError:
        return jsonify({"error": "Class not found"}), 404
    except ClassesError as e:
        return jsonify({"error": str(e)}), 500


@classes_bp.route("/classes", methods=["DELETE"])
def remove_all_classes():
    """Delete every class of the user. Returns the (empty) refreshed list."""
    user, auth_error = require_user()
    if auth_error:
        return auth_error

    try:
        delete_all_classes(user.id)
        return _class_list_response(user.id)
    except ClassesError as e:
        return jsonify({"error": str(e)}), 500


@classes_bp.route("/classes/grid", methods=["GET"])
def get_class_grid():
    """
    The weekly calendar layout.

    Returns:
        {
            "days": ["Monday", ...],
            "timeSlots": ["7:00 AM", ...],
            "cells": [{"day", "time", "class"}],
            "unplaced": [...],   classes whose time matches no row
            "hidden": [...]      classes behind an earlier class in the same cell
        }
    """
    user, auth_error = require_user()
    if auth_error:
        return auth_error

    try:
        classes = list_classes(user.id)
    except ClassesError as e:
        return jsonify({"error": str(e)}), 500

    return jsonify(build_time_grid(classes).to_dict()), 200


@classes_bp.route("/classes/stats", methods=["GET"])
def get_class_stats():
    """
    Dashboard statistics. `?date=YYYY-MM-DD` overrides "today".
    """
    user, auth_error = require_user()
    if auth_error:
        return auth_error

    today = None
    date_param = request.args.get("date", "").strip()
    if date_param:
        try:
            today = date.fromisoformat(date_param)
        except ValueError:
            return jsonify({"error": "date must be YYYY-MM-DD"}), 400

    try:
        classes = list_classes(user.id)
    except ClassesError as e:
        return jsonify({"error": str(e)}), 500

    return jsonify(compute_schedule_stats(classes, today).to_dict()), 200
