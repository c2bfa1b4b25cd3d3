"""
Export API Routes - PDF download and a print-only page of the weekly grid.
Both accept the app token as `?token=` so they can be opened directly in a
browser tab.
"""
import io

from flask import Blueprint, Response, jsonify, send_file

from classalign.services.auth_tokens import require_user
from classalign.services.classes_service import ClassesError, list_classes
from classalign.services.export_service import (
    ExportError,
    export_schedule_pdf,
    pdf_filename,
    render_schedule_html,
)

export_bp = Blueprint("export", __name__)


@export_bp.route("/export/pdf", methods=["GET"])
def export_pdf():
    user, auth_error = require_user()
    if auth_error:
        return auth_error

    try:
        classes = list_classes(user.id)
        pdf_bytes = export_schedule_pdf(classes, user.display_name)
    except ClassesError as e:
        return jsonify({"error": str(e)}), 500
    except ExportError as e:
        return jsonify({"error": str(e)}), 500

    return send_file(
        io.BytesIO(pdf_bytes),
        as_attachment=True,
        download_name=pdf_filename(user.display_name),
        mimetype="application/pdf",
    )


@export_bp.route("/export/print", methods=["GET"])
def export_print():
    user, auth_error = require_user()
    if auth_error:
        return auth_error

    try:
        classes = list_classes(user.id)
    except ClassesError as e:
        return jsonify({"error": str(e)}), 500

    html = render_schedule_html(classes, user.display_name, for_print=True)
    return Response(html, mimetype="text/html")
