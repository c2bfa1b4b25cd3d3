"""
Export Service - Print view and PDF export of the weekly grid.
The grid is rendered to HTML with the same layout as the calendar endpoint,
then WeasyPrint turns it into a landscape A4 PDF.
"""
import logging
import re
from datetime import datetime
from typing import List

from flask import render_template

from classalign.models.schedule_types import ClassEntry
from classalign.services.classes_service import is_valid_color
from classalign.services.time_grid import build_time_grid

logger = logging.getLogger(__name__)

DEFAULT_CELL_COLOR = "#e5e7eb"
PAGE_CSS = "@page { size: A4 landscape; margin: 10mm; }"


class ExportError(Exception):
    """Raised when the PDF cannot be produced."""
    pass


def cell_color(entry: ClassEntry) -> str:
    """The entry's color when it is a plain color value, else the default."""
    return entry.color.strip() if is_valid_color(entry.color) else DEFAULT_CELL_COLOR


def refuse_url_fetch(url: str, *args, **kwargs):
    """WeasyPrint url_fetcher that loads nothing; the grid has no external resources."""
    raise ValueError(f"External resources are not loaded: {url}")


def pdf_filename(owner_name: str) -> str:
    """'Jane Doe' -> 'Jane_Doe_Schedule.pdf'."""
    name = (owner_name or "").strip() or "Schedule"
    return re.sub(r"\s+", "_", name) + "_Schedule.pdf"


def render_schedule_html(classes: List[ClassEntry], owner_name: str, for_print: bool = False) -> str:
    """Render the weekly grid. Must run inside a Flask app context."""
    grid = build_time_grid(classes)
    return render_template(
        "schedule_grid.html",
        grid=grid,
        owner_name=owner_name,
        for_print=for_print,
        cell_color=cell_color,
        generated_at=datetime.now().strftime("%Y-%m-%d %H:%M"),
        page_css=PAGE_CSS,
    )


def html_to_pdf(html: str) -> bytes:
    """
    Raises:
        ExportError: if WeasyPrint is unavailable or fails to render
    """
    try:
        # Imported lazily: WeasyPrint loads native Pango/Cairo libraries on import.
        import weasyprint

        pdf_bytes = weasyprint.HTML(string=html, url_fetcher=refuse_url_fetch).write_pdf(
            stylesheets=[weasyprint.CSS(string=PAGE_CSS)]
        )
    except Exception as e:
        logger.exception("Error generating PDF")
        raise ExportError("Error generating PDF. Please try again.") from e

    logger.info(f"PDF generated successfully, size: {len(pdf_bytes)} bytes")
    return pdf_bytes


def export_schedule_pdf(classes: List[ClassEntry], owner_name: str) -> bytes:
    return html_to_pdf(render_schedule_html(classes, owner_name))
