from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import Iterable

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from hazard_watch.models import HazardRecord


def build_hazard_pdf(records: Iterable[HazardRecord]) -> bytes:
    """Render a one-box-per-hazard summary for responders."""
    buff = io.BytesIO()
    pdf = canvas.Canvas(buff, pagesize=letter)
    width, height = letter

    y = height - 40
    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawString(40, y, "Active Hazard Reports Summary")
    y -= 18
    pdf.setFont("Helvetica", 10)
    pdf.drawString(40, y, f"Generated: {datetime.now(timezone.utc).isoformat(timespec='seconds')}")
    y -= 20

    for record in records:
        if y < 100:
            pdf.showPage()
            y = height - 40

        pdf.setStrokeColor(colors.darkred)
        pdf.rect(35, y - 65, width - 70, 60, stroke=1, fill=0)
        pdf.setFont("Helvetica-Bold", 10)
        pdf.drawString(45, y - 15, f"Hazard #{record.id} | {record.category.value} ({record.category.label})")
        pdf.setFont("Helvetica", 9)
        pdf.drawString(
            45,
            y - 30,
            f"Location: {record.location.latitude:.6f}, {record.location.longitude:.6f}"
            f"  |  Reporter: {record.reporter_id}",
        )
        pdf.drawString(45, y - 43, f"Reported: {record.created_at.isoformat(timespec='seconds')}")
        pdf.drawString(45, y - 56, f"Details: {(record.description or '-')[:100]}")
        y -= 75

    pdf.save()
    buff.seek(0)
    return buff.read()
