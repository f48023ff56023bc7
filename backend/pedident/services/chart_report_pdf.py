from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from io import BytesIO
from textwrap import wrap
from typing import Any

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from pedident.services.dental_analysis import (
    AnalysisResult,
    analyze_dental_chart,
    caries_risk_level,
)
from pedident.services.dental_notation import (
    DISPLAY_ROWS,
    TOTAL_TEETH,
    Dentition,
    ToothState,
    ToothSurface,
)
from pedident.services.tooth_record import ToothRecord, parse_tooth_states

REPORT_TITLE = "Pedident Dental Charting System"

STATE_COLORS = {
    ToothState.sound: colors.white,
    ToothState.missing: colors.HexColor("#6B7280"),
    ToothState.carious: colors.HexColor("#F59E0B"),
    ToothState.prosthesis: colors.HexColor("#3B82F6"),
}

# Offsets inside a tooth box, in box-width/box-height fractions: (x, y, w, h).
SURFACE_MARKERS = {
    ToothSurface.occlusal: (0.4, 0.75, 0.2, 0.17),
    ToothSurface.mesial: (0.1, 0.42, 0.2, 0.17),
    ToothSurface.distal: (0.7, 0.42, 0.2, 0.17),
    ToothSurface.lingual: (0.4, 0.08, 0.2, 0.17),
    ToothSurface.buccal: (0.35, 0.33, 0.3, 0.34),
}

ROW_LABELS = (
    (Dentition.deciduous, "upper", "Upper Deciduous"),
    (Dentition.deciduous, "lower", "Lower Deciduous"),
    (Dentition.permanent, "upper", "Upper Permanent"),
    (Dentition.permanent, "lower", "Lower Permanent"),
)


@dataclass(frozen=True)
class ReportPatient:
    name: str
    ic_number: str
    location: str | None = None
    dentist: str | None = None


def report_filename(patient: ReportPatient) -> str:
    name = re.sub(r"\s+", "_", patient.name.strip())
    return f"{patient.ic_number}_{name}.pdf"


def build_summary_lines(analysis: AnalysisResult) -> list[str]:
    counts = analysis.state_counts
    total = analysis.summary.total_teeth_charted
    carious_pct = counts.get(ToothState.carious.value, 0) / (total or 1) * 100
    return [
        f"Total teeth charted: {total}",
        f"Sound teeth: {counts.get(ToothState.sound.value, 0)}",
        f"Missing teeth: {counts.get(ToothState.missing.value, 0)}",
        f"Carious teeth: {counts.get(ToothState.carious.value, 0)} ({carious_pct:.1f}%)",
        f"Prosthetic teeth: {counts.get(ToothState.prosthesis.value, 0)}",
        f"Completion: {total / TOTAL_TEETH * 100:.1f}%",
        f"Risk Level: {caries_risk_level(analysis)}",
    ]


def build_analysis_lines(analysis: AnalysisResult) -> list[str]:
    dmft = analysis.dmft
    dmfs = analysis.dmfs
    summary = analysis.summary
    lines = [
        f"DMFT Index: D={dmft.decayed}, M={dmft.missing}, F={dmft.filled}, Total={dmft.total}",
        f"DMFS Index: D={dmfs.decayed}, M={dmfs.missing}, F={dmfs.filled}, Total={dmfs.total}",
        f"Total Teeth Charted: {summary.total_teeth_charted}",
        f"Sound Teeth: {summary.sound_teeth}",
        f"Affected Teeth: {summary.affected_teeth}",
        f"Completion: {summary.completion_percentage:.1f}%",
    ]
    if analysis.patterns:
        lines.append("Patterns:")
        lines.extend(f"- {pattern}" for pattern in analysis.patterns)
    if analysis.recommendations:
        lines.append("Recommendations:")
        lines.extend(f"- {item}" for item in analysis.recommendations)
    return lines


def _draw_header(pdf: canvas.Canvas, title: str, top: float) -> None:
    width, _height = A4
    pdf.setFont("Helvetica-Bold", 18)
    pdf.drawCentredString(width / 2, top, title)
    pdf.setLineWidth(0.5)
    pdf.line(20 * mm, top - 5 * mm, width - 20 * mm, top - 5 * mm)


def _draw_patient_block(pdf: canvas.Canvas, patient: ReportPatient, top: float, today: date) -> None:
    pdf.setLineWidth(0.5)
    pdf.rect(20 * mm, top - 40 * mm, 85 * mm, 40 * mm)
    pdf.setFont("Helvetica", 11)
    lines = [
        f"Patient Name : {patient.name}",
        f"IC Number    : {patient.ic_number}",
        f"Location     : {patient.location or '-'}",
        f"Dentist      : {patient.dentist or '-'}",
        f"Date         : {today.isoformat()}",
    ]
    y = top - 10 * mm
    for line in lines:
        pdf.drawString(25 * mm, y, line)
        y -= 7 * mm


def _draw_legend(pdf: canvas.Canvas, x: float, top: float) -> None:
    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawString(x, top, "Legend:")
    pdf.setFont("Helvetica", 9)
    y = top - 10 * mm
    for state in ToothState:
        pdf.setFillColor(STATE_COLORS[state])
        pdf.setStrokeColor(colors.black)
        pdf.rect(x, y, 6 * mm, 5 * mm, fill=1, stroke=1)
        pdf.setFillColor(colors.black)
        pdf.drawString(x + 10 * mm, y + 1 * mm, state.value.title())
        y -= 10 * mm


def _draw_summary(pdf: canvas.Canvas, lines: list[str], x: float, top: float) -> None:
    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawString(x, top, "Chart Summary:")
    pdf.setFont("Helvetica", 9)
    y = top - 10 * mm
    for line in lines:
        pdf.drawString(x, y, line)
        y -= 6 * mm


def _draw_tooth(
    pdf: canvas.Canvas, tooth: str, record: ToothRecord | None, x: float, y: float, w: float, h: float
) -> None:
    pdf.setFillColor(colors.black)
    pdf.setFont("Helvetica", 7)
    pdf.drawString(x + 1, y + h + 2, tooth)
    fill = STATE_COLORS[record.state] if record else colors.white
    pdf.setFillColor(fill)
    pdf.setStrokeColor(colors.black)
    pdf.rect(x, y, w, h, fill=1, stroke=1)
    if record is None or not record.surfaces:
        return
    for surface, state in record.surfaces.items():
        dx, dy, dw, dh = SURFACE_MARKERS[surface]
        pdf.setFillColor(STATE_COLORS[state])
        pdf.rect(x + dx * w, y + dy * h, dw * w, dh * h, fill=1, stroke=0)


def _draw_chart(pdf: canvas.Canvas, records: Mapping[str, ToothRecord], top: float) -> None:
    width, _height = A4
    box_w, box_h, gap = 7 * mm, 8 * mm, 3 * mm
    pdf.setFillColor(colors.black)
    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawCentredString(width / 2, top, "DENTAL CHART")
    y = top - 10 * mm
    current_dentition = None
    for dentition, arch, label in ROW_LABELS:
        if dentition != current_dentition:
            pdf.setFillColor(colors.black)
            pdf.setFont("Helvetica", 11)
            heading = (
                "Deciduous Teeth (Baby Teeth)" if dentition == Dentition.deciduous else "Permanent Teeth"
            )
            pdf.drawString(20 * mm, y, heading)
            y -= 8 * mm
            current_dentition = dentition
        pdf.setFillColor(colors.black)
        pdf.setFont("Helvetica", 9)
        pdf.drawString(20 * mm, y, label)
        row_y = y - 14 * mm
        x = 35 * mm
        for tooth in DISPLAY_ROWS[dentition][arch]:
            _draw_tooth(pdf, tooth, records.get(tooth), x, row_y, box_w, box_h)
            x += box_w + gap
        y = row_y - 8 * mm


def _draw_analysis_page(pdf: canvas.Canvas, analysis: AnalysisResult) -> None:
    width, height = A4
    left = 25 * mm
    top = height - 25 * mm
    wrapped: list[str] = []
    for line in build_analysis_lines(analysis):
        wrapped.extend(wrap(line, width=95, subsequent_indent="  ") or [""])

    line_height = 7 * mm
    lines_per_page = int((top - 25 * mm) // line_height) - 2
    pages = [wrapped[i : i + lines_per_page] for i in range(0, len(wrapped), lines_per_page)] or [[]]
    for page_index, page_lines in enumerate(pages):
        if page_index:
            pdf.showPage()
        box_height = len(page_lines) * line_height + 20 * mm
        pdf.setFillColor(colors.HexColor("#F0F0F0"))
        pdf.setStrokeColor(colors.HexColor("#0000C8"))
        pdf.rect(15 * mm, top - box_height + 10 * mm, width - 30 * mm, box_height, fill=1, stroke=1)
        pdf.setFont("Helvetica-Bold", 14)
        pdf.setFillColor(colors.HexColor("#000080"))
        title = "Dental Analysis" if page_index == 0 else "Dental Analysis (continued)"
        pdf.drawCentredString(width / 2, top, title)
        pdf.setFont("Helvetica", 10)
        pdf.setFillColor(colors.black)
        y = top - 10 * mm
        for line in page_lines:
            pdf.drawString(left, y, line)
            y -= line_height


def build_chart_report_pdf(
    patient: ReportPatient,
    tooth_states: Mapping[str, Any],
    analysis: AnalysisResult | None = None,
    *,
    title: str = REPORT_TITLE,
    today: date | None = None,
) -> bytes:
    records = parse_tooth_states(tooth_states)
    analysis = analysis or analyze_dental_chart(records)
    today = today or date.today()

    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(f"{title} - {patient.name}")
    _width, height = A4
    top = height - 20 * mm

    _draw_header(pdf, title, top)
    _draw_patient_block(pdf, patient, top - 10 * mm, today)
    _draw_legend(pdf, 120 * mm, top - 15 * mm)
    _draw_summary(pdf, build_summary_lines(analysis), 155 * mm, top - 15 * mm)
    _draw_chart(pdf, records, top - 70 * mm)

    pdf.showPage()
    _draw_analysis_page(pdf, analysis)
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
