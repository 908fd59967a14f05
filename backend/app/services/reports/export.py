"""
export.py — Valuation Report Export (CSV / JSON / PDF)

Purpose:
- Render a company plus its current valuation into downloadable formats.
    * CSV  → one header row + one data row (spreadsheet import)
    * JSON → company profile + valuation figures + export date
    * PDF  → reportlab report: summary, range, methodologies, risk scores,
             red flags, recommendations, buyer matches

This module does NOT:
- Look anything up (the API layer passes the records in).
- Decide HTTP status codes.
"""

from __future__ import annotations

import csv
import io
import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.core.logging import get_logger
from app.schemas.records import BuyerMatchRecord, CompanyRecord, RecommendationRecord, ValuationRecord

logger = get_logger(__name__)

CSV_HEADERS = [
    "Company Name",
    "Sector",
    "Location",
    "Years in Business",
    "Valuation (Min)",
    "Valuation (Median)",
    "Valuation (Max)",
    "EBITDA Multiple",
    "Discounted Cash Flow",
    "Revenue Multiple",
    "Asset Based",
    "Risk Score",
]

BRAND_COLOR = colors.HexColor("#1F3A5F")


def export_filename(company: CompanyRecord, extension: str) -> str:
    """e.g. 'Example_Business_valuation_data.csv'"""
    slug = re.sub(r"\s+", "_", company.name)
    return f"{slug}_valuation_data.{extension}"


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return format(value, "f")
    return value


# -----------------------------------------------------------------------------
# CSV / JSON
# -----------------------------------------------------------------------------

def valuation_to_csv(company: CompanyRecord, valuation: ValuationRecord) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    writer.writerow([
        company.name,
        company.sector,
        company.location,
        company.years_in_business,
        _plain(valuation.valuation_min),
        _plain(valuation.valuation_median),
        _plain(valuation.valuation_max),
        _plain(valuation.ebitda_multiple),
        _plain(valuation.discounted_cash_flow),
        _plain(valuation.revenue_multiple),
        _plain(valuation.asset_based),
        valuation.risk_score,
    ])
    return buffer.getvalue()


def valuation_to_dict(company: CompanyRecord, valuation: ValuationRecord) -> Dict[str, Any]:
    return {
        "company": {
            "name": company.name,
            "sector": company.sector,
            "location": company.location,
            "yearsInBusiness": company.years_in_business,
            "goal": company.goal,
        },
        "valuation": {
            "min": _plain(valuation.valuation_min),
            "median": _plain(valuation.valuation_median),
            "max": _plain(valuation.valuation_max),
            "ebitdaMultiple": _plain(valuation.ebitda_multiple),
            "discountedCashFlow": _plain(valuation.discounted_cash_flow),
            "revenueMultiple": _plain(valuation.revenue_multiple),
            "assetBased": _plain(valuation.asset_based),
            "riskScore": valuation.risk_score,
            "financialHealthScore": valuation.financial_health_score,
            "marketPositionScore": valuation.market_position_score,
            "operationalEfficiencyScore": valuation.operational_efficiency_score,
            "debtStructureScore": valuation.debt_structure_score,
            "redFlags": list(valuation.red_flags),
        },
        "exportDate": datetime.now(timezone.utc).isoformat(),
    }


# -----------------------------------------------------------------------------
# PDF
# -----------------------------------------------------------------------------

def _money(value: Decimal) -> str:
    return f"${value:,.0f}"


def _table(rows: List[List[Any]], col_widths: List[float]) -> Table:
    table = Table(rows, colWidths=col_widths)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), BRAND_COLOR),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F3F6FA")]),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return table


def valuation_to_pdf(
    company: CompanyRecord,
    valuation: ValuationRecord,
    recommendations: Optional[List[RecommendationRecord]] = None,
    buyer_matches: Optional[List[BuyerMatchRecord]] = None,
) -> bytes:
    """Render the valuation report; returns the PDF bytes."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=letter,
        leftMargin=0.75 * inch,
        rightMargin=0.75 * inch,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
        title=f"{company.name} Valuation Report",
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("ReportTitle", parent=styles["Title"], textColor=BRAND_COLOR)
    heading = ParagraphStyle("Section", parent=styles["Heading2"], textColor=BRAND_COLOR, spaceBefore=12)
    body = styles["BodyText"]

    story: List[Any] = [
        Paragraph(f"{escape(company.name)} — Business Valuation Report", title_style),
        Paragraph(
            escape(f"{company.sector} · {company.location} · {company.years_in_business} years in business"),
            body,
        ),
        Paragraph(f"Generated {datetime.now(timezone.utc):%Y-%m-%d %H:%M} UTC", body),
        Spacer(1, 0.2 * inch),
    ]

    # Valuation range
    story.append(Paragraph("Valuation Range", heading))
    story.append(_table(
        [
            ["Minimum", "Median", "Maximum"],
            [_money(valuation.valuation_min), _money(valuation.valuation_median), _money(valuation.valuation_max)],
        ],
        [2.3 * inch] * 3,
    ))

    # Methodologies
    story.append(Paragraph("Methodologies", heading))
    story.append(_table(
        [
            ["Method", "Estimate"],
            ["EBITDA Multiple", _money(valuation.ebitda_multiple)],
            ["Discounted Cash Flow", _money(valuation.discounted_cash_flow)],
            ["Revenue Multiple", _money(valuation.revenue_multiple)],
            ["Asset Based", _money(valuation.asset_based)],
        ],
        [3.5 * inch, 3.4 * inch],
    ))

    # Risk scores
    story.append(Paragraph("Risk Assessment", heading))
    story.append(_table(
        [
            ["Score", "Value (0-100)"],
            ["Overall Risk Score", valuation.risk_score],
            ["Financial Health", valuation.financial_health_score],
            ["Market Position", valuation.market_position_score],
            ["Operational Efficiency", valuation.operational_efficiency_score],
            ["Debt Structure", valuation.debt_structure_score],
        ],
        [3.5 * inch, 3.4 * inch],
    ))

    story.append(Paragraph("Red Flags", heading))
    if valuation.red_flags:
        for flag in valuation.red_flags:
            story.append(Paragraph(f"• {escape(flag)}", body))
    else:
        story.append(Paragraph("No red flags detected.", body))

    if recommendations:
        story.append(Paragraph("Recommendations", heading))
        for rec in recommendations:
            story.append(Paragraph(
                f"<b>{escape(rec.category)}</b> (impact {rec.impact_potential}/5, "
                f"+{rec.estimated_value_impact_min}–{rec.estimated_value_impact_max}% value)",
                body,
            ))
            for suggestion in rec.suggestions:
                story.append(Paragraph(f"• {escape(suggestion)}", body))

    if buyer_matches:
        story.append(Paragraph("Potential Buyers", heading))
        story.append(_table(
            [["Buyer", "Type", "Match", "Deal Type"]]
            + [[m.name, m.type, f"{m.match_percentage}%", m.deal_type] for m in buyer_matches],
            [2.2 * inch, 2.0 * inch, 0.8 * inch, 1.9 * inch],
        ))

    doc.build(story)
    pdf_bytes = buffer.getvalue()
    logger.info("Rendered PDF report for company %s (%d bytes)", company.id, len(pdf_bytes))
    return pdf_bytes
