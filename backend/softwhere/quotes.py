import io
import secrets
import string
import time
from typing import Any, Dict, List

from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_quote_id() -> str:
    """``quote_<epoch ms>_<9 random base36 chars>``"""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"quote_{int(time.time() * 1000)}_{suffix}"


def _money(value: Any) -> str:
    try:
        return f"${float(value):,.0f}"
    except (TypeError, ValueError):
        return "$0"


def format_estimate_text(estimate: Dict[str, Any]) -> str:
    """Plain-text estimate summary used in CRM notes and quote PDFs."""
    b = estimate.get("breakdown") or {}
    lines = [
        f"Development Cost: {_money(estimate.get('developmentCost'))}",
        f"Timeline: {estimate.get('deadlineWeeks')} weeks",
        f"Support Cost (First Year): {_money(estimate.get('supportCost'))}",
        f"Estimation Method: {str(estimate.get('source') or 'formula').upper()}",
    ]
    if estimate.get("reasoning"):
        lines.append(f"Notes: {estimate['reasoning']}")
    lines += [
        "",
        "Breakdown:",
        f"- Base Cost: {_money(b.get('baseCost', 0))}",
        f"- Complexity Multiplier: {b.get('complexityMultiplier', 1)}x",
        f"- Features Cost: {_money(b.get('featuresCost', 0))}",
        f"- Pages Cost: {_money(b.get('pagesCost', 0))}",
        f"- Tech Adjustment: {round(b.get('techAdjustmentFactor', 1), 4)}x",
    ]
    if b.get("totalHours"):
        lines.append(f"- Total Hours: {round(b['totalHours'], 1)} @ ${b.get('hourlyRate')}/hr")
    return "\n".join(lines)


def format_quote_note(quote: Dict[str, Any]) -> str:
    customer = quote.get("customerInfo") or {}
    project = quote.get("projectDetails") or {}
    lines = [
        f"New Project Quote Request - {quote.get('quoteId')}",
        "",
        "Customer Information:",
        f"Name: {customer.get('name') or 'Anonymous'}",
        f"Email: {customer.get('email') or 'Not provided'}",
        f"Phone: {customer.get('phone') or 'Not provided'}",
        "",
        "Project:",
        f"Type: {project.get('projectType')}" + (f" / {project['subtype']}" if project.get("subtype") else ""),
        f"Complexity: {project.get('complexity')}",
        f"Pages/Screens: {project.get('pages')}",
        f"Features: {', '.join(project.get('features') or []) or 'None selected'}",
        f"Tech Stack: {', '.join(project.get('techStack') or []) or 'Not specified'}",
    ]
    if project.get("platforms"):
        lines.append(f"Platforms: {', '.join(project['platforms'])}")
    lines += ["", "Project Estimate:", format_estimate_text(quote.get("estimate") or {})]
    return "\n".join(lines)


def render_quote_pdf(quote: Dict[str, Any], title: str = "Project Quote") -> bytes:
    """
    Render a quote as a readable multi-page PDF.
    """
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    width, height = letter

    margin_x = 72
    y = height - 72

    c.setFont("Helvetica-Bold", 16)
    c.drawString(margin_x, y, title)
    y -= 28

    estimate = quote.get("estimate") or {}
    summary: List[str] = []
    if estimate.get("developmentCost") is not None:
        summary.append(f"Development cost: {_money(estimate['developmentCost'])}")
    if estimate.get("deadlineWeeks") is not None:
        summary.append(f"Timeline: {estimate['deadlineWeeks']} weeks")
    if estimate.get("supportCost") is not None:
        summary.append(f"First-year support: {_money(estimate['supportCost'])}")

    if summary:
        c.setFont("Helvetica-Bold", 12)
        c.drawString(margin_x, y, "Estimate Summary")
        y -= 18
        c.setFont("Helvetica", 10)
        for ln in summary:
            c.drawString(margin_x, y, ln)
            y -= 14
        y -= 6

    if y < 72:
        c.showPage()
        y = height - 72
    c.setFont("Helvetica-Bold", 12)
    c.drawString(margin_x, y, "Details")
    y -= 18
    c.setFont("Helvetica", 10)

    # approx characters per line at 10pt
    max_chars = 95
    for raw_line in format_quote_note(quote).splitlines():
        line = raw_line.rstrip() or " "
        while line:
            piece = line[:max_chars]
            line = line[max_chars:]
            if y < 72:
                c.showPage()
                y = height - 72
                c.setFont("Helvetica", 10)
            c.drawString(margin_x, y, piece)
            y -= 14

    c.save()
    buf.seek(0)
    return buf.read()
