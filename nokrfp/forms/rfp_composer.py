"""
RFP Document Composer
=====================
Maps an answer record (complete or partial) to the ordered section list the
PDF renderer lays out. No I/O, no randomness, never mutates its input.

Every displayed answer passes through format_value(); answers that may hold
program codes also pass through expand_acronym(). Conditional rows are
re-derived from the raw record with the form engine's VISIBILITY_RULES, so
the document reflects what the data implies and not what the page happened
to display.

Section shape:
    {"number": 1, "title": "...", "narrative": str | None,
     "rows": [{"question": "...", "answer": "...", "keep_together": True}],
     "insight": str | None}
"""

import re
from datetime import date
from typing import Optional, TypedDict

from nokrfp.core.branding import BRAND
from nokrfp.forms.rfp_form import (
    VISIBILITY_RULES, rule_applies, suggested_filename,
)

NA = "N/A"

ACRONYMS = (
    ("DIF", "Destroy in Field"),
    ("ZVR", "Zero Value Return"),
    ("RTV", "Return to Vendor"),
)

SCALE_THRESHOLD = 100_000
DTC_HEAVY = 70
RETAIL_HEAVY = 30

_RULES = {r.field: r for r in VISIBILITY_RULES}


class QARow(TypedDict):
    question: str
    answer: str
    keep_together: bool


class Section(TypedDict):
    number: int
    title: str
    narrative: Optional[str]
    rows: list
    insight: Optional[str]


# ═══════════════════════════════════════════════════════════════════════════════
# VALUE FORMATTING
# ═══════════════════════════════════════════════════════════════════════════════

def format_value(value) -> str:
    """Single normalization point for displayed answers. Never returns ""."""
    if value is None:
        return NA
    if isinstance(value, str):
        return value if value.strip() else NA
    if isinstance(value, (list, tuple, set, frozenset)):
        members = [str(v) for v in value if v is not None and str(v).strip()]
        return ", ".join(members) if members else NA
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value)
    return text if text.strip() else NA


def expand_acronym(text) -> str:
    """Spell out DIF / ZVR / RTV once: "DIF" → "Destroy in Field (DIF)".

    An acronym is left alone when its expansion is already in the text, which
    makes the function idempotent.
    """
    if not isinstance(text, str):
        text = format_value(text)
    for acronym, expansion in ACRONYMS:
        if expansion in text:
            continue
        pattern = r"\b%s\b" % acronym
        if re.search(pattern, text):
            text = re.sub(pattern, f"{expansion} ({acronym})", text)
    return text


def format_number(text) -> str:
    """"150000" or "150,000" → "150,000". Unparseable text comes back unchanged."""
    if text is None:
        return ""
    raw = str(text)
    try:
        n = int(raw.replace(",", "").strip())
    except ValueError:
        return raw
    return f"{n:,}"


def _parse_int(text) -> Optional[int]:
    try:
        return int(str(text).replace(",", "").strip())
    except (TypeError, ValueError):
        return None


def _dtc_percent(record: dict) -> Optional[int]:
    try:
        pct = int(record.get("sales_split_dtc"))
    except (TypeError, ValueError):
        return None
    if not 0 <= pct <= 100:
        return None
    return pct


# ═══════════════════════════════════════════════════════════════════════════════
# NARRATIVE TEMPLATES
# ═══════════════════════════════════════════════════════════════════════════════
# dict → per-answer sentence lookup; str → enum sentence with {value}
NARRATIVES = {
    "operates_program": {
        "Yes": "The brand currently operates a {program} program.",
        "No":  "The brand does not currently operate a {program} program.",
    },
    "program_interest": {
        "Yes": "The brand is interested in a {program} program.",
        "No":  "The brand is not currently interested in a {program} program.",
    },
    "sells_into_retailers": {
        "Yes": "The brand sells into retailers.",
        "No":  "The brand does not sell into retailers.",
    },
    "trade_in": {
        "Yes": "The brand is interested in a Trade-In program.",
        "No":  "The brand is not currently interested in a Trade-In program.",
    },
    "branded_dtc": {
        "Yes": "The brand is interested in a branded second-hand DTC program.",
        "No":  "The brand is not currently interested in a branded second-hand DTC program.",
    },
    "opportunity": {
        "Yes": "The brand feels it is currently taking advantage of return opportunities.",
        "No":  "The brand does not feel it is currently taking advantage of return opportunities.",
    },
    "combine_strategy": {
        "Yes": ("The brand is interested in combining excess inventory strategy with "
                "returns to create a broad recommerce strategy."),
        "No":  ("The brand is not currently interested in combining excess inventory "
                "strategy with returns."),
    },
    "value_priority": "The brand identifies {value} as a primary driver for the reverse logistics program.",
    "branded_management": "Preferred management approach: {value}.",
}


def narrate(value, template: str, **params) -> str:
    """Turn one answer into a sentence. Unknown or empty input yields ""."""
    tpl = NARRATIVES.get(template)
    if tpl is None or value is None:
        return ""
    value = str(value).strip()
    if not value or value == NA:
        return ""
    if isinstance(tpl, dict):
        tpl = tpl.get(value)
        if tpl is None:
            return ""
    try:
        return tpl.format(value=value, **params)
    except (KeyError, IndexError):
        return ""


def _paragraph(*sentences) -> Optional[str]:
    text = " ".join(s for s in sentences if s)
    return text or None


# ═══════════════════════════════════════════════════════════════════════════════
# SECTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def _row(question: str, answer) -> QARow:
    return {"question": question, "answer": format_value(answer), "keep_together": True}


def _gate_open(field: str, record: dict) -> bool:
    return rule_applies(_RULES[field], record)


def _section(number: int, title: str, narrative, rows: list, record: dict) -> Section:
    return {
        "number": number,
        "title": title,
        "narrative": narrative,
        "rows": rows,
        "insight": generate_insight(number, record),
    }


def _overview(record: dict, brand: dict) -> Section:
    rows = [
        _row("Company name", record.get("company_name")),
        _row("Contact name", record.get("name")),
        _row("Annual return volume", format_number(record.get("returns_per_year"))),
        _row("Seasonality", record.get("seasonality")),
        _row("Countries", record.get("countries")),
    ]
    return _section(1, "Company & Operational Overview",
                    brand.get("project_purpose") or None, rows, record)


def _returns_operations(record: dict) -> Section:
    warranty, subscription = record.get("warranty_program"), record.get("subscription_program")
    narrative = _paragraph(
        narrate(record.get("sells_into_retailers"), "sells_into_retailers"),
        narrate(warranty, "operates_program", program="warranty"),
        narrate(record.get("warranty_interest"), "program_interest", program="warranty")
        if _gate_open("warranty_interest", record) else "",
        narrate(subscription, "operates_program", program="subscription"),
        narrate(record.get("subscription_interest"), "program_interest", program="subscription")
        if _gate_open("subscription_interest", record) else "",
    )

    rows = [_row("Sells into retailers", record.get("sells_into_retailers"))]
    if _gate_open("retailer_program", record):
        rows.append(_row("Retailer program", expand_acronym(record.get("retailer_program"))))
    rows += [
        _row("Current process for returns sent back", record.get("current_returns_handling")),
        _row("Returns handling", record.get("returns_handling")),
        _row("Warranty program", warranty),
    ]
    if _gate_open("warranty_interest", record):
        rows.append(_row("Interested in a warranty program", record.get("warranty_interest")))
    rows.append(_row("Subscription program", subscription))
    if _gate_open("subscription_interest", record):
        rows.append(_row("Interested in a subscription program", record.get("subscription_interest")))
    return _section(2, "Returns Operations", narrative, rows, record)


def _recommerce(record: dict) -> Section:
    management_open = _gate_open("branded_management", record)
    narrative = _paragraph(
        narrate(record.get("trade_in"), "trade_in"),
        narrate(record.get("branded_dtc"), "branded_dtc"),
        narrate(record.get("branded_management"), "branded_management") if management_open else "",
    )

    dtc = _dtc_percent(record)
    rows = [
        _row("Sales split", f"{dtc}% DTC" if dtc is not None else None),
        _row("Interested recommerce channels", expand_acronym(record.get("interested_channels"))),
        _row("Channel restrictions", expand_acronym(record.get("channel_restrictions"))),
        _row("Branded second-hand DTC program", record.get("branded_dtc")),
    ]
    if management_open:
        rows.append(_row("Management approach", record.get("branded_management")))
    rows.append(_row("Trade-In program", record.get("trade_in")))
    return _section(3, "Recommerce & Channel Strategy", narrative, rows, record)


def _value_opportunity(record: dict) -> Section:
    narrative = _paragraph(
        narrate(record.get("value_priority"), "value_priority"),
        narrate(record.get("opportunity_feeling"), "opportunity"),
        narrate(record.get("combine_strategy"), "combine_strategy"),
    )

    channel = record.get("excess_inventory_channel")
    rows = [
        _row("Primary value driver", record.get("value_priority")),
        _row("Taking advantage of return opportunities", record.get("opportunity_feeling")),
        _row("Excess inventory sales channel", channel),
    ]
    if _gate_open("excess_inventory_national", record):
        rows.append(_row("National retailers", record.get("excess_inventory_national")))
    if _gate_open("excess_inventory_regional", record):
        rows.append(_row("Regional retailers", record.get("excess_inventory_regional")))
    legacy = record.get("excess_inventory")
    if format_value(channel) == NA and format_value(legacy) != NA:
        rows.append(_row("Excess inventory", legacy))
    rows.append(_row("Combine excess inventory with returns", record.get("combine_strategy")))
    return _section(4, "Value & Opportunity", narrative, rows, record)


def _closing(record: dict, brand: dict) -> Section:
    rows = [_row(criterion, weight) for criterion, weight in brand.get("evaluation_criteria", [])]
    return _section(5, "Evaluation Criteria & Next Steps",
                    brand.get("next_steps") or None, rows, record)


def build_sections(record: dict, brand: dict = None) -> list:
    """Fixed, ordered section list for the RFP."""
    brand = brand or BRAND
    return [
        _overview(record, brand),
        _returns_operations(record),
        _recommerce(record),
        _value_opportunity(record),
        _closing(record, brand),
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# INSIGHTS — at most one sentence per section
# ═══════════════════════════════════════════════════════════════════════════════

def generate_insight(section_number: int, record: dict) -> Optional[str]:
    if section_number == 1:
        volume = _parse_int(record.get("returns_per_year"))
        if volume is not None and volume > SCALE_THRESHOLD:
            return (f"Efficiency at scale: at {volume:,} returns per year, facility "
                    f"throughput and grading speed become the primary drivers of "
                    f"recovered value.")

    elif section_number == 2:
        program = record.get("retailer_program")
        if _gate_open("retailer_program", record) and program in ("DIF", "ZVR"):
            return (f"Strategic context: under a {expand_acronym(program)} program, "
                    f"product value is written off at the retailer, so routing "
                    f"eligible units back for grading is the largest untapped "
                    f"recovery opportunity.")

    elif section_number == 3:
        dtc = _dtc_percent(record)
        if dtc is not None and dtc >= DTC_HEAVY:
            return (f"Channel mix: with {dtc}% of sales DTC and {100 - dtc}% through "
                    f"retail, most returns come straight from consumers, which favors "
                    f"brand-owned resale and trade-in programs.")
        if dtc is not None and dtc <= RETAIL_HEAVY:
            return (f"Channel mix: with {100 - dtc}% of sales through retail, return "
                    f"flows are shaped by retailer agreements, and renegotiating "
                    f"program terms is the primary lever for recovery.")

    elif section_number == 4:
        feeling = record.get("opportunity_feeling")
        if feeling == "No":
            return ("Opportunity gap: the brand does not yet capture the value in its "
                    "returns, which points to quick wins from structured grading and "
                    "secondary channels.")
        if feeling == "Yes":
            return ("Optimization focus: with return value already being captured, the "
                    "next gains come from channel diversification and faster "
                    "recovery cycles.")

    return None


# ═══════════════════════════════════════════════════════════════════════════════
# DOCUMENT
# ═══════════════════════════════════════════════════════════════════════════════

def format_date(d: date) -> str:
    """date(2026, 10, 18) → "October 18, 2026"."""
    return f"{d:%B} {d.day}, {d.year}"


def compose_document(record: dict, today: date = None, brand: dict = None) -> dict:
    """Cover data plus sections: the whole input contract of the PDF renderer."""
    brand = brand or BRAND
    today = today or date.today()
    pdf = brand.get("pdf", {})
    return {
        "brand": brand.get("name", ""),
        "title": pdf.get("title", ""),
        "subtitle": pdf.get("subtitle", ""),
        "cover_heading": pdf.get("cover_heading", ""),
        "company_name": format_value(record.get("company_name")),
        "contact_name": format_value(record.get("name")),
        "date": format_date(today),
        "deliverables": [list(d) for d in brand.get("deliverables", [])],
        "sections": build_sections(record, brand),
        "filename": suggested_filename(record),
    }
