"""
RFP Intake Wizard — Form Engine
================================
Step sequence, field table, conditional visibility, and the per-step
"can advance" predicate for the reverse logistics RFP wizard.

The answer record is a plain dict with a closed key set (DEFAULT_ANSWERS).
All writes go through WizardSession.update_field() / toggle_channel();
validity is computed on read, never at write time.

Conditional fields are driven by one table, VISIBILITY_RULES. The document
composer evaluates the same table against the final record, so what the
form asked for and what the PDF shows cannot drift apart.

Usage:
    from nokrfp.forms.rfp_form import WizardSession, can_advance
    wiz = WizardSession()
    wiz.update_field("sells_into_retailers", "Yes")
    wiz.update_field("retailer_program", "DIF")
    can_advance(wiz.current_step.id, wiz.answers)
"""

import copy
import logging
import re
from dataclasses import dataclass
from typing import Optional, TypedDict

log = logging.getLogger("nokrfp.form")

YES_NO = ("Yes", "No")

SEASONALITY_OPTIONS = ("Mostly flat", "Q1 Peak", "Q2 Peak", "Q3 Peak", "Q4 Peak")
RETAILER_PROGRAM_OPTIONS = ("DIF", "ZVR", "RTV")
CHANNEL_OPTIONS = (
    "Amazon",
    "Big Off-Price Retailers",
    "Regional Off-Price Retailers",
    "Other",
)
MANAGEMENT_OPTIONS = ("In-house", "Out-source")
VALUE_OPTIONS = (
    "Customer loyalty",
    "Subsidizing cost / driving revenue",
    "Environmental factors",
    "Testing new markets",
)
EXCESS_NATIONAL = "Off-Priced Retailers (National)"
EXCESS_REGIONAL = "Off-Priced Retailers (Regional)"
EXCESS_CHANNEL_OPTIONS = (EXCESS_NATIONAL, EXCESS_REGIONAL)


# ═══════════════════════════════════════════════════════════════════════════════
# ANSWER RECORD
# ═══════════════════════════════════════════════════════════════════════════════

class AnswerRecord(TypedDict):
    """One field per question. Keys are fixed; see DEFAULT_ANSWERS."""
    company_name: str
    returns_per_year: str
    seasonality: str
    sells_into_retailers: str
    retailer_program: str
    current_returns_handling: str
    returns_handling: str
    countries: str
    warranty_program: str
    warranty_interest: str
    subscription_program: str
    subscription_interest: str
    sales_split_dtc: int
    interested_channels: list
    channel_restrictions: str
    branded_dtc: str
    branded_management: str
    trade_in: str
    value_priority: str
    opportunity_feeling: str
    excess_inventory_channel: str
    excess_inventory_national: str
    excess_inventory_regional: str
    excess_inventory: str       # legacy free-text, see rfp_composer
    combine_strategy: str
    name: str
    email: str


DEFAULT_ANSWERS: AnswerRecord = {
    "company_name": "",
    "returns_per_year": "",
    "seasonality": "Mostly flat",
    "sells_into_retailers": "",
    "retailer_program": "",
    "current_returns_handling": "",
    "returns_handling": "",
    "countries": "",
    "warranty_program": "",
    "warranty_interest": "",
    "subscription_program": "",
    "subscription_interest": "",
    "sales_split_dtc": 50,
    "interested_channels": [],
    "channel_restrictions": "",
    "branded_dtc": "",
    "branded_management": "",
    "trade_in": "",
    "value_priority": "",
    "opportunity_feeling": "",
    "excess_inventory_channel": "",
    "excess_inventory_national": "",
    "excess_inventory_regional": "",
    "excess_inventory": "",
    "combine_strategy": "",
    "name": "",
    "email": "",
}

ANSWER_KEYS = tuple(DEFAULT_ANSWERS)


def default_answers() -> AnswerRecord:
    """Fresh record with every field at its default."""
    return copy.deepcopy(DEFAULT_ANSWERS)


# ═══════════════════════════════════════════════════════════════════════════════
# FIELD TABLE — labels and input kinds for the wizard page
# ═══════════════════════════════════════════════════════════════════════════════
FIELDS = {
    "company_name": {
        "label": "What is your company name?",
        "kind": "text",
        "placeholder": "e.g., Acme Outdoor Co.",
    },
    "returns_per_year": {
        "label": "How many returns do you get per year?",
        "kind": "number",
        "helper": "Approximate annualized return count.",
    },
    "seasonality": {
        "label": "How seasonal are your returns?",
        "kind": "select",
        "options": SEASONALITY_OPTIONS,
    },
    "sells_into_retailers": {
        "label": "Do you sell into retailers?",
        "kind": "radio",
        "options": YES_NO,
    },
    "retailer_program": {
        "label": "If Yes, what program do you run?",
        "kind": "select",
        "options": RETAILER_PROGRAM_OPTIONS,
        "option_labels": {
            "DIF": "DIF - Destroy in Field",
            "ZVR": "ZVR - Zero Value Return",
            "RTV": "RTV - Return to Vendor",
        },
        "placeholder": "Select a program",
        "definitions": True,
    },
    "current_returns_handling": {
        "label": ("For returns that are sent back to you (e.g., DTC or RTV), "
                  "what is your current process for handling them?"),
        "kind": "textarea",
        "placeholder": ("e.g., We receive them at our main warehouse, but we "
                        "struggle to grade and restock them quickly..."),
    },
    "returns_handling": {
        "label": "If you're receiving your returns back, what do you do with them?",
        "kind": "textarea",
    },
    "countries": {
        "label": "What countries are you currently selling in?",
        "kind": "textarea",
        "placeholder": "e.g., US, Canada, UK, EU",
    },
    "warranty_program": {
        "label": "Do you currently operate a warranty program?",
        "kind": "radio",
        "options": YES_NO,
    },
    "warranty_interest": {
        "label": "If No: Would you be interested in one?",
        "kind": "radio",
        "options": YES_NO,
    },
    "subscription_program": {
        "label": "Do you currently run a subscription program?",
        "kind": "radio",
        "options": YES_NO,
    },
    "subscription_interest": {
        "label": "If No: Would you be interested in one?",
        "kind": "radio",
        "options": YES_NO,
    },
    "sales_split_dtc": {
        "label": "What % of sales are DTC vs. retail?",
        "kind": "range",
    },
    "interested_channels": {
        "label": "What channels would you be interested in selling on?",
        "kind": "checkbox",
        "options": CHANNEL_OPTIONS,
    },
    "channel_restrictions": {
        "label": "Do you have any channel restrictions?",
        "kind": "text",
        "placeholder": "e.g., Amazon, eBay, TJX, etc.",
    },
    "branded_dtc": {
        "label": "Would you be interested in a branded second-hand DTC program?",
        "kind": "radio",
        "options": YES_NO,
    },
    "branded_management": {
        "label": "If Yes: Would you want to manage it in-house or out-source it?",
        "kind": "radio",
        "options": MANAGEMENT_OPTIONS,
    },
    "trade_in": {
        "label": "Would you be interested in a Trade-In program?",
        "kind": "radio",
        "options": YES_NO,
    },
    "value_priority": {
        "label": "What do you value most in returns?",
        "kind": "select",
        "options": VALUE_OPTIONS,
        "placeholder": "Select",
    },
    "opportunity_feeling": {
        "label": "Do you currently feel like you take advantage of the opportunity with returns?",
        "kind": "radio",
        "options": YES_NO,
    },
    "excess_inventory_channel": {
        "label": "Where do you currently sell your excess inventory?",
        "kind": "radio",
        "options": EXCESS_CHANNEL_OPTIONS,
    },
    "excess_inventory_national": {
        "label": "Which ones? (e.g., TJX, Ross, etc.)",
        "kind": "text",
    },
    "excess_inventory_regional": {
        "label": "Which ones? (e.g., Ollie's, Gabe's, etc.)",
        "kind": "text",
    },
    "combine_strategy": {
        "label": ("Would you be interested in combining your excess inventory "
                  "strategy with returns to create a broad recommerce strategy?"),
        "kind": "radio",
        "options": YES_NO,
    },
    "name": {
        "label": "Full name",
        "kind": "text",
        "placeholder": "Full name",
    },
    "email": {
        "label": "Email",
        "kind": "email",
        "placeholder": "Email",
    },
}


# ═══════════════════════════════════════════════════════════════════════════════
# VISIBILITY RULES — (gate field, trigger value) → dependent field
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VisibilityRule:
    """Show `field` on `step` iff record[gate] == value."""
    field: str
    gate: str
    value: str
    step: str


VISIBILITY_RULES = (
    VisibilityRule("retailer_program", "sells_into_retailers", "Yes", "general"),
    VisibilityRule("warranty_interest", "warranty_program", "No", "general"),
    VisibilityRule("subscription_interest", "subscription_program", "No", "general"),
    VisibilityRule("branded_management", "branded_dtc", "Yes", "recommerce"),
    VisibilityRule("excess_inventory_national", "excess_inventory_channel", EXCESS_NATIONAL, "value"),
    VisibilityRule("excess_inventory_regional", "excess_inventory_channel", EXCESS_REGIONAL, "value"),
)

CONDITIONAL_FIELDS = frozenset(r.field for r in VISIBILITY_RULES)


def rule_applies(rule: VisibilityRule, record: dict) -> bool:
    """Exact-match gate check against the raw record."""
    return record.get(rule.gate) == rule.value


def compute_visibility(record: dict) -> dict:
    """Return {dependent_field: bool} for every rule. Never cached."""
    return {rule.field: rule_applies(rule, record) for rule in VISIBILITY_RULES}


# ═══════════════════════════════════════════════════════════════════════════════
# STEPS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Step:
    id: str
    title: str
    blurb: str
    fields: tuple
    required: tuple
    tip: str = ""


STEPS = (
    Step(
        id="general",
        title="General Logistics",
        blurb=("Baseline reverse logistics context: volume, seasonality, retail "
               "presence, and programs in place."),
        fields=("company_name", "returns_per_year", "seasonality", "sells_into_retailers",
                "retailer_program", "current_returns_handling", "returns_handling",
                "countries", "warranty_program", "warranty_interest",
                "subscription_program", "subscription_interest"),
        required=("returns_per_year", "seasonality", "sells_into_retailers",
                  "returns_handling", "countries", "warranty_program",
                  "subscription_program"),
        tip=("Understanding your baseline logistics operations (volume patterns, "
             "seasonality, and existing programs) is crucial for building a successful "
             "Reverse Logistics RFP. This foundation helps potential partners tailor "
             "solutions to your specific operational context."),
    ),
    Step(
        id="recommerce",
        title="Recommerce Strategy",
        blurb="Channel appetite, owned vs. outsourced approaches, and program interest.",
        fields=("sales_split_dtc", "interested_channels", "channel_restrictions",
                "branded_dtc", "branded_management", "trade_in"),
        required=("sales_split_dtc", "branded_dtc", "trade_in"),
        tip=("Effective recommerce strategy requires clear channel diversification and "
             "ownership models. Defining your channel preferences and restrictions "
             "upfront enables partners to propose solutions that align with your "
             "business goals and operational constraints."),
    ),
    Step(
        id="value",
        title="Value & Opportunity",
        blurb=("What success looks like, current coverage of the opportunity, and "
               "constraints."),
        fields=("value_priority", "opportunity_feeling", "excess_inventory_channel",
                "excess_inventory_national", "excess_inventory_regional",
                "combine_strategy"),
        required=("value_priority", "opportunity_feeling", "excess_inventory_channel",
                  "combine_strategy"),
        tip=("Identifying value drivers and opportunity gaps reveals where optimization "
             "can have the greatest impact. Clear articulation of priorities helps "
             "partners design programs that maximize value recovery while addressing "
             "your specific constraints."),
    ),
    Step(
        id="lead",
        title="Lead Capture & Export",
        blurb="Share contact details and generate an RFP tailored to your operation.",
        fields=("name", "email"),
        required=(),
        tip=("This RFP document captures your complete reverse logistics context. Share "
             "it with potential partners to accelerate conversations and ensure "
             "proposals address your specific operational needs from day one."),
    ),
)

STEP_IDS = tuple(s.id for s in STEPS)
LEAD_STEP = "lead"


def get_step(step_id: str) -> Optional[Step]:
    for s in STEPS:
        if s.id == step_id:
            return s
    return None


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDITY
# ═══════════════════════════════════════════════════════════════════════════════

def _is_filled(key: str, value) -> bool:
    if key == "sales_split_dtc":
        return True     # always holds a valid default
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set)):
        return len(value) > 0
    return True


def required_fields(step_id: str, record: dict, visibility: dict = None) -> list:
    """Static required keys of the step plus its currently visible conditional keys."""
    step = get_step(step_id)
    if step is None:
        return []
    if visibility is None:
        visibility = compute_visibility(record)
    fields = list(step.required)
    for rule in VISIBILITY_RULES:
        if rule.step == step_id and visibility.get(rule.field):
            fields.append(rule.field)
    return fields


def can_advance(step_id: str, record: dict, visibility: dict = None) -> bool:
    """True iff every effective required field of the step is non-empty.

    The lead step is terminal and always advanceable; its download action is
    gated separately by export_ready(). interested_channels is never required.
    """
    if step_id == LEAD_STEP:
        return True
    if get_step(step_id) is None:
        return False
    for key in required_fields(step_id, record, visibility):
        if key == "interested_channels":
            continue
        if not _is_filled(key, record.get(key)):
            return False
    return True


def missing_fields(step_id: str, record: dict, visibility: dict = None) -> list:
    """Required keys of the step that are still empty, in step order."""
    if step_id == LEAD_STEP:
        return []
    return [k for k in required_fields(step_id, record, visibility)
            if k != "interested_channels" and not _is_filled(k, record.get(k))]


def export_ready(record: dict) -> bool:
    """Download is enabled only once both contact fields are filled."""
    name = record.get("name") or ""
    email = record.get("email") or ""
    return bool(str(name).strip()) and bool(str(email).strip())


# ═══════════════════════════════════════════════════════════════════════════════
# INPUT NORMALIZATION
# ═══════════════════════════════════════════════════════════════════════════════

def normalize_returns_input(raw) -> str:
    """Keep digits only and regroup thousands: "150000" → "150,000"."""
    digits = re.sub(r"\D", "", str(raw or ""))
    if not digits:
        return ""
    return f"{int(digits):,}"


def _clamp_percent(value, current: int) -> int:
    try:
        pct = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return current
    return max(0, min(100, pct))


def _known_channels(values) -> list:
    """Unique channel options in the order given; unknown entries dropped."""
    if isinstance(values, str):
        values = [values]
    elif not isinstance(values, (list, tuple, set, frozenset)):
        return []
    channels = []
    for c in values or []:
        if c in CHANNEL_OPTIONS and c not in channels:
            channels.append(c)
    return channels


def suggested_filename(record: dict) -> str:
    """"Jane Doe" → "Jane-Doe-RFP.pdf"; no name → "RFP.pdf"."""
    name = str(record.get("name") or "").strip()
    slug = re.sub(r"[\W_]+", "-", name).strip("-")
    if not slug:
        return "RFP.pdf"
    return f"{slug}-RFP.pdf"


# ═══════════════════════════════════════════════════════════════════════════════
# WIZARD SESSION — step index + answer record
# ═══════════════════════════════════════════════════════════════════════════════

class WizardSession:
    """Process-local wizard state for one browser session.

    States are step indices 0..len(STEPS)-1. There is no submit transition:
    the terminal lead step only allows back, jump, or reset.
    """

    def __init__(self, answers: dict = None, step_index: int = 0):
        self.answers = default_answers()
        if answers:
            for key, val in answers.items():
                if key in DEFAULT_ANSWERS:
                    self.update_field(key, val)
        self.step_index = 0
        self.go_to_step(step_index)

    # ── State ────────────────────────────────────────────────────────────────

    @property
    def step_count(self) -> int:
        return len(STEPS)

    @property
    def current_step(self) -> Step:
        return STEPS[self.step_index]

    @property
    def progress(self) -> float:
        return round((self.step_index + 1) / len(STEPS) * 100, 1)

    @property
    def visibility(self) -> dict:
        return compute_visibility(self.answers)

    @property
    def can_advance(self) -> bool:
        return can_advance(self.current_step.id, self.answers)

    @property
    def export_ready(self) -> bool:
        return export_ready(self.answers)

    # ── Mutation ─────────────────────────────────────────────────────────────

    def update_field(self, key: str, value) -> bool:
        """Set one field. No validation; the percentage is clamped to 0..100."""
        if key not in DEFAULT_ANSWERS:
            log.warning("Ignoring unknown field %r", key)
            return False
        if key == "sales_split_dtc":
            value = _clamp_percent(value, self.answers["sales_split_dtc"])
        elif key == "interested_channels":
            value = _known_channels(value)
        elif value is None:
            value = ""
        self.answers[key] = value
        return True

    def toggle_channel(self, option: str) -> list:
        """Remove the option if selected, else append it."""
        channels = self.answers["interested_channels"]
        if option not in CHANNEL_OPTIONS:
            log.warning("Ignoring unknown channel %r", option)
            return channels
        if option in channels:
            channels.remove(option)
        else:
            channels.append(option)
        return channels

    def go_next(self) -> int:
        if self.step_index < len(STEPS) - 1:
            self.step_index += 1
        return self.step_index

    def go_back(self) -> int:
        if self.step_index > 0:
            self.step_index -= 1
        return self.step_index

    def go_to_step(self, index) -> bool:
        """Free navigation to any step; out-of-range jumps are ignored."""
        try:
            idx = int(index)
        except (TypeError, ValueError):
            return False
        if not 0 <= idx < len(STEPS):
            log.debug("Ignoring jump to step %r", index)
            return False
        self.step_index = idx
        return True

    def reset(self):
        self.answers = default_answers()
        self.step_index = 0

    # ── Export / serialization ───────────────────────────────────────────────

    def snapshot(self) -> AnswerRecord:
        """Deep copy of the answers for document generation."""
        return copy.deepcopy(self.answers)

    def to_dict(self) -> dict:
        return {"step_index": self.step_index, "answers": self.snapshot()}

    @classmethod
    def from_dict(cls, data: dict = None) -> "WizardSession":
        """Rebuild from to_dict() output; bad or missing data falls back to defaults."""
        if not isinstance(data, dict):
            return cls()
        answers = data.get("answers")
        return cls(answers if isinstance(answers, dict) else None,
                   data.get("step_index", 0))
