"""
Onboarding Forms - field catalogues, rule tables and store mappings.

Each step has three parts:
- defaults and normalization of raw input into the form shape,
- a declarative rule table (see rules.py),
- an explicit translation between form field names and store columns.

Form shape is what the client sends and what the form aggregate holds.
Store shape is what the Supabase table holds.
"""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from .rules import (
    Advisory,
    Rule,
    StepSchema,
    Variant,
    at_least,
    email,
    is_true,
    max_length,
    min_items,
    min_length,
    one_of,
    optional,
    phone,
    required,
    url,
)

logger = logging.getLogger(__name__)

FormValues = dict[str, Any]
Row = dict[str, Any]


# =============================================================================
# Options
# =============================================================================

TIME_ZONES = [
    {"id": "UTC-8", "label": "Pacific Time (UTC-8)"},
    {"id": "UTC-5", "label": "Eastern Time (UTC-5)"},
    {"id": "UTC+0", "label": "GMT/UTC (UTC+0)"},
    {"id": "UTC+1", "label": "Central European Time (UTC+1)"},
    {"id": "UTC+5:30", "label": "India Standard Time (UTC+5:30)"},
    {"id": "UTC+8", "label": "China Standard Time (UTC+8)"},
]

PRONOUN_OPTIONS = [
    {"id": "he/him", "label": "He/Him"},
    {"id": "she/her", "label": "She/Her"},
    {"id": "they/them", "label": "They/Them"},
    {"id": "other", "label": "Prefer not to say / Other"},
]

TOOL_CATALOGUE = [
    {"id": "whatsapp", "label": "WhatsApp", "kind": "value", "section": "communication"},
    {"id": "discord", "label": "Discord", "kind": "value", "section": "communication"},
    {"id": "github", "label": "GitHub", "kind": "value", "section": "communication"},
    {"id": "jira", "label": "Jira", "kind": "value", "section": "communication"},
    {"id": "git", "label": "Git (Software)", "kind": "confirm", "section": "environment"},
    {"id": "node", "label": "Node.js", "kind": "confirm", "section": "environment"},
    {"id": "antigravity", "label": "Google Antigravity (IDE/AI Tool)", "kind": "value", "section": "environment"},
]

WORK_CAPACITIES = [
    {"id": "full-time", "label": "Full Time", "description": "40h/week"},
    {"id": "part-time", "label": "Part Time", "description": "20h/week"},
    {"id": "project-based", "label": "Project Based", "description": "Ticket-by-ticket"},
]

EXPERIENCE_LEVELS = ["junior", "mid-level", "senior"]

SKILL_OPTIONS = [
    "React.js", "Next.js", "Node.js", "React Native", "Python/Django", "WordPress", "Shopify",
]

PAYMENT_METHODS = [
    {"id": "bank", "label": "Local Bank", "description": "Direct Transfer"},
    {"id": "wise", "label": "Wise", "description": "TransferWise"},
    {"id": "crypto", "label": "Crypto", "description": "USDT"},
]

CRYPTO_NETWORKS = [
    {"id": "TRC20", "label": "TRC20 (Tron)"},
    {"id": "ERC20", "label": "ERC20 (Ethereum)"},
    {"id": "BEP20", "label": "BEP20 (BSC)"},
]

WORK_CAPACITY_IDS = [c["id"] for c in WORK_CAPACITIES]
PAYMENT_METHOD_IDS = [p["id"] for p in PAYMENT_METHODS]
CRYPTO_NETWORK_IDS = [n["id"] for n in CRYPTO_NETWORKS]


def get_form_options() -> dict:
    """Get every finite choice list for frontend rendering."""
    return {
        "time_zones": TIME_ZONES,
        "pronouns": PRONOUN_OPTIONS,
        "tools": TOOL_CATALOGUE,
        "work_capacities": WORK_CAPACITIES,
        "experience_levels": EXPERIENCE_LEVELS,
        "skills": SKILL_OPTIONS,
        "payment_methods": PAYMENT_METHODS,
        "crypto_networks": CRYPTO_NETWORKS,
    }


# =============================================================================
# Coercion helpers
# =============================================================================

_bool_adapter = TypeAdapter(bool)


def _to_bool(value: Any) -> bool:
    """Lenient bool: accepts true/false, "true"/"on"/"1", etc."""
    if value is None or value == "":
        return False
    try:
        return _bool_adapter.validate_python(value)
    except PydanticValidationError:
        return False


def _to_number(value: Any) -> Any:
    """Parse numeric strings; anything unparseable is left for the rules to reject."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            try:
                return float(text)
            except ValueError:
                return value
    return value


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


# =============================================================================
# Step 1: Basic Info
# =============================================================================

BASIC_INFO_COLUMNS = {
    "full_name": "Full_name",
    "display_name": "Display_name",
    "date_of_birth": "Date_of_birth",
    "gender_pronouns": "Gender_pronouns",
    "city_country": "City_country",
    "time_zone": "Time_zone",
    "physical_address": "Physical_address",
    "job_title": "Job_title",
    "one_liner": "One_liner",
    "bio": "Bio",
    "years_experience": "Years_experience",
    "email": "Email",
    "phone_number": "Phone_number",
    "languages": "Languages",
    "mbti": "Mbti",
    "if_i_were_a": "If_i_were_a",
}

BASIC_INFO_REQUIRED = [
    "full_name",
    "display_name",
    "city_country",
    "time_zone",
    "job_title",
    "one_liner",
    "years_experience",
    "email",
    "phone_number",
]

BASIC_INFO_SCHEMA = StepSchema(
    name="basicinfo",
    rules=[
        # Block A: The Basics
        Rule("full_name", min_length(2), "Full Legal Name must be at least 2 characters."),
        Rule("display_name", min_length(2), "Display Name must be at least 2 characters."),
        # Block C: Location & Logistics
        Rule("city_country", required(), "Current City & Country is required."),
        Rule("time_zone", required(), "Time Zone is required."),
        # Block D: Professional Persona
        Rule("job_title", required(), "Primary Job Title is required."),
        Rule("one_liner", required(), "The 'One-Liner' is required."),
        Rule("one_liner", max_length(60), "Must be 60 characters or less."),
        Rule("bio", optional(max_length(3000)), "Bio should be roughly 300 words."),
        Rule("years_experience", at_least(0), "Years of Experience must be positive."),
        # Block E: Contact Coordinates
        Rule("email", email(), "Invalid email address."),
        Rule("phone_number", phone(), "Invalid phone number format."),
    ],
)


def basic_info_defaults() -> FormValues:
    defaults: FormValues = {name: "" for name in BASIC_INFO_COLUMNS}
    defaults["years_experience"] = 0
    return defaults


def normalize_basic_info(values: FormValues) -> FormValues:
    form = basic_info_defaults()
    for name in BASIC_INFO_COLUMNS:
        if name in values:
            form[name] = values[name]
    for name, value in form.items():
        if name == "years_experience":
            form[name] = _to_number(value)
        else:
            form[name] = _to_text(value)
    return form


def basic_info_to_row(values: FormValues) -> Row:
    return {column: values.get(name) for name, column in BASIC_INFO_COLUMNS.items()}


def row_to_basic_info(row: Row) -> FormValues:
    form = basic_info_defaults()
    for name, column in BASIC_INFO_COLUMNS.items():
        value = row.get(column)
        if value is not None:
            form[name] = value
    return form


def completion_percentage(values: FormValues) -> int:
    """Share of required basic-info fields that are filled, 0-100."""
    filled = 0
    for name in BASIC_INFO_REQUIRED:
        value = values.get(name)
        if name == "years_experience":
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                filled += 1
        elif value is not None and str(value).strip():
            filled += 1
    return round(filled / len(BASIC_INFO_REQUIRED) * 100)


# =============================================================================
# Step 2: Digital Presence (tool checklist)
# =============================================================================


class ToolToggle(BaseModel):
    """A tool the contractor provides a handle/link/email for."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    enabled: bool = False
    value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class ConfirmToggle(BaseModel):
    """A tool the contractor confirms is installed."""
    model_config = ConfigDict(extra="ignore")

    enabled: bool = False
    confirmed: bool = False

    @field_validator("confirmed", mode="before")
    @classmethod
    def none_to_false(cls, v: Any) -> Any:
        return False if v is None else v


VALUE_TOOLS = ("whatsapp", "discord", "github", "jira", "antigravity")
CONFIRM_TOOLS = ("git", "node")
TOOLS = ("whatsapp", "discord", "github", "jira", "git", "node", "antigravity")

TOOL_COLUMNS = {
    "whatsapp": "whatsapp",
    "discord": "discord",
    "github": "github",
    "jira": "jira",
    "git": "git",
    "node": "nodejs",
    "antigravity": "Antigravity",
}

SKIPPED_TOOLS_WARNING = "Note: You skipped some tools. You must set these up to work with us."


def _tool_rules(tool: str, check, message: str) -> list[Rule]:
    gate = f"{tool}.enabled"
    return [
        Rule(f"{tool}.value", required(), "Required when enabled", when=gate),
        Rule(f"{tool}.value", check, message, when=gate),
    ]


def skipped_tools(values: FormValues) -> list[str]:
    """Tools left switched off."""
    return [t for t in TOOLS if not (values.get(t) or {}).get("enabled")]


DIGITAL_PRESENCE_SCHEMA = StepSchema(
    name="requirements",
    rules=[
        # Section 1: communication
        *_tool_rules("whatsapp", min_length(5), "Invalid phone number"),
        *_tool_rules("discord", min_length(2), "Username required"),
        *_tool_rules("github", url(), "Must be a valid URL"),
        *_tool_rules("jira", email(), "Invalid email"),
        # Section 2: environment
        Rule("git.confirmed", is_true(), "You must confirm installation", when="git.enabled"),
        Rule("node.confirmed", is_true(), "You must confirm installation", when="node.enabled"),
        *_tool_rules("antigravity", email(), "Invalid email or format"),
    ],
    advisories=[
        Advisory(lambda values: bool(skipped_tools(values)), SKIPPED_TOOLS_WARNING),
    ],
)


def _coerce_tool(model: type[BaseModel], raw: Any) -> dict:
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()
    if not isinstance(raw, dict):
        return model().model_dump()
    try:
        return model.model_validate(raw).model_dump()
    except PydanticValidationError as e:
        logger.warning(f"Unreadable {model.__name__} input, using defaults: {e}")
        return model().model_dump()


def digital_presence_defaults() -> FormValues:
    form: FormValues = {t: ToolToggle().model_dump() for t in VALUE_TOOLS}
    form.update({t: ConfirmToggle().model_dump() for t in CONFIRM_TOOLS})
    return {t: form[t] for t in TOOLS}


def normalize_digital_presence(values: FormValues) -> FormValues:
    form: FormValues = {}
    for tool in TOOLS:
        model = ConfirmToggle if tool in CONFIRM_TOOLS else ToolToggle
        form[tool] = _coerce_tool(model, values.get(tool))
    return form


def prune_digital_presence(values: FormValues) -> FormValues:
    """Reset disabled tools to their empty sentinel."""
    form = dict(values)
    for tool in TOOLS:
        toggle = dict(form.get(tool) or {})
        if not toggle.get("enabled"):
            if tool in CONFIRM_TOOLS:
                toggle = ConfirmToggle().model_dump()
            else:
                toggle = ToolToggle().model_dump()
        form[tool] = toggle
    return form


def digital_presence_to_row(values: FormValues) -> Row:
    row: Row = {}
    for tool, column in TOOL_COLUMNS.items():
        toggle = values.get(tool) or {}
        enabled = bool(toggle.get("enabled"))
        if tool in CONFIRM_TOOLS:
            row[column] = bool(toggle.get("confirmed")) if enabled else False
        else:
            row[column] = (toggle.get("value") or "") if enabled else ""
    return row


def row_to_digital_presence(row: Row) -> FormValues:
    form: FormValues = {}
    for tool, column in TOOL_COLUMNS.items():
        stored = row.get(column)
        if tool in CONFIRM_TOOLS:
            form[tool] = {"enabled": bool(stored), "confirmed": bool(stored)}
        else:
            form[tool] = {"enabled": bool(stored), "value": stored or ""}
    return form


# =============================================================================
# Step 3: Professional & Financial
# =============================================================================

PROFILE_COLUMNS = {
    "work_capacity": "Work_capacity",
    "time_zone": "Time_zone",
    "start_date": "Start_date",
    "primary_skills": "Skills",
    "experience_level": "Experience_level",
    "portfolio_url": "Portfolio",
    "payment_method": "Payment_method",
}

# Variant fields share the Bank/Account_no/Branch_code/Holder_name columns
PAYMENT_COLUMNS = {
    "bank": {
        "bank_name": "Bank",
        "account_number": "Account_no",
        "branch_code": "Branch_code",
        "account_holder_name": "Holder_name",
    },
    "wise": {
        "wise_email": "Account_no",
    },
    "crypto": {
        "wallet_address": "Account_no",
        "network": "Branch_code",
    },
}

# Bank column label for non-bank methods
PAYMENT_LABELS = {
    "wise": "Wise",
    "crypto": "Crypto",
}

PAYMENT_STORE_COLUMNS = ("Bank", "Account_no", "Branch_code", "Holder_name")

SKILLS_SEPARATOR = ", "

PAYMENT_VARIANT = Variant(
    tag="payment_method",
    options={
        "bank": [
            Rule("bank_name", required(), "Bank Name is required."),
            Rule("account_number", required(), "Account Number is required."),
            Rule("branch_code", required(), "Branch Code is required."),
            Rule("account_holder_name", required(), "Account Holder Name is required."),
        ],
        "wise": [
            Rule("wise_email", email(), "Valid Wise Email is required."),
        ],
        "crypto": [
            Rule("network", one_of(CRYPTO_NETWORK_IDS), "Select a network."),
            Rule("wallet_address", required(), "Wallet Address is required."),
        ],
    },
    message="Select a payment method.",
)

PROFESSIONAL_FINANCIAL_SCHEMA = StepSchema(
    name="finish",
    rules=[
        # Section 1: availability
        Rule("work_capacity", one_of(WORK_CAPACITY_IDS), "Select your work capacity."),
        Rule("time_zone", required(), "Time zone is required."),
        Rule("start_date", required(), "Start date is required."),
        # Section 2: skills
        Rule("primary_skills", min_items(1), "Select at least one skill."),
        Rule("experience_level", one_of(EXPERIENCE_LEVELS), "Select your experience level."),
        Rule("portfolio_url", url(), "Must be a valid URL."),
        # Tax declaration
        Rule("tax_declaration", is_true(), "You must acknowledge tax responsibility."),
    ],
    variants=[PAYMENT_VARIANT],
)

PAYMENT_FIELDS = tuple(
    name for columns in PAYMENT_COLUMNS.values() for name in columns
)


def professional_financial_defaults() -> FormValues:
    form: FormValues = {
        "work_capacity": "",
        "time_zone": "",
        "start_date": "",
        "primary_skills": [],
        "experience_level": "",
        "portfolio_url": "",
        "tax_declaration": False,
        "payment_method": "bank",
    }
    form.update({name: "" for name in PAYMENT_FIELDS})
    return form


def _to_skills(value: Any) -> list[str]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return [s.strip() for s in value.split(",") if s.strip()]
    if isinstance(value, (list, tuple, set)):
        return [str(s) for s in value if s]
    return []


def normalize_professional_financial(values: FormValues) -> FormValues:
    form = professional_financial_defaults()
    for name in form:
        if name in values:
            form[name] = values[name]
    for name, value in form.items():
        if name == "primary_skills":
            form[name] = _to_skills(value)
        elif name == "tax_declaration":
            form[name] = _to_bool(value)
        else:
            form[name] = _to_text(value)
    return form


def prune_professional_financial(values: FormValues) -> FormValues:
    """Clear the fields of every payment variant except the selected one."""
    form = dict(values)
    method = form.get("payment_method")
    if method not in PAYMENT_VARIANT.options:
        return form
    for name in PAYMENT_VARIANT.fields_outside(method):
        form[name] = ""
    return form


def professional_financial_to_row(values: FormValues) -> Row:
    method = values.get("payment_method") or "bank"
    row: Row = {}
    for name, column in PROFILE_COLUMNS.items():
        if name == "primary_skills":
            row[column] = SKILLS_SEPARATOR.join(_to_skills(values.get(name)))
        else:
            row[column] = values.get(name) or ""
    row["Payment_method"] = method

    row.update({column: "" for column in PAYMENT_STORE_COLUMNS})
    row["Bank"] = PAYMENT_LABELS.get(method, "")
    for name, column in PAYMENT_COLUMNS.get(method, {}).items():
        row[column] = values.get(name) or ""
    return row


def row_to_professional_financial(row: Row) -> FormValues:
    method = row.get("Payment_method") or "bank"
    skills = row.get("Skills")
    form: FormValues = {
        "work_capacity": row.get("Work_capacity") or "full-time",
        "time_zone": row.get("Time_zone") or "",
        "start_date": row.get("Start_date") or "",
        "primary_skills": skills.split(SKILLS_SEPARATOR) if skills else [],
        "experience_level": row.get("Experience_level") or "mid-level",
        "portfolio_url": row.get("Portfolio") or "",
        # Must be re-acknowledged on every visit
        "tax_declaration": False,
        "payment_method": method,
    }
    for name, column in PAYMENT_COLUMNS.get(method, {}).items():
        form[name] = row.get(column) or ""
    return form
