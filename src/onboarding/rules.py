"""
Declarative Validation Rules.

Each step is described by a table of rules instead of ad hoc callbacks:

- Rule: (field, check, message), optionally gated by a boolean sibling.
  When the gate is off the field is exempt from every rule.
- Variant: a tag field selects one of several disjoint rule sets. Fields of
  the other variants are neither validated nor kept.
- Advisory: a whole-form predicate that produces a warning, never an error.

Fields are addressed with dotted paths one level deep ("whatsapp.value").
"""

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

Check = Callable[[Any], bool]

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-()]+$")

_url_adapter = TypeAdapter(AnyUrl)


# =============================================================================
# Checks
# =============================================================================


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def required() -> Check:
    return lambda value: bool(_text(value))


def min_length(n: int) -> Check:
    return lambda value: len(_text(value)) >= n


def max_length(n: int) -> Check:
    return lambda value: len(_text(value)) <= n


def email() -> Check:
    return lambda value: bool(EMAIL_PATTERN.match(_text(value)))


def phone() -> Check:
    return lambda value: bool(PHONE_PATTERN.match(_text(value)))


def url() -> Check:
    def check(value: Any) -> bool:
        text = _text(value)
        if not text:
            return False
        try:
            parsed = _url_adapter.validate_python(text)
        except PydanticValidationError:
            return False
        return bool(parsed.host)

    return check


def one_of(choices: Sequence[str]) -> Check:
    allowed = set(choices)
    return lambda value: value in allowed


def is_true() -> Check:
    return lambda value: value is True


def min_items(n: int) -> Check:
    return lambda value: isinstance(value, (list, tuple)) and len(value) >= n


def at_least(minimum: float) -> Check:
    def check(value: Any) -> bool:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return value >= minimum

    return check


def optional(check: Check) -> Check:
    """Pass empty values, otherwise defer to `check`."""
    return lambda value: not _text(value) or check(value)


# =============================================================================
# Rule tables
# =============================================================================


@dataclass(frozen=True)
class Rule:
    """One check on one field, optionally gated by a boolean sibling."""
    field: str
    check: Check
    message: str
    when: str | None = None


@dataclass(frozen=True)
class Variant:
    """Tag field selecting exactly one of several disjoint rule sets."""
    tag: str
    options: Mapping[str, Sequence[Rule]]
    message: str = "Select a valid option."

    def fields_of(self, option: str) -> set[str]:
        return {rule.field for rule in self.options.get(option, ())}

    def fields_outside(self, option: str) -> set[str]:
        """Fields owned by every variant except `option`."""
        owned = self.fields_of(option)
        others: set[str] = set()
        for name in self.options:
            if name != option:
                others |= self.fields_of(name)
        return others - owned


@dataclass(frozen=True)
class Advisory:
    """Whole-form check that warns when `applies(values)` is true."""
    applies: Callable[[Mapping[str, Any]], bool]
    message: str


@dataclass(frozen=True)
class StepSchema:
    name: str
    rules: Sequence[Rule] = ()
    variants: Sequence[Variant] = ()
    advisories: Sequence[Advisory] = ()


@dataclass
class ValidationResult:
    field_errors: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.field_errors


# =============================================================================
# Engine
# =============================================================================


def lookup(values: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted path ("github.value") against form values."""
    head, _, tail = path.partition(".")
    value = values.get(head)
    if not tail:
        return value
    if isinstance(value, Mapping):
        return value.get(tail)
    return None


def _apply(rules: Sequence[Rule], values: Mapping[str, Any], errors: dict[str, str]) -> None:
    for rule in rules:
        # First failure per field wins
        if rule.field in errors:
            continue
        if rule.when is not None and not lookup(values, rule.when):
            continue
        if not rule.check(lookup(values, rule.field)):
            errors[rule.field] = rule.message


def validate(schema: StepSchema, values: Mapping[str, Any]) -> ValidationResult:
    """
    Evaluate a step's rule table against form values.

    Returns every field error (keyed by dotted path) plus advisory warnings.
    Warnings never make the result invalid.
    """
    result = ValidationResult()

    _apply(schema.rules, values, result.field_errors)

    for variant in schema.variants:
        selected = lookup(values, variant.tag)
        if selected not in variant.options:
            result.field_errors.setdefault(variant.tag, variant.message)
            continue
        _apply(variant.options[selected], values, result.field_errors)

    for advisory in schema.advisories:
        if advisory.applies(values):
            result.warnings.append(advisory.message)

    return result
