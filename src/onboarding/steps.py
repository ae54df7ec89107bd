"""
Onboarding Steps.

Registry of the three wizard steps: route key, Supabase collection, rule
table and the form <-> store translation for each.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from . import forms
from .rules import StepSchema


class WizardStep(Enum):
    """Wizard steps, in order. Values are the route keys."""
    BASIC_INFO = "basicinfo"
    DIGITAL_PRESENCE = "requirements"
    PROFESSIONAL_FINANCIAL = "finish"
    COMPLETE = "complete"


@dataclass(frozen=True)
class StepDefinition:
    """Everything a controller needs to run one step."""
    step: WizardStep
    title: str
    collection: str
    schema: StepSchema
    defaults: Callable[[], forms.FormValues]
    normalize: Callable[[forms.FormValues], forms.FormValues]
    prune: Callable[[forms.FormValues], forms.FormValues]
    to_row: Callable[[forms.FormValues], forms.Row]
    to_form: Callable[[forms.Row], forms.FormValues]

    @property
    def key(self) -> str:
        return self.step.value


def _identity(values: forms.FormValues) -> forms.FormValues:
    return dict(values)


STEP_DEFINITIONS: dict[WizardStep, StepDefinition] = {
    WizardStep.BASIC_INFO: StepDefinition(
        step=WizardStep.BASIC_INFO,
        title="Personal Identity",
        collection="basicinfo",
        schema=forms.BASIC_INFO_SCHEMA,
        defaults=forms.basic_info_defaults,
        normalize=forms.normalize_basic_info,
        prune=_identity,
        to_row=forms.basic_info_to_row,
        to_form=forms.row_to_basic_info,
    ),
    WizardStep.DIGITAL_PRESENCE: StepDefinition(
        step=WizardStep.DIGITAL_PRESENCE,
        title="Digital Presence",
        collection="requirements",
        schema=forms.DIGITAL_PRESENCE_SCHEMA,
        defaults=forms.digital_presence_defaults,
        normalize=forms.normalize_digital_presence,
        prune=forms.prune_digital_presence,
        to_row=forms.digital_presence_to_row,
        to_form=forms.row_to_digital_presence,
    ),
    WizardStep.PROFESSIONAL_FINANCIAL: StepDefinition(
        step=WizardStep.PROFESSIONAL_FINANCIAL,
        title="Professional & Financial",
        collection="Finish",
        schema=forms.PROFESSIONAL_FINANCIAL_SCHEMA,
        defaults=forms.professional_financial_defaults,
        normalize=forms.normalize_professional_financial,
        prune=forms.prune_professional_financial,
        to_row=forms.professional_financial_to_row,
        to_form=forms.row_to_professional_financial,
    ),
}

# Collection whose inserts trigger the completion webhook
FINAL_COLLECTION = STEP_DEFINITIONS[WizardStep.PROFESSIONAL_FINANCIAL].collection

FORM_STEPS = [s for s in WizardStep if s in STEP_DEFINITIONS]


def get_step(step: WizardStep | str) -> StepDefinition:
    """
    Look up a step definition by enum or route key.

    Raises:
        KeyError: unknown step, or the terminal COMPLETE step.
    """
    if isinstance(step, str):
        try:
            step = WizardStep(step)
        except ValueError:
            raise KeyError(step)
    return STEP_DEFINITIONS[step]


def next_step(step: WizardStep) -> WizardStep:
    """Step after `step`; COMPLETE after the last form step."""
    order = list(WizardStep)
    idx = order.index(step)
    return order[min(idx + 1, len(order) - 1)]


def previous_step(step: WizardStep) -> WizardStep | None:
    """Step before `step`, or None on the first step."""
    order = list(WizardStep)
    idx = order.index(step)
    return order[idx - 1] if idx > 0 else None
