"""
Contractor Onboarding Wizard.

Three steps, each persisted to its own Supabase table keyed by an anonymous
session id, so a contractor can leave and resume or go back and edit:

1. Basic info            -> basicinfo
2. Digital presence      -> requirements
3. Professional/financial -> Finish (inserts here fire the completion webhook)
"""

from .aggregate import FormAggregate
from .controller import StepController, StepOutcome, StepState
from .errors import (
    ForwardingFailure,
    NoPreviousStep,
    OnboardingError,
    StoreUnavailable,
    SubmissionInProgress,
    ValidationError,
)
from .session import get_or_create_session_id
from .steps import WizardStep, get_step
from .store import RowStore
from .wizard import OnboardingWizard

__all__ = [
    "FormAggregate",
    "StepController",
    "StepOutcome",
    "StepState",
    "ForwardingFailure",
    "NoPreviousStep",
    "OnboardingError",
    "StoreUnavailable",
    "SubmissionInProgress",
    "ValidationError",
    "get_or_create_session_id",
    "WizardStep",
    "get_step",
    "RowStore",
    "OnboardingWizard",
]
