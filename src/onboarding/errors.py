"""
Onboarding error taxonomy.

None of these are fatal: every failure leaves the user able to retry the
action that triggered it.
"""


class OnboardingError(Exception):
    """Base class for onboarding failures."""


class ValidationError(OnboardingError):
    """Field-scoped validation failure. Blocks submission only."""

    def __init__(self, field_errors: dict[str, str]):
        self.field_errors = field_errors
        fields = ", ".join(sorted(field_errors))
        super().__init__(f"Invalid fields: {fields}")


class StoreUnavailable(OnboardingError):
    """Row store transport or auth failure."""

    def __init__(self, collection: str, message: str):
        self.collection = collection
        self.message = message
        super().__init__(f"{collection}: {message}")


class ForwardingFailure(OnboardingError):
    """Completion webhook returned non-2xx or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class SubmissionInProgress(OnboardingError):
    """A step submission is already in flight; controls stay disabled."""


class NoPreviousStep(OnboardingError):
    """Back-navigation requested on the first step."""
