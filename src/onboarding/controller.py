"""
Step Controller.

Runs one wizard step against the row store:

    HYDRATING -> READY -> SUBMITTING -> ADVANCED | REVERTED | FAILED

Hydration is best-effort: a missing row or an unreachable store both end in
READY, pre-filled from the form aggregate. Submission validates first and
makes no store call when validation fails. Back-navigation skips validation,
tries to save what is on screen, and always navigates.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from .aggregate import FormAggregate
from .errors import NoPreviousStep, StoreUnavailable, SubmissionInProgress, ValidationError
from .forms import FormValues
from .rules import validate
from .steps import StepDefinition, WizardStep, next_step, previous_step
from .store import RowStore

logger = logging.getLogger(__name__)

LOAD_FAILED_NOTICE = "We couldn't load your saved answers. You can keep going; we'll save on submit."
SAVE_FAILED_NOTICE = "Failed to save data to database. Please try again."
BACK_SAVE_FAILED_NOTICE = "Your latest edits on this page could not be saved."


class StepState(Enum):
    HYDRATING = "hydrating"
    READY = "ready"
    SUBMITTING = "submitting"
    ADVANCED = "advanced"
    REVERTED = "reverted"
    FAILED = "failed"


class StepNavigator(Protocol):
    """Whatever moves the user between steps (router, wizard, UI)."""

    def go_to(self, step: WizardStep) -> None:
        ...


@dataclass
class StepOutcome:
    """Result of a controller operation, ready to render."""
    state: StepState
    values: FormValues
    field_errors: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    notice: str | None = None
    step: WizardStep | None = None
    saved: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "values": self.values,
            "field_errors": self.field_errors,
            "warnings": self.warnings,
            "notice": self.notice,
            "step": self.step.value if self.step else None,
            "saved": self.saved,
        }

    def raise_for_errors(self) -> None:
        """
        Raises:
            ValidationError: the submitted values failed validation.
        """
        if self.field_errors:
            raise ValidationError(self.field_errors)


class StepController:
    """One step's lifecycle for one session."""

    def __init__(
        self,
        definition: StepDefinition,
        session_id: str,
        store: RowStore,
        aggregate: FormAggregate,
        navigator: StepNavigator,
    ):
        self.definition = definition
        self.session_id = session_id
        self.store = store
        self.aggregate = aggregate
        self.navigator = navigator

        self.state = StepState.HYDRATING
        self.notice: str | None = None
        self.values: FormValues = self._prefill()

    @property
    def collection(self) -> str:
        return self.definition.collection

    def _prefill(self) -> FormValues:
        """Step defaults overlaid with anything the aggregate already holds."""
        values = self.definition.defaults()
        values.update(self.aggregate.pick(values))
        return values

    def _outcome(self, **kwargs) -> StepOutcome:
        kwargs.setdefault("notice", self.notice)
        return StepOutcome(state=self.state, values=dict(self.values), **kwargs)

    # -------------------------------------------------------------------------
    # Hydration
    # -------------------------------------------------------------------------

    async def hydrate(self) -> StepOutcome:
        """Load the latest saved row for this session and step."""
        if self.state is StepState.SUBMITTING:
            raise SubmissionInProgress(self.definition.key)

        self.state = StepState.HYDRATING
        self.notice = None
        self.values = self._prefill()

        try:
            row = await self.store.fetch_latest(self.collection, self.session_id)
        except StoreUnavailable as e:
            logger.warning(f"Hydration of {self.collection} failed for {self.session_id}: {e}")
            self.notice = LOAD_FAILED_NOTICE
            row = None

        if row:
            hydrated = self.definition.to_form(row)
            self.values.update(hydrated)
            self.aggregate.merge(hydrated)

        self.state = StepState.READY
        return self._outcome(step=self.definition.step)

    # -------------------------------------------------------------------------
    # Forward submission
    # -------------------------------------------------------------------------

    async def submit(self, values: FormValues) -> StepOutcome:
        """
        Validate, save and advance.

        Validation errors keep the step READY with no store call. A failed
        save ends in FAILED with a retry notice; submitting again is allowed.

        Raises:
            SubmissionInProgress: a previous submit has not finished.
        """
        if self.state is StepState.SUBMITTING:
            raise SubmissionInProgress(self.definition.key)

        self.notice = None
        form = self.definition.normalize({**self.values, **values})
        self.values = form

        result = validate(self.definition.schema, form)
        if not result.valid:
            self.state = StepState.READY
            return self._outcome(field_errors=result.field_errors, warnings=result.warnings)

        for warning in result.warnings:
            logger.info(f"{self.definition.key} submitted with warning for {self.session_id}: {warning}")

        self.state = StepState.SUBMITTING
        pruned = self.definition.prune(form)
        row = self.definition.to_row(pruned)

        saved = False
        try:
            saved = await self.store.upsert(self.collection, self.session_id, row)
        finally:
            if not saved:
                self.state = StepState.FAILED

        if not saved:
            logger.error(f"Submit of {self.collection} failed for {self.session_id}: {self.store.error}")
            self.notice = SAVE_FAILED_NOTICE
            return self._outcome(warnings=result.warnings)

        self.values = pruned
        self.aggregate.merge(pruned)

        target = next_step(self.definition.step)
        self.navigator.go_to(target)
        self.state = StepState.ADVANCED
        return self._outcome(warnings=result.warnings, step=target, saved=True)

    # -------------------------------------------------------------------------
    # Back-navigation
    # -------------------------------------------------------------------------

    async def back(self, values: FormValues | None = None) -> StepOutcome:
        """
        Save current values without validation, then go to the previous step.

        The save is best-effort: navigation happens whether or not it worked.

        Raises:
            NoPreviousStep: called on the first step.
            SubmissionInProgress: a submit has not finished.
        """
        if self.state is StepState.SUBMITTING:
            raise SubmissionInProgress(self.definition.key)

        target = previous_step(self.definition.step)
        if target is None:
            raise NoPreviousStep(self.definition.key)

        form = self.definition.normalize({**self.values, **(values or {})})
        self.values = form
        self.aggregate.merge(form)

        saved = False
        try:
            saved = await self.store.upsert(
                self.collection, self.session_id, self.definition.to_row(form)
            )
        finally:
            self.navigator.go_to(target)
            self.state = StepState.REVERTED

        if saved:
            self.notice = None
        else:
            logger.warning(f"Back-navigation save of {self.collection} failed for {self.session_id}: {self.store.error}")
            self.notice = BACK_SAVE_FAILED_NOTICE

        return self._outcome(step=target, saved=saved)
