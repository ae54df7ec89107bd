"""
Onboarding Wizard.

The coordinating object for one session: owns the session id, the form
aggregate and one controller per step, and acts as the navigator the
controllers report transitions to. Controllers never share state except
through the aggregate this object hands them.
"""

import logging
from collections import OrderedDict
from typing import Any

from .aggregate import FormAggregate
from .controller import StepController, StepOutcome
from .forms import FormValues, completion_percentage
from .steps import FORM_STEPS, WizardStep, get_step
from .store import RowStore

logger = logging.getLogger(__name__)


class OnboardingWizard:
    """Per-session wizard state."""

    def __init__(self, session_id: str, store: RowStore):
        self.session_id = session_id
        self.store = store
        self.aggregate = FormAggregate()
        self.current_step = WizardStep.BASIC_INFO
        self._controllers: dict[WizardStep, StepController] = {}

    # StepNavigator
    def go_to(self, step: WizardStep) -> None:
        logger.info(f"Session {self.session_id}: {self.current_step.value} -> {step.value}")
        self.current_step = step

    @property
    def completed(self) -> bool:
        return self.current_step is WizardStep.COMPLETE

    def controller(self, step: WizardStep | str) -> StepController:
        definition = get_step(step)
        if definition.step not in self._controllers:
            self._controllers[definition.step] = StepController(
                definition=definition,
                session_id=self.session_id,
                store=self.store,
                aggregate=self.aggregate,
                navigator=self,
            )
        return self._controllers[definition.step]

    async def enter(self, step: WizardStep | str) -> StepOutcome:
        """Open a step (page load or navigation) and hydrate it."""
        controller = self.controller(step)
        self.current_step = controller.definition.step
        return await controller.hydrate()

    async def submit(self, step: WizardStep | str, values: FormValues) -> StepOutcome:
        return await self.controller(step).submit(values)

    async def back(self, step: WizardStep | str, values: FormValues | None = None) -> StepOutcome:
        return await self.controller(step).back(values)

    def snapshot(self) -> dict[str, Any]:
        """Where the session stands, for resume UIs."""
        values = self.aggregate.get()
        return {
            "session_id": self.session_id,
            "current_step": self.current_step.value,
            "completed": self.completed,
            "steps": [s.value for s in FORM_STEPS],
            "completion_percentage": completion_percentage(values),
            "values": values,
        }


MAX_WIZARDS = 1000


class WizardRegistry:
    """
    In-memory wizards keyed by session id, least recently used first out.

    Holds at most `max_size` wizards; a session whose wizard was evicted is
    rebuilt from the store on the next step load.
    """

    def __init__(self, store: RowStore | None = None, max_size: int = MAX_WIZARDS):
        self._store = store
        self.max_size = max_size
        self._wizards: OrderedDict[str, OnboardingWizard] = OrderedDict()

    @property
    def store(self) -> RowStore:
        if self._store is None:
            self._store = RowStore()
        return self._store

    def get(self, session_id: str) -> OnboardingWizard:
        wizard = self._wizards.get(session_id)
        if wizard is not None:
            self._wizards.move_to_end(session_id)
            return wizard

        wizard = OnboardingWizard(session_id, self.store)
        self._wizards[session_id] = wizard
        while len(self._wizards) > self.max_size:
            evicted, _ = self._wizards.popitem(last=False)
            logger.debug(f"Evicted wizard for session {evicted}")
        return wizard

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._wizards

    def clear(self) -> None:
        self._wizards.clear()

    def __len__(self) -> int:
        return len(self._wizards)
