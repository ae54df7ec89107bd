"""
Tests for the step controller state machine.
"""

import asyncio

import pytest

from onboarding.aggregate import FormAggregate
from onboarding.controller import (
    BACK_SAVE_FAILED_NOTICE,
    LOAD_FAILED_NOTICE,
    SAVE_FAILED_NOTICE,
    StepController,
    StepState,
)
from onboarding.errors import NoPreviousStep, SubmissionInProgress, ValidationError
from onboarding.forms import SKIPPED_TOOLS_WARNING
from onboarding.steps import WizardStep, get_step


def _run(coro):
    return asyncio.run(coro)


def make_controller(step, store, aggregate, navigator, session_id="abc123"):
    return StepController(
        definition=get_step(step),
        session_id=session_id,
        store=store,
        aggregate=aggregate,
        navigator=navigator,
    )


class TestHydrate:
    """Loading a step."""

    def test_starts_hydrating(self, store, aggregate, navigator):
        controller = make_controller(WizardStep.BASIC_INFO, store, aggregate, navigator)
        assert controller.state is StepState.HYDRATING

    def test_hydrates_from_row(self, fake_supabase, store, aggregate, navigator):
        fake_supabase.insert_raw("requirements", {
            "session_id": "abc123",
            "whatsapp": "+15550000000",
            "discord": "",
            "github": "",
            "jira": "",
            "git": True,
            "nodejs": False,
            "Antigravity": "",
        })
        controller = make_controller(WizardStep.DIGITAL_PRESENCE, store, aggregate, navigator)

        outcome = _run(controller.hydrate())

        assert outcome.state is StepState.READY
        assert outcome.notice is None
        assert outcome.values["whatsapp"] == {"enabled": True, "value": "+15550000000"}
        assert outcome.values["discord"] == {"enabled": False, "value": ""}
        assert outcome.values["git"] == {"enabled": True, "confirmed": True}
        assert aggregate.get()["whatsapp"] == {"enabled": True, "value": "+15550000000"}

    def test_other_sessions_not_hydrated(self, fake_supabase, store, aggregate, navigator):
        fake_supabase.insert_raw("basicinfo", {"session_id": "someone-else", "Full_name": "Other"})
        controller = make_controller(WizardStep.BASIC_INFO, store, aggregate, navigator)

        outcome = _run(controller.hydrate())

        assert outcome.values["full_name"] == ""

    def test_no_row_prefills_from_aggregate(self, store, navigator):
        aggregate = FormAggregate({"time_zone": "UTC+5:30", "email": "jon@example.com"})
        controller = make_controller(WizardStep.PROFESSIONAL_FINANCIAL, store, aggregate, navigator)

        outcome = _run(controller.hydrate())

        assert outcome.state is StepState.READY
        assert outcome.values["time_zone"] == "UTC+5:30"
        # Fields of other steps are not pulled in
        assert "email" not in outcome.values

    def test_store_unavailable_still_ready(self, fake_supabase, store, navigator):
        fake_supabase.fail_with = "connection refused"
        aggregate = FormAggregate({"time_zone": "UTC+8"})
        controller = make_controller(WizardStep.PROFESSIONAL_FINANCIAL, store, aggregate, navigator)

        outcome = _run(controller.hydrate())

        assert outcome.state is StepState.READY
        assert outcome.notice == LOAD_FAILED_NOTICE
        assert outcome.values["time_zone"] == "UTC+8"
        assert aggregate.get() == {"time_zone": "UTC+8"}

    def test_hydrate_during_submit_rejected(self, store, aggregate, navigator):
        controller = make_controller(WizardStep.BASIC_INFO, store, aggregate, navigator)
        controller.state = StepState.SUBMITTING

        with pytest.raises(SubmissionInProgress):
            _run(controller.hydrate())


class TestSubmit:
    """Forward submission."""

    def test_invalid_makes_no_store_call(self, fake_supabase, store, aggregate, navigator):
        controller = make_controller(WizardStep.BASIC_INFO, store, aggregate, navigator)

        outcome = _run(controller.submit({"full_name": "J"}))

        assert outcome.state is StepState.READY
        assert outcome.field_errors["full_name"] == "Full Legal Name must be at least 2 characters."
        assert fake_supabase.calls == []
        assert navigator.history == []
        assert len(aggregate) == 0

    def test_valid_saves_and_advances(self, fake_supabase, store, aggregate, navigator, basic_info_values):
        controller = make_controller(WizardStep.BASIC_INFO, store, aggregate, navigator)

        outcome = _run(controller.submit(basic_info_values))

        assert outcome.state is StepState.ADVANCED
        assert outcome.saved is True
        assert outcome.step is WizardStep.DIGITAL_PRESENCE
        assert navigator.history == [WizardStep.DIGITAL_PRESENCE]

        rows = fake_supabase.rows("basicinfo")
        assert len(rows) == 1
        assert rows[0]["session_id"] == "abc123"
        assert rows[0]["Full_name"] == "Jonathan Doe"
        assert aggregate.get()["full_name"] == "Jonathan Doe"

    def test_resubmit_is_idempotent(self, fake_supabase, store, aggregate, navigator, basic_info_values):
        controller = make_controller(WizardStep.BASIC_INFO, store, aggregate, navigator)

        _run(controller.submit(basic_info_values))
        _run(controller.submit({"display_name": "Jonny"}))

        rows = fake_supabase.rows("basicinfo")
        assert len(rows) == 1
        assert rows[0]["Display_name"] == "Jonny"
        assert rows[0]["Full_name"] == "Jonathan Doe"

    def test_save_failure_then_retry(self, fake_supabase, store, aggregate, navigator, basic_info_values):
        controller = make_controller(WizardStep.BASIC_INFO, store, aggregate, navigator)
        fake_supabase.fail_upserts = True

        outcome = _run(controller.submit(basic_info_values))

        assert outcome.state is StepState.FAILED
        assert outcome.notice == SAVE_FAILED_NOTICE
        assert outcome.saved is False
        assert navigator.history == []
        assert "full_name" not in aggregate

        fake_supabase.fail_upserts = False
        outcome = _run(controller.submit({}))

        assert outcome.state is StepState.ADVANCED
        assert outcome.notice is None
        assert navigator.history == [WizardStep.DIGITAL_PRESENCE]

    def test_warning_does_not_block(self, fake_supabase, store, aggregate, navigator):
        controller = make_controller(WizardStep.DIGITAL_PRESENCE, store, aggregate, navigator)

        outcome = _run(controller.submit({}))

        assert outcome.state is StepState.ADVANCED
        assert outcome.warnings == [SKIPPED_TOOLS_WARNING]
        assert fake_supabase.rows("requirements")[0]["whatsapp"] == ""

    def test_disabled_tool_persisted_empty(self, fake_supabase, store, aggregate, navigator):
        controller = make_controller(WizardStep.DIGITAL_PRESENCE, store, aggregate, navigator)

        _run(controller.submit({
            "whatsapp": {"enabled": True, "value": "+15550000000"},
            "discord": {"enabled": False, "value": "stale-handle"},
        }))

        row = fake_supabase.rows("requirements")[0]
        assert row["whatsapp"] == "+15550000000"
        assert row["discord"] == ""
        assert aggregate.get()["discord"] == {"enabled": False, "value": ""}

    def test_last_step_completes(self, fake_supabase, store, aggregate, navigator, crypto_profile_values):
        controller = make_controller(WizardStep.PROFESSIONAL_FINANCIAL, store, aggregate, navigator)

        outcome = _run(controller.submit(crypto_profile_values))

        assert outcome.step is WizardStep.COMPLETE
        assert navigator.history == [WizardStep.COMPLETE]
        row = fake_supabase.rows("Finish")[0]
        assert row["Bank"] == "Crypto"
        assert row["Holder_name"] == ""

    def test_prefill_carries_across_steps(self, store, aggregate, navigator, basic_info_values):
        basic = make_controller(WizardStep.BASIC_INFO, store, aggregate, navigator)
        _run(basic.submit(basic_info_values))

        finish = make_controller(WizardStep.PROFESSIONAL_FINANCIAL, store, aggregate, navigator)
        outcome = _run(finish.hydrate())

        assert outcome.values["time_zone"] == "UTC+0"

    def test_submitted_values_hydrate_back(self, store, navigator, crypto_profile_values):
        first = make_controller(WizardStep.PROFESSIONAL_FINANCIAL, store, FormAggregate(), navigator)
        _run(first.submit(crypto_profile_values))

        # A fresh tab with the same session id
        second = make_controller(WizardStep.PROFESSIONAL_FINANCIAL, store, FormAggregate(), navigator)
        outcome = _run(second.hydrate())

        assert outcome.values["payment_method"] == "crypto"
        assert outcome.values["wallet_address"] == "TXYZabc123"
        assert outcome.values["primary_skills"] == ["React.js", "Node.js"]

    def test_submit_during_submit_rejected(self, store, aggregate, navigator):
        controller = make_controller(WizardStep.BASIC_INFO, store, aggregate, navigator)
        controller.state = StepState.SUBMITTING

        with pytest.raises(SubmissionInProgress):
            _run(controller.submit({}))


class TestBack:
    """Back-navigation."""

    def test_saves_without_validation(self, fake_supabase, store, aggregate, navigator):
        controller = make_controller(WizardStep.DIGITAL_PRESENCE, store, aggregate, navigator)

        outcome = _run(controller.back({"whatsapp": {"enabled": True, "value": "+1"}}))

        assert outcome.state is StepState.REVERTED
        assert outcome.saved is True
        assert outcome.step is WizardStep.BASIC_INFO
        assert navigator.history == [WizardStep.BASIC_INFO]
        assert fake_supabase.rows("requirements")[0]["whatsapp"] == "+1"
        assert aggregate.get()["whatsapp"] == {"enabled": True, "value": "+1"}

    def test_navigates_when_save_fails(self, fake_supabase, store, aggregate, navigator):
        fake_supabase.fail_upserts = True
        controller = make_controller(WizardStep.PROFESSIONAL_FINANCIAL, store, aggregate, navigator)

        outcome = _run(controller.back({"time_zone": "UTC-5"}))

        assert outcome.state is StepState.REVERTED
        assert outcome.saved is False
        assert outcome.notice == BACK_SAVE_FAILED_NOTICE
        assert navigator.history == [WizardStep.DIGITAL_PRESENCE]
        assert aggregate.get()["time_zone"] == "UTC-5"

    def test_first_step_has_no_previous(self, fake_supabase, store, aggregate, navigator):
        controller = make_controller(WizardStep.BASIC_INFO, store, aggregate, navigator)

        with pytest.raises(NoPreviousStep):
            _run(controller.back({}))

        assert fake_supabase.calls == []
        assert navigator.history == []

    def test_back_during_submit_rejected(self, store, aggregate, navigator):
        controller = make_controller(WizardStep.DIGITAL_PRESENCE, store, aggregate, navigator)
        controller.state = StepState.SUBMITTING

        with pytest.raises(SubmissionInProgress):
            _run(controller.back())


class TestRaiseForErrors:
    def test_invalid_outcome_raises(self, store, aggregate, navigator):
        controller = make_controller(WizardStep.BASIC_INFO, store, aggregate, navigator)
        outcome = _run(controller.submit({"full_name": "J"}))

        with pytest.raises(ValidationError) as exc_info:
            outcome.raise_for_errors()

        assert exc_info.value.field_errors == outcome.field_errors

    def test_valid_outcome_does_not_raise(self, store, aggregate, navigator, basic_info_values):
        controller = make_controller(WizardStep.BASIC_INFO, store, aggregate, navigator)
        outcome = _run(controller.submit(basic_info_values))

        outcome.raise_for_errors()
