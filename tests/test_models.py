"""Tests for job state transitions and record rendering."""

import pytest

from driveverify.jobs.models import DiffResult, JobRecord, JobState

PIPELINE = [
    JobState.INIT,
    JobState.DOWNLOAD_SRC,
    JobState.DOWNLOAD_DST,
    JobState.COMPARE,
]


class TestJobState:

    @pytest.mark.parametrize("current,nxt", list(zip(PIPELINE, PIPELINE[1:])))
    def test_forward_steps_allowed(self, current, nxt) -> None:
        assert current.can_transition_to(nxt)

    @pytest.mark.parametrize("state", PIPELINE)
    def test_any_live_state_may_error(self, state) -> None:
        assert state.can_transition_to(JobState.ERROR)

    def test_compare_ends_in_verdict(self) -> None:
        assert JobState.COMPARE.can_transition_to(JobState.SUCCESS)
        assert JobState.COMPARE.can_transition_to(JobState.FAILED)

    def test_backward_and_skipping_rejected(self) -> None:
        assert not JobState.DOWNLOAD_DST.can_transition_to(JobState.DOWNLOAD_SRC)
        assert not JobState.INIT.can_transition_to(JobState.COMPARE)
        assert not JobState.DOWNLOAD_SRC.can_transition_to(JobState.SUCCESS)

    @pytest.mark.parametrize("state", [JobState.SUCCESS, JobState.FAILED, JobState.ERROR])
    def test_terminal_states_are_final(self, state) -> None:
        assert state.is_terminal
        assert not any(state.can_transition_to(other) for other in JobState)


class TestRecordRendering:

    def test_diff_json_string_is_decoded(self) -> None:
        record = JobRecord(id="x", diff_json='{"missing": ["a"], "mismatch": []}')
        assert record.diff_json == {"missing": ["a"], "mismatch": []}

    def test_as_fields_is_flat_json(self) -> None:
        record = JobRecord(id="x", state="compare", download_count="3")
        fields = record.as_fields()
        assert fields["state"] == "compare"
        assert fields["download_count"] == 3
        assert fields["comment"] is None

    def test_diff_result_is_empty(self) -> None:
        assert DiffResult().is_empty
        assert not DiffResult(mismatch=["x"]).is_empty
