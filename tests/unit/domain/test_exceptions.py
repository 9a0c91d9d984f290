"""Unit tests for governance error kinds."""

from society_governance.domain.errors import (
    DuplicateVoteError,
    GovernanceError,
    GovernanceErrorKind,
    NoPlanConfiguredError,
    RosterUnavailableError,
)


class TestGovernanceErrors:
    def test_every_error_carries_its_kind(self) -> None:
        assert DuplicateVoteError("camp-1").kind is GovernanceErrorKind.DUPLICATE_VOTE
        assert NoPlanConfiguredError("soc-1").kind is GovernanceErrorKind.NO_PLAN_CONFIGURED

    def test_errors_share_a_base(self) -> None:
        assert isinstance(RosterUnavailableError("soc-1"), GovernanceError)

    def test_to_dict_exposes_kind_and_message(self) -> None:
        error = NoPlanConfiguredError("soc-1")
        payload = error.to_dict()
        assert payload["kind"] == "NoPlanConfigured"
        assert "soc-1" in payload["message"]

    def test_explicit_message_overrides_default(self) -> None:
        assert DuplicateVoteError("camp-1", message="Already voted").message == "Already voted"
