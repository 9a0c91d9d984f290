"""Unit tests for the governance HTTP API.

The app is served by TestClient over a coordinator built on in-memory
stubs and a FakeTimeAuthority, so no test touches the wall clock.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import timedelta
from typing import Any

import pytest
from fastapi.testclient import TestClient

from society_governance.api.main import create_app
from society_governance.api.routes.governance import status_for_kind
from society_governance.application.services.governance_coordinator import (
    GovernanceCoordinator,
)
from society_governance.config.governance_config import TEST_GOVERNANCE_CONFIG
from society_governance.domain.exceptions import GovernanceErrorKind
from society_governance.infrastructure.stubs import (
    FakeTimeAuthority,
    GovernanceStoreStub,
    NotificationDispatcherStub,
    RosterProviderStub,
)
from society_governance.infrastructure.stubs.fake_time_authority import DEFAULT_FROZEN_AT
from tests.helpers import SOCIETY_ID

BASE = "/v1/governance"
COMMITTEE = {"X-Governance-Role": "committee_member"}
ADMIN = {"X-Governance-Role": "admin"}


@pytest.fixture
def client(
    store: GovernanceStoreStub,
    roster: RosterProviderStub,
    dispatcher: NotificationDispatcherStub,
    fake_time: FakeTimeAuthority,
) -> Iterator[TestClient]:
    coordinator = GovernanceCoordinator(
        store=store,
        roster_provider=roster,
        dispatcher=dispatcher,
        time_authority=fake_time,
        config=TEST_GOVERNANCE_CONFIG,
    )
    with TestClient(create_app(coordinator)) as test_client:
        yield test_client


def _campaign_body(**overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "society_id": SOCIETY_ID,
        "title": "Solar panels on block C",
        "campaign_type": "poll",
        "start_time": DEFAULT_FROZEN_AT.isoformat(),
        "end_time": (DEFAULT_FROZEN_AT + timedelta(days=7)).isoformat(),
        "choices": [
            {"label": "Yes", "choice_id": "yes"},
            {"label": "No", "choice_id": "no"},
        ],
        "created_by": "committee-chair",
    }
    body.update(overrides)
    return body


def _open_campaign(client: TestClient, **overrides: Any) -> str:
    created = client.post(f"{BASE}/campaigns", json=_campaign_body(**overrides), headers=COMMITTEE)
    assert created.status_code == 201, created.text
    campaign_id = created.json()["campaign_id"]
    actor = {"actor_id": "committee-chair"}
    for step in ("schedule", "activate"):
        response = client.post(
            f"{BASE}/campaigns/{campaign_id}/{step}", json=actor, headers=COMMITTEE
        )
        assert response.status_code == 200, response.text
    return campaign_id


class TestErrorMapping:
    def test_status_table(self) -> None:
        assert status_for_kind(GovernanceErrorKind.CAMPAIGN_NOT_FOUND) == 404
        assert status_for_kind(GovernanceErrorKind.PERMISSION_DENIED) == 403
        assert status_for_kind(GovernanceErrorKind.ROSTER_UNAVAILABLE) == 503
        assert status_for_kind(GovernanceErrorKind.DUPLICATE_VOTE) == 409
        assert status_for_kind(GovernanceErrorKind.EMPTY_ELECTORATE) == 422

    def test_resident_cannot_create_campaign(self, client: TestClient) -> None:
        response = client.post(f"{BASE}/campaigns", json=_campaign_body())
        assert response.status_code == 403
        problem = response.json()
        assert problem["kind"] == "PermissionDenied"
        assert problem["type"].endswith("/permission-denied")
        assert problem["instance"] == f"{BASE}/campaigns"

    def test_unknown_role_rejected(self, client: TestClient) -> None:
        response = client.get(
            f"{BASE}/campaigns", headers={"X-Governance-Role": "landlord"}
        )
        assert response.status_code == 403

    def test_missing_campaign_is_404(self, client: TestClient) -> None:
        response = client.get(f"{BASE}/campaigns/missing")
        assert response.status_code == 404
        assert response.json()["kind"] == "CampaignNotFound"

    def test_request_validation(self, client: TestClient) -> None:
        body = _campaign_body(choices=[{"label": "Only"}])
        response = client.post(f"{BASE}/campaigns", json=body, headers=COMMITTEE)
        assert response.status_code == 422

    def test_roster_outage_is_503(self, client: TestClient, roster: RosterProviderStub) -> None:
        created = client.post(f"{BASE}/campaigns", json=_campaign_body(), headers=COMMITTEE)
        roster.set_unavailable(SOCIETY_ID)
        response = client.post(
            f"{BASE}/campaigns/{created.json()['campaign_id']}/schedule",
            json={"actor_id": "committee-chair"},
            headers=COMMITTEE,
        )
        assert response.status_code == 503
        assert response.json()["kind"] == "RosterUnavailable"


class TestCampaignRoutes:
    def test_vote_close_and_results(self, client: TestClient) -> None:
        campaign_id = _open_campaign(client)
        for voter, choice in (("resident-000", "yes"), ("resident-001", "yes"), ("resident-002", "no")):
            response = client.post(
                f"{BASE}/campaigns/{campaign_id}/votes",
                json={"voter_id": voter, "choice_id": choice},
            )
            assert response.status_code == 201
            assert "voter_identity" not in response.json()

        closed = client.post(
            f"{BASE}/campaigns/{campaign_id}/close",
            json={"actor_id": "committee-chair"},
            headers=COMMITTEE,
        )
        assert closed.status_code == 200
        payload = closed.json()
        assert payload["status"] == "results_published"
        assert payload["eligible_count"] == 10
        assert payload["results"]["winner_id"] == "yes"
        assert payload["results"]["total_votes"] == 3

    def test_duplicate_vote_is_conflict(self, client: TestClient) -> None:
        campaign_id = _open_campaign(client)
        vote = {"voter_id": "resident-000", "choice_id": "yes"}
        assert client.post(f"{BASE}/campaigns/{campaign_id}/votes", json=vote).status_code == 201
        response = client.post(f"{BASE}/campaigns/{campaign_id}/votes", json=vote)
        assert response.status_code == 409
        assert response.json()["kind"] == "DuplicateVote"

    def test_ineligible_voter_is_forbidden(self, client: TestClient) -> None:
        campaign_id = _open_campaign(client)
        response = client.post(
            f"{BASE}/campaigns/{campaign_id}/votes",
            json={"voter_id": "stranger", "choice_id": "yes"},
        )
        assert response.status_code == 403
        assert response.json()["kind"] == "VoterNotEligible"

    def test_list_filters_by_status(self, client: TestClient) -> None:
        _open_campaign(client)
        client.post(f"{BASE}/campaigns", json=_campaign_body(), headers=COMMITTEE)
        response = client.get(f"{BASE}/campaigns", params={"status": "draft"})
        assert response.json()["count"] == 1

    def test_cancel_requires_admin(self, client: TestClient) -> None:
        created = client.post(f"{BASE}/campaigns", json=_campaign_body(), headers=COMMITTEE)
        campaign_id = created.json()["campaign_id"]
        body = {"actor_id": "admin-001", "reason": "Duplicate"}
        denied = client.post(f"{BASE}/campaigns/{campaign_id}/cancel", json=body, headers=COMMITTEE)
        assert denied.status_code == 403
        cancelled = client.post(f"{BASE}/campaigns/{campaign_id}/cancel", json=body, headers=ADMIN)
        assert cancelled.json()["status"] == "cancelled"


class TestEmergencyRoutes:
    def test_declare_and_acknowledge(
        self, client: TestClient, dispatcher: NotificationDispatcherStub
    ) -> None:
        body = {
            "society_id": SOCIETY_ID,
            "title": "Fire alarm block B",
            "severity": "critical",
            "declared_by": "guard-7",
            "escalation_chain": [
                {
                    "responder_role": "security",
                    "responder_id": "guard-lead",
                    "contact_methods": ["call"],
                    "timeout_minutes": 5,
                }
            ],
        }
        declared = client.post(f"{BASE}/emergencies", json=body, headers=COMMITTEE)
        assert declared.status_code == 201
        alert = declared.json()
        assert alert["status"] == "declared"
        assert dispatcher.sent_to("guard-lead")

        acked = client.post(
            f"{BASE}/emergencies/{alert['alert_id']}/acknowledgments",
            json={"level": 1, "acknowledged_by": "guard-lead", "response": "on_site"},
            headers=COMMITTEE,
        )
        assert acked.status_code == 200
        assert acked.json()["status"] == "acknowledged"

        resolved = client.post(
            f"{BASE}/emergencies/{alert['alert_id']}/resolve",
            json={"resolved_by": "guard-lead", "notes": "False alarm"},
            headers=COMMITTEE,
        )
        assert resolved.json()["status"] == "resolved"
        again = client.post(
            f"{BASE}/emergencies/{alert['alert_id']}/resolve",
            json={"resolved_by": "guard-lead", "notes": "Again"},
            headers=COMMITTEE,
        )
        assert again.status_code == 409
        assert again.json()["kind"] == "AlertAlreadyResolved"


class TestPolicyAndReporting:
    def test_policy_flow_and_audit_export(self, client: TestClient) -> None:
        proposal = client.post(
            f"{BASE}/policies",
            json={
                "society_id": SOCIETY_ID,
                "title": "Pet registration",
                "proposal_text": "All pets must be registered with the office.",
                "category": "community",
                "proposed_by": "resident-001",
                "voting_ends_at": (DEFAULT_FROZEN_AT + timedelta(days=3)).isoformat(),
            },
        )
        assert proposal.status_code == 201, proposal.text
        proposal_id = proposal.json()["proposal_id"]
        for voter in ("resident-002", "resident-003"):
            client.post(
                f"{BASE}/policies/{proposal_id}/votes",
                json={"voter_id": voter, "choice": "approve"},
            )

        denied = client.post(
            f"{BASE}/policies/{proposal_id}/finalize",
            json={"actor_id": "committee-chair"},
            headers=COMMITTEE,
        )
        assert denied.status_code == 403
        decided = client.post(
            f"{BASE}/policies/{proposal_id}/finalize",
            json={"actor_id": "admin-001"},
            headers=ADMIN,
        )
        assert decided.json()["status"] == "approved"

        audit = client.get(
            f"{BASE}/audit", params={"resource_id": proposal_id}, headers=ADMIN
        )
        actions = [entry["action"] for entry in audit.json()["entries"]]
        assert actions == ["policy_proposed", "policy_voting_opened", "policy_approved"]
        assert client.get(f"{BASE}/audit", headers=COMMITTEE).status_code == 403

    def test_dashboard(self, client: TestClient) -> None:
        _open_campaign(client)
        response = client.get(f"{BASE}/societies/{SOCIETY_ID}/dashboard", headers=COMMITTEE)
        assert response.status_code == 200
        assert response.json()["active_campaigns"] == 1


class TestCorrelation:
    def test_correlation_id_echoed(self, client: TestClient) -> None:
        response = client.get(
            f"{BASE}/campaigns", headers={"X-Correlation-ID": "req-123"}
        )
        assert response.headers["X-Correlation-ID"] == "req-123"

    def test_correlation_id_generated(self, client: TestClient) -> None:
        response = client.get(f"{BASE}/campaigns")
        assert response.headers["X-Correlation-ID"]
