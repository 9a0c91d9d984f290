"""Shared test helpers.

Usage:
    from tests.helpers import settle, make_resident, campaign_spec
"""

from tests.helpers.governance import (
    SOCIETY_ID,
    campaign_spec,
    emergency_spec,
    make_resident,
    make_residents,
    policy_spec,
    settle,
    succession_spec,
)

__all__ = [
    "SOCIETY_ID",
    "campaign_spec",
    "emergency_spec",
    "make_resident",
    "make_residents",
    "policy_spec",
    "settle",
    "succession_spec",
]
