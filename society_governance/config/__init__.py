"""Configuration module for the governance engine.

Available Configurations:
- GovernanceConfig: Escalation, audit buffering, ballot token and quorum defaults
"""

from society_governance.config.governance_config import (
    TEST_GOVERNANCE_CONFIG,
    GovernanceConfig,
)

__all__ = [
    "GovernanceConfig",
    "TEST_GOVERNANCE_CONFIG",
]
