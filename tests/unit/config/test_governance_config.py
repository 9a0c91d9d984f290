"""Unit tests for GovernanceConfig.

Tests for governance configuration including:
- Default values
- Input validation
- Environment variable loading and clamping
"""

from __future__ import annotations

import os
from datetime import timedelta
from unittest.mock import patch

import pytest

from society_governance.config.governance_config import (
    TEST_GOVERNANCE_CONFIG,
    GovernanceConfig,
)


class TestGovernanceConfig:
    """Tests for GovernanceConfig dataclass."""

    class TestDefaults:
        def test_default_level_timeout(self) -> None:
            config = GovernanceConfig()
            assert config.default_level_timeout_minutes == 15
            assert config.default_level_timeout == timedelta(minutes=15)

        def test_default_audit_settings(self) -> None:
            config = GovernanceConfig()
            assert config.audit_retry_seconds == 5
            assert config.audit_buffer_limit == 10_000

        def test_random_token_key_per_instance(self) -> None:
            """Two default configs should not share a token key."""
            first, second = GovernanceConfig(), GovernanceConfig()
            assert len(first.ballot_token_key) == 32
            assert first.ballot_token_key != second.ballot_token_key

        def test_token_key_not_in_repr(self) -> None:
            config = GovernanceConfig(ballot_token_key=b"k" * 32)
            assert "kkkk" not in repr(config)

    class TestValidation:
        def test_level_timeout_bounds(self) -> None:
            with pytest.raises(ValueError, match="default_level_timeout_minutes"):
                GovernanceConfig(default_level_timeout_minutes=0)
            with pytest.raises(ValueError, match="default_level_timeout_minutes"):
                GovernanceConfig(default_level_timeout_minutes=1441)

        def test_token_key_length(self) -> None:
            with pytest.raises(ValueError, match="32 bytes"):
                GovernanceConfig(ballot_token_key=b"short")

        def test_quorum_bounds(self) -> None:
            with pytest.raises(ValueError, match="default_quorum_percent"):
                GovernanceConfig(default_quorum_percent=101)

        def test_unknown_environment(self) -> None:
            with pytest.raises(ValueError, match="environment"):
                GovernanceConfig(environment="staging")

    class TestFromEnvironment:
        def test_defaults_when_unset(self) -> None:
            with patch.dict(os.environ, {}, clear=True):
                config = GovernanceConfig.from_environment()
            assert config.default_level_timeout_minutes == 15
            assert config.environment == "development"

        def test_reads_overrides(self) -> None:
            env = {
                "GOVERNANCE_DEFAULT_LEVEL_TIMEOUT_MINUTES": "30",
                "GOVERNANCE_AUDIT_RETRY_SECONDS": "2",
                "GOVERNANCE_BALLOT_TOKEN_KEY": "ab" * 32,
                "GOVERNANCE_ENVIRONMENT": "PRODUCTION",
            }
            with patch.dict(os.environ, env, clear=True):
                config = GovernanceConfig.from_environment()
            assert config.default_level_timeout_minutes == 30
            assert config.audit_retry_seconds == 2
            assert config.ballot_token_key == bytes.fromhex("ab" * 32)
            assert config.environment == "production"

        def test_out_of_range_values_are_clamped(self) -> None:
            env = {
                "GOVERNANCE_DEFAULT_LEVEL_TIMEOUT_MINUTES": "99999",
                "GOVERNANCE_DEFAULT_QUORUM_PERCENT": "-5",
                "GOVERNANCE_AUDIT_BUFFER_LIMIT": "0",
            }
            with patch.dict(os.environ, env, clear=True):
                config = GovernanceConfig.from_environment()
            assert config.default_level_timeout_minutes == 1440
            assert config.default_quorum_percent == 0
            assert config.audit_buffer_limit == 1

        def test_non_numeric_falls_back_to_default(self) -> None:
            with patch.dict(
                os.environ, {"GOVERNANCE_AUDIT_RETRY_SECONDS": "soon"}, clear=True
            ):
                config = GovernanceConfig.from_environment()
            assert config.audit_retry_seconds == 5

        def test_malformed_token_key_raises(self) -> None:
            with patch.dict(
                os.environ, {"GOVERNANCE_BALLOT_TOKEN_KEY": "not-hex"}, clear=True
            ):
                with pytest.raises(ValueError, match="hex"):
                    GovernanceConfig.from_environment()


def test_test_config_is_deterministic() -> None:
    assert TEST_GOVERNANCE_CONFIG.ballot_token_key == bytes(range(32))
    assert TEST_GOVERNANCE_CONFIG.audit_retry_seconds == 1
