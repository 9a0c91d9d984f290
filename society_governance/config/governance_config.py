"""Governance engine configuration.

This module defines tunables for escalation, audit buffering, anonymous
ballots and quorum defaults, with environment variable overrides.

Environment Variables:
- GOVERNANCE_DEFAULT_LEVEL_TIMEOUT_MINUTES: Timeout for escalation levels
  declared without one (default: 15, min: 1, max: 1440)
- GOVERNANCE_AUDIT_RETRY_SECONDS: Delay between audit buffer flush
  attempts (default: 5, min: 0, max: 3600)
- GOVERNANCE_AUDIT_BUFFER_LIMIT: Backlog size that triggers a warning
  (default: 10000, min: 1). Entries are never dropped.
- GOVERNANCE_BALLOT_TOKEN_KEY: 64 hex chars, the blake3 key for anonymous
  voter tokens (default: random per process)
- GOVERNANCE_DEFAULT_QUORUM_PERCENT: Minimum participation applied when a
  quorum campaign gives none (default: 50, min: 0, max: 100)
- GOVERNANCE_ENVIRONMENT: production or development (default: development)
"""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass, field
from datetime import timedelta


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


# =============================================================================
# Escalation
# =============================================================================

DEFAULT_LEVEL_TIMEOUT_MINUTES = 15
MIN_LEVEL_TIMEOUT_MINUTES = 1
MAX_LEVEL_TIMEOUT_MINUTES = 1440

# =============================================================================
# Audit buffering
# =============================================================================

DEFAULT_AUDIT_RETRY_SECONDS = 5
MIN_AUDIT_RETRY_SECONDS = 0
MAX_AUDIT_RETRY_SECONDS = 3600

DEFAULT_AUDIT_BUFFER_LIMIT = 10_000
MIN_AUDIT_BUFFER_LIMIT = 1

# =============================================================================
# Ballots and quorum
# =============================================================================

BALLOT_TOKEN_KEY_BYTES = 32

DEFAULT_QUORUM_PERCENT = 50

VALID_ENVIRONMENTS = frozenset({"production", "development"})


def _random_token_key() -> bytes:
    return secrets.token_bytes(BALLOT_TOKEN_KEY_BYTES)


@dataclass(frozen=True)
class GovernanceConfig:
    """Configuration for the governance engine.

    Attributes:
        default_level_timeout_minutes: Applied to escalation levels that
            arrive without a timeout.
        audit_retry_seconds: Delay between flush attempts while the store
            is unavailable.
        audit_buffer_limit: Backlog size above which a warning is logged.
        ballot_token_key: 32-byte blake3 key for anonymous voter tokens.
        default_quorum_percent: Participation applied to quorum campaigns
            created without an explicit minimum.
        environment: Selects the log renderer.
    """

    default_level_timeout_minutes: int = DEFAULT_LEVEL_TIMEOUT_MINUTES
    audit_retry_seconds: int = DEFAULT_AUDIT_RETRY_SECONDS
    audit_buffer_limit: int = DEFAULT_AUDIT_BUFFER_LIMIT
    ballot_token_key: bytes = field(default_factory=_random_token_key, repr=False)
    default_quorum_percent: int = DEFAULT_QUORUM_PERCENT
    environment: str = "development"

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not (
            MIN_LEVEL_TIMEOUT_MINUTES
            <= self.default_level_timeout_minutes
            <= MAX_LEVEL_TIMEOUT_MINUTES
        ):
            raise ValueError(
                f"default_level_timeout_minutes must be between {MIN_LEVEL_TIMEOUT_MINUTES} "
                f"and {MAX_LEVEL_TIMEOUT_MINUTES}, got {self.default_level_timeout_minutes}"
            )
        if not MIN_AUDIT_RETRY_SECONDS <= self.audit_retry_seconds <= MAX_AUDIT_RETRY_SECONDS:
            raise ValueError(
                f"audit_retry_seconds must be between {MIN_AUDIT_RETRY_SECONDS} "
                f"and {MAX_AUDIT_RETRY_SECONDS}, got {self.audit_retry_seconds}"
            )
        if self.audit_buffer_limit < MIN_AUDIT_BUFFER_LIMIT:
            raise ValueError(
                f"audit_buffer_limit must be at least {MIN_AUDIT_BUFFER_LIMIT}, "
                f"got {self.audit_buffer_limit}"
            )
        if len(self.ballot_token_key) != BALLOT_TOKEN_KEY_BYTES:
            raise ValueError(
                f"ballot_token_key must be {BALLOT_TOKEN_KEY_BYTES} bytes, "
                f"got {len(self.ballot_token_key)}"
            )
        if not 0 <= self.default_quorum_percent <= 100:
            raise ValueError(
                f"default_quorum_percent must be between 0 and 100, "
                f"got {self.default_quorum_percent}"
            )
        if self.environment not in VALID_ENVIRONMENTS:
            raise ValueError(
                f"environment must be one of {sorted(VALID_ENVIRONMENTS)}, "
                f"got {self.environment!r}"
            )

    @property
    def default_level_timeout(self) -> timedelta:
        return timedelta(minutes=self.default_level_timeout_minutes)

    @classmethod
    def from_environment(cls) -> GovernanceConfig:
        """Create config from environment variables with defaults.

        Integer values outside their range are clamped. A malformed
        ballot token key raises, since silently replacing it would make
        anonymous duplicate detection inconsistent across restarts.

        Returns:
            GovernanceConfig with values from environment or defaults.
        """
        timeout = _clamp(
            _get_int_env(
                "GOVERNANCE_DEFAULT_LEVEL_TIMEOUT_MINUTES", DEFAULT_LEVEL_TIMEOUT_MINUTES
            ),
            MIN_LEVEL_TIMEOUT_MINUTES,
            MAX_LEVEL_TIMEOUT_MINUTES,
        )
        retry = _clamp(
            _get_int_env("GOVERNANCE_AUDIT_RETRY_SECONDS", DEFAULT_AUDIT_RETRY_SECONDS),
            MIN_AUDIT_RETRY_SECONDS,
            MAX_AUDIT_RETRY_SECONDS,
        )
        buffer_limit = max(
            MIN_AUDIT_BUFFER_LIMIT,
            _get_int_env("GOVERNANCE_AUDIT_BUFFER_LIMIT", DEFAULT_AUDIT_BUFFER_LIMIT),
        )
        quorum = _clamp(
            _get_int_env("GOVERNANCE_DEFAULT_QUORUM_PERCENT", DEFAULT_QUORUM_PERCENT),
            0,
            100,
        )
        environment = os.environ.get("GOVERNANCE_ENVIRONMENT", "development").lower()

        raw_key = os.environ.get("GOVERNANCE_BALLOT_TOKEN_KEY")
        if raw_key:
            try:
                token_key = bytes.fromhex(raw_key)
            except ValueError:
                raise ValueError("GOVERNANCE_BALLOT_TOKEN_KEY must be hex encoded") from None
        else:
            token_key = _random_token_key()

        return cls(
            default_level_timeout_minutes=timeout,
            audit_retry_seconds=retry,
            audit_buffer_limit=buffer_limit,
            ballot_token_key=token_key,
            default_quorum_percent=quorum,
            environment=environment,
        )


# Config for tests: one-second audit retry, fixed token key.
TEST_GOVERNANCE_CONFIG = GovernanceConfig(
    audit_retry_seconds=1,
    ballot_token_key=bytes(range(BALLOT_TOKEN_KEY_BYTES)),
)
