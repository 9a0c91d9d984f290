"""Unit tests for correlation id handling."""

from society_governance.infrastructure.observability import (
    correlation_id_processor,
    generate_correlation_id,
    set_correlation_id,
)


def test_processor_adds_correlation_id() -> None:
    correlation_id = generate_correlation_id()
    set_correlation_id(correlation_id)
    event = correlation_id_processor(None, "info", {"event": "campaign_created"})
    assert event["correlation_id"] == correlation_id
    set_correlation_id("")


def test_processor_skips_empty_correlation_id() -> None:
    set_correlation_id("")
    event = correlation_id_processor(None, "info", {"event": "campaign_created"})
    assert "correlation_id" not in event
