"""
Society Governance - coordination engine for residential society governance.

Runs voting campaigns (elections, polls, referendums and policy votes with
eligibility rules and quorum), timeout-driven emergency escalation chains,
succession plans and policy proposals, with every action recorded in an
append-only audit log.

Operating rules:
- One ballot per eligible voter, never more
- Escalation only moves forward
- Do not fail to escalate, even when notifications fail
- Every governance action is audited
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
