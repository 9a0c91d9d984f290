"""Production adapters for application ports."""

from society_governance.infrastructure.adapters.system_time import SystemTimeAuthority

__all__: list[str] = ["SystemTimeAuthority"]
