"""
API layer - FastAPI routes and HTTP concerns for the governance service.

This layer contains:
- FastAPI route definitions
- Request/Response models
- HTTP middleware
- Dependency providers

IMPORT RULES:
- CAN import from: application, domain
- CANNOT import from: infrastructure directly (bootstrap wires adapters)
"""

__all__: list[str] = []
