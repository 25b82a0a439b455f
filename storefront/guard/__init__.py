from .service import (
    Capability,
    CapabilityCheck,
    GuardDecision,
    RouteGuard,
    SessionMismatchError,
    REJECTED_STATUSES,
)

__all__ = [
    "Capability",
    "CapabilityCheck",
    "GuardDecision",
    "RouteGuard",
    "SessionMismatchError",
    "REJECTED_STATUSES",
]
