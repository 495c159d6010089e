from __future__ import annotations

from typing import Protocol, Sequence

from . import db
from .errors import NoActiveRevision
from .models import Revision, ServiceIdentity, ServiceUpdate


class Platform(Protocol):
    def list_revisions(self, identity: ServiceIdentity) -> list[Revision]: ...

    def update_service(self, update: ServiceUpdate) -> object: ...


def select_active(revisions: Sequence[Revision], service_name: str | None = None) -> Revision:
    """Pick the revision carrying Active/CONDITION_SUCCEEDED.

    If several qualify the last one in listing order wins (no timestamp
    tie-break); the ambiguity is journalled as a warning.
    """
    active = [r for r in revisions if r.is_active]
    if not active:
        raise NoActiveRevision(
            f"No active revision among {len(revisions)} revision(s)"
            + (f" of service '{service_name}'" if service_name else "")
        )
    if len(active) > 1:
        names = ", ".join(r.name for r in active)
        db.log_event("WARN", f"Multiple active revisions ({names}); using the last listed", service_name=service_name)
    return active[-1]


class StateReader:
    """Read-only view of a service's deployed revisions."""

    def __init__(self, platform: Platform):
        self.platform = platform

    def list_revisions(self, identity: ServiceIdentity) -> list[Revision]:
        return list(self.platform.list_revisions(identity))

    def active_revision(self, identity: ServiceIdentity) -> Revision:
        return select_active(self.list_revisions(identity), service_name=identity.service_name)
