from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

ACTIVE = "Active"
CONDITION_SUCCEEDED = "CONDITION_SUCCEEDED"


@dataclass(frozen=True)
class ServiceIdentity:
    project_id: str
    region: str
    service_name: str

    @property
    def parent(self) -> str:
        return f"projects/{self.project_id}/locations/{self.region}/services/{self.service_name}"


@dataclass(frozen=True)
class Condition:
    type: str
    state: str


@dataclass(frozen=True)
class Container:
    """First-class view of a revision container.

    env, resources and the probes are the platform's own objects; they are
    never inspected, only copied into the next update.
    """

    image: str
    env: Any = None
    resources: Any = None
    liveness_probe: Any = None
    startup_probe: Any = None


@dataclass(frozen=True)
class Scaling:
    min_instance_count: int = 0
    max_instance_count: int = 0


@dataclass(frozen=True)
class Revision:
    name: str
    conditions: tuple[Condition, ...] = ()
    containers: tuple[Container, ...] = ()
    scaling: Scaling = field(default_factory=Scaling)

    @property
    def is_active(self) -> bool:
        return any(c.type == ACTIVE and c.state == CONDITION_SUCCEEDED for c in self.conditions)

    @property
    def image(self) -> str | None:
        return self.containers[0].image if self.containers else None


@dataclass(frozen=True)
class ServiceUpdate:
    """Everything sent to the platform when rolling a service to a new image."""

    service_name: str  # full resource name
    image: str
    env: Any = None
    resources: Any = None
    liveness_probe: Any = None
    startup_probe: Any = None
    min_instance_count: int = 0
    max_instance_count: int = 0


class Outcome(str, Enum):
    NO_UPDATE_NEEDED = "no-update-needed"
    UPDATED = "updated-and-active"
    TIMED_OUT = "updated-but-timed-out"
    ERROR = "error"


class DriverState(str, Enum):
    COMPARING = "comparing"
    NO_OP_DONE = "no-op-done"
    UPDATING = "updating"
    POLLING = "polling"
    CONVERGED = "converged"
    TIMED_OUT = "timed-out"
    ERRORED = "errored"


_STATUS_TEXT = {
    Outcome.NO_UPDATE_NEEDED: "no update needed",
    Outcome.UPDATED: "updated successfully",
    Outcome.TIMED_OUT: "update initiated but not yet active",
}

_STATUS_CODE = {
    Outcome.NO_UPDATE_NEEDED: 200,
    Outcome.UPDATED: 200,
    Outcome.TIMED_OUT: 202,
    Outcome.ERROR: 500,
}


@dataclass
class ConvergenceResult:
    outcome: Outcome
    current_digest: str | None = None
    stable_digest: str | None = None
    message: str | None = None
    error: str | None = None
    error_code: str | None = None
    new_revision: str | None = None
    attempts: int = 0

    @property
    def status_code(self) -> int:
        return _STATUS_CODE[self.outcome]

    def to_response(self) -> dict[str, Any]:
        if self.outcome is Outcome.ERROR:
            return {
                "success": False,
                "message": self.message or "Error checking or updating Cloud Run service",
                "error": self.error,
            }
        body: dict[str, Any] = {
            "status": _STATUS_TEXT[self.outcome],
            "gtm-version": self.current_digest,
            "latest-image-version": self.stable_digest,
        }
        if self.outcome is Outcome.TIMED_OUT:
            body["message"] = self.message
        return body
