from __future__ import annotations

from concurrent.futures import TimeoutError as OperationTimeout
from typing import Any

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import run_v2

from .errors import PlatformUnavailable, UpdateSubmissionFailed
from .models import Condition, Container, Revision, Scaling, ServiceIdentity, ServiceUpdate
from .settings import settings


def _enum_name(value: Any) -> str:
    return getattr(value, "name", None) or str(value)


def _present(msg: Any, field_name: str) -> Any:
    # Unset message fields read back as empty defaults; keep them as None.
    return getattr(msg, field_name) if field_name in msg else None


def revision_from_proto(rev: run_v2.Revision) -> Revision:
    containers = tuple(
        Container(
            image=c.image,
            env=list(c.env),
            resources=_present(c, "resources"),
            liveness_probe=_present(c, "liveness_probe"),
            startup_probe=_present(c, "startup_probe"),
        )
        for c in rev.containers
    )
    return Revision(
        name=rev.name,
        conditions=tuple(Condition(type=c.type_, state=_enum_name(c.state)) for c in rev.conditions),
        containers=containers,
        scaling=Scaling(
            min_instance_count=rev.scaling.min_instance_count,
            max_instance_count=rev.scaling.max_instance_count,
        ),
    )


def service_from_update(update: ServiceUpdate) -> run_v2.Service:
    container: dict[str, Any] = {"image": update.image}
    for key in ("env", "resources", "liveness_probe", "startup_probe"):
        value = getattr(update, key)
        if value is not None:
            container[key] = value
    return run_v2.Service(
        name=update.service_name,
        template=run_v2.RevisionTemplate(
            containers=[run_v2.Container(**container)],
            scaling=run_v2.RevisionScaling(
                min_instance_count=update.min_instance_count,
                max_instance_count=update.max_instance_count,
            ),
        ),
    )


class CloudRunPlatform:
    """Long-lived handle on the Cloud Run Admin API (v2).

    Build one per process and pass it to the reader and driver. The
    underlying clients are created on first use so a missing credential
    surfaces as a reconcile error rather than at import time.
    """

    def __init__(
        self,
        revisions_client: run_v2.RevisionsClient | None = None,
        services_client: run_v2.ServicesClient | None = None,
        update_timeout_s: float | None = None,
    ) -> None:
        self._revisions = revisions_client
        self._services = services_client
        self.update_timeout_s = update_timeout_s if update_timeout_s is not None else settings.update_timeout_s

    @property
    def revisions(self) -> run_v2.RevisionsClient:
        if self._revisions is None:
            self._revisions = run_v2.RevisionsClient()
        return self._revisions

    @property
    def services(self) -> run_v2.ServicesClient:
        if self._services is None:
            self._services = run_v2.ServicesClient()
        return self._services

    def list_revisions(self, identity: ServiceIdentity) -> list[Revision]:
        """All revisions of the service, in the order the API lists them."""
        try:
            pager = self.revisions.list_revisions(request={"parent": identity.parent})
            return [revision_from_proto(r) for r in pager]
        except (GoogleAPIError, GoogleAuthError) as e:
            raise PlatformUnavailable(f"Listing revisions of {identity.parent} failed: {e}") from e

    def update_service(self, update: ServiceUpdate) -> Any:
        """Submit the update and block until the long-running operation finishes."""
        request = run_v2.UpdateServiceRequest(service=service_from_update(update))
        try:
            operation = self.services.update_service(request=request)
            return operation.result(timeout=self.update_timeout_s)
        except (GoogleAPIError, GoogleAuthError, OperationTimeout) as e:
            raise UpdateSubmissionFailed(f"Updating {update.service_name} failed: {e}") from e
