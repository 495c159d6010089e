from __future__ import annotations

import time
from typing import Callable

from . import db
from .alerts import send_email
from .digests import digest_image, image_digest, image_has_digest
from .errors import ConvergenceTimedOut, error_code
from .models import ConvergenceResult, DriverState, Outcome, Revision, ServiceIdentity, ServiceUpdate
from .reader import Platform, StateReader
from .registry import ManifestResolver
from .settings import settings


def build_update(identity: ServiceIdentity, active: Revision, stable_digest: str, repo: str) -> ServiceUpdate:
    """Update request reusing the active revision's runtime configuration.

    Only the first container is carried over.
    """
    if not active.containers:
        raise ValueError(f"Active revision {active.name} has no containers")
    c = active.containers[0]
    return ServiceUpdate(
        service_name=identity.parent,
        image=digest_image(repo, stable_digest),
        env=c.env,
        resources=c.resources,
        liveness_probe=c.liveness_probe,
        startup_probe=c.startup_probe,
        min_instance_count=active.scaling.min_instance_count,
        max_instance_count=active.scaling.max_instance_count,
    )


def find_converged(revisions: list[Revision], previous: str, stable_digest: str) -> Revision | None:
    for r in revisions:
        if r.name != previous and image_has_digest(r.image, stable_digest) and r.is_active:
            return r
    return None


class ConvergenceDriver:
    """Brings one service onto the registry's stable image.

    Comparing -> NoOpDone, or Comparing -> Updating -> Polling -> Converged|TimedOut.
    Any failure along the way ends in Errored; run() never raises.
    """

    def __init__(
        self,
        platform: Platform,
        resolver: ManifestResolver | None = None,
        image_repo: str | None = None,
        poll_interval_s: float | None = None,
        max_attempts: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.platform = platform
        self.reader = StateReader(platform)
        self.resolver = resolver or ManifestResolver()
        self.image_repo = image_repo or settings.image_repo
        self.poll_interval_s = settings.poll_interval_s if poll_interval_s is None else poll_interval_s
        self.max_attempts = max(1, int(settings.poll_max_attempts if max_attempts is None else max_attempts))
        self._sleep = sleep
        self._clock = clock
        self.state = DriverState.COMPARING

    def _enter(self, state: DriverState, identity: ServiceIdentity, revision: str | None = None) -> None:
        self.state = state
        db.log_event("DEBUG", f"State -> {state.value}", service_name=identity.service_name, revision=revision)

    def run(self, identity: ServiceIdentity) -> ConvergenceResult:
        result = ConvergenceResult(outcome=Outcome.ERROR)
        try:
            self._run(identity, result)
        except Exception as e:
            self.state = DriverState.ERRORED
            result.outcome = Outcome.ERROR
            result.error = str(e) or type(e).__name__
            result.error_code = error_code(e)
            result.message = "Error checking or updating Cloud Run service"
            db.log_event(
                "ERROR", f"Reconcile failed ({result.error_code}): {result.error}", service_name=identity.service_name
            )
        self._maybe_email(identity, result)
        return result

    def _run(self, identity: ServiceIdentity, result: ConvergenceResult) -> None:
        service = identity.service_name
        self._enter(DriverState.COMPARING, identity)

        active = self.reader.active_revision(identity)
        result.current_digest = image_digest(active.image)
        db.log_event(
            "INFO", f"Currently deployed image version sha: {result.current_digest}", service_name=service, revision=active.name
        )

        stable = self.resolver.resolve()
        result.stable_digest = stable.digest
        db.log_event("INFO", f"Stable image sha: {stable.digest} and tags {list(stable.tags)}", service_name=service)

        if (result.current_digest or "").lower() == stable.digest.lower():
            self._enter(DriverState.NO_OP_DONE, identity, active.name)
            result.outcome = Outcome.NO_UPDATE_NEEDED
            return

        self._enter(DriverState.UPDATING, identity, active.name)
        update = build_update(identity, active, stable.digest, self.image_repo)
        db.log_event(
            "INFO",
            f"Versions are different: deploying a new revision with image {update.image}",
            service_name=service,
            revision=active.name,
        )
        self.platform.update_service(update)
        db.log_event("INFO", "Update operation completed", service_name=service)

        self._enter(DriverState.POLLING, identity, active.name)
        converged = self._poll(identity, active.name, stable.digest, result)
        if converged is not None:
            self._enter(DriverState.CONVERGED, identity, converged.name)
            result.outcome = Outcome.UPDATED
            result.new_revision = converged.name
            db.log_event(
                "INFO",
                f"New revision {converged.name} is now active with image {converged.image}",
                service_name=service,
                revision=converged.name,
            )
            return

        self._enter(DriverState.TIMED_OUT, identity, active.name)
        result.outcome = Outcome.TIMED_OUT
        result.error_code = ConvergenceTimedOut.code
        result.message = "Deployment started but new revision is not active yet"
        db.log_event(
            "WARN",
            f"New revision did not become active after {result.attempts} attempts",
            service_name=service,
        )

    def _poll(
        self, identity: ServiceIdentity, previous: str, stable_digest: str, result: ConvergenceResult
    ) -> Revision | None:
        t0 = self._clock()
        for attempt in range(1, self.max_attempts + 1):
            self._sleep(self.poll_interval_s)
            result.attempts = attempt
            found = find_converged(self.reader.list_revisions(identity), previous, stable_digest)
            if found is not None:
                return found
            db.log_event(
                "INFO",
                f"Attempt {attempt}/{self.max_attempts}: new revision not yet active "
                f"({self._clock() - t0:.0f}s elapsed)",
                service_name=identity.service_name,
            )
        return None

    def _maybe_email(self, identity: ServiceIdentity, result: ConvergenceResult) -> None:
        if not settings.enable_email or result.outcome is Outcome.NO_UPDATE_NEEDED:
            return
        labels = {
            Outcome.UPDATED: "UPDATED",
            Outcome.TIMED_OUT: "PENDING",
            Outcome.ERROR: "FAILED",
        }
        subject = f"{labels[result.outcome]}: {identity.service_name} -> {result.stable_digest}"
        body = (
            f"Service: {identity.parent}\n"
            f"Previous: {result.current_digest}\n"
            f"Stable: {result.stable_digest}\n"
            f"Outcome: {result.outcome.value}\n"
            f"Detail: {result.error or result.message or result.new_revision}"
        )
        send_email(subject, body)
