from __future__ import annotations


class ReconcileError(Exception):
    """Base class for failures the reconciler knows how to report."""

    code = "ReconcileError"


class InvalidRequest(ReconcileError):
    code = "InvalidRequest"


class NoActiveRevision(ReconcileError):
    code = "NoActiveRevision"


class PlatformUnavailable(ReconcileError):
    code = "PlatformUnavailable"


class ManifestFetchFailed(ReconcileError):
    code = "ManifestFetchFailed"


class NoStableTag(ReconcileError):
    code = "NoStableTag"


class UpdateSubmissionFailed(ReconcileError):
    code = "UpdateSubmissionFailed"


class ConvergenceTimedOut(ReconcileError):
    # Reported on timed-out results; the driver never raises it.
    code = "ConvergenceTimedOut"


class UnclassifiedError(ReconcileError):
    code = "UnclassifiedError"


def error_code(exc: BaseException) -> str:
    if isinstance(exc, ReconcileError):
        return exc.code
    return UnclassifiedError.code
