import dataclasses
import os as _os
import sys

import pytest

# Ensure project root is importable (so `import imgsync` works without installing)
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from imgsync import db  # noqa: E402
from imgsync.models import (  # noqa: E402
    ACTIVE,
    CONDITION_SUCCEEDED,
    Condition,
    Container,
    Revision,
    Scaling,
    ServiceIdentity,
)

REPO = "gcr.io/cloud-tagging-10302018/gtm-cloud-image"


@pytest.fixture(autouse=True)
def event_db(tmp_path, monkeypatch):
    """Point the event journal at an isolated sqlite file."""
    monkeypatch.setattr(db, "settings", dataclasses.replace(db.settings, db_path=str(tmp_path / "events.db")))
    db.init_db()
    return db


@pytest.fixture
def identity():
    return ServiceIdentity(project_id="proj", region="europe-west1", service_name="gtm")


def make_revision(name, digest, active=False, env=None, resources=None, liveness=None, startup=None, scaling=(1, 5)):
    conditions = [Condition(type="Ready", state=CONDITION_SUCCEEDED)]
    if active:
        conditions.append(Condition(type=ACTIVE, state=CONDITION_SUCCEEDED))
    container = Container(
        image=f"{REPO}@sha256:{digest}",
        env=env if env is not None else [{"name": "CONTAINER_CONFIG", "value": "abc"}],
        resources=resources if resources is not None else {"limits": {"cpu": "1", "memory": "512Mi"}},
        liveness_probe=liveness if liveness is not None else {"http_get": {"path": "/healthy"}},
        startup_probe=startup if startup is not None else {"tcp_socket": {"port": 8080}},
    )
    return Revision(
        name=name,
        conditions=tuple(conditions),
        containers=(container,),
        scaling=Scaling(min_instance_count=scaling[0], max_instance_count=scaling[1]),
    )


class FakePlatform:
    """Scripted stand-in for CloudRunPlatform.

    `listings` is consumed one entry per list_revisions() call; the last
    entry repeats once the script runs out.
    """

    def __init__(self, listings, update_error=None):
        self.listings = list(listings)
        self.list_calls = 0
        self.updates = []
        self.update_error = update_error

    def list_revisions(self, identity):
        idx = min(self.list_calls, len(self.listings) - 1)
        self.list_calls += 1
        entry = self.listings[idx]
        if isinstance(entry, Exception):
            raise entry
        return list(entry)

    def update_service(self, update):
        self.updates.append(update)
        if self.update_error is not None:
            raise self.update_error
        return object()


class FakeResolver:
    def __init__(self, digest=None, error=None):
        self.digest = digest
        self.error = error
        self.calls = 0

    def resolve(self):
        from imgsync.registry import StableImage

        self.calls += 1
        if self.error is not None:
            raise self.error
        return StableImage(key=f"sha256:{self.digest}", digest=self.digest, tags=("stable", "latest"))
