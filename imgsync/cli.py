from __future__ import annotations

import argparse
import json
import sys

import requests


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _run_local(project: str, region: str, service: str) -> int:
    from . import db
    from .models import Outcome, ServiceIdentity
    from .platform import CloudRunPlatform
    from .reconciler import ConvergenceDriver

    db.init_db()
    result = ConvergenceDriver(CloudRunPlatform()).run(ServiceIdentity(project, region, service))
    _print(result.to_response())
    return 1 if result.outcome is Outcome.ERROR else 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Image Drift Reconciler CLI")
    p.add_argument("--api", default="http://localhost:8080", help="API base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    for name, help_text in (
        ("check", "Ask the API to reconcile a service"),
        ("run", "Reconcile a service in-process (for cron-style schedulers)"),
    ):
        s = sub.add_parser(name, help=help_text)
        s.add_argument("--project", required=True)
        s.add_argument("--region", required=True)
        s.add_argument("--service", required=True)

    s_ev = sub.add_parser("events", help="Show events")
    s_ev.add_argument("--limit", type=int, default=20)

    args = p.parse_args(argv)

    base = args.api.rstrip("/")

    if args.cmd == "events":
        _print(requests.get(f"{base}/events", params={"limit": args.limit}, timeout=10).json())
        return 0

    if args.cmd == "check":
        payload = {
            "project_id": args.project,
            "region": args.region,
            "service_name": args.service,
        }
        # Polling can take several minutes on the server side.
        r = requests.post(f"{base}/check", json=payload, timeout=900)
        _print(r.json())
        return 0 if r.status_code in (200, 202) else 1

    if args.cmd == "run":
        return _run_local(args.project, args.region, args.service)

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
