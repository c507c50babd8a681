from __future__ import annotations

import argparse
import json
import sys

import requests


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _read_manifest(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    with open(path, "rb") as fh:
        return fh.read()


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Kubernetes Service Reconciler CLI")
    p.add_argument("--api", default="http://localhost:8000", help="API base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    s_create = sub.add_parser("create", help="Create a Service from a JSON manifest")
    s_create.add_argument("--file", "-f", required=True, help="Manifest path, or '-' for stdin")

    s_del = sub.add_parser("delete", help="Delete Services by name (best effort)")
    s_del.add_argument("names", nargs="+")

    s_ev = sub.add_parser("events", help="Show events")
    s_ev.add_argument("--limit", type=int, default=20)

    args = p.parse_args(argv)

    base = args.api.rstrip("/")

    if args.cmd == "create":
        r = requests.post(
            f"{base}/services",
            data=_read_manifest(args.file),
            headers={"Content-Type": "application/json"},
            timeout=30,
        )
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "delete":
        r = requests.post(f"{base}/services/delete", json={"names": args.names}, timeout=30)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "events":
        _print(requests.get(f"{base}/events", params={"limit": args.limit}, timeout=10).json())
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
