from __future__ import annotations

import argparse
import json
import sys

import requests


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Autoheal status CLI")
    p.add_argument("--api", default="http://localhost:8080", help="API base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("ping", help="Check that the controller is up")
    sub.add_parser("containers", help="List restart records")
    sub.add_parser("settings", help="Show effective backoff settings")

    s_one = sub.add_parser("container", help="Show the restart record of one container")
    s_one.add_argument("name")

    s_ev = sub.add_parser("events", help="Show events")
    s_ev.add_argument("--limit", type=int, default=20)
    s_ev.add_argument("--container", default=None, help="Only events for this container name")

    args = p.parse_args(argv)

    base = args.api.rstrip("/")

    try:
        if args.cmd == "ping":
            r = requests.get(f"{base}/ping", timeout=10)
            print(r.text)
            return 0 if r.ok else 1

        if args.cmd == "containers":
            _print(requests.get(f"{base}/containers", timeout=10).json())
            return 0

        if args.cmd == "settings":
            _print(requests.get(f"{base}/settings", timeout=10).json())
            return 0

        if args.cmd == "container":
            _print(requests.get(f"{base}/container/{args.name}", timeout=10).json())
            return 0

        if args.cmd == "events":
            params = {"limit": args.limit}
            if args.container:
                params["container"] = args.container
            _print(requests.get(f"{base}/events", params=params, timeout=10).json())
            return 0
    except requests.RequestException as e:
        print(f"Cannot reach {base}: {e}", file=sys.stderr)
        return 1

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
