"""Entry point for the Kubernetes Service Reconciler process."""
from __future__ import annotations

import argparse
import sys

from ksr.supervisor import ProcessSupervisor


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Run the Kubernetes Service Reconciler")
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = p.parse_args(argv)

    return ProcessSupervisor(verbose=args.verbose).run()


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
