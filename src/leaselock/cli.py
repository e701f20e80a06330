"""CLI entrypoint: run a command while holding a lease lock."""

from __future__ import annotations

import argparse
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from leaselock.core.settings import LockSettings
from leaselock.utils.logging import get_logger


EXIT_LEASE_LOST = 70
EXIT_NOT_ACQUIRED = 75

logger = get_logger("leaselock.cli")


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="leaselock-run",
        description="Run a command while holding a lease lock, renewing it until the command exits.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Lock settings YAML (defaults to environment)")
    parser.add_argument("--key", required=True, help="Name of the lock to hold")
    parser.add_argument(
        "--renew-every",
        type=float,
        default=None,
        help="Seconds between renewals (default: a third of the lease duration)",
    )
    parser.add_argument("command", nargs=argparse.REMAINDER, help="Command to run, after --")
    args = parser.parse_args(argv)

    command: List[str] = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        parser.error("a command to run is required")
    args.command = command
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    settings = LockSettings.from_file(args.config) if args.config else LockSettings.from_env()
    lock = settings.new_lock(args.key)
    interval = args.renew_every or settings.policy.lease_duration_ms / 3000

    if not lock.acquire():
        logger.error("Lock %s is held elsewhere; not running %s", args.key, args.command[0])
        return EXIT_NOT_ACQUIRED

    process: Optional[subprocess.Popen] = None
    try:
        process = subprocess.Popen(args.command)
        while True:
            try:
                return process.wait(timeout=interval)
            except subprocess.TimeoutExpired:
                if not lock.renew():
                    logger.error("Lost lease on %s; terminating %s", args.key, args.command[0])
                    return EXIT_LEASE_LOST
    finally:
        # the command never outlives the lease
        if process is not None and process.poll() is None:
            process.terminate()
            process.wait()
        lock.release()


if __name__ == "__main__":
    raise SystemExit(main())
