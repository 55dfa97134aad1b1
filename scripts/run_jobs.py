"""Run the notification maintenance jobs once, for cron or manual use."""

from __future__ import annotations

import argparse
import logging

from sqlalchemy.exc import SQLAlchemyError

from mover_api.application.jobs import lifecycle_job, read_status_job
from mover_api.infrastructure.database import initialize_database

_JOBS = {
    "lifecycle": (lifecycle_job,),
    "read-status": (read_status_job,),
    "all": (lifecycle_job, read_status_job),
}


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the job runner."""

    parser = argparse.ArgumentParser(
        description="Run the Mover API notification maintenance jobs.",
    )
    parser.add_argument(
        "--job",
        choices=sorted(_JOBS),
        default="all",
        help="Job to execute (default: all)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output from the notification use cases.",
    )
    return parser.parse_args()


def main() -> None:
    """Run the selected jobs and print their counters."""

    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    initialize_database()

    for job in _JOBS[args.job]:
        try:
            results = job.run()
        except SQLAlchemyError as exc:
            raise SystemExit(f"{job.name} failed: {exc}") from exc
        if results is None:
            print(f"{job.name}: skipped, already running")
            continue
        summary = ", ".join(f"{key}={value}" for key, value in results.items())
        print(f"{job.name}: {summary}")


if __name__ == "__main__":
    main()
