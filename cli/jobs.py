#!/usr/bin/env python3

import sys

from llm import get_llm_provider
from logger import get_logger
from services.receipts import PROCESS_RECEIPT_JOB
from workers.receipts import receipt_job_handler

logger = get_logger()


def cmd_work(args, services):
    """Run queued jobs until the queue is empty."""
    try:
        extractor = get_llm_provider(services.config)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    if extractor is None:
        logger.error(
            "Receipt extraction is disabled. Set llm.enabled = true in "
            "~/.config/spendwatch.toml to process receipts."
        )
        sys.exit(1)

    handlers = {PROCESS_RECEIPT_JOB: receipt_job_handler(services, extractor)}
    count = services.jobs.run_pending(handlers, limit=args.limit)

    if count == 0:
        logger.info("No jobs to run.")
    else:
        logger.info(f"Ran {count} job(s).")


def cmd_list(args, services):
    """List jobs, optionally filtered by status."""
    jobs = services.jobs.find_all(status=args.status)

    if not jobs:
        logger.info("No jobs found.")
        return

    for job in jobs:
        line = (
            f"#{job.id} {job.job_type} [{job.status}] "
            f"attempt {job.attempts}/{job.max_attempts}"
        )
        if job.last_error:
            line += f" - {job.last_error}"
        logger.info(line)


def setup_parser(subparsers):
    """Setup jobs subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "jobs",
        help="Background jobs",
        description="Inspect and run queued background jobs",
    )

    jobs_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available job commands",
        dest="subcommand",
        required=True,
    )

    # jobs work
    work_parser = jobs_subparsers.add_parser("work", help="Run pending jobs")
    work_parser.add_argument(
        "--limit", type=int, default=None, help="Stop after this many jobs"
    )
    work_parser.set_defaults(func=cmd_work)

    # jobs list
    list_parser = jobs_subparsers.add_parser("list", help="List jobs")
    list_parser.add_argument(
        "--status",
        choices=["available", "running", "completed", "discarded"],
        help="Only jobs in this status",
    )
    list_parser.set_defaults(func=cmd_list)
