"""``civicrmctl job``: run CiviCRM scheduled jobs on demand."""

import argparse

from ...ui_utils.terminal import success
from ._completers import runtime_from_args

# sub-command -> CiviCRM job name
JOBS = {
    "mailing": "process_mailing",
    "process-mail-queue": "process_mailing",
    "membership": "process_membership",
    "member-records": "process_membership",
}


def register(subparsers) -> None:
    p = subparsers.add_parser("job", help="Run CiviCRM scheduled jobs")
    jsub = p.add_subparsers(dest="job_cmd", required=True)
    jsub.add_parser(
        "mailing", aliases=["process-mail-queue"], help="Process the CiviMail queue"
    )
    jsub.add_parser(
        "membership", aliases=["member-records"], help="Update membership statuses"
    )


def dispatch(args: argparse.Namespace) -> bool:
    if args.cmd != "job":
        return False
    name = JOBS[args.job_cmd]
    runtime_from_args(args).job(name)
    success(f"Executed '{name}' job.")
    return True
