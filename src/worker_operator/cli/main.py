from __future__ import annotations

import argparse
from typing import Sequence

from worker_operator import __version__
from worker_operator.config.settings import get_settings
from worker_operator.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="worker-operator",
        description="Build and deploy worker processes onto a cluster",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Log level (default from settings)")
    subparsers = parser.add_subparsers(dest="command")

    reconcile_parser = subparsers.add_parser(
        "reconcile", help="Run one reconciliation pass for a worker process"
    )
    reconcile_parser.add_argument("target", help="Worker process as NAMESPACE/NAME")

    render_parser = subparsers.add_parser(
        "render", help="Print the objects owned by a worker process as YAML"
    )
    render_parser.add_argument("worker", help="Path to the worker process manifest")
    render_parser.add_argument("cluster", help="Path to the cluster manifest")

    subparsers.add_parser("jobs", help="List the build jobs")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(
        args.log_level or settings.log_level,
        json_output=settings.log_json,
        component=settings.event_component,
    )

    if args.command == "reconcile":
        from worker_operator.cli.commands import reconcile_command

        return reconcile_command(args.target, settings=settings)

    if args.command == "render":
        from worker_operator.cli.commands import render_command

        return render_command(args.worker, args.cluster, settings=settings)

    if args.command == "jobs":
        from worker_operator.cli.commands import jobs_command

        return jobs_command()

    parser.print_help()
    return 1


if __name__ == "__main__":  # pragma: no cover - exercised via module entrypoint
    raise SystemExit(main())
