"""
etcd probe CLI: monitoring-plugin entry point.

Exit codes: 0 OK, 1 WARNING, 2 CRITICAL, 3 UNKNOWN. A missing command prints
usage and exits 3; an unknown flag or malformed flag value is an argument
error and exits 1 before anything touches the network.
"""

import argparse
import sys

from etcd_probe.cli_commands import alpr_command, health_command
from etcd_probe.config import DEFAULT_CRITICAL, DEFAULT_ENDPOINT, DEFAULT_WARNING
from etcd_probe.models import StatusLevel
from etcd_probe.utils.env import parse_bool

ARGUMENT_ERROR_EXIT = 1


class ProbeArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports argument errors with exit code 1."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(ARGUMENT_ERROR_EXIT, f"{self.prog}: error: {message}\n")


def bool_flag(value: str) -> bool:
    try:
        return parse_bool(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from None
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value!r}")
    return parsed


def positive_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid float value: {value!r}") from None
    if not parsed > 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {value!r}")
    return parsed


def common_arguments() -> argparse.ArgumentParser:
    """Connection, threshold and logging flags shared by every command.

    Unset flags are left off the namespace entirely so the environment and
    defaults can fill them in.
    """
    common = ProbeArgumentParser(add_help=False, argument_default=argparse.SUPPRESS)

    connection = common.add_argument_group("connection")
    connection.add_argument(
        "--endpoint", "--endpoints",
        dest="endpoints",
        help=f"Comma-separated gRPC endpoints (env ETCDCTL_ENDPOINTS, default: {DEFAULT_ENDPOINT})"
    )
    connection.add_argument("--cacert", help="Verify server certificates using this CA bundle (env ETCDCTL_CACERT)")
    connection.add_argument("--cert", help="Client TLS certificate file (env ETCDCTL_CERT)")
    connection.add_argument("--key", help="Client TLS key file (env ETCDCTL_KEY)")
    connection.add_argument("--user", help="username[:password] for authentication (env ETCDCTL_USER)")
    connection.add_argument("--password", help="Password for authentication (env ETCDCTL_PASSWORD)")
    connection.add_argument(
        "--insecure-transport",
        nargs="?",
        const=True,
        type=bool_flag,
        help="Disable transport security for client connections (env ETCDCTL_INSECURE_TRANSPORT, default: true)"
    )
    connection.add_argument(
        "--insecure-skip-tls-verify",
        nargs="?",
        const=True,
        type=bool_flag,
        help="Skip server certificate verification (env ETCDCTL_INSECURE_SKIP_TLS_VERIFY, default: false)"
    )
    connection.add_argument(
        "--dial-timeout",
        type=positive_float,
        help="Connection timeout in seconds (env ETCDCTL_DIAL_TIMEOUT, default: 2)"
    )
    connection.add_argument(
        "--command-timeout",
        type=positive_float,
        help="Per-request timeout in seconds (env ETCDCTL_COMMAND_TIMEOUT, default: 5)"
    )

    thresholds = common.add_argument_group("thresholds")
    thresholds.add_argument(
        "-w", "--warning",
        help=f"Warning threshold in seconds (default: {DEFAULT_WARNING})"
    )
    thresholds.add_argument(
        "-c", "--critical",
        help=f"Critical threshold in seconds (default: {DEFAULT_CRITICAL})"
    )

    common.add_argument("--env-file", help="Load environment variables from this file first")
    common.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    return common


def build_parser() -> ProbeArgumentParser:
    parser = ProbeArgumentParser(
        description="Report etcd cluster health and request latency to a monitoring system",
        prog="etcd-probe"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available checks")
    common = common_arguments()

    subparsers.add_parser(
        "health",
        parents=[common],
        help="Check that every endpoint answers a consensus read"
    )

    alpr_parser = subparsers.add_parser(
        "alpr",
        parents=[common],
        help="Average latency per linearizable request against the first endpoint"
    )
    alpr_parser.add_argument(
        "--total",
        type=positive_int,
        default=1,
        help="Number of reads to average (default: 1)"
    )

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return int(StatusLevel.UNKNOWN)

    if args.command == "health":
        return health_command(args)
    elif args.command == "alpr":
        return alpr_command(args)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return ARGUMENT_ERROR_EXIT


if __name__ == "__main__":
    sys.exit(main())
