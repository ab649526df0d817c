"""Command line entry point.

Flags override the environment (and .env) configuration:

    cardinality-exporter --address http://mimir:8080 --dimension job
    cardinality-exporter --selector '{namespace="prod"}' label-names
"""

import argparse
import sys
from collections.abc import Sequence
from typing import Any

from pydantic import SecretStr

from cardinality_exporter.config import Environment, Settings, load_environment
from cardinality_exporter.exceptions import CardinalityClientError, ConfigurationError
from cardinality_exporter.services.cardinality_client import CardinalityClient

# Flag destination -> Environment field
_FLAG_TO_ENV = {
    "address": "PROMETHEUS_ADDRESS",
    "user": "PROMETHEUS_USER",
    "password": "PROMETHEUS_PASSWORD",
    "header": "PROMETHEUS_HEADERS",
    "host": "HOST",
    "port": "PORT",
    "dimension": "DIMENSION",
    "selector": "SELECTOR",
    "timeout": "TIMEOUT_SECONDS",
    "log_level": "LOG_LEVEL",
}


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cardinality-exporter",
        description="Export Mimir label cardinality as Prometheus metrics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--address", help="Address of the Prometheus instance")
    parser.add_argument(
        "--user", help="User to be used in basic auth when contacting Prometheus"
    )
    parser.add_argument(
        "--password",
        help="Password to be used in basic auth when contacting Prometheus",
    )
    parser.add_argument(
        "--header",
        action="append",
        metavar="NAME=VALUE",
        help="Header to be used when contacting Prometheus, can be specified multiple times",
    )
    parser.add_argument("--host", help="Host to listen on")
    parser.add_argument("--port", type=int, help="Port to listen on")
    parser.add_argument("--dimension", help="Dimension to get cardinality for")
    parser.add_argument("--selector", help="Selector to get cardinality for")
    parser.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Timeout for fetching cardinality data",
    )
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, ...)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Serve cardinality metrics (default)")

    label_values_parser = subparsers.add_parser(
        "label-values",
        help="Print the label values cardinality for one or more label names",
    )
    label_values_parser.add_argument(
        "--label-name",
        action="append",
        dest="label_names",
        help="Label name to break down (defaults to the dimension), repeatable",
    )

    subparsers.add_parser(
        "label-names",
        help="Print the label names cardinality",
    )

    return parser


def load_settings(args: argparse.Namespace, env: Environment | None = None) -> Settings:
    """Build Settings from the environment with command line overrides.

    Raises:
        ConfigurationError: If an environment variable or header flag is malformed
    """
    if env is None:
        env = load_environment()

    overrides: dict[str, Any] = {}
    for flag, field in _FLAG_TO_ENV.items():
        value = getattr(args, flag, None)
        if value is None:
            continue
        if flag == "password":
            value = SecretStr(value)
        overrides[field] = value

    return Settings.load(env.model_copy(update=overrides))


def _build_client(settings: Settings) -> CardinalityClient:
    return CardinalityClient(
        address=settings.address,
        user=settings.user,
        password=settings.password.get_secret_value(),
        headers=settings.headers,
        timeout=settings.timeout_seconds,
    )


def handle_label_values(settings: Settings, label_names: Sequence[str] | None) -> None:
    client = _build_client(settings)
    try:
        response = client.label_values_cardinality(
            label_names or [settings.dimension], settings.selector
        )
    except CardinalityClientError as e:
        print(f"Failed to get label values cardinality: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        client.close()

    print(response.model_dump_json(indent=2))


def handle_label_names(settings: Settings) -> None:
    client = _build_client(settings)
    try:
        response = client.label_names_cardinality(settings.selector)
    except CardinalityClientError as e:
        print(f"Failed to get label names cardinality: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        client.close()

    print(response.model_dump_json(indent=2))


def main(argv: Sequence[str] | None = None) -> None:
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args)
        settings.validate_config()
    except ConfigurationError as e:
        parser.print_usage(sys.stderr)
        print(str(e), file=sys.stderr)
        sys.exit(1)

    if args.command == "label-values":
        handle_label_values(settings, args.label_names)
    elif args.command == "label-names":
        handle_label_names(settings)
    else:
        from cardinality_exporter.core.runner import run

        run(settings)


if __name__ == "__main__":
    main()
