"""Command line entry point for fleetview."""

import argparse
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from fleetview import __version__
from fleetview.clients.registry import ClusterClientRegistry
from fleetview.clients.verber import ResourceVerber
from fleetview.config import AuthMode, FleetviewConfig, LogLevel
from fleetview.dataselect import DataSelectQuery, select_resources
from fleetview.models.resource import resource_from_dict
from fleetview.utils.errors import ConflictError, FleetviewError

logger = logging.getLogger(__name__)


def setup_logging(level: LogLevel) -> None:
    """Configure logging for the command line."""
    logging.basicConfig(
        level=level.value,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="fleetview",
        description="Inspect and change resources across a multi-cluster control plane",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    # Auth options
    parser.add_argument(
        "--auth-mode",
        choices=[mode.value for mode in AuthMode],
        default=None,
        help="Credential source (default: auto)",
    )
    parser.add_argument(
        "--kubeconfig",
        default=None,
        help="Path to the control plane kubeconfig file",
    )
    parser.add_argument(
        "--context",
        default=None,
        help="Kubeconfig context to use",
    )
    parser.add_argument(
        "--insecure-skip-tls-verify",
        action="store_true",
        help="Do not verify API server certificates",
    )

    # Target
    parser.add_argument(
        "--cluster",
        default=None,
        help="Member cluster to address through the control plane proxy",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        default=None,
        help="Logging level (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("kinds", help="List every resolvable kind")

    resolve = subparsers.add_parser("resolve", help="Show the API coordinate of a kind")
    resolve.add_argument("kind")

    get = subparsers.add_parser("get", help="Get one resource")
    get.add_argument("kind")
    get.add_argument("name")
    get.add_argument("-n", "--namespace", default=None)

    list_parser = subparsers.add_parser("list", help="List resources of a kind")
    list_parser.add_argument("kind")
    list_parser.add_argument("-n", "--namespace", default=None)
    list_parser.add_argument(
        "--sort-by", default=None, help="Sort options, e.g. 'a,name,d,creationTimestamp'"
    )
    list_parser.add_argument(
        "--filter-by", default=None, help="Filter options, e.g. 'namespace,prod'"
    )
    list_parser.add_argument("--items-per-page", type=int, default=None)
    list_parser.add_argument("--page", type=int, default=None, help="One-based page number")

    delete = subparsers.add_parser("delete", help="Delete a resource")
    delete.add_argument("kind")
    delete.add_argument("name")
    delete.add_argument("-n", "--namespace", default=None)
    delete.add_argument(
        "--now", action="store_true", help="Use the minimal grace period"
    )

    apply = subparsers.add_parser("apply", help="Create or update resources from a file")
    apply.add_argument("file", help="YAML or JSON file; '-' reads standard input")

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> FleetviewConfig:
    """Build config from args, falling back to environment/defaults."""
    config_kwargs: dict[str, Any] = {}

    if args.auth_mode:
        config_kwargs["auth_mode"] = AuthMode(args.auth_mode)

    if args.kubeconfig:
        config_kwargs["control_plane_kubeconfig_path"] = args.kubeconfig

    if args.context:
        config_kwargs["control_plane_context"] = args.context

    if args.insecure_skip_tls_verify:
        config_kwargs["insecure_skip_tls_verify"] = True

    if args.log_level:
        config_kwargs["log_level"] = LogLevel(args.log_level)

    return FleetviewConfig(**config_kwargs)


def build_registry(config: FleetviewConfig, with_members: bool = False) -> ClusterClientRegistry:
    """Initialize a registry for the control plane and, optionally, its members."""
    registry = ClusterClientRegistry()
    options = config.control_plane_options()
    registry.init_control_plane(options)
    if with_members:
        registry.init_member_access(options)
    return registry


def _verber(registry: ClusterClientRegistry, cluster: str | None) -> ResourceVerber:
    if cluster:
        return registry.member_verber(cluster)
    return registry.verber()


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def cmd_kinds(args: argparse.Namespace, registry: ClusterClientRegistry) -> None:
    resolver = _verber(registry, args.cluster).resolver
    resolver.refresh()
    _print_json(resolver.known_kinds())


def cmd_resolve(args: argparse.Namespace, registry: ClusterClientRegistry) -> None:
    coordinate = _verber(registry, args.cluster).resolver.resolve(args.kind)
    _print_json(
        {
            "group": coordinate.group,
            "version": coordinate.version,
            "plural": coordinate.plural,
            "path": coordinate.path(),
        }
    )


def cmd_get(args: argparse.Namespace, registry: ClusterClientRegistry) -> None:
    resource = _verber(registry, args.cluster).get(args.kind, args.namespace, args.name)
    _print_json(resource.to_dict())


def cmd_list(args: argparse.Namespace, registry: ClusterClientRegistry) -> None:
    resources = _verber(registry, args.cluster).list_resources(args.kind, args.namespace)
    query = DataSelectQuery.from_params(
        items_per_page=args.items_per_page,
        page=args.page,
        sort_by=args.sort_by,
        filter_by=args.filter_by,
    )
    selected, total = select_resources(resources, query)
    _print_json(
        {
            "listMeta": {"totalItems": total},
            "items": [resource.to_dict() for resource in selected],
        }
    )


def cmd_delete(args: argparse.Namespace, registry: ClusterClientRegistry) -> None:
    _verber(registry, args.cluster).delete(
        args.kind, args.namespace, args.name, immediate=args.now
    )
    logger.info(f"Deleted {args.kind} {args.name}")


def load_documents(source: str) -> list[dict[str, Any]]:
    """Read every non-empty document of a YAML or JSON stream."""
    text = sys.stdin.read() if source == "-" else Path(source).read_text()
    documents = [doc for doc in yaml.safe_load_all(text) if doc]
    for doc in documents:
        if not isinstance(doc, dict):
            raise ValueError(f"expected a resource document, got {type(doc).__name__}")
    return documents


def cmd_apply(args: argparse.Namespace, registry: ClusterClientRegistry) -> None:
    verber = _verber(registry, args.cluster)
    for document in load_documents(args.file):
        resource = resource_from_dict(document)
        try:
            verber.create(resource)
            logger.info(f"Created {resource.kind} {resource.name}")
        except ConflictError:
            verber.update(resource)
            logger.info(f"Updated {resource.kind} {resource.name}")


COMMANDS: dict[str, Callable[[argparse.Namespace, ClusterClientRegistry], None]] = {
    "kinds": cmd_kinds,
    "resolve": cmd_resolve,
    "get": cmd_get,
    "list": cmd_list,
    "delete": cmd_delete,
    "apply": cmd_apply,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    config = build_config(args)

    setup_logging(config.log_level)

    # Validate auth config
    try:
        warnings = config.validate_auth_config()
        for warning in warnings:
            logger.warning(warning)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    try:
        registry = build_registry(config, with_members=bool(args.cluster))
        COMMANDS[args.command](args, registry)
    except FleetviewError as e:
        logger.error(e.message)
        return 1
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Could not read input: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
