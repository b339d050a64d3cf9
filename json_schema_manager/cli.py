#!/usr/bin/env python3
# Copyright 2025 TIER IV, inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""CLI entry point for managing a JSON Schema registry."""

import argparse
import logging
import os
import signal
import sys
import threading
from typing import Any, Dict, List, Optional

from .config import create_registry
from .exceptions import JsonSchemaManagerError, OperationCancelledError
from .manager import SchemaManager
from .report import OUTPUT_FORMATS
from .schema.registry import ROOT_DIR_ENV_VAR, Registry
from .schema.resolver import TargetResolver
from .schema.semver import ReleaseType
from .schema.tester import TestScope
from .utils.logging_utils import configure_split_stream_logging, resolve_log_file

logger = logging.getLogger(__name__)


def _add_target_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-k", "--key", help="Schema key, e.g. domain_family_1_0_0")
    parser.add_argument("-i", "--id", dest="schema_id", help="Canonical schema id (URL)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jsm",
        description="Manage a registry of versioned JSON Schemas",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-r",
        "--registry",
        default=None,
        help=f"Registry root directory (default: ${ROOT_DIR_ENV_VAR})",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--nocolour", action="store_true", help="Disable coloured output")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    p = sub.add_parser("create-registry", help="Create a new registry directory")
    p.add_argument("directory", help="Directory to create the registry in")

    p = sub.add_parser("create-schema", help="Create the first version of a schema family")
    p.add_argument("domain_and_family", metavar="DOMAIN/FAMILY", help="e.g. payments/card/charge")

    p = sub.add_parser("create-schema-version", help="Create a new version of an existing schema")
    p.add_argument("target", nargs="?", default="", help="Key, id, path or scope of the source schema")
    p.add_argument("release_type", choices=[r.value for r in ReleaseType], type=str.lower)
    _add_target_options(p)

    p = sub.add_parser("render-schema", help="Render a schema for an environment")
    p.add_argument("target", nargs="?", default="", help="Key, id, path or scope of the schema")
    _add_target_options(p)
    p.add_argument("-e", "--env", default=None, help="Environment (default: production)")

    p = sub.add_parser("validate", help="Run the test documents of schemas")
    p.add_argument("target", nargs="?", default="", help="Key, id, path, scope or 'all'")
    _add_target_options(p)
    p.add_argument("-s", "--scope", default=None, help="Search scope, e.g. payments/card")
    p.add_argument(
        "-t",
        "--test-scope",
        default=TestScope.LOCAL.value,
        help=f"One of: {', '.join(s.value for s in TestScope)} (default: local)",
    )
    p.add_argument(
        "-C", "--continue-on-error", action="store_true", help="Keep testing after a failure"
    )
    p.add_argument(
        "--skip-compatible",
        action="store_true",
        help="Skip checks against earlier and later versions",
    )
    p.add_argument("-o", "--output", choices=OUTPUT_FORMATS, default="text", help="Report format")
    p.add_argument("-v", "--verbose", action="store_true", help="List passing tests too")
    p.add_argument("-w", "--watch", action="store_true", help="Re-run tests when files change")

    p = sub.add_parser("build-dist", help="Render every schema into the distribution directory")
    p.add_argument("-e", "--env", required=True, help="Environment to build for")
    p.add_argument("--workers", type=int, default=None, help="Number of render workers")

    return parser


def _setup_logging(args: argparse.Namespace) -> None:
    root = args.registry or os.environ.get(ROOT_DIR_ENV_VAR)
    if args.command == "create-registry" or not root or not os.path.isdir(os.path.expanduser(root)):
        root = None
    configure_split_stream_logging(
        level=logging.DEBUG if args.debug else logging.INFO,
        log_file=resolve_log_file(os.path.expanduser(root) if root else None),
    )


def _install_signal_handlers(cancel_event: threading.Event) -> Dict[int, Any]:
    def handler(signum, frame):
        logger.debug(f"Received signal {signum}, cancelling")
        cancel_event.set()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, handler)
    return previous


def _resolver(registry: Registry, args: argparse.Namespace) -> TargetResolver:
    resolver = TargetResolver(registry, args.target)
    if args.key:
        resolver.set_key(args.key)
    if args.schema_id:
        resolver.set_id(args.schema_id)
    if getattr(args, "scope", None):
        resolver.set_scope(args.scope)
    return resolver


def run(args: argparse.Namespace, cancel_event: threading.Event) -> int:
    """Execute a parsed command and return the exit code."""
    if args.command == "create-registry":
        path = create_registry(args.directory)
        root = path.parent
        print(f"Registry created at {root}")
        print("Point the tools at it by setting the environment variable:")
        print(f'  export {ROOT_DIR_ENV_VAR}="{root}"')
        return 0

    registry = Registry(args.registry)
    manager = SchemaManager(registry)
    use_colour = not args.nocolour and sys.stdout.isatty()

    if args.command == "create-schema":
        key = manager.create_schema(args.domain_and_family)
        logger.info(f"Created schema {key}")
        return 0

    if args.command == "create-schema-version":
        source = _resolver(registry, args).resolve_single_key()
        key = manager.create_schema_version(source, args.release_type)
        logger.info(f"Created schema {key}")
        return 0

    if args.command == "render-schema":
        target = _resolver(registry, args).resolve()
        sys.stdout.write(manager.render_schema(target, args.env).decode("utf-8"))
        sys.stdout.write("\n")
        return 0

    if args.command == "validate":
        target = _resolver(registry, args).resolve()
        options = dict(
            verbose=args.verbose,
            output_format=args.output,
            use_colour=use_colour,
            continue_on_error=args.continue_on_error,
            test_scope=TestScope.from_string(args.test_scope),
            skip_compatible=args.skip_compatible,
        )
        if args.watch:
            try:
                manager.watch_validation(target, cancel_event, **options)
            except OperationCancelledError:
                logger.info("Stopped watching")
            return 0
        report = manager.validate_schema(target, cancel_event=cancel_event, **options)
        return 0 if report.ok else 1

    if args.command == "build-dist":
        if args.workers is not None:
            manager.dist_builder.set_num_workers(args.workers)
        manager.build_dist(args.env)
        return 0

    raise ValueError(f"unknown command '{args.command}'")


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the jsm CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args)

    cancel_event = threading.Event()
    previous_handlers = _install_signal_handlers(cancel_event)

    try:
        code = run(args, cancel_event)
    except (JsonSchemaManagerError, OSError, ValueError) as e:
        logger.error(f"Error: {e}")
        code = 1
    finally:
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)
    sys.exit(code)


if __name__ == "__main__":
    main()
