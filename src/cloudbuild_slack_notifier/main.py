"""Entry point for cloudbuild-slack-notifier."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from cloudbuild_slack_notifier.config import load_config
from cloudbuild_slack_notifier.errors import NotifierError, SetupError
from cloudbuild_slack_notifier.models import BuildEvent
from cloudbuild_slack_notifier.notifier import SlackNotifier
from cloudbuild_slack_notifier.secrets import EnvSecretGetter
from cloudbuild_slack_notifier.server import create_app

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cloudbuild-slack-notifier",
        description="Post Cloud Build results to a Slack incoming webhook.",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        default=None,
        help="Path to config YAML (default: ~/.config/cloudbuild-slack-notifier/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--port",
        type=int,
        default=os.environ.get("PORT", "8080"),
        help="Port to receive Pub/Sub push requests on (default: $PORT or 8080)",
    )
    mode.add_argument(
        "--event",
        metavar="FILE",
        default=None,
        help="Notify about a single Build JSON file and exit",
    )
    return parser.parse_args(argv)


def run_once(notifier: SlackNotifier, path: str) -> bool:
    """Load a Build JSON document from *path* and notify about it."""
    with open(path) as f:
        event = BuildEvent.from_dict(json.load(f))
    return notifier.send_notification(event)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
        level=getattr(logging, args.log_level),
    )

    try:
        config = load_config(args.config)
    except FileNotFoundError as exc:
        logger.error("Config file not found: %s", exc)
        sys.exit(1)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(1)

    logger.info("Configuration loaded successfully")

    notifier = SlackNotifier(config)
    try:
        notifier.set_up(EnvSecretGetter())
    except SetupError as exc:
        logger.error("Failed to set up notifier: %s", exc)
        sys.exit(1)

    if args.event is not None:
        try:
            sent = run_once(notifier, args.event)
        except (OSError, ValueError, NotifierError) as exc:
            logger.error("Failed to notify for %s: %s", args.event, exc)
            sys.exit(1)
        logger.info("Build %s", "notified" if sent else "filtered out")
        return

    logger.info("Starting cloudbuild-slack-notifier on port %d", args.port)
    create_app(notifier).run(host="0.0.0.0", port=args.port)
