"""Configuration loading and validation for cloudbuild-slack-notifier."""

import logging
import os
from dataclasses import dataclass, field

import yaml

from cloudbuild_slack_notifier.message import (
    DEFAULT_GITHUB_ORG,
    DEFAULT_STATUS_PHRASES,
    DEFAULT_TRUNK_BRANCH,
    MessageSettings,
)
from cloudbuild_slack_notifier.models import BuildStatus

logger = logging.getLogger(__name__)

WEBHOOK_URL_SECRET_NAME = "webhookUrl"

KNOWN_KEYS = {"apiVersion", "kind", "metadata", "spec"}
KNOWN_SPEC_KEYS = {"notification", "secrets"}
KNOWN_NOTIFICATION_KEYS = {"filter", "delivery", "params"}
KNOWN_PARAM_KEYS = {"githubOrg", "trunkBranch", "statusPhrases"}


@dataclass
class Config:
    name: str = "slack-notifier"
    filter: str = ""
    delivery: dict = field(default_factory=dict)
    secrets: dict[str, str] = field(default_factory=dict)  # secret name -> resource
    webhook_secret_name: str = WEBHOOK_URL_SECRET_NAME
    webhook_timeout: float = 10
    github_org: str = DEFAULT_GITHUB_ORG
    trunk_branch: str = DEFAULT_TRUNK_BRANCH
    status_phrases: dict[BuildStatus, str] = field(
        default_factory=lambda: dict(DEFAULT_STATUS_PHRASES)
    )

    def message_settings(self) -> MessageSettings:
        return MessageSettings(
            github_org=self.github_org,
            trunk_branch=self.trunk_branch,
            status_phrases=dict(self.status_phrases),
        )


def _warn_unknown(raw: dict, known: set[str], where: str) -> None:
    for key in raw:
        if key not in known:
            logger.warning("Unknown config key '%s%s' — ignoring", where, key)


def _mapping(raw: dict, key: str, where: str) -> dict:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"'{where}{key}' must be a mapping")
    return value


def _parse_status(value: str, field_name: str) -> BuildStatus:
    """Parse a status name strictly, raising ValueError on invalid input."""
    try:
        return BuildStatus(str(value).upper())
    except ValueError:
        valid = ", ".join(s.value for s in BuildStatus)
        raise ValueError(
            f"Invalid status '{value}' in {field_name}. "
            f"Must be one of: {valid}"
        )


def _parse_secrets(raw_secrets) -> dict[str, str]:
    if raw_secrets is None:
        return {}
    if not isinstance(raw_secrets, list):
        raise ValueError("'spec.secrets' must be a list")
    secrets = {}
    for i, entry in enumerate(raw_secrets):
        if not isinstance(entry, dict):
            raise ValueError(f"spec.secrets[{i}] must be a mapping")
        if "name" not in entry:
            raise ValueError(f"spec.secrets[{i}] is missing required field 'name'")
        if "value" not in entry:
            raise ValueError(f"spec.secrets[{i}] is missing required field 'value'")
        secrets[str(entry["name"])] = str(entry["value"])
    return secrets


def _validate_config(config: Config) -> None:
    """Validate config values, raising ValueError on invalid fields."""
    if not isinstance(config.filter, str) or not config.filter.strip():
        raise ValueError("spec.notification.filter must be a non-empty string")

    if isinstance(config.webhook_timeout, bool) or not isinstance(
        config.webhook_timeout, (int, float)
    ):
        raise ValueError(
            f"delivery timeout must be a number, got {type(config.webhook_timeout).__name__}"
        )
    if config.webhook_timeout <= 0:
        raise ValueError(
            f"delivery timeout must be positive, got {config.webhook_timeout}"
        )

    if not config.github_org:
        raise ValueError("params.githubOrg must not be empty")


def load_config(path: str | None = None) -> Config:
    """Load notifier configuration from a YAML file.

    Config path resolution order:
    1. Explicit path argument
    2. NOTIFIER_CONFIG_PATH environment variable
    3. ~/.config/cloudbuild-slack-notifier/config.yaml
    """
    if path is None:
        path = os.environ.get("NOTIFIER_CONFIG_PATH")
    if path is None:
        path = os.path.expanduser("~/.config/cloudbuild-slack-notifier/config.yaml")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must contain a YAML mapping, got {type(raw).__name__}")

    _warn_unknown(raw, KNOWN_KEYS, "")

    config = Config()

    metadata = _mapping(raw, "metadata", "")
    if "name" in metadata:
        config.name = str(metadata["name"])

    spec = _mapping(raw, "spec", "")
    _warn_unknown(spec, KNOWN_SPEC_KEYS, "spec.")

    notification = _mapping(spec, "notification", "spec.")
    _warn_unknown(notification, KNOWN_NOTIFICATION_KEYS, "spec.notification.")

    if "filter" in notification:
        config.filter = notification["filter"]

    config.delivery = dict(_mapping(notification, "delivery", "spec.notification."))
    if "timeout" in config.delivery:
        config.webhook_timeout = config.delivery["timeout"]

    config.secrets = _parse_secrets(spec.get("secrets"))

    # Params: message settings, merged with defaults
    params = _mapping(notification, "params", "spec.notification.")
    _warn_unknown(params, KNOWN_PARAM_KEYS, "spec.notification.params.")
    if "githubOrg" in params:
        config.github_org = str(params["githubOrg"])
    if "trunkBranch" in params:
        config.trunk_branch = str(params["trunkBranch"])
    phrases = _mapping(params, "statusPhrases", "spec.notification.params.")
    for key, value in phrases.items():
        status = _parse_status(key, f"statusPhrases.{key}")
        config.status_phrases[status] = "" if value is None else str(value)

    _validate_config(config)

    return config
