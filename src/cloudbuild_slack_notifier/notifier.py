"""Slack notifier: filters build events and posts them to a webhook."""

import logging

import requests

from cloudbuild_slack_notifier.cel import compile_cel_predicate
from cloudbuild_slack_notifier.config import Config
from cloudbuild_slack_notifier.errors import (
    DeliveryError,
    FilterCompileError,
    NotifierError,
    SecretError,
    SetupError,
)
from cloudbuild_slack_notifier.filters import EventFilter, PredicateCompiler
from cloudbuild_slack_notifier.message import build_message
from cloudbuild_slack_notifier.models import BuildEvent, NotificationMessage
from cloudbuild_slack_notifier.secrets import (
    SecretGetter,
    find_secret_resource_name,
    get_secret_ref,
)

logger = logging.getLogger(__name__)


def post_webhook(url: str, message: NotificationMessage, timeout: float) -> None:
    """POST *message* to a Slack incoming webhook. No retry is attempted."""
    try:
        resp = requests.post(url, json=message.to_dict(), timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise DeliveryError(f"failed to post Slack webhook: {exc}") from exc


class SlackNotifier:
    """Sends a Slack message for every build event that passes the filter.

    Call :meth:`set_up` once before :meth:`send_notification`. After set-up
    the notifier holds no per-event state and may be shared between threads.
    """

    def __init__(self, config: Config) -> None:
        self._config = config
        self._settings = config.message_settings()
        self._filter: EventFilter | None = None
        self._webhook_url: str | None = None

    @property
    def ready(self) -> bool:
        return self._filter is not None and self._webhook_url is not None

    def set_up(
        self,
        secret_getter: SecretGetter,
        compile_predicate: PredicateCompiler = compile_cel_predicate,
    ) -> None:
        """Compile the filter and resolve the webhook URL secret.

        Raises:
            SetupError: naming the step that failed.
        """
        try:
            event_filter = EventFilter.from_expression(
                self._config.filter, compile_predicate
            )
        except FilterCompileError as exc:
            raise SetupError(f"failed to make a CEL predicate: {exc}") from exc

        field_name = self._config.webhook_secret_name
        try:
            ref = get_secret_ref(self._config.delivery, field_name)
        except SecretError as exc:
            raise SetupError(
                f"failed to get Secret ref from delivery config field {field_name!r}: {exc}"
            ) from exc

        try:
            resource = find_secret_resource_name(self._config.secrets, ref)
        except SecretError as exc:
            raise SetupError(f"failed to find Secret for ref {ref!r}: {exc}") from exc

        try:
            webhook_url = secret_getter.get_secret(resource)
        except SecretError as exc:
            raise SetupError(f"failed to get webhook URL secret: {exc}") from exc

        self._filter = event_filter
        self._webhook_url = webhook_url
        logger.info("Notifier %r set up with filter %r", self._config.name, self._config.filter)

    def send_notification(self, event: BuildEvent) -> bool:
        """Notify Slack about *event* if it passes the filter.

        Returns True when a message was delivered, False when the event was
        filtered out. Message and delivery errors propagate to the caller.
        """
        if not self.ready:
            raise NotifierError("notifier is not set up")

        if not self._filter.apply(event):
            logger.debug("Build %s (status: %s) filtered out", event.id, event.status.value)
            return False

        logger.info(
            "sending Slack webhook for Build %r (status: %r)", event.id, event.status.value
        )
        message = build_message(event, self._settings)
        post_webhook(self._webhook_url, message, self._config.webhook_timeout)
        return True
