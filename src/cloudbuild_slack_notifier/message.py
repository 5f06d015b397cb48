"""Turns a Cloud Build event into a Slack webhook message."""

import logging
from dataclasses import dataclass, field
from typing import Mapping

from cloudbuild_slack_notifier.errors import MessageError, URLAnnotationError
from cloudbuild_slack_notifier.models import (
    BAD_STATUSES,
    Action,
    Attachment,
    BuildEvent,
    BuildStatus,
    BuildStep,
    NotificationMessage,
)
from cloudbuild_slack_notifier.utm import CHAT_MEDIUM, add_utm_params

logger = logging.getLogger(__name__)

DEFAULT_GITHUB_ORG = "flinkstech"
DEFAULT_TRUNK_BRANCH = "master"

# Statuses missing from this mapping get no phrase after the branch name.
DEFAULT_STATUS_PHRASES = {
    BuildStatus.SUCCESS: "has succeeded",
    BuildStatus.FAILURE: "has failed",
    BuildStatus.INTERNAL_ERROR: "has failed",
    BuildStatus.TIMEOUT: "has failed",
}


@dataclass(frozen=True)
class MessageSettings:
    github_org: str = DEFAULT_GITHUB_ORG
    trunk_branch: str = DEFAULT_TRUNK_BRANCH
    status_phrases: Mapping[BuildStatus, str] = field(
        default_factory=lambda: dict(DEFAULT_STATUS_PHRASES)
    )


def status_color(status: BuildStatus) -> str:
    """Map a build status to a Slack attachment color."""
    if status is BuildStatus.SUCCESS:
        return "good"
    if status in BAD_STATUSES:
        return "danger"
    return "warning"


def failed_step(event: BuildEvent) -> BuildStep | None:
    """Return the last step that failed, errored or timed out, if any."""
    failed = None
    for step in event.steps:
        if step.status in BAD_STATUSES:
            failed = step
    return failed


def _status_message(event: BuildEvent, settings: MessageSettings) -> str:
    msg = settings.status_phrases.get(event.status, "")
    for step in event.steps:
        if step.status in BAD_STATUSES:
            msg += f" {step.id}"
    return msg


def _pr_action(event: BuildEvent, settings: MessageSettings) -> Action | None:
    branch = event.substitution("BRANCH_NAME")
    pr_number = event.substitution("_PR_NUMBER")
    if branch == settings.trunk_branch or not pr_number:
        return None
    return Action(
        text="View PR",
        url=(
            f"https://github.com/{settings.github_org}/"
            f"{event.substitution('REPO_NAME')}/pull/{pr_number}"
        ),
    )


def build_message(
    event: BuildEvent, settings: MessageSettings | None = None
) -> NotificationMessage:
    """Build the Slack message announcing *event*.

    The attachment carries the status line, a color derived from the build
    status and link buttons to the build log, the commit and, for pull
    request builds off the trunk branch, the pull request.

    Raises:
        MessageError: if the build's log URL cannot be annotated.
    """
    if settings is None:
        settings = MessageSettings()

    step = failed_step(event)
    if step is not None:
        logger.debug("Build %s failed at step %r", event.id, step.id)

    text = (
        f"Build for commit '{event.substitution('SHORT_SHA')}' "
        f"on branch '{event.substitution('BRANCH_NAME')}' "
        f"{_status_message(event, settings)}"
    )

    try:
        log_url = add_utm_params(event.log_url, CHAT_MEDIUM)
    except URLAnnotationError as exc:
        raise MessageError(f"failed to add UTM params: {exc}") from exc

    actions = [
        Action(text="View on GCB", url=log_url),
        Action(
            text="View commit",
            url=(
                f"https://github.com/{settings.github_org}/"
                f"{event.substitution('REPO_NAME')}/commit/"
                f"{event.substitution('COMMIT_SHA')}"
            ),
        ),
    ]

    pr = _pr_action(event, settings)
    if pr is not None:
        actions.append(pr)

    return NotificationMessage(
        attachment=Attachment(
            text=text,
            color=status_color(event.status),
            actions=tuple(actions),
        )
    )
