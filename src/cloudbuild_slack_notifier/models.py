"""Shared data structures used across all components."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class BuildStatus(Enum):
    STATUS_UNKNOWN = "STATUS_UNKNOWN"
    PENDING = "PENDING"
    QUEUED = "QUEUED"
    WORKING = "WORKING"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"

    @classmethod
    def parse(cls, value) -> "BuildStatus":
        """Parse a status name, mapping anything unrecognised to STATUS_UNKNOWN."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.STATUS_UNKNOWN


def _text(value) -> str:
    """Convert a JSON scalar to str, treating null as empty."""
    return "" if value is None else str(value)


BAD_STATUSES = frozenset({
    BuildStatus.FAILURE,
    BuildStatus.INTERNAL_ERROR,
    BuildStatus.TIMEOUT,
})


@dataclass(frozen=True)
class BuildStep:
    id: str
    status: BuildStatus = BuildStatus.STATUS_UNKNOWN
    name: str = ""  # builder image, e.g. "gcr.io/cloud-builders/docker"


@dataclass(frozen=True)
class BuildEvent:
    id: str
    status: BuildStatus
    steps: tuple[BuildStep, ...] = ()
    log_url: str = ""
    substitutions: Mapping[str, str] = field(default_factory=dict)
    raw: Mapping = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self):
        # Freeze the mapping so a shared event cannot be altered by a handler.
        object.__setattr__(
            self, "substitutions", MappingProxyType(dict(self.substitutions))
        )

    def substitution(self, key: str) -> str:
        """Return a substitution value, or "" when the key is absent."""
        return self.substitutions.get(key) or ""

    @classmethod
    def from_dict(cls, data: dict) -> "BuildEvent":
        """Build an event from the Cloud Build JSON representation."""
        if not isinstance(data, dict):
            raise ValueError(f"Build must be a JSON object, got {type(data).__name__}")

        steps = []
        for i, raw_step in enumerate(data.get("steps") or []):
            if not isinstance(raw_step, dict):
                raise ValueError(f"steps[{i}] must be a JSON object")
            steps.append(
                BuildStep(
                    id=_text(raw_step.get("id")),
                    status=BuildStatus.parse(raw_step.get("status", "")),
                    name=_text(raw_step.get("name")),
                )
            )

        substitutions = data.get("substitutions") or {}
        if not isinstance(substitutions, dict):
            raise ValueError("'substitutions' must be a JSON object")

        return cls(
            id=_text(data.get("id")),
            status=BuildStatus.parse(data.get("status", "")),
            steps=tuple(steps),
            log_url=_text(data.get("logUrl")),
            substitutions={str(k): _text(v) for k, v in substitutions.items()},
            raw=data,
        )

    def to_dict(self) -> dict:
        """Return the JSON document for this event (the original one if known)."""
        if self.raw:
            return dict(self.raw)
        return {
            "id": self.id,
            "status": self.status.value,
            "steps": [
                {"id": s.id, "status": s.status.value, "name": s.name}
                for s in self.steps
            ],
            "logUrl": self.log_url,
            "substitutions": dict(self.substitutions),
        }


@dataclass(frozen=True)
class Action:
    text: str  # button label, e.g. "View commit"
    url: str
    type: str = "button"

    def to_dict(self) -> dict:
        return {"text": self.text, "type": self.type, "url": self.url}


@dataclass(frozen=True)
class Attachment:
    text: str
    color: str  # "good", "danger" or "warning"
    actions: tuple[Action, ...] = ()

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "color": self.color,
            "actions": [a.to_dict() for a in self.actions],
        }


@dataclass(frozen=True)
class NotificationMessage:
    attachment: Attachment

    def to_dict(self) -> dict:
        """Render the Slack incoming-webhook JSON body."""
        return {"attachments": [self.attachment.to_dict()]}
