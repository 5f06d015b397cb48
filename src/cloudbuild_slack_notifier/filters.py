"""Event filter deciding which builds are worth a notification."""

import logging
from typing import Callable

from cloudbuild_slack_notifier.models import BuildEvent

logger = logging.getLogger(__name__)

Predicate = Callable[[BuildEvent], bool]
PredicateCompiler = Callable[[str], Predicate]


class EventFilter:
    """Holds a predicate compiled once at set-up and applies it per event.

    A ``False`` result only means "skip this build"; it is never an error.
    """

    def __init__(self, predicate: Predicate, expression: str = "") -> None:
        self._predicate = predicate
        self._expression = expression

    @classmethod
    def from_expression(
        cls, expression: str, compiler: PredicateCompiler
    ) -> "EventFilter":
        """Compile *expression* with *compiler* and wrap the result."""
        return cls(compiler(expression), expression)

    @property
    def expression(self) -> str:
        return self._expression

    def apply(self, event: BuildEvent) -> bool:
        """Return True when *event* should be notified about.

        A predicate that raises or returns anything but ``True`` or ``False``
        is logged and treated as a non-match.
        """
        try:
            result = self._predicate(event)
        except Exception:
            logger.warning(
                "Filter %r failed on build %s; skipping",
                self._expression,
                event.id,
                exc_info=True,
            )
            return False

        if not isinstance(result, bool):
            logger.warning(
                "Filter %r returned %s, not a bool, for build %s; skipping",
                self._expression,
                type(result).__name__,
                event.id,
            )
            return False
        return result
