"""CEL filter expressions compiled with cel-python.

The build is exposed to expressions as ``build``, using the Cloud Build JSON
field names, e.g.::

    build.status == "FAILURE" && build.substitutions.BRANCH_NAME == "main"
"""

import logging

import celpy
from celpy import celtypes

from cloudbuild_slack_notifier.errors import FilterCompileError
from cloudbuild_slack_notifier.filters import Predicate
from cloudbuild_slack_notifier.models import BuildEvent

logger = logging.getLogger(__name__)


def compile_cel_predicate(expression: str) -> Predicate:
    """Compile a CEL expression into a predicate over build events.

    Raises:
        FilterCompileError: if the expression is empty or does not parse.
    """
    if not expression or not expression.strip():
        raise FilterCompileError("filter expression must not be empty")

    env = celpy.Environment()
    try:
        ast = env.compile(expression)
        program = env.program(ast)
    except celpy.CELParseError as exc:
        raise FilterCompileError(
            f"failed to compile filter {expression!r}: {exc}"
        ) from exc

    def predicate(event: BuildEvent) -> bool:
        activation = {"build": celpy.json_to_cel(event.to_dict())}
        try:
            result = program.evaluate(activation)
        except celpy.CELEvalError as exc:
            result = exc
        # Some cel-python releases return evaluation errors as values.
        if isinstance(result, celpy.CELEvalError):
            logger.warning("Filter evaluation failed for build %s: %s", event.id, result)
            return False
        if not isinstance(result, (bool, celtypes.BoolType)):
            logger.warning(
                "Filter %r returned %s, not a bool, for build %s; skipping",
                expression,
                type(result).__name__,
                event.id,
            )
            return False
        return bool(result)

    return predicate
