"""Tests for CEL filter compilation."""

import pytest

from cloudbuild_slack_notifier.cel import compile_cel_predicate
from cloudbuild_slack_notifier.errors import FilterCompileError
from cloudbuild_slack_notifier.models import BuildEvent


def make_event(status="SUCCESS", branch="main") -> BuildEvent:
    return BuildEvent.from_dict({
        "id": "build-1",
        "status": status,
        "logUrl": "https://example.com/log",
        "substitutions": {"BRANCH_NAME": branch},
    })


class TestCompileCelPredicate:
    def test_status_match(self):
        predicate = compile_cel_predicate('build.status == "SUCCESS"')
        assert predicate(make_event()) is True
        assert predicate(make_event(status="FAILURE")) is False

    def test_substitution_match(self):
        predicate = compile_cel_predicate(
            'build.status == "FAILURE" && build.substitutions.BRANCH_NAME == "main"'
        )
        assert predicate(make_event(status="FAILURE")) is True
        assert predicate(make_event(status="FAILURE", branch="dev")) is False

    def test_status_in_list(self):
        predicate = compile_cel_predicate(
            'build.status in ["FAILURE", "INTERNAL_ERROR", "TIMEOUT"]'
        )
        assert predicate(make_event(status="TIMEOUT")) is True
        assert predicate(make_event(status="SUCCESS")) is False

    @pytest.mark.parametrize(
        "expression", ["build.id", "build.substitutions.BRANCH_NAME"]
    )
    def test_non_bool_result_is_no_match(self, expression, caplog):
        predicate = compile_cel_predicate(expression)
        assert predicate(make_event(branch="dev")) is False
        assert "not a bool" in caplog.text

    def test_syntax_error(self):
        with pytest.raises(FilterCompileError, match="failed to compile"):
            compile_cel_predicate("build.status ==")

    @pytest.mark.parametrize("expression", ["", "   "])
    def test_empty_expression(self, expression):
        with pytest.raises(FilterCompileError, match="empty"):
            compile_cel_predicate(expression)
