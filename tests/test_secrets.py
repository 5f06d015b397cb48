"""Tests for secret reference resolution."""

import logging

import pytest

from cloudbuild_slack_notifier.errors import SecretError
from cloudbuild_slack_notifier.secrets import (
    EnvSecretGetter,
    find_secret_resource_name,
    get_secret_ref,
)


class TestGetSecretRef:
    def test_found(self):
        delivery = {"webhookUrl": {"secretRef": "webhook-url"}}
        assert get_secret_ref(delivery, "webhookUrl") == "webhook-url"

    def test_missing_field(self):
        with pytest.raises(SecretError, match="webhookUrl"):
            get_secret_ref({}, "webhookUrl")

    def test_field_not_a_mapping(self):
        with pytest.raises(SecretError):
            get_secret_ref({"webhookUrl": "https://hooks.slack.com/x"}, "webhookUrl")

    def test_missing_secret_ref(self):
        with pytest.raises(SecretError, match="secretRef"):
            get_secret_ref({"webhookUrl": {}}, "webhookUrl")


class TestFindSecretResourceName:
    def test_found(self):
        secrets = {"webhook-url": "SLACK_WEBHOOK_URL"}
        assert find_secret_resource_name(secrets, "webhook-url") == "SLACK_WEBHOOK_URL"

    def test_not_found(self):
        with pytest.raises(SecretError, match="webhook-url"):
            find_secret_resource_name({}, "webhook-url")


class TestEnvSecretGetter:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SLACK_WEBHOOK_URL", "https://hooks.slack.com/services/T/B/X")
        assert EnvSecretGetter().get_secret("SLACK_WEBHOOK_URL") == (
            "https://hooks.slack.com/services/T/B/X"
        )

    def test_explicit_mapping(self):
        getter = EnvSecretGetter({"HOOK": "https://hooks.slack.com/x"})
        assert getter.get_secret("HOOK") == "https://hooks.slack.com/x"

    def test_logs_name_not_value(self, caplog):
        getter = EnvSecretGetter({"HOOK": "https://hooks.slack.com/secret-token"})

        with caplog.at_level(logging.DEBUG, logger="cloudbuild_slack_notifier.secrets"):
            getter.get_secret("HOOK")

        assert "HOOK" in caplog.text
        assert "secret-token" not in caplog.text

    def test_missing(self):
        with pytest.raises(SecretError, match="HOOK"):
            EnvSecretGetter({}).get_secret("HOOK")

    def test_empty_value(self):
        with pytest.raises(SecretError):
            EnvSecretGetter({"HOOK": ""}).get_secret("HOOK")
