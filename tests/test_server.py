"""Tests for the Pub/Sub push HTTP receiver."""

import base64
import json

import pytest

from cloudbuild_slack_notifier.errors import DeliveryError, MessageError
from cloudbuild_slack_notifier.models import BuildStatus
from cloudbuild_slack_notifier.server import create_app, decode_push_envelope

BUILD = {
    "id": "build-1",
    "status": "SUCCESS",
    "logUrl": "https://example.com/log",
    "substitutions": {"BRANCH_NAME": "main"},
}


def make_envelope(build=BUILD) -> dict:
    data = base64.b64encode(json.dumps(build).encode()).decode()
    return {"message": {"data": data, "messageId": "1"}, "subscription": "projects/p/subscriptions/s"}


@pytest.fixture
def notifier(mocker):
    notifier = mocker.Mock()
    notifier.ready = True
    notifier.send_notification.return_value = True
    return notifier


@pytest.fixture
def client(notifier):
    return create_app(notifier).test_client()


class TestDecodePushEnvelope:
    def test_decodes_build(self):
        event = decode_push_envelope(make_envelope())
        assert event.id == "build-1"
        assert event.status is BuildStatus.SUCCESS
        assert event.substitution("BRANCH_NAME") == "main"

    @pytest.mark.parametrize(
        "envelope",
        [
            None,
            [],
            {},
            {"message": "x"},
            {"message": {}},
            {"message": {"data": 123}},
            {"message": {"data": ["YQ=="]}},
            {"message": {"data": "!!not base64!!"}},
            {"message": {"data": base64.b64encode(b"not json").decode()}},
        ],
    )
    def test_malformed(self, envelope):
        with pytest.raises(ValueError):
            decode_push_envelope(envelope)


class TestReceive:
    def test_sends_notification(self, client, notifier):
        resp = client.post("/", json=make_envelope())

        assert resp.status_code == 200
        assert resp.get_json() == {"build": "build-1", "sent": True}
        event = notifier.send_notification.call_args[0][0]
        assert event.id == "build-1"

    def test_filtered_out(self, client, notifier):
        notifier.send_notification.return_value = False

        resp = client.post("/", json=make_envelope())

        assert resp.status_code == 200
        assert resp.get_json()["sent"] is False

    def test_non_string_data(self, client, notifier):
        resp = client.post("/", json={"message": {"data": 123}})

        assert resp.status_code == 400
        notifier.send_notification.assert_not_called()

    def test_bad_request(self, client, notifier):
        resp = client.post("/", data="garbage", content_type="text/plain")

        assert resp.status_code == 400
        notifier.send_notification.assert_not_called()

    @pytest.mark.parametrize(
        "error", [MessageError("bad log URL"), DeliveryError("webhook down")]
    )
    def test_notify_failure(self, client, notifier, error):
        notifier.send_notification.side_effect = error

        resp = client.post("/", json=make_envelope())

        assert resp.status_code == 500
        assert resp.get_json() == {"error": str(error)}

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json() == {"status": "ok"}
