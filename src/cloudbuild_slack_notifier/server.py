"""HTTP receiver for Cloud Build Pub/Sub push messages."""

from __future__ import annotations

import base64
import binascii
import json
import logging

from flask import Flask, jsonify, request

from cloudbuild_slack_notifier.errors import DeliveryError, MessageError
from cloudbuild_slack_notifier.models import BuildEvent
from cloudbuild_slack_notifier.notifier import SlackNotifier

logger = logging.getLogger(__name__)


def decode_push_envelope(envelope) -> BuildEvent:
    """Decode a Pub/Sub push envelope carrying a Cloud Build message.

    Raises:
        ValueError: if the envelope or its payload is malformed.
    """
    if not isinstance(envelope, dict):
        raise ValueError("push body must be a JSON object")
    message = envelope.get("message")
    if not isinstance(message, dict):
        raise ValueError("push body has no 'message' object")
    data = message.get("data")
    if not data:
        raise ValueError("Pub/Sub message has no 'data'")
    if not isinstance(data, str):
        raise ValueError(f"Pub/Sub data must be a base64 string, got {type(data).__name__}")

    try:
        payload = base64.b64decode(data, validate=True)
        build = json.loads(payload)
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError(f"failed to decode Pub/Sub data: {exc}") from exc

    return BuildEvent.from_dict(build)


def create_app(notifier: SlackNotifier) -> Flask:
    """Create the Flask application that feeds push messages to *notifier*."""
    app = Flask(__name__)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok" if notifier.ready else "unconfigured"}), 200

    @app.post("/")
    def receive():
        try:
            event = decode_push_envelope(request.get_json(silent=True))
        except ValueError as exc:
            logger.warning("Bad push request: %s", exc)
            return jsonify({"error": str(exc)}), 400

        try:
            sent = notifier.send_notification(event)
        except (MessageError, DeliveryError) as exc:
            logger.error("Failed to notify for build %s: %s", event.id, exc)
            return jsonify({"error": str(exc)}), 500

        return jsonify({"build": event.id, "sent": sent}), 200

    return app
