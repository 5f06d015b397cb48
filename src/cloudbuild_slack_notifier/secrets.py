"""Secret references in the notifier config and the secret lookup interface."""

import logging
import os
from typing import Mapping, Protocol

from cloudbuild_slack_notifier.errors import SecretError

logger = logging.getLogger(__name__)


class SecretGetter(Protocol):
    def get_secret(self, resource_name: str) -> str:
        """Return the secret value stored under *resource_name*."""
        ...


class EnvSecretGetter:
    """Resolves secret resource names as environment variable names."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def get_secret(self, resource_name: str) -> str:
        logger.debug("Resolving secret %r from the environment", resource_name)
        value = self._environ.get(resource_name)
        if not value:
            raise SecretError(f"environment variable {resource_name!r} is not set")
        return value


def get_secret_ref(delivery: Mapping, field_name: str) -> str:
    """Return the ``secretRef`` of ``delivery[field_name]``.

    Raises:
        SecretError: if the field is missing or has no ``secretRef``.
    """
    entry = delivery.get(field_name)
    if not isinstance(entry, Mapping):
        raise SecretError(f"delivery config has no mapping field {field_name!r}")
    ref = entry.get("secretRef")
    if not isinstance(ref, str) or not ref:
        raise SecretError(f"delivery field {field_name!r} has no 'secretRef'")
    return ref


def find_secret_resource_name(secrets: Mapping[str, str], ref: str) -> str:
    """Return the resource name declared for the secret named *ref*."""
    try:
        return secrets[ref]
    except KeyError:
        raise SecretError(f"no secret named {ref!r} in config 'secrets'") from None
