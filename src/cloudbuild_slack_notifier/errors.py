"""Exception types raised by the notifier."""


class NotifierError(Exception):
    """Base class for all notifier errors."""


class SetupError(NotifierError):
    """Raised when the notifier cannot be initialised (filter or secret)."""


class FilterCompileError(NotifierError):
    """Raised when a filter expression cannot be compiled."""


class SecretError(NotifierError):
    """Raised when a secret reference or value cannot be resolved."""


class URLAnnotationError(NotifierError, ValueError):
    """Raised when tracking parameters cannot be added to a URL."""


class MessageError(NotifierError):
    """Raised when a build event cannot be turned into a Slack message."""


class DeliveryError(NotifierError):
    """Raised when posting the message to the webhook fails."""
