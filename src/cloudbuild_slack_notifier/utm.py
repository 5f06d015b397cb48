"""UTM tracking parameters for links pointing back at Cloud Build."""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from cloudbuild_slack_notifier.errors import URLAnnotationError

CHAT_MEDIUM = "chat"
EMAIL_MEDIUM = "email"

UTM_CAMPAIGN = "google-cloud-build-notifiers"
UTM_SOURCE = "google-cloud-build"


def add_utm_params(url: str, medium: str) -> str:
    """Return *url* with the utm_campaign/medium/source parameters set.

    Existing query parameters are kept and the query is re-encoded with its
    keys sorted. Any utm_* values already present are replaced, so annotating
    an annotated URL returns it unchanged.

    Raises:
        URLAnnotationError: if the URL has no scheme or host, or medium is empty.
    """
    if not medium:
        raise URLAnnotationError("UTM medium must not be empty")

    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise URLAnnotationError(f"failed to parse URL {url!r}: {exc}") from exc

    if not parts.scheme or not parts.netloc:
        raise URLAnnotationError(f"URL {url!r} must have a scheme and a host")

    params: dict[str, list[str]] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        params.setdefault(key, []).append(value)

    params["utm_campaign"] = [UTM_CAMPAIGN]
    params["utm_medium"] = [medium]
    params["utm_source"] = [UTM_SOURCE]

    query = urlencode(
        [(key, value) for key in sorted(params) for value in params[key]]
    )
    return urlunsplit(parts._replace(query=query))
