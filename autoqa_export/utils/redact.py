import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

MAX_STRING_LENGTH = 400
SENSITIVE_QUERY_PARAMS = ("token", "key", "secret", "password", "auth", "api_key", "apikey", "access_token")

_URL_PATTERN = re.compile(r"https?://[^\s'\"`<>]+")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def truncate_string(value: str, max_length: int = MAX_STRING_LENGTH) -> str:
    if len(value) <= max_length:
        return value
    return value[:max_length] + "...[truncated]"


def redact_url_credentials(url: str) -> str:
    """Drop user info and mask sensitive query parameters in ``url``."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return truncate_string(url)
    if not parts.scheme or not parts.netloc:
        return truncate_string(url)

    netloc = parts.netloc.rsplit("@", 1)[-1]
    query = parts.query
    if query:
        params = [
            (name, "[REDACTED]" if name.lower() in SENSITIVE_QUERY_PARAMS else value)
            for name, value in parse_qsl(query, keep_blank_values=True)
        ]
        query = urlencode(params, safe="[]")
    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


def redact_step_text(text: str) -> str:
    """One-line, credential-free rendition of a step for a generated comment."""
    redacted = _URL_PATTERN.sub(lambda match: redact_url_credentials(match.group(0)), text or "")
    return truncate_string(_WHITESPACE_PATTERN.sub(" ", redacted).strip())
