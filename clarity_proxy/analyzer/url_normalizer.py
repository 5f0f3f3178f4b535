"""Clarity Proxy — URL Normalizer.

Turns any URL into the key used to match export rows against a target.
Two URLs are the same target iff their keys are equal:

- scheme is forced to ``https``
- host is lower-cased, leading ``www.`` dropped, default ports dropped
- query string and fragment are discarded (Clarity rows carry gclid/utm noise)
- the path is percent-decoded best effort and trailing slashes removed

Path case is preserved.
"""

import re
from typing import Any, Optional
from urllib.parse import urlsplit

from clarity_proxy.models.raw_models import Row

URL_FIELDS = ("URL", "Url", "url")
DEFAULT_PORTS = {"http": 80, "https": 443}

# Characters decodeURI leaves encoded, plus "%" so the key stays a fixed point
_KEEP_ENCODED = set(";/?:@&=+$,#%")
_ESCAPE_RUN = re.compile(r"(?:%[0-9A-Fa-f]{2})+")


def _escape(ch: str) -> str:
    return "".join(f"%{b:02X}" for b in ch.encode("utf-8"))


def _needs_escape(ch: str) -> bool:
    return ch.isspace() or not ch.isprintable()


def _encode_literals(path: str) -> str:
    """Escape raw whitespace and non-printables so they match their %XX form."""
    return "".join(_escape(ch) if _needs_escape(ch) else ch for ch in path)


def _decode_run(match: "re.Match[str]") -> str:
    raw = bytes.fromhex(match.group(0).replace("%", ""))
    text = raw.decode("utf-8")
    return "".join(
        _escape(ch) if ch in _KEEP_ENCODED or _needs_escape(ch) else ch
        for ch in text
    )


def _decode_path(path: str) -> str:
    """Percent-decode a path; on invalid UTF-8 only raw whitespace is escaped."""
    path = _encode_literals(path)
    try:
        return _ESCAPE_RUN.sub(_decode_run, path)
    except UnicodeDecodeError:
        return path


def _strip_trailing_slash(path: str) -> str:
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def _host(parts) -> Optional[str]:
    hostname = parts.hostname
    if not hostname:
        return None
    while hostname.startswith("www.") and len(hostname) > 4:
        hostname = hostname[4:]
    if ":" in hostname:
        hostname = f"[{hostname}]"
    port = parts.port
    if port is not None and port not in (DEFAULT_PORTS.get(parts.scheme.lower()), 443):
        hostname = f"{hostname}:{port}"
    return hostname


def _fallback(text: str) -> str:
    text = re.split(r"[?#]", text, maxsplit=1)[0]
    return text.rstrip("/")


def normalize_url(url: Any) -> str:
    """Return the matching key for ``url``; ``""`` for empty input."""
    if url is None:
        return ""
    text = str(url).strip()
    if not text:
        return ""

    try:
        parts = urlsplit(text)
        host = _host(parts) if parts.scheme and parts.netloc else None
    except ValueError:
        host = None
    if not host:
        return _fallback(text)

    path = _strip_trailing_slash(_decode_path(parts.path or "/"))
    return f"https://{host}{path}"


def row_url(row: Row) -> Any:
    """Return the row's URL field, whichever casing the export used."""
    for field in URL_FIELDS:
        value = row.get(field)
        if value:
            return value
    return None
