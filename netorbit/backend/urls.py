"""
backend/urls.py

URL helpers shared by the tokenizer and the universe aggregator.

Parsing never raises: anything that is not an absolute URL with a hostname
comes back as None so callers can degrade instead of failing.
"""

from __future__ import annotations

from typing import NamedTuple
from urllib.parse import SplitResult, parse_qsl, urlsplit

UNKNOWN_HOST = "unknown"


class UrlParts(NamedTuple):
    scheme: str
    hostname: str
    path_segments: list[str]
    query_keys: list[str]


def split_url(url: str) -> UrlParts | None:
    """Split *url* into the parts the pipeline cares about, or None if malformed."""
    if not isinstance(url, str) or not url:
        return None
    try:
        parts: SplitResult = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError:
        # urlsplit raises on e.g. unbalanced IPv6 brackets or a bad port
        return None
    if not parts.scheme or not hostname:
        return None

    segments = [seg for seg in parts.path.split("/") if seg]
    keys: list[str] = []
    for key, _ in parse_qsl(parts.query, keep_blank_values=True):
        if key not in keys:
            keys.append(key)
    return UrlParts(parts.scheme.lower(), hostname.lower(), segments, keys)


def hostname_of(url: str) -> str:
    """Hostname of *url*, or 'unknown' when it cannot be parsed."""
    parts = split_url(url)
    return parts.hostname if parts is not None else UNKNOWN_HOST


def root_domain(hostname: str) -> str:
    """
    Naive registrable domain: the last two labels.

    'cdn.static.example.com' → 'example.com'.  IP addresses and single-label
    hosts are returned unchanged.
    """
    if _is_ip_literal(hostname):
        return hostname
    labels = [label for label in hostname.split(".") if label]
    if len(labels) <= 2:
        return ".".join(labels)
    return ".".join(labels[-2:])


def _is_ip_literal(hostname: str) -> bool:
    if ":" in hostname:
        return True  # IPv6
    labels = hostname.split(".")
    return len(labels) == 4 and all(label.isdigit() for label in labels)
