"""
vectorizer/tokenizer.py

Turns one TrafficRecord into a deduplicated set of namespaced tokens.

Token namespaces:
  host:<hostname>        root:<registrable domain>   sub:yes|no
  scheme:<scheme>        path:<segment>              pathdepth:<n>
  query:<param name>     method:<METHOD>             type:<resource type>
  status:<n>xx           ctype:<mime>                cache:<directive>
  enc:<encoding>         flow:{size,req,resp}:<band> flow:latency:<band>
  url:invalid            (only when the URL could not be parsed)

Numeric and hex-like path segments collapse to the placeholders
``path:<num>`` and ``path:<hex>`` so per-object ids do not flood the
vocabulary.  Byte counts and latency are bucketed into coarse bands and
emitted as tokens so they take part in feature hashing like any other
categorical signal.

Malformed URLs never raise — URL-derived tokens are skipped and the record's
own method/type/status/header fields still produce tokens.
"""

from __future__ import annotations

import re

from ..models import TrafficRecord
from ..urls import root_domain, split_url

_HEX_RE = re.compile(r"^[0-9a-fA-F]{8,}$")
_UUID_RE = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)

_CACHE_DIRECTIVES = ("no-store", "no-cache", "private", "public", "immutable", "max-age")

# Upper bounds (exclusive) in bytes; anything above the last one is 'huge'.
SIZE_BANDS: tuple[tuple[int, str], ...] = (
    (1, "none"),
    (1_024, "tiny"),
    (10 * 1_024, "small"),
    (100 * 1_024, "medium"),
    (1_024 * 1_024, "large"),
)

# Upper bounds (exclusive) in milliseconds; anything above is 'veryslow'.
LATENCY_BANDS: tuple[tuple[float, str], ...] = (
    (100.0, "fast"),
    (500.0, "medium"),
    (2_000.0, "slow"),
)


def size_band(n_bytes: int) -> str:
    """Bucket a byte count into none|tiny|small|medium|large|huge."""
    n = max(0, int(n_bytes or 0))
    for upper, name in SIZE_BANDS:
        if n < upper:
            return name
    return "huge"


def latency_band(latency_ms: float | None) -> str:
    """Bucket a latency into unknown|fast|medium|slow|veryslow."""
    if latency_ms is None or latency_ms != latency_ms or latency_ms < 0:
        return "unknown"
    for upper, name in LATENCY_BANDS:
        if latency_ms < upper:
            return name
    return "veryslow"


def classify_segment(segment: str) -> str:
    """Return 'num', 'hex' or 'alpha' for one path segment."""
    if segment.isdigit():
        return "num"
    if _HEX_RE.match(segment) or _UUID_RE.match(segment):
        return "hex"
    return "alpha"


def tokenize(record: TrafficRecord) -> frozenset[str]:
    """Extract the token set characterising *record*."""
    tokens: set[str] = set()

    parts = split_url(record.url)
    if parts is None:
        tokens.add("url:invalid")
    else:
        root = root_domain(parts.hostname)
        tokens.add(f"host:{parts.hostname}")
        tokens.add(f"root:{root}")
        tokens.add(f"sub:{'yes' if parts.hostname != root else 'no'}")
        tokens.add(f"scheme:{parts.scheme}")
        for seg in parts.path_segments:
            kind = classify_segment(seg)
            tokens.add(f"path:{seg.lower()}" if kind == "alpha" else f"path:<{kind}>")
        tokens.add(f"pathdepth:{len(parts.path_segments)}")
        for key in parts.query_keys:
            tokens.add(f"query:{key}")

    tokens.add(f"method:{(record.method or 'UNKNOWN').upper()}")
    tokens.add(f"type:{record.type or 'other'}")
    if record.status_code and record.status_code > 0:
        tokens.add(f"status:{record.status_code // 100}xx")
    else:
        tokens.add("status:none")

    tokens.update(_header_tokens(record))

    tokens.add(f"flow:size:{size_band(record.total_bytes)}")
    tokens.add(f"flow:req:{size_band(record.request_bytes)}")
    tokens.add(f"flow:resp:{size_band(record.response_bytes)}")
    tokens.add(f"flow:latency:{latency_band(record.latency_ms)}")
    return frozenset(tokens)


def _header_tokens(record: TrafficRecord) -> set[str]:
    tokens: set[str] = set()

    content_type = record.header("content-type")
    if content_type:
        mime = content_type.split(";", 1)[0].strip().lower()
        if mime:
            tokens.add(f"ctype:{mime}")

    cache_control = record.header("cache-control")
    if cache_control:
        for directive in cache_control.lower().split(","):
            name = directive.split("=", 1)[0].strip()
            if name in _CACHE_DIRECTIVES:
                tokens.add(f"cache:{name}")

    encoding = record.header("content-encoding")
    if encoding:
        for enc in encoding.lower().split(","):
            enc = enc.strip()
            if enc:
                tokens.add(f"enc:{enc}")
    return tokens
