"""
Curio Backend — YouTube URL Metadata
=====================================

What:  Pure helpers that recognize YouTube links and derive the video id,
       start offset, thumbnail and privacy-friendly embed URL.
Who:   Card creation (dashboard and extension capture) and the canvas.
When:  Whenever a URL is saved; no network access is involved.

Recognized shapes:
    https://youtu.be/<id>
    https://www.youtube.com/watch?v=<id>
    https://www.youtube.com/shorts/<id>   (also /embed/<id>, /live/<id>)
    any *.youtube.com host (m., music.)

Start offsets are read from `t`, `start` or `time_continue` (first present
wins) and accept "90", "90s" and "1h2m3s" forms.
"""

import math
import re
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlencode, urlsplit

from curio.models.card import SOURCE_WEB, SOURCE_YOUTUBE

_PATH_KINDS = {"shorts", "embed", "live"}
_TIME_PARAMS = ("t", "start", "time_continue")
_HMS_RE = re.compile(r"^(?:([0-9]+)h)?(?:([0-9]+)m)?(?:([0-9]+)s)?$", re.IGNORECASE)


@dataclass(frozen=True)
class UrlMetadata:
    """What a saved URL tells us before any page is fetched."""

    source_type: str
    video_id: Optional[str] = None
    start_seconds: Optional[int] = None
    thumbnail_url: Optional[str] = None


def _split(url: str):
    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.netloc:
        return None
    return parts


def _query(parts) -> Dict[str, List[str]]:
    return parse_qs(parts.query, keep_blank_values=True)


def get_video_id(url: str) -> Optional[str]:
    """Return the YouTube video id for `url`, or None when it is not a video link."""
    try:
        parts = _split(url)
    except ValueError:
        return None
    if parts is None or not parts.hostname:
        return None

    host = parts.hostname.lower()
    if host.startswith("www."):
        host = host[4:]

    segments = [segment for segment in parts.path.split("/") if segment]

    if host == "youtu.be":
        return segments[0] if segments else None

    if host.endswith("youtube.com"):
        v = _query(parts).get("v")
        if v and v[0]:
            return v[0]
        if len(segments) >= 2 and segments[0] in _PATH_KINDS:
            return segments[1]

    return None


def parse_time_to_seconds(raw: str) -> Optional[int]:
    """
    Parse a YouTube time parameter.

    "90" and "90s" → 90, "1h2m3s" → 3723. Anything else → None.
    """
    trimmed = raw.strip()
    if not trimmed:
        return None

    simple = trimmed[:-1] if trimmed[-1] in "sS" else trimmed
    if simple.isascii() and simple.isdigit():
        return int(simple)

    match = _HMS_RE.match(trimmed)
    if not match:
        return None

    hours, minutes, seconds = (int(group) if group else 0 for group in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def get_start_seconds(url: str) -> Optional[int]:
    """Return the start offset encoded in `url`, or None when there is none."""
    try:
        parts = _split(url)
    except ValueError:
        return None
    if parts is None:
        return None

    query = _query(parts)
    for name in _TIME_PARAMS:
        if name in query:
            value = query[name][0]
            return parse_time_to_seconds(value) if value else None
    return None


def get_thumbnail_url(video_id: str) -> str:
    # hqdefault exists for every video; maxresdefault does not
    return f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"


def get_embed_url(video_id: str, start_seconds: Optional[float] = None, autoplay: bool = False) -> str:
    """Build a youtube-nocookie embed URL."""
    start = max(0, math.floor(start_seconds or 0))
    params = {}
    if start:
        params["start"] = str(start)
    if autoplay:
        params["autoplay"] = "1"
    params["rel"] = "0"
    return f"https://www.youtube-nocookie.com/embed/{video_id}?{urlencode(params)}"


def extract_metadata(url: str) -> UrlMetadata:
    """Classify `url` and collect everything derivable from it."""
    video_id = get_video_id(url)
    if video_id is None:
        return UrlMetadata(source_type=SOURCE_WEB)
    return UrlMetadata(
        source_type=SOURCE_YOUTUBE,
        video_id=video_id,
        start_seconds=get_start_seconds(url),
        thumbnail_url=get_thumbnail_url(video_id),
    )


def format_timestamp(seconds: float) -> str:
    """Render seconds as m:ss, or h:mm:ss from one hour up."""
    value = max(0, math.floor(seconds))
    hours, rest = divmod(value, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
