"""
Key construction and small helpers shared by the watch-history and list code.

Remote watch-history documents are shaped as
``{'series_<id>': {'s<season>e<episode>': mark | None}}``; the local fallback
keeps one flat ``{'s<season>e<episode>': true}`` mapping per series.
"""

import time
from datetime import datetime, timezone
from typing import Any, Iterable


def series_field_key(series_id: int) -> str:
    """Top-level field holding one series inside the watch-history document."""
    return f"series_{series_id}"


def episode_field_key(season_number: int, episode_number: int) -> str:
    """Field holding one episode inside a series mapping."""
    return f"s{season_number}e{episode_number}"


def episode_field_path(series_id: int, season_number: int, episode_number: int) -> str:
    """Dotted path used for targeted field updates on the remote document."""
    return f"{series_field_key(series_id)}.{episode_field_key(season_number, episode_number)}"


def local_watched_key(series_id: int) -> str:
    """Local fallback store key for a series' watched mapping."""
    return f"series_{series_id}_watched"


def chunk_updates(updates: dict[str, Any], size: int) -> list[dict[str, Any]]:
    """
    Split a field-update mapping into consecutive chunks.

    Insertion order is preserved, so chunk N holds the N-th run of at most
    ``size`` paths.

    Args:
        updates: Mapping of field path to value
        size: Maximum number of paths per chunk

    Returns:
        List of mappings, empty when there is nothing to update
    """
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    items = list(updates.items())
    return [dict(items[i:i + size]) for i in range(0, len(items), size)]


def episode_numbers(episodes: Iterable[Any]) -> list[tuple[int, Any]]:
    """
    Normalize an episode listing to (episode_number, episode_name) pairs.

    Accepts TMDB season episodes (mappings with 'episode_number' and 'name')
    or plain episode numbers.
    """
    normalized = []
    for episode in episodes:
        if isinstance(episode, dict):
            normalized.append((int(episode['episode_number']), episode.get('name')))
        else:
            normalized.append((int(episode), None))
    return normalized


def now_millis() -> int:
    """Current client time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()
