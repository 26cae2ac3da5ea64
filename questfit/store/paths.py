"""Document paths for the hierarchical per-user store.

Layout::

    users/{userId}                                   profile + linked account
    users/{userId}/polarData/{category}/all/{key}    synced vendor records
    users/{userId}/meta/achievements                 achievement progress map
    instructors/{userId}                             dashboard scoping

A path with an even number of segments names a document, an odd number names
a collection.
"""

from __future__ import annotations

USERS = "users"
INSTRUCTORS = "instructors"
POLAR_DATA = "polarData"
SYNC_SUMMARY = "syncSummary"


def _segments(path: str) -> list[str]:
    parts = [p for p in path.strip("/").split("/") if p]
    if not parts:
        raise ValueError("Empty document path")
    return parts


def is_document_path(path: str) -> bool:
    return len(_segments(path)) % 2 == 0


def split_document_path(path: str) -> tuple[str, str]:
    """Return ``(collection_path, doc_id)`` for a document path.

    Raises:
        ValueError: If the path names a collection.
    """
    parts = _segments(path)
    if len(parts) % 2:
        raise ValueError(f"Not a document path: {path!r}")
    return "/".join(parts[:-1]), parts[-1]


def join(*segments: str) -> str:
    for seg in segments:
        if not seg or "/" in seg:
            raise ValueError(f"Invalid path segment: {seg!r}")
    return "/".join(segments)


def user_doc(user_id: str) -> str:
    return join(USERS, user_id)


def polar_collection(user_id: str, category: str) -> str:
    return join(USERS, user_id, POLAR_DATA, category, "all")


def polar_record(user_id: str, category: str, key: str) -> str:
    return join(USERS, user_id, POLAR_DATA, category, "all", key)


def achievements_doc(user_id: str) -> str:
    return join(USERS, user_id, "meta", "achievements")


def instructor_doc(user_id: str) -> str:
    return join(INSTRUCTORS, user_id)
