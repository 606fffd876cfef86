"""Favorite pages and the recently visited list shown in the sidebar."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

__all__ = ["DEFAULT_RECENT_LIMIT", "RecentPage", "FavoritesState"]

LOGGER = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 20


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class RecentPage:
    id: str
    title: str
    timestamp: str


@dataclass(slots=True, frozen=True)
class FavoritesState:
    """Immutable favorites + recents value owned by the workspace coordinator."""

    favorites: tuple[str, ...] = ()
    recent_pages: tuple[RecentPage, ...] = ()

    def is_favorite(self, document_id: str) -> bool:
        return document_id in self.favorites

    def toggle_favorite(self, document_id: str) -> "FavoritesState":
        if document_id in self.favorites:
            return replace(self, favorites=tuple(fid for fid in self.favorites if fid != document_id))
        return replace(self, favorites=self.favorites + (document_id,))

    def add_recent_page(
        self,
        document_id: str,
        title: str,
        *,
        limit: int = DEFAULT_RECENT_LIMIT,
        now: Callable[[], datetime] = _utcnow,
    ) -> "FavoritesState":
        """Move ``document_id`` to the front of the recent list, keeping ``limit`` entries."""

        entry = RecentPage(id=document_id, title=title, timestamp=now().isoformat())
        rest = tuple(page for page in self.recent_pages if page.id != document_id)
        return replace(self, recent_pages=((entry,) + rest)[: max(limit, 0)])

    def prune(self, document_ids: Iterable[str]) -> "FavoritesState":
        """Drop references to deleted documents."""

        removed = set(document_ids)
        favorites = tuple(fid for fid in self.favorites if fid not in removed)
        recent = tuple(page for page in self.recent_pages if page.id not in removed)
        if favorites == self.favorites and recent == self.recent_pages:
            return self
        return FavoritesState(favorites=favorites, recent_pages=recent)

    def rename(self, old_id: str, new_id: str, title: str) -> "FavoritesState":
        favorites = tuple(new_id if fid == old_id else fid for fid in self.favorites)
        recent = tuple(
            RecentPage(id=new_id, title=title, timestamp=page.timestamp) if page.id == old_id else page
            for page in self.recent_pages
        )
        return FavoritesState(favorites=favorites, recent_pages=recent)

    def to_payload(self) -> dict[str, Any]:
        return {
            "favorites": list(self.favorites),
            "recentPages": [
                {"id": page.id, "title": page.title, "timestamp": page.timestamp}
                for page in self.recent_pages
            ],
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "FavoritesState":
        if not payload:
            return cls()
        favorites = tuple(str(fid) for fid in payload.get("favorites") or () if fid)
        recent: list[RecentPage] = []
        for entry in payload.get("recentPages") or ():
            if not isinstance(entry, Mapping) or not entry.get("id"):
                LOGGER.debug("Skipping malformed recent page entry: %r", entry)
                continue
            recent.append(
                RecentPage(
                    id=str(entry["id"]),
                    title=str(entry.get("title") or entry["id"]),
                    timestamp=str(entry.get("timestamp") or ""),
                )
            )
        return cls(favorites=favorites, recent_pages=tuple(recent))
