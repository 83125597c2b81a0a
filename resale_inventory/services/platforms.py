"""User-editable list of marketplace platforms, persisted as a JSON file.

The list is configuration, not inventory data: items only carry platform
names as a display string. Routes receive a :class:`PlatformRepository`
through a dependency instead of reaching for module state.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from ..core.errors import NotFound
from ..schemas.platform import Platform, PlatformIcon

logger = logging.getLogger(__name__)

PLATFORM_SEPARATOR = ", "

DEFAULT_PLATFORMS: tuple[Platform, ...] = (
    Platform(id="ebay", name="eBay", icon=PlatformIcon.SHOPPING_BAG, color="#E53238"),
    Platform(id="amazon", name="Amazon", icon=PlatformIcon.PACKAGE, color="#FF9900"),
    Platform(id="etsy", name="Etsy", icon=PlatformIcon.HEART, color="#F56400"),
    Platform(id="poshmark", name="Poshmark", icon=PlatformIcon.SHIRT, color="#7F0353"),
    Platform(id="mercari", name="Mercari", icon=PlatformIcon.TAG, color="#FF0211"),
    Platform(id="facebook", name="Facebook", icon=PlatformIcon.USERS, color="#1877F2"),
    Platform(id="depop", name="Depop", icon=PlatformIcon.SPARKLES, color="#FF2300"),
    Platform(id="offerup", name="OfferUp", icon=PlatformIcon.MESSAGE_CIRCLE, color="#00AB80"),
)


def split_platforms(value: str | None) -> list[str]:
    """Break an item's comma-joined ``platform`` string into names."""

    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def join_platforms(names: Iterable[str]) -> str:
    return PLATFORM_SEPARATOR.join(name.strip() for name in names if name and name.strip())


class PlatformRepository:
    """Thread-safe store for the platform list.

    Routes share one instance per process and run in FastAPI's thread pool,
    so every read-modify-write and the file save happen under ``_lock``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._platforms: list[Platform] = [p.model_copy() for p in DEFAULT_PLATFORMS]
        self._lock = threading.RLock()
        self.is_loaded = False

    def load(self) -> list[Platform]:
        """Read the saved list; a missing or unreadable file keeps the defaults."""

        with self._lock:
            if self.path.exists():
                try:
                    raw = json.loads(self.path.read_text(encoding="utf-8"))
                    self._platforms = [Platform.model_validate(entry) for entry in raw]
                except (OSError, ValueError, TypeError, ValidationError):
                    logger.warning(
                        "platforms.load_failed",
                        exc_info=True,
                        extra={"extra_data": {"path": str(self.path)}},
                    )
            self.is_loaded = True
            return self.list()

    def list(self) -> list[Platform]:
        with self._lock:
            return [p.model_copy() for p in self._platforms]

    def enabled(self) -> list[Platform]:
        return [p for p in self.list() if p.enabled]

    def get(self, platform_id: str) -> Platform:
        with self._lock:
            for platform in self._platforms:
                if platform.id == platform_id:
                    return platform.model_copy()
        raise NotFound("Platform not found")

    def update(self, platform_id: str, updates: dict) -> Platform:
        with self._lock:
            current = self.get(platform_id)
            merged = Platform.model_validate({**current.model_dump(), **updates, "id": platform_id})
            self._platforms = [merged if p.id == platform_id else p for p in self._platforms]
            self._save()
            return merged.model_copy()

    def add(self) -> Platform:
        with self._lock:
            platform = Platform(
                id=self._new_custom_id(),
                name="New Platform",
                icon=PlatformIcon.STORE,
                color="#6366F1",
            )
            self._platforms.append(platform)
            self._save()
            return platform.model_copy()

    def remove(self, platform_id: str) -> None:
        with self._lock:
            self._platforms = [p for p in self._platforms if p.id != platform_id]
            self._save()

    def reorder(self, platforms: Iterable[Platform]) -> list[Platform]:
        validated = [Platform.model_validate(p) for p in platforms]
        with self._lock:
            self._platforms = validated
            self._save()
            return self.list()

    def _new_custom_id(self) -> str:
        # Millisecond stamp, suffixed when another add landed in the same ms.
        base = f"custom_{int(time.time() * 1000)}"
        taken = {p.id for p in self._platforms}
        candidate, suffix = base, 1
        while candidate in taken:
            candidate = f"{base}_{suffix}"
            suffix += 1
        return candidate

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [p.model_dump(mode="json") for p in self._platforms]
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.info("platforms.saved", extra={"extra_data": {"count": len(payload)}})
