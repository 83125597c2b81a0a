from __future__ import annotations

from functools import lru_cache

from ..core.config import settings
from ..services.platforms import PlatformRepository


@lru_cache(maxsize=1)
def get_platform_repository() -> PlatformRepository:
    """One repository per process, loaded from ``PLATFORMS_FILE`` on first use."""

    repository = PlatformRepository(settings.PLATFORMS_FILE)
    repository.load()
    return repository
