from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps.auth import require_api_key
from ..deps.platforms import get_platform_repository
from ..schemas.inventory import DeleteResponse
from ..schemas.platform import Platform, PlatformUpdate
from ..services.platforms import PlatformRepository

router = APIRouter(prefix="/api/platforms", tags=["platforms"], dependencies=[Depends(require_api_key)])


@router.get("", response_model=list[Platform])
def api_list_platforms(enabled_only: bool = False, repo: PlatformRepository = Depends(get_platform_repository)):
    return repo.enabled() if enabled_only else repo.list()


@router.post("", response_model=Platform, status_code=201)
def api_add_platform(repo: PlatformRepository = Depends(get_platform_repository)):
    return repo.add()


@router.put("", response_model=list[Platform])
def api_reorder_platforms(platforms: list[Platform], repo: PlatformRepository = Depends(get_platform_repository)):
    return repo.reorder(platforms)


@router.patch("/{platform_id}", response_model=Platform)
def api_update_platform(
    platform_id: str,
    payload: PlatformUpdate,
    repo: PlatformRepository = Depends(get_platform_repository),
):
    return repo.update(platform_id, payload.model_dump(exclude_unset=True, exclude_none=True))


@router.delete("/{platform_id}", response_model=DeleteResponse)
def api_remove_platform(platform_id: str, repo: PlatformRepository = Depends(get_platform_repository)):
    repo.remove(platform_id)
    return {"success": True, "message": "Platform removed"}
