"""Issue, pull request and discussion API endpoints.

Registered last: the catch-all guidance routes would shadow the other routers.
"""

from typing import Any

from fastapi import APIRouter, Depends

from changeloghub.core.services import AppServices, get_services
from changeloghub.exceptions import AppBaseError, ResourceNotFoundError, ValidationError
from changeloghub.logger import get_logger
from changeloghub.models.item import ItemDetails, ItemKind
from changeloghub.services.github.cache import ItemListKind

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["items"])

PASTE_GUIDANCE = "Paste a whole PR/issue/discussion link to display it."


def _ensure_known_repository(services: AppServices, owner: str, repo: str) -> None:
    # Development mode may browse any repository
    if services.cache.is_dev or services.registry.find(owner, repo):
        return
    raise AppBaseError("items.repository.unknown", status_code=403, repository=f"{owner}/{repo}")


@router.get("/members/{owner}", response_model=list[str])
async def list_members(owner: str, services: AppServices = Depends(get_services)) -> list[str]:
    """List the public members of an organization."""
    return await services.github_cache.get_organization_members(owner)


@router.get("/repos/{owner}/{repo}/{list_kind}")
async def list_items(
    owner: str, repo: str, list_kind: ItemListKind, services: AppServices = Depends(get_services)
) -> list[dict[str, Any]]:
    """List the open issues, pull requests or discussions of a repository."""
    _ensure_known_repository(services, owner, repo)
    if list_kind == "issues":
        return await services.github_cache.get_issues(owner, repo)
    if list_kind == "prs":
        return await services.github_cache.get_pull_requests(owner, repo)
    return await services.github_cache.get_discussions(owner, repo)


@router.get("/{kind}/{owner}/{repo}/{number:int}", response_model=ItemDetails)
async def get_item(
    kind: ItemKind, owner: str, repo: str, number: int, services: AppServices = Depends(get_services)
) -> ItemDetails:
    """Get an issue, pull request or discussion with its comments and linked items."""
    _ensure_known_repository(services, owner, repo)
    details = await services.github_cache.get_item_details(owner, repo, kind, number)
    if details is None:
        raise ResourceNotFoundError("items.item.not_found", kind=kind, repository=f"{owner}/{repo}", number=number)
    return details


@router.get("/{kind}/{owner}/{repo}")
async def visit_repository(kind: str, owner: str, repo: str) -> None:
    raise ValidationError("items.repository.unsupported", guidance=PASTE_GUIDANCE, repository=f"{owner}/{repo}")


@router.get("/{kind}/{owner}")
async def visit_owner(kind: str, owner: str) -> None:
    raise ValidationError("items.owner.unsupported", guidance=PASTE_GUIDANCE, owner=owner)
