"""Webhook endpoints invalidating cached releases."""

import hashlib
import hmac
import json

import pydantic
from fastapi import APIRouter, Depends, Header, Request

from changeloghub.core.services import AppServices, get_services
from changeloghub.exceptions import AppBaseError, AuthenticationError, ValidationError
from changeloghub.logger import get_logger
from changeloghub.models.api import GitHubReleaseEvent, InvalidationResult, ReplicatorEvent

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["webhooks"])

RELEASE_ACTIONS = {"released", "prereleased", "published"}
REPLICATOR_EVENTS = {"metadata_updated", "changestream_updated"}


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Check a GitHub ``X-Hub-Signature-256`` header against the raw body.

    An unset secret never verifies.
    """
    if not secret or not signature or not signature.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected.encode(), signature.removeprefix("sha256=").encode())


async def _invalidate(services: AppServices, owner: str, repo: str, **details: object) -> InvalidationResult:
    deleted = await services.github_cache.delete_repo_entry(owner, repo, "releases")
    if deleted:
        logger.info("Invalidated releases", repository=f"{owner}/{repo}", **details)
    else:
        logger.error("Failed to delete the releases entry", repository=f"{owner}/{repo}", **details)
    return InvalidationResult(repository=f"{owner}/{repo}", deleted=deleted, details=details)


@router.post("/github/webhooks", response_model=InvalidationResult | None)
async def github_webhook(
    request: Request,
    x_github_event: str | None = Header(None),
    x_hub_signature_256: str | None = Header(None),
    services: AppServices = Depends(get_services),
) -> InvalidationResult | None:
    """Receive GitHub webhooks; new releases invalidate the repository's releases."""
    body = await request.body()
    if not x_github_event:
        raise ValidationError("webhooks.github.missing_event")
    if not verify_signature(services.config.webhooks.github_secret, body, x_hub_signature_256):
        raise AuthenticationError("webhooks.github.invalid_signature")

    if x_github_event != "release":
        logger.debug("Ignoring webhook", github_event=x_github_event)
        return None

    try:
        event = GitHubReleaseEvent.model_validate_json(body)
    except pydantic.ValidationError as e:
        raise ValidationError("webhooks.github.invalid_payload", error=str(e)) from e

    if event.action not in RELEASE_ACTIONS:
        logger.debug("Ignoring release action", action=event.action)
        return None

    owner, repo = event.repository.owner.login, event.repository.name
    logger.info("Received a release webhook", repository=f"{owner}/{repo}", action=event.action)
    return await _invalidate(services, owner, repo, action=event.action)


@router.get("/webhooks/packages", response_model=list[str])
async def list_webhook_packages(services: AppServices = Depends(get_services)) -> list[str]:
    """List the package names the registry replicator should notify about."""
    names: dict[str, None] = {}
    for discovered in await services.discoverer.get_or_discover():
        if discovered.repository.registry_excluded:
            continue
        for pkg in discovered.packages:
            names.setdefault(pkg.name, None)
    return list(names)


@router.post("/webhooks/packages", response_model=InvalidationResult)
async def replicator_webhook(
    request: Request,
    authorization: str | None = Header(None),
    services: AppServices = Depends(get_services),
) -> InvalidationResult:
    """Receive registry replicator events for published packages."""
    if not authorization:
        raise AuthenticationError("webhooks.replicator.missing_authorization")
    _, _, token = authorization.partition(" ")
    if not token:
        raise AuthenticationError("webhooks.replicator.missing_token")
    if not hmac.compare_digest(token.encode(), services.config.webhooks.replicator_token.encode()):
        raise AuthenticationError("webhooks.replicator.invalid_token", status_code=403)

    try:
        event = ReplicatorEvent.model_validate(json.loads(await request.body()))
    except (ValueError, pydantic.ValidationError) as e:
        raise ValidationError("webhooks.replicator.invalid_payload", error=str(e)) from e

    if event.event not in REPLICATOR_EVENTS:
        raise AppBaseError("webhooks.replicator.unsupported_event", status_code=415, replicator_event=event.event)

    discovered = await services.discoverer.find_repository_for_package(event.package.name)
    if discovered is None:
        raise AppBaseError("webhooks.replicator.unknown_package", status_code=422, package=event.package.name)

    repository = discovered.repository
    logger.info("Received a package webhook", package=event.package.name, repository=repository.full_name)
    return await _invalidate(
        services, repository.repo_owner, repository.repo_name, package=event.package.name, replicator_event=event.event
    )
