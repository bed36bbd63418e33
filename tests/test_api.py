# ruff: noqa: ANN201
import hashlib
import hmac
import json
from collections.abc import Iterator

import pytest
from fakes import GITHUB_API, NPM_REGISTRY, FakeClock, FakeStore, FakeUpstream, make_release, make_repository
from fastapi.testclient import TestClient

from changeloghub.core.services import AppServices, build_services
from changeloghub.main import app
from changeloghub.models.app_config import AppConfig, CacheConfig, WebhooksConfig
from changeloghub.services.github import GitHubClient
from changeloghub.services.npm import NpmRegistryClient
from changeloghub.services.registry import RepositoryRegistry

RELEASES_PATH = "/repos/sveltejs/tools/releases"


def _build(
    github_upstream: FakeUpstream,
    npm_upstream: FakeUpstream,
    cache: CacheConfig | None = None,
    store: FakeStore | None = None,
    webhooks: WebhooksConfig | None = None,
) -> AppServices:
    registry = RepositoryRegistry(
        [
            make_repository("tools"),
            make_repository("svelte-devtools", slug="others", tag_strategy="strip_v", registry_excluded=True),
        ]
    )
    return build_services(
        AppConfig(
            cache=cache or CacheConfig(),
            webhooks=webhooks
            or WebhooksConfig(github_secret="s3cret", replicator_token="replicator", cron_secret="cron"),
        ),
        registry=registry,
        github=GitHubClient(client=github_upstream.client(GITHUB_API)),
        npm=NpmRegistryClient(client=npm_upstream.client(NPM_REGISTRY)),
        store=store,
    )


@pytest.fixture
def services(github_upstream: FakeUpstream, npm_upstream: FakeUpstream) -> Iterator[AppServices]:
    github_upstream.add(
        RELEASES_PATH,
        [
            make_release(3, "pkg@1.1.0", "2024-02-01T00:00:00Z"),
            make_release(2, "other@2.0.0", "2024-01-15T00:00:00Z"),
            make_release(1, "pkg@1.0.0", "2024-01-01T00:00:00Z"),
        ],
    )
    github_upstream.add(
        "/repos/sveltejs/svelte-devtools/releases", [make_release(10, "v2.2.0", "2023-06-01T00:00:00Z")]
    )
    app.state.services = _build(github_upstream, npm_upstream)
    yield app.state.services
    app.state.services = None


@pytest.fixture
def client(services: AppServices) -> TestClient:
    return TestClient(app)


def _signed(body: bytes, secret: str = "s3cret") -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


# Packages


def test_list_packages(client: TestClient):
    r = client.get("/api/packages")
    assert r.status_code == 200
    names = [[pkg["name"] for pkg in entry["packages"]] for entry in r.json()]
    assert names == [["pkg", "other"], ["svelte-devtools"]]


def test_list_categorized_packages(client: TestClient):
    r = client.get("/api/packages/categorized")
    assert r.status_code == 200
    assert [group["category"]["slug"] for group in r.json()] == ["svelte", "others"]


def test_package_releases(client: TestClient):
    r = client.get("/api/packages/pkg/releases")
    assert r.status_code == 200
    body = r.json()
    assert [release["clean_version"] for release in body["releases"]] == ["1.1.0", "1.0.0"]
    assert body["releases_repo"]["repo_name"] == "tools"


def test_unknown_package_releases(client: TestClient):
    r = client.get("/api/packages/nope/releases")
    assert r.status_code == 404
    assert r.json()["error"] == "packages.package.not_found"


def test_package_feed(client: TestClient):
    r = client.get("/api/packages/pkg/rss.json")
    assert r.status_code == 200
    feed = r.json()
    assert feed["version"] == "https://jsonfeed.org/version/1.1"
    assert feed["title"] == "pkg releases"
    assert [item["title"] for item in feed["items"]] == ["pkg@1.1.0", "pkg@1.0.0"]
    assert feed["items"][0]["content_text"] == "Notes for pkg@1.1.0"


def test_aggregate_feed(client: TestClient):
    r = client.get("/api/packages/all/rss.json")
    assert r.status_code == 200
    feed = r.json()
    assert feed["title"] == "All releases"
    assert [item["title"] for item in feed["items"]] == [
        "pkg@1.1.0",
        "other@2.0.0",
        "pkg@1.0.0",
        "svelte-devtools@2.2.0",
    ]


def test_unknown_package_feed(client: TestClient):
    r = client.get("/api/packages/nope/rss.json")
    assert r.status_code == 404


def test_releases_pagination(client: TestClient):
    r = client.get("/api/releases", params={"page": 2, "per_page": 2})
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 4
    assert [release["tag_name"] for release in body["items"]] == ["pkg@1.0.0", "v2.2.0"]


# Items


def test_item_not_found(client: TestClient):
    r = client.get("/api/issue/sveltejs/tools/1")
    assert r.status_code == 404
    assert r.json()["error"] == "items.item.not_found"


def test_item_details(client: TestClient, github_upstream: FakeUpstream):
    github_upstream.add("/repos/sveltejs/tools/discussions/5", {"number": 5, "title": "RFC"})
    github_upstream.add("/repos/sveltejs/tools/discussions/5/comments", [{"id": 1}])

    r = client.get("/api/discussion/sveltejs/tools/5")
    assert r.status_code == 200
    assert r.json()["info"]["title"] == "RFC"
    assert r.json()["kind"] == "discussion"


def test_owner_only_link_is_rejected(client: TestClient):
    r = client.get("/api/issue/sveltejs")
    assert r.status_code == 400
    assert "Paste a whole" in r.json()["params"]["guidance"]


def test_repository_only_link_is_rejected(client: TestClient):
    r = client.get("/api/pr/sveltejs/svelte")
    assert r.status_code == 400
    assert r.json()["error"] == "items.repository.unsupported"


def test_repository_item_lists(client: TestClient, github_upstream: FakeUpstream):
    github_upstream.add("/repos/sveltejs/tools/pulls", [{"number": 9, "title": "feat"}])

    r = client.get("/api/repos/sveltejs/tools/prs")
    assert r.status_code == 200
    assert r.json() == [{"number": 9, "title": "feat"}]


def test_unknown_repository_forbidden_in_production(github_upstream: FakeUpstream, npm_upstream: FakeUpstream):
    app.state.services = _build(
        github_upstream,
        npm_upstream,
        cache=CacheConfig(mode="production"),
        store=FakeStore(FakeClock()),
    )
    try:
        r = TestClient(app).get("/api/issue/someone/else/1")
    finally:
        app.state.services = None
    assert r.status_code == 403


# Webhooks


def test_github_webhook_rejects_bad_signature(client: TestClient):
    body = json.dumps({"action": "published", "repository": {"name": "tools", "owner": {"login": "sveltejs"}}})
    r = client.post(
        "/api/github/webhooks",
        content=body,
        headers={"X-GitHub-Event": "release", "X-Hub-Signature-256": _signed(body.encode(), "wrong")},
    )
    assert r.status_code == 401


def test_github_webhook_rejected_without_configured_secret(github_upstream: FakeUpstream, npm_upstream: FakeUpstream):
    app.state.services = _build(github_upstream, npm_upstream, webhooks=WebhooksConfig())
    body = json.dumps({"action": "published", "repository": {"name": "tools", "owner": {"login": "sveltejs"}}})
    try:
        r = TestClient(app).post(
            "/api/github/webhooks",
            content=body,
            headers={"X-GitHub-Event": "release", "X-Hub-Signature-256": _signed(body.encode(), "")},
        )
    finally:
        app.state.services = None
    assert r.status_code == 401
    assert github_upstream.calls[RELEASES_PATH] == 0


def test_github_release_webhook_invalidates_releases(client: TestClient, github_upstream: FakeUpstream):
    assert client.get("/api/packages/pkg/releases").status_code == 200
    assert github_upstream.calls[RELEASES_PATH] == 1

    body = json.dumps({"action": "published", "repository": {"name": "tools", "owner": {"login": "sveltejs"}}})
    r = client.post(
        "/api/github/webhooks",
        content=body,
        headers={"X-GitHub-Event": "release", "X-Hub-Signature-256": _signed(body.encode())},
    )
    assert r.status_code == 200
    assert r.json() == {"repository": "sveltejs/tools", "deleted": True, "details": {"action": "published"}}

    assert client.get("/api/packages/pkg/releases").status_code == 200
    assert github_upstream.calls[RELEASES_PATH] == 2


def test_github_webhook_ignores_other_events(client: TestClient):
    body = b'{"zen": "Keep it logically awesome."}'
    r = client.post(
        "/api/github/webhooks",
        content=body,
        headers={"X-GitHub-Event": "ping", "X-Hub-Signature-256": _signed(body)},
    )
    assert r.status_code == 200
    assert r.json() is None


def test_webhook_packages_list_skips_excluded_repositories(client: TestClient):
    r = client.get("/api/webhooks/packages")
    assert r.status_code == 200
    assert r.json() == ["pkg", "other"]


@pytest.mark.parametrize(
    ("headers", "status"),
    [
        ({}, 401),
        ({"Authorization": "Bearer"}, 401),
        ({"Authorization": "Bearer nope"}, 403),
    ],
)
def test_replicator_webhook_auth(client: TestClient, headers: dict[str, str], status: int):
    r = client.post("/api/webhooks/packages", content=b"{}", headers=headers)
    assert r.status_code == status


@pytest.mark.parametrize(
    ("body", "status"),
    [
        (b"not json", 400),
        (json.dumps({"event": "package_deleted", "package": {"name": "pkg"}}).encode(), 415),
        (json.dumps({"event": "changestream_updated", "package": {"name": "unknown"}}).encode(), 422),
    ],
)
def test_replicator_webhook_rejections(client: TestClient, body: bytes, status: int):
    r = client.post("/api/webhooks/packages", content=body, headers={"Authorization": "Bearer replicator"})
    assert r.status_code == status


@pytest.mark.parametrize("event", ["metadata_updated", "changestream_updated"])
def test_replicator_webhook_invalidates_owning_repository(
    client: TestClient, github_upstream: FakeUpstream, event: str
):
    body = json.dumps({"event": event, "package": {"name": "other", "version": "2.0.1"}})
    r = client.post("/api/webhooks/packages", content=body, headers={"Authorization": "Bearer replicator"})
    assert r.status_code == 200
    assert r.json()["repository"] == "sveltejs/tools"
    assert r.json()["deleted"] is True

    client.get("/api/packages/other/releases")
    assert github_upstream.calls[RELEASES_PATH] == 2


# Cron


def test_cron_requires_secret(client: TestClient):
    assert client.get("/cron").status_code == 401
    assert client.get("/cron", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_cron_refreshes_every_repository(client: TestClient, github_upstream: FakeUpstream):
    assert client.get("/api/packages").status_code == 200
    github_upstream.add(RELEASES_PATH, [make_release(4, "pkg@2.0.0", "2024-05-01T00:00:00Z")])

    r = client.get("/cron", headers={"Authorization": "Bearer cron"})
    assert r.status_code == 200
    assert r.json() == {"refreshed": ["sveltejs/tools", "sveltejs/svelte-devtools"], "failed": {}}
    assert github_upstream.calls[RELEASES_PATH] == 2

    # Discovery follows the fresh releases without a new discovery
    packages = client.get("/api/packages").json()
    assert [pkg["name"] for pkg in packages[0]["packages"]] == ["pkg"]

    # Older cached history is kept
    versions = [release["clean_version"] for release in client.get("/api/packages/pkg/releases").json()["releases"]]
    assert versions == ["2.0.0", "1.1.0", "1.0.0"]


def test_cron_reports_failed_repositories(client: TestClient, github_upstream: FakeUpstream):
    github_upstream.add("/repos/sveltejs/svelte-devtools/releases", {"message": "boom"}, status=500)

    r = client.get("/cron", headers={"Authorization": "Bearer cron"})
    assert r.status_code == 200
    assert r.json()["refreshed"] == ["sveltejs/tools"]
    assert list(r.json()["failed"]) == ["sveltejs/svelte-devtools"]
