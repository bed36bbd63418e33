from pathlib import Path

import pydantic
import pytest
from fakes import make_release, make_repository

from changeloghub.exceptions import OperationalError
from changeloghub.models.release import RawRelease
from changeloghub.models.repository import ChangelogRewrite, ReleaseFilter
from changeloghub.services.changelog import parse_changelog
from changeloghub.services.registry import RepositoryRegistry, RepositoryStrategy, extract_metadata, split_by_last


def test_split_by_last() -> None:
    assert split_by_last("@sveltejs/kit@2.5.0", "@") == ("@sveltejs/kit", "2.5.0")
    assert split_by_last("svelte-check-4.0.0", "-") == ("svelte-check", "4.0.0")
    assert split_by_last("1.0.0", "@") == ("", "1.0.0")


@pytest.mark.parametrize(
    ("strategy", "tag", "expected"),
    [
        ("split_last_at", "svelte@5.0.0-next.1", ("svelte", "5.0.0-next.1")),
        ("split_last_dash", "svelte-language-server-0.16.0", ("svelte-language-server", "0.16.0")),
        ("strip_v", "v9.1.0", ("repo", "9.1.0")),
        ("strip_v", "9.1.0", ("repo", "9.1.0")),
        ("at_or_strip_v", "eslint-plugin-svelte@3.0.0", ("eslint-plugin-svelte", "3.0.0")),
        ("at_or_strip_v", "v2.46.0", ("repo", "2.46.0")),
    ],
)
def test_extract_metadata(strategy: str, tag: str, expected: tuple[str, str]) -> None:
    assert extract_metadata(strategy, "repo", tag) == expected  # type: ignore[arg-type]


def test_release_filter_requires_a_condition() -> None:
    with pytest.raises(pydantic.ValidationError):
        ReleaseFilter()


def test_filter_release_contains_and_excludes() -> None:
    kit = RepositoryStrategy(make_repository("kit", release_filter=ReleaseFilter(tag_contains="/kit@")))
    others = RepositoryStrategy(make_repository("kit", release_filter=ReleaseFilter(tag_excludes="/kit@")))
    kit_release = RawRelease.model_validate(make_release(1, "@sveltejs/kit@2.0.0"))
    adapter_release = RawRelease.model_validate(make_release(2, "@sveltejs/adapter-node@5.0.0"))

    assert kit.filter_release(kit_release)
    assert not kit.filter_release(adapter_release)
    assert not others.filter_release(kit_release)
    assert others.filter_release(adapter_release)


def test_rewrite_changelog_promotes_version_headings() -> None:
    repository = make_repository(
        "svelte-preprocess",
        changes_mode="changelog",
        changelog_rewrites=[ChangelogRewrite(pattern=r"^# \[", replacement="## [")],
    )
    contents = "# Changelog\n\n# [6.0.0](https://example.com) (2024-06-01)\n\n- breaking\n"

    rewritten = RepositoryStrategy(repository).rewrite_changelog(contents)
    changelog = parse_changelog(rewritten)

    assert rewritten.startswith("# Changelog\n")
    assert "## [6.0.0]" in rewritten
    assert changelog.versions[0].version == "6.0.0"
    assert changelog.versions[0].date == "2024-06-01"


def test_load_bundled_registry() -> None:
    registry = RepositoryRegistry.load()

    assert [category.slug for category in registry.categories] == ["svelte", "kit", "others"]
    assert registry.repositories[0].full_name == "sveltejs/svelte"
    assert len(registry.find("SvelteJS", "KIT")) == 2
    full_names = [repository.full_name for repository in registry.unique_repositories()]
    assert len(full_names) == len(set(full_names))
    assert "sveltejs/kit" in full_names


def test_load_custom_registry(tmp_path: Path) -> None:
    path = tmp_path / "repositories.yaml"
    path.write_text(
        "categories:\n"
        "  - slug: tools\n"
        "    name: Tools\n"
        "    repositories:\n"
        "      - repo_owner: acme\n"
        "        repo_name: widget\n"
        "        tag_strategy: strip_v\n",
        encoding="utf-8",
    )

    registry = RepositoryRegistry.load(path)

    assert len(registry.repositories) == 1
    repository = registry.repositories[0]
    assert repository.full_name == "acme/widget"
    assert repository.changes_mode == "releases"
    assert repository.category.name == "Tools"


def test_load_missing_registry(tmp_path: Path) -> None:
    with pytest.raises(OperationalError) as exc_info:
        RepositoryRegistry.load(tmp_path / "missing.yaml")
    assert exc_info.value.message_key == "registry.file.not_found"


def test_load_invalid_registry(tmp_path: Path) -> None:
    path = tmp_path / "repositories.yaml"
    path.write_text("categories:\n  - slug: tools\n    repositories:\n      - tag_strategy: nope\n", encoding="utf-8")

    with pytest.raises(OperationalError) as exc_info:
        RepositoryRegistry.load(path)
    assert exc_info.value.message_key == "registry.file.invalid"
