"""Markdown changelog parser.

Turns a "Keep a Changelog"-style file into an ordered list of version
entries. Parsing is a single line-oriented pass:

- ``# Title`` (first level-1 heading) becomes the changelog title
- every other level-1 or level-2 heading starts a new version entry
- ``### Subsection`` headings group the list items that follow them
- lines before the first version entry form the description
"""

import re
from dataclasses import dataclass, field

from changeloghub.models.changelog import Changelog, ChangelogVersionEntry

LINE_SPLIT = re.compile(r"\r\n?|\n")
LINK_LABEL = re.compile(r"^\[[^\[\]]*] *?:")
TITLE = re.compile(r"^# ?[^#]")
VERSION_HEADING = re.compile(r"^##? ?[^#]")
SEMVER = re.compile(r"\[?v?([\w.-]+\.[\w.-]+[a-zA-Z0-9])]?", re.ASCII)
DATE = re.compile(r".* \(?(\d\d?\d?\d?[-/.]\d\d?[-/.]\d\d?\d?\d?)\)?.*")
SUBHEAD = re.compile(r"^###")
LIST_ITEM = re.compile(r"^[*-]")

CATCH_ALL = "_"


@dataclass
class _PendingVersion:
    """Mutable version entry, frozen into a ChangelogVersionEntry once complete."""

    version: str | None = None
    title: str = ""
    date: str | None = None
    lines: list[str] = field(default_factory=list)
    parsed: dict[str, list[str]] = field(default_factory=lambda: {CATCH_ALL: []})
    active_subhead: str | None = None

    def freeze(self) -> ChangelogVersionEntry:
        return ChangelogVersionEntry(
            version=self.version,
            title=self.title,
            date=self.date,
            body=_clean("\n".join(self.lines)),
            parsed=self.parsed,
        )


def _clean(text: str) -> str:
    return text.strip()


def _start_version(line: str) -> _PendingVersion:
    pending = _PendingVersion()

    if match := SEMVER.search(line):
        pending.version = match.group(1)

    pending.title = line[2:].strip()

    if pending.title and (match := DATE.search(pending.title)):
        pending.date = match.group(1)

    return pending


def _add_body_line(pending: _PendingVersion, line: str) -> None:
    pending.lines.append(line)

    if SUBHEAD.match(line):
        key = line.replace("###", "", 1).strip()
        pending.parsed.setdefault(key, [])
        pending.active_subhead = key

    if LIST_ITEM.match(line):
        pending.parsed[CATCH_ALL].append(line)
        if pending.active_subhead is not None:
            pending.parsed[pending.active_subhead].append(line)


def parse_changelog(text: str) -> Changelog:
    """Parse changelog text.

    Args:
        text: Markdown changelog contents (any newline convention)

    Returns:
        The parsed changelog; versions keep their order of appearance
    """
    title = ""
    description: list[str] = []
    versions: list[ChangelogVersionEntry] = []
    current: _PendingVersion | None = None

    for line in LINE_SPLIT.split(text or ""):
        if LINK_LABEL.match(line):
            continue

        if not title and TITLE.match(line):
            title = line[1:].strip()
            continue

        if VERSION_HEADING.match(line):
            # An untitled pending entry is replaced rather than flushed
            if current is not None and current.title:
                versions.append(current.freeze())
            current = _start_version(line)
            continue

        if current is not None:
            _add_body_line(current, line)
        else:
            description.append(line)

    if current is not None:
        versions.append(current.freeze())

    return Changelog(title=title, description=_clean("\n".join(description)), versions=versions)
