"""Collection grouping plugin.

A collection is a named, ordered list of files chosen by a glob pattern (or by a
``collection`` key in their front-matter). Collections are published in the global
metadata so that layouts can loop over them, e.g. to list blog posts.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from ..content import FileMap, FileRecord
from ..utils import match_path, to_datetime


@dataclass(frozen=True)
class CollectionRule:
    """How a collection selects and orders its members.

    Attributes:
        pattern: Glob (or list of globs) matched against source paths.
        sort_by: Metadata key to sort on; None keeps path order.
        reverse: Reverse the sorted order (newest first for dates).
        limit: Keep at most this many members.
    """

    pattern: str | tuple[str, ...] | None = None
    sort_by: str | None = "date"
    reverse: bool = False
    limit: int | None = None


class Collection(Sequence[FileRecord]):
    """Lightweight helper for working with lists of files in templates and code."""

    def __init__(self, name: str, records: Iterable[FileRecord]):
        self.name = name
        self._records = list(records)

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, item):
        return self._records[item]

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"Collection({self.name!r}, {len(self._records)} files)"


class Collections:
    """Groups files into named collections.

    Attributes:
        rules: Mapping of collection name to CollectionRule.
    """

    name = "collections"

    def __init__(self, rules: dict[str, CollectionRule | dict[str, Any]]):
        self.rules = {
            key: rule if isinstance(rule, CollectionRule) else CollectionRule(**rule)
            for key, rule in rules.items()
        }

    def apply(self, files: FileMap, metadata: dict[str, Any]) -> FileMap:
        published = metadata.setdefault("collections", {})
        for name, rule in self.rules.items():
            members = [
                record
                for path, record in sorted(files.items())
                if self._selects(name, rule, path, record)
            ]
            if rule.sort_by:
                members.sort(key=lambda r: _sort_key(r.get(rule.sort_by)))
                # Missing values stay last whichever way the list is read
                if rule.reverse:
                    present = [r for r in members if r.get(rule.sort_by) is not None]
                    missing = [r for r in members if r.get(rule.sort_by) is None]
                    members = present[::-1] + missing
            elif rule.reverse:
                members.reverse()
            if rule.limit is not None:
                members = members[: rule.limit]

            collection = Collection(name, members)
            published[name] = collection
            metadata[name] = collection
            self._link(name, members)
        return files

    @staticmethod
    def _selects(name: str, rule: CollectionRule, path: str, record: FileRecord) -> bool:
        declared = record.get("collection")
        if isinstance(declared, str):
            declared = [declared]
        if declared and name in declared:
            return True
        return rule.pattern is not None and match_path(path, rule.pattern)

    @staticmethod
    def _link(name: str, members: list[FileRecord]) -> None:
        for index, record in enumerate(members):
            names = record.metadata.get("collection") or []
            if isinstance(names, str):
                names = [names]
            if name not in names:
                names = [*names, name]
            record.metadata["collection"] = names
            record.metadata.setdefault("previous", {})[name] = (
                members[index - 1] if index > 0 else None
            )
            record.metadata.setdefault("next", {})[name] = (
                members[index + 1] if index + 1 < len(members) else None
            )


def _sort_key(value: Any) -> tuple:
    if value is None:
        return (3, "")
    as_date = to_datetime(value)
    if as_date is not None:
        return (0, as_date)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value)
    return (2, str(value).lower())
