"""Wildcard path patterns for repository and URL inclusion/exclusion.

Path patterns: ``*`` matches within one path segment, ``?`` one character
within a segment, ``**`` any number of characters across segments; ``**/``
and ``/**`` also match zero segments, so ``**/legacy/**`` matches a
``legacy`` segment at any depth. URL patterns treat ``*`` as "anything".
Matching is case-insensitive and anchored at both ends.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field


def glob_to_regex(pattern: str, segment_aware: bool = True) -> re.Pattern[str]:
    """
    Compile a wildcard pattern.

    Args:
        pattern: Wildcard pattern
        segment_aware: Treat ``/`` as a segment separator (path mode)

    Returns:
        Compiled case-insensitive full-match regex
    """
    pattern = pattern.strip().replace("\\", "/")
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if segment_aware and pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif segment_aware and pattern.startswith("/**", i) and i + 3 == len(pattern):
            parts.append("(?:/.*)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*" if segment_aware else ".*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]" if segment_aware else ".")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts), re.IGNORECASE)


def _normalize(path: str) -> str:
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.strip("/")


@dataclass(frozen=True)
class GlobPattern:
    """A compiled wildcard pattern."""

    pattern: str
    segment_aware: bool = True
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "regex", glob_to_regex(self.pattern, self.segment_aware))

    def matches(self, value: str) -> bool:
        candidate = _normalize(value) if self.segment_aware else value.strip()
        return self.regex.fullmatch(candidate) is not None


class PathFilter:
    """
    Include/exclude filter; exclusion wins, no include patterns means include all.

    Example:
        >>> PathFilter(include=["*test*"], exclude=["**/legacy/**"]).matches("my-test-repo")
        True
    """

    def __init__(
        self,
        include: Iterable[str] = (),
        exclude: Iterable[str] = (),
        segment_aware: bool = True,
    ):
        self.include = tuple(GlobPattern(p, segment_aware) for p in include if p.strip())
        self.exclude = tuple(GlobPattern(p, segment_aware) for p in exclude if p.strip())

    @classmethod
    def for_urls(cls, include: Iterable[str] = (), exclude: Iterable[str] = ()) -> "PathFilter":
        return cls(include, exclude, segment_aware=False)

    @property
    def is_empty(self) -> bool:
        return not self.include and not self.exclude

    def matches(self, value: str) -> bool:
        if any(pattern.matches(value) for pattern in self.exclude):
            return False
        if not self.include:
            return True
        return any(pattern.matches(value) for pattern in self.include)
