"""Test-case identifier extractors and the priority-ordered registry.

Each extractor recognizes one annotation shape. For a single annotation the
registry answers with the first supporting extractor in descending priority;
across the annotations of a method the winners' identifiers are merged,
de-duplicated in first-seen order.
"""

import re
from collections.abc import Iterable
from typing import Protocol

from testhub.extraction.nodes import AnnotationKind, AnnotationNode

# Two to four uppercase letters, a hyphen, digits: TC-1234
TEST_CASE_ID_PATTERN = re.compile(r"^[A-Z]{2,4}-\d+$")

RICH_ANNOTATION = "UnittestCaseInfo"
TEST_CASE_ID_ANNOTATION = "TestCaseId"
TAG_ANNOTATION = "Tag"


def is_test_case_id(value: str) -> bool:
    return bool(TEST_CASE_ID_PATTERN.match(value))


class CaseIdExtractor(Protocol):
    """Capability shared by all extractors."""

    priority: int

    def supports(self, node: AnnotationNode) -> bool: ...

    def extract(self, node: AnnotationNode) -> list[str]: ...


class RichAnnotationExtractor:
    """``@UnittestCaseInfo(testCaseIds = {...})``, falling back to id-shaped ``tags``."""

    priority = 100

    def supports(self, node: AnnotationNode) -> bool:
        return node.simple_name == RICH_ANNOTATION and node.kind == AnnotationKind.NORMAL

    def extract(self, node: AnnotationNode) -> list[str]:
        explicit = node.member("testCaseIds")
        ids = [value.strip() for value in explicit.strings()] if explicit else []
        ids = [value for value in ids if value]
        if ids:
            return ids

        tags = node.member("tags")
        if tags is None:
            return []
        return [tag.strip() for tag in tags.strings() if is_test_case_id(tag.strip())]


class TestCaseIdAnnotationExtractor:
    """``@TestCaseId("TC-1")``, ``@TestCaseId({"TC-1", "TC-2"})`` or ``value = ...``."""

    __test__ = False

    priority = 90

    def supports(self, node: AnnotationNode) -> bool:
        return node.simple_name == TEST_CASE_ID_ANNOTATION

    def extract(self, node: AnnotationNode) -> list[str]:
        value = node.member("value")
        if value is None:
            return []
        return [text.strip() for text in value.strings() if text.strip()]


class TagExtractor:
    """``@Tag("TC-500")``, keeping only identifier-shaped values."""

    priority = 50

    def supports(self, node: AnnotationNode) -> bool:
        return node.simple_name == TAG_ANNOTATION and node.kind == AnnotationKind.SINGLE

    def extract(self, node: AnnotationNode) -> list[str]:
        if node.value is None:
            return []
        return [text.strip() for text in node.value.strings() if is_test_case_id(text.strip())]


class ExtractorRegistry:
    """Ordered set of extractors consulted highest priority first.

    Extractors with equal priority keep the order they were given in.

    Example:
        >>> registry = ExtractorRegistry([TagExtractor(), RichAnnotationExtractor()])
        >>> registry.extract_all(method_annotations)
        ['TC-100', 'TC-101']
    """

    def __init__(self, extractors: Iterable[CaseIdExtractor]):
        self._extractors: tuple[CaseIdExtractor, ...] = tuple(
            sorted(extractors, key=lambda extractor: extractor.priority, reverse=True)
        )

    @property
    def extractors(self) -> tuple[CaseIdExtractor, ...]:
        return self._extractors

    def find(self, node: AnnotationNode) -> CaseIdExtractor | None:
        """First extractor, by priority, that supports the annotation."""
        for extractor in self._extractors:
            if extractor.supports(node):
                return extractor
        return None

    def extract(self, node: AnnotationNode) -> list[str]:
        """Identifiers from the winning extractor for one annotation."""
        extractor = self.find(node)
        if extractor is None:
            return []
        return list(extractor.extract(node))

    def extract_all(self, nodes: Iterable[AnnotationNode]) -> list[str]:
        """Union of identifiers over several annotations, de-duplicated in first-seen order."""
        seen: dict[str, None] = {}
        for node in nodes:
            for identifier in self.extract(node):
                seen.setdefault(identifier, None)
        return list(seen)


def default_registry() -> ExtractorRegistry:
    """Registry holding the built-in extractors."""
    return ExtractorRegistry(
        [
            RichAnnotationExtractor(),
            TestCaseIdAnnotationExtractor(),
            TagExtractor(),
        ]
    )


__all__ = [
    "TEST_CASE_ID_PATTERN",
    "ExtractorRegistry",
    "RichAnnotationExtractor",
    "TagExtractor",
    "TestCaseIdAnnotationExtractor",
    "CaseIdExtractor",
    "default_registry",
    "is_test_case_id",
]
