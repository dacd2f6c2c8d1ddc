"""Structured test documentation metadata carried by a rich annotation."""

from dataclasses import asdict, dataclass, field
from typing import Any

DEFAULT_STATUS = "TODO"


@dataclass
class AnnotationMetadata:
    """Metadata declared on a test method by the rich documentation annotation.

    Attributes:
        title: Human-readable test title; a non-empty title marks the method as annotated
        author: Test author
        status: Lifecycle status, ``TODO`` unless declared
        target_class: Production class under test
        target_method: Production method under test
        description: Free-form description
        tags: Arbitrary tags
        test_points: Verified behaviours
        test_case_ids: Explicit test-case identifiers
        related_requirements: Linked requirement ids
        related_defects: Linked defect ids
        related_testcases: Linked test-case references
        last_update_time: Free-form last update stamp
        last_update_author: Author of the last update
        method_signature: Declared signature of the method under test
    """

    title: str = ""
    author: str = ""
    status: str = DEFAULT_STATUS
    target_class: str = ""
    target_method: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)
    test_points: list[str] = field(default_factory=list)
    test_case_ids: list[str] = field(default_factory=list)
    related_requirements: list[str] = field(default_factory=list)
    related_defects: list[str] = field(default_factory=list)
    related_testcases: list[str] = field(default_factory=list)
    last_update_time: str = ""
    last_update_author: str = ""
    method_signature: str = ""

    @property
    def has_title(self) -> bool:
        return bool(self.title.strip())

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return asdict(self)
