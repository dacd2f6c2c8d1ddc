"""Java test source parsing and test-case identifier extraction."""

from testhub.extraction.extractors import (
    TEST_CASE_ID_PATTERN,
    CaseIdExtractor,
    ExtractorRegistry,
    RichAnnotationExtractor,
    TagExtractor,
    TestCaseIdAnnotationExtractor,
    default_registry,
    is_test_case_id,
)
from testhub.extraction.metadata import extract_annotation_metadata
from testhub.extraction.nodes import AnnotationKind, AnnotationNode, AnnotationValue, ValueKind
from testhub.extraction.parser import JavaTestParser, ParseResult

__all__ = [
    "TEST_CASE_ID_PATTERN",
    "AnnotationKind",
    "AnnotationNode",
    "AnnotationValue",
    "CaseIdExtractor",
    "ExtractorRegistry",
    "JavaTestParser",
    "ParseResult",
    "RichAnnotationExtractor",
    "TagExtractor",
    "TestCaseIdAnnotationExtractor",
    "ValueKind",
    "default_registry",
    "extract_annotation_metadata",
    "is_test_case_id",
]
