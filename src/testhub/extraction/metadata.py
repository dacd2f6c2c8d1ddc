"""Mapping of the rich documentation annotation onto AnnotationMetadata."""

from collections.abc import Iterable

from testhub.extraction.extractors import RICH_ANNOTATION
from testhub.extraction.nodes import AnnotationKind, AnnotationNode
from testhub.models.annotation import DEFAULT_STATUS, AnnotationMetadata

_TEXT_MEMBERS = {
    "title": "title",
    "author": "author",
    "targetClass": "target_class",
    "targetMethod": "target_method",
    "description": "description",
    "status": "status",
    "lastUpdateTime": "last_update_time",
    "lastUpdateAuthor": "last_update_author",
    "methodSignature": "method_signature",
}

_LIST_MEMBERS = {
    "tags": "tags",
    "testPoints": "test_points",
    "testCaseIds": "test_case_ids",
    "relatedRequirements": "related_requirements",
    "relatedDefects": "related_defects",
    "relatedTestcases": "related_testcases",
}


def find_rich_annotation(nodes: Iterable[AnnotationNode]) -> AnnotationNode | None:
    """First rich documentation annotation among ``nodes``."""
    for node in nodes:
        if node.simple_name == RICH_ANNOTATION:
            return node
    return None


def extract_annotation_metadata(nodes: Iterable[AnnotationNode]) -> AnnotationMetadata | None:
    """
    Build metadata from the first rich annotation on a method.

    The single-member form sets only the title. Unknown members are ignored.

    Args:
        nodes: Annotations of one method, in source order

    Returns:
        Metadata, or None when the method carries no rich annotation
    """
    node = find_rich_annotation(nodes)
    if node is None:
        return None

    metadata = AnnotationMetadata()
    if node.kind == AnnotationKind.SINGLE and node.value is not None:
        metadata.title = node.value.as_text()
        return metadata

    for key, value in node.pairs:
        if key in _TEXT_MEMBERS:
            setattr(metadata, _TEXT_MEMBERS[key], value.as_text())
        elif key in _LIST_MEMBERS:
            setattr(metadata, _LIST_MEMBERS[key], value.strings())

    if not metadata.status:
        metadata.status = DEFAULT_STATUS
    return metadata
