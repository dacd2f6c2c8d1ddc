"""Java test source parser built on tree-sitter.

Only the declaration skeleton of a file is interpreted: package, imports,
type declarations with their modifiers, method declarations and annotations
with literal arguments. Method bodies are kept as text.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import tree_sitter_java
from tree_sitter import Language, Node, Parser

from testhub.extraction.extractors import ExtractorRegistry, default_registry
from testhub.extraction.metadata import extract_annotation_metadata
from testhub.extraction.nodes import AnnotationKind, AnnotationNode, AnnotationValue, ValueKind
from testhub.lib.errors import SourceParseError
from testhub.lib.logging import get_logger
from testhub.models.test_info import TestClassInfo, TestHelperClassInfo, TestMethodInfo

logger = get_logger(__name__)

JAVA_LANGUAGE = Language(tree_sitter_java.language())

TEST_METHOD_MARKERS = frozenset(
    {
        "Test",
        "org.junit.Test",
        "org.junit.jupiter.api.Test",
        "junit.framework.TestCase",
    }
)

TEST_CLASS_MARKERS = frozenset({"Test", "org.junit.Test", "org.junit.jupiter.api.Test"})

TYPE_DECLARATIONS = frozenset(
    {
        "class_declaration",
        "interface_declaration",
        "enum_declaration",
        "record_declaration",
        "annotation_type_declaration",
    }
)

_COMMENTS = frozenset({"line_comment", "block_comment"})

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "s": " ", '"': '"', "'": "'", "\\": "\\"}
_ESCAPE_RE = re.compile(r"\\(.)")


@dataclass
class ParseResult:
    """What one source file contributes.

    Attributes:
        test_class: The file's test class, or an empty class for an invalid file
        helper_classes: Top-level types that are not test classes
        valid: False when the file was rejected (several public top-level types)
    """

    test_class: TestClassInfo | None = None
    helper_classes: list[TestHelperClassInfo] = field(default_factory=list)
    valid: bool = True

    @property
    def total_test_methods(self) -> int:
        return self.test_class.total_test_methods if self.test_class else 0


def _text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _named(node: Node) -> list[Node]:
    return [child for child in node.named_children if child.type not in _COMMENTS]


def _modifiers(node: Node) -> Node | None:
    for child in node.children:
        if child.type == "modifiers":
            return child
    return None


def _is_public(node: Node) -> bool:
    modifiers = _modifiers(node)
    return modifiers is not None and any(child.type == "public" for child in modifiers.children)


def _decode_string(raw: str) -> str:
    if raw.startswith('"""'):
        body = raw[3:-3]
        if body.startswith("\n"):
            body = body[1:]
    else:
        body = raw[1:-1]
    return _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(0)), body)


def _concatenated_string(node: Node) -> str | None:
    """Value of ``"a" + "b"`` style constant concatenations, else None."""
    if node.type == "string_literal":
        return _decode_string(_text(node))
    if node.type == "parenthesized_expression":
        inner = _named(node)
        return _concatenated_string(inner[0]) if len(inner) == 1 else None
    if node.type == "binary_expression" and _text(node.child_by_field_name("operator")) == "+":
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None:
            return None
        left_value = _concatenated_string(left)
        right_value = _concatenated_string(right)
        if left_value is None or right_value is None:
            return None
        return left_value + right_value
    return None


def _element_value(node: Node) -> AnnotationValue:
    if node.type == "element_value_array_initializer":
        return AnnotationValue(
            ValueKind.ARRAY,
            text=_text(node),
            items=tuple(_element_value(item) for item in _named(node)),
        )
    if node.type in ("identifier", "field_access", "scoped_identifier"):
        return AnnotationValue(ValueKind.NAME, text=_text(node))
    literal = _concatenated_string(node)
    if literal is not None:
        return AnnotationValue(ValueKind.STRING, text=literal)
    return AnnotationValue(ValueKind.OTHER, text=_text(node))


def annotation_node(node: Node) -> AnnotationNode:
    """Convert a ``marker_annotation``/``annotation`` syntax node."""
    name = _text(node.child_by_field_name("name"))
    if node.type == "marker_annotation":
        return AnnotationNode(name=name)

    arguments = node.child_by_field_name("arguments")
    members = _named(arguments) if arguments is not None else []
    if not members:
        return AnnotationNode(name=name)

    pairs = [member for member in members if member.type == "element_value_pair"]
    if pairs:
        return AnnotationNode(
            name=name,
            kind=AnnotationKind.NORMAL,
            pairs=tuple(
                (
                    _text(pair.child_by_field_name("key")),
                    _element_value(pair.child_by_field_name("value")),
                )
                for pair in pairs
                if pair.child_by_field_name("value") is not None
            ),
        )
    return AnnotationNode(name=name, kind=AnnotationKind.SINGLE, value=_element_value(members[0]))


def declaration_annotations(node: Node) -> list[AnnotationNode]:
    """Annotations in the modifiers of a declaration, in source order."""
    modifiers = _modifiers(node)
    if modifiers is None:
        return []
    return [
        annotation_node(child)
        for child in modifiers.children
        if child.type in ("marker_annotation", "annotation")
    ]


def _parameter_types(method: Node) -> list[str]:
    parameters = method.child_by_field_name("parameters")
    if parameters is None:
        return []
    types = []
    for parameter in _named(parameters):
        if parameter.type == "formal_parameter":
            types.append(_text(parameter.child_by_field_name("type")))
        elif parameter.type == "spread_parameter":
            type_node = next(
                (
                    child
                    for child in parameter.named_children
                    if child.type not in ("modifiers", "variable_declarator", *_COMMENTS)
                ),
                None,
            )
            types.append(f"{_text(type_node)}...")
    return types


def _member_methods(type_node: Node) -> Iterator[Node]:
    """Method declarations of a type body, descending into nested types."""
    body = type_node.child_by_field_name("body")
    if body is None:
        return
    yield from _body_methods(body)


def _body_methods(body: Node) -> Iterator[Node]:
    for member in _named(body):
        if member.type == "method_declaration":
            yield member
        elif member.type in TYPE_DECLARATIONS:
            yield from _member_methods(member)
        elif member.type == "enum_body_declarations":
            yield from _body_methods(member)


def _first_error_line(node: Node) -> int:
    if node.type == "ERROR" or node.is_missing:
        return node.start_point[0] + 1
    for child in node.children:
        if child.has_error:
            return _first_error_line(child)
    return node.start_point[0] + 1


class JavaTestParser:
    """
    Parse Java test sources into test classes, test methods and helper classes.

    A parser instance is not thread-safe; use one per worker.

    Example:
        >>> parser = JavaTestParser()
        >>> result = parser.parse_file(Path("src/test/java/com/acme/LoginTest.java"))
        >>> result.test_class.total_test_methods
        3
    """

    def __init__(self, registry: ExtractorRegistry | None = None):
        self._registry = registry or default_registry()
        self._parser = Parser(JAVA_LANGUAGE)

    @property
    def registry(self) -> ExtractorRegistry:
        return self._registry

    def parse_file(self, path: Path, recorded_path: str | None = None) -> ParseResult:
        """
        Read and parse one source file.

        Args:
            path: Java source file
            recorded_path: Path stored on the produced entities (defaults to ``path``)

        Returns:
            ParseResult for the file

        Raises:
            SourceParseError: If the file cannot be read or has syntax errors
        """
        try:
            source = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise SourceParseError(str(path), f"unreadable: {e}") from e
        return self.parse_source(source, recorded_path or str(path))

    def parse_source(self, source: str, file_path: str = "") -> ParseResult:
        """
        Parse source text.

        Args:
            source: Java compilation unit
            file_path: Path recorded on the produced entities

        Returns:
            ParseResult; an invalid result when several public top-level types are declared

        Raises:
            SourceParseError: If the source has syntax errors
        """
        tree = self._parser.parse(source.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            raise SourceParseError(file_path, f"syntax error near line {_first_error_line(root)}")

        package_name = ""
        imports: list[str] = []
        types: list[Node] = []
        for child in _named(root):
            if child.type == "package_declaration":
                package_name = next(
                    (_text(n) for n in _named(child) if n.type in ("scoped_identifier", "identifier")),
                    "",
                )
            elif child.type == "import_declaration":
                imports.append(_import_name(child))
            elif child.type in TYPE_DECLARATIONS:
                types.append(child)

        public_types = [node for node in types if _is_public(node)]
        if len(public_types) > 1:
            logger.warning(
                "multiple_public_types",
                file_path=file_path,
                types=[_text(node.child_by_field_name("name")) for node in public_types],
            )
            return ParseResult(
                test_class=TestClassInfo(package_name=package_name, file_path=file_path),
                valid=False,
            )

        lines = source.splitlines()
        result = ParseResult()
        for type_node in types:
            if type_node.type == "class_declaration" and self._is_test_class(type_node):
                result.test_class = self._test_class(
                    type_node, package_name, file_path, source, lines, imports
                )
            else:
                result.helper_classes.append(
                    _helper_class(type_node, package_name, file_path, lines)
                )
        return result

    def _is_test_class(self, node: Node) -> bool:
        if not _is_public(node):
            return False
        name = _text(node.child_by_field_name("name"))
        if name.endswith("Test") or name.lower().endswith("tests") or name.startswith("Test"):
            return True
        return any(a.name in TEST_CLASS_MARKERS for a in declaration_annotations(node))

    def _test_class(
        self,
        node: Node,
        package_name: str,
        file_path: str,
        source: str,
        lines: list[str],
        imports: list[str],
    ) -> TestClassInfo:
        class_name = _text(node.child_by_field_name("name"))
        test_class = TestClassInfo(
            class_name=class_name,
            package_name=package_name,
            file_path=file_path,
            class_line_number=node.start_point[0] + 1,
            class_loc=len(lines),
            class_content=source,
            imported_types=imports,
        )
        for method in _member_methods(node):
            annotations = declaration_annotations(method)
            if not any(a.name in TEST_METHOD_MARKERS for a in annotations):
                continue
            test_class.add_test_method(
                self._test_method(method, annotations, class_name, package_name, file_path, lines)
            )
        return test_class

    def _test_method(
        self,
        node: Node,
        annotations: list[AnnotationNode],
        class_name: str,
        package_name: str,
        file_path: str,
        lines: list[str],
    ) -> TestMethodInfo:
        start = node.start_point[0] + 1
        end = node.end_point[0] + 1
        name = _text(node.child_by_field_name("name"))
        return TestMethodInfo(
            method_name=name,
            class_name=class_name,
            package_name=package_name,
            file_path=file_path,
            line_number=start,
            signature=f"{name}({', '.join(_parameter_types(node))})",
            annotation=extract_annotation_metadata(annotations),
            test_case_ids=self._registry.extract_all(annotations),
            method_loc=end - start + 1,
            method_body="\n".join(lines[start - 1 : end]),
        )


def _import_name(node: Node) -> str:
    text = _text(node).strip().removeprefix("import").strip().removesuffix(";").strip()
    return text.removeprefix("static").strip()


def _helper_class(
    node: Node, package_name: str, file_path: str, lines: list[str]
) -> TestHelperClassInfo:
    start = node.start_point[0] + 1
    end = node.end_point[0] + 1
    return TestHelperClassInfo(
        class_name=_text(node.child_by_field_name("name")),
        package_name=package_name,
        file_path=file_path,
        line_number=start,
        loc=end - start + 1,
        content="\n".join(lines[start - 1 : end]),
    )


__all__ = [
    "JAVA_LANGUAGE",
    "JavaTestParser",
    "ParseResult",
    "TEST_CLASS_MARKERS",
    "TEST_METHOD_MARKERS",
    "annotation_node",
    "declaration_annotations",
]
