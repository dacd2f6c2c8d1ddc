"""Parser-independent view of a Java annotation and its literal values."""

from dataclasses import dataclass
from enum import Enum


class AnnotationKind(str, Enum):
    """Syntactic form of an annotation."""

    MARKER = "marker"  # @Test
    SINGLE = "single"  # @Tag("TC-1")
    NORMAL = "normal"  # @Info(title = "x", tags = {"a"})


class ValueKind(str, Enum):
    """Shape of an annotation element value."""

    STRING = "string"  # string literal (or a constant concatenation of literals)
    ARRAY = "array"  # {..., ...}
    NAME = "name"  # identifier or field access, e.g. Status.DONE
    OTHER = "other"  # anything else, kept as source text


@dataclass(frozen=True)
class AnnotationValue:
    """An annotation element value."""

    kind: ValueKind
    text: str = ""
    items: tuple["AnnotationValue", ...] = ()

    def strings(self) -> list[str]:
        """String literals held by this value: itself, or the string items of an array."""
        if self.kind == ValueKind.STRING:
            return [self.text]
        if self.kind == ValueKind.ARRAY:
            return [item.text for item in self.items if item.kind == ValueKind.STRING]
        return []

    def as_text(self) -> str:
        """Scalar rendering: literal text, source text of names, array strings joined."""
        if self.kind == ValueKind.ARRAY:
            return ", ".join(self.strings())
        return self.text


@dataclass(frozen=True)
class AnnotationNode:
    """One annotation attached to a declaration.

    Attributes:
        name: Name as written, simple or qualified
        kind: Marker, single-member or normal form
        value: Element value of a single-member annotation
        pairs: Named element values of a normal annotation, in source order
    """

    name: str
    kind: AnnotationKind = AnnotationKind.MARKER
    value: AnnotationValue | None = None
    pairs: tuple[tuple[str, AnnotationValue], ...] = ()

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    def member(self, key: str) -> AnnotationValue | None:
        """Value of a named member; ``value`` also resolves the single-member form."""
        if key == "value" and self.kind == AnnotationKind.SINGLE:
            return self.value
        for pair_key, pair_value in self.pairs:
            if pair_key == key:
                return pair_value
        return None


def marker(name: str) -> AnnotationNode:
    return AnnotationNode(name=name)


def single(name: str, value: AnnotationValue) -> AnnotationNode:
    return AnnotationNode(name=name, kind=AnnotationKind.SINGLE, value=value)


def normal(name: str, **members: AnnotationValue) -> AnnotationNode:
    return AnnotationNode(name=name, kind=AnnotationKind.NORMAL, pairs=tuple(members.items()))


def string(text: str) -> AnnotationValue:
    return AnnotationValue(ValueKind.STRING, text)


def array(*texts: str) -> AnnotationValue:
    return AnnotationValue(ValueKind.ARRAY, items=tuple(string(t) for t in texts))
