"""Tests for rich annotation metadata mapping."""

from testhub.extraction.nodes import AnnotationKind, AnnotationValue, ValueKind, array, marker, normal, single, string


class TestExtractAnnotationMetadata:
    """Tests for extract_annotation_metadata()."""

    def test_no_rich_annotation_returns_none(self):
        """Should return None when only other annotations are present."""
        from testhub.extraction.metadata import extract_annotation_metadata

        assert extract_annotation_metadata([marker("Test"), single("Tag", string("TC-1"))]) is None

    def test_maps_text_and_list_members(self):
        """Should map camelCase members onto metadata fields."""
        from testhub.extraction.metadata import extract_annotation_metadata

        metadata = extract_annotation_metadata(
            [
                marker("Test"),
                normal(
                    "UnittestCaseInfo",
                    title=string("Login test"),
                    author=string("alice"),
                    status=string("DONE"),
                    targetClass=string("LoginService"),
                    targetMethod=string("login"),
                    testPoints=array("valid user", "audit entry"),
                    testCaseIds=array("TC-100", "TC-101"),
                    relatedRequirements=array("REQ-1"),
                    relatedDefects=array("BUG-9"),
                    lastUpdateTime=string("2024-05-01"),
                    methodSignature=string("login(String)"),
                ),
            ]
        )

        assert metadata is not None
        assert metadata.title == "Login test"
        assert metadata.author == "alice"
        assert metadata.status == "DONE"
        assert metadata.target_class == "LoginService"
        assert metadata.target_method == "login"
        assert metadata.test_points == ["valid user", "audit entry"]
        assert metadata.test_case_ids == ["TC-100", "TC-101"]
        assert metadata.related_requirements == ["REQ-1"]
        assert metadata.related_defects == ["BUG-9"]
        assert metadata.last_update_time == "2024-05-01"
        assert metadata.method_signature == "login(String)"
        assert metadata.has_title

    def test_status_defaults_to_todo(self):
        """Should default status to TODO when absent or empty."""
        from testhub.extraction.metadata import extract_annotation_metadata

        absent = extract_annotation_metadata([normal("UnittestCaseInfo", title=string("x"))])
        empty = extract_annotation_metadata(
            [normal("UnittestCaseInfo", title=string("x"), status=string(""))]
        )

        assert absent.status == "TODO"
        assert empty.status == "TODO"

    def test_single_member_form_sets_title(self):
        """Should treat the single-member form as the title."""
        from testhub.extraction.metadata import extract_annotation_metadata

        metadata = extract_annotation_metadata([single("UnittestCaseInfo", string("Quick title"))])

        assert metadata.title == "Quick title"
        assert metadata.test_case_ids == []

    def test_enum_status_kept_as_source_text(self):
        """Should render name values such as enum constants as written."""
        from testhub.extraction.metadata import extract_annotation_metadata

        status = AnnotationValue(ValueKind.NAME, "Status.DONE")
        metadata = extract_annotation_metadata(
            [normal("UnittestCaseInfo", title=string("x"), status=status)]
        )

        assert metadata.status == "Status.DONE"

    def test_marker_rich_annotation_has_no_title(self):
        """Should produce metadata without title for a bare marker."""
        from testhub.extraction.metadata import extract_annotation_metadata

        metadata = extract_annotation_metadata([marker("UnittestCaseInfo")])

        assert metadata is not None
        assert not metadata.has_title

    def test_first_rich_annotation_wins(self):
        """Should read only the first rich annotation."""
        from testhub.extraction.metadata import extract_annotation_metadata

        metadata = extract_annotation_metadata(
            [
                normal("UnittestCaseInfo", title=string("first")),
                normal("UnittestCaseInfo", title=string("second")),
            ]
        )

        assert metadata.title == "first"


class TestAnnotationNode:
    """Tests for the annotation value model."""

    def test_value_member_resolves_single_form(self):
        """Should resolve 'value' for single-member annotations."""
        node = single("Tag", string("TC-1"))

        assert node.kind == AnnotationKind.SINGLE
        assert node.member("value").text == "TC-1"
        assert node.member("other") is None

    def test_array_strings_skip_non_literals(self):
        """Should keep only string literal items of an array."""
        value = AnnotationValue(
            ValueKind.ARRAY,
            items=(string("a"), AnnotationValue(ValueKind.NAME, "CONST"), string("b")),
        )

        assert value.strings() == ["a", "b"]
        assert value.as_text() == "a, b"

    def test_simple_name(self):
        """Should strip the package from qualified names."""
        assert marker("org.junit.jupiter.api.Test").simple_name == "Test"
