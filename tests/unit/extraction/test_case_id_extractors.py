"""Tests for test-case identifier extractors and the extractor registry."""

from testhub.extraction.nodes import array, marker, normal, single, string


class TestIdentifierPattern:
    """Tests for the test-case identifier shape."""

    def test_accepts_two_to_four_uppercase_letters(self):
        """Should accept PREFIX-digits with a 2-4 letter prefix."""
        from testhub.extraction.extractors import is_test_case_id

        assert is_test_case_id("TC-1")
        assert is_test_case_id("ORD-7")
        assert is_test_case_id("ABCD-123456")

    def test_rejects_other_shapes(self):
        """Should reject lowercase, long prefixes and missing digits."""
        from testhub.extraction.extractors import is_test_case_id

        assert not is_test_case_id("tc-1")
        assert not is_test_case_id("ABCDE-1")
        assert not is_test_case_id("T-1")
        assert not is_test_case_id("TC-")
        assert not is_test_case_id("smoke")
        assert not is_test_case_id("TC-1 ")


class TestRichAnnotationExtractor:
    """Tests for the rich documentation annotation extractor."""

    def test_explicit_ids_take_precedence_over_tags(self):
        """Should return testCaseIds and ignore id-shaped tags when ids are present."""
        from testhub.extraction.extractors import RichAnnotationExtractor

        node = normal(
            "UnittestCaseInfo",
            title=string("Login test"),
            testCaseIds=array("TC-100", "TC-101"),
            tags=array("TC-900"),
        )

        assert RichAnnotationExtractor().extract(node) == ["TC-100", "TC-101"]

    def test_falls_back_to_id_shaped_tags(self):
        """Should use tags matching the identifier pattern when no ids are declared."""
        from testhub.extraction.extractors import RichAnnotationExtractor

        node = normal("UnittestCaseInfo", tags=array("smoke", "TC-7", "regression", "QA-12"))

        assert RichAnnotationExtractor().extract(node) == ["TC-7", "QA-12"]

    def test_empty_ids_fall_back_to_tags(self):
        """Should treat an array of blank ids as absent."""
        from testhub.extraction.extractors import RichAnnotationExtractor

        node = normal("UnittestCaseInfo", testCaseIds=array("", "  "), tags=array("TC-3"))

        assert RichAnnotationExtractor().extract(node) == ["TC-3"]

    def test_supports_qualified_normal_form_only(self):
        """Should support the normal form by simple or qualified name."""
        from testhub.extraction.extractors import RichAnnotationExtractor

        extractor = RichAnnotationExtractor()

        assert extractor.supports(normal("com.acme.UnittestCaseInfo", title=string("x")))
        assert not extractor.supports(single("UnittestCaseInfo", string("x")))
        assert not extractor.supports(marker("UnittestCaseInfo"))
        assert not extractor.supports(normal("Other", title=string("x")))


class TestTestCaseIdAnnotationExtractor:
    """Tests for the lightweight identifier annotation."""

    def test_single_value(self):
        """Should extract a single string value."""
        from testhub.extraction.extractors import TestCaseIdAnnotationExtractor

        assert TestCaseIdAnnotationExtractor().extract(single("TestCaseId", string("TC-1"))) == ["TC-1"]

    def test_array_value_keeps_any_shape(self):
        """Should keep non-empty values without enforcing the identifier pattern."""
        from testhub.extraction.extractors import TestCaseIdAnnotationExtractor

        node = single("TestCaseId", array("TC-1", "", "legacy-42"))

        assert TestCaseIdAnnotationExtractor().extract(node) == ["TC-1", "legacy-42"]

    def test_named_value_member(self):
        """Should read the value member of the normal form."""
        from testhub.extraction.extractors import TestCaseIdAnnotationExtractor

        node = normal("TestCaseId", value=array("TC-2", "TC-3"))

        assert TestCaseIdAnnotationExtractor().extract(node) == ["TC-2", "TC-3"]

    def test_marker_yields_nothing(self):
        """Should return no ids for a bare marker."""
        from testhub.extraction.extractors import TestCaseIdAnnotationExtractor

        assert TestCaseIdAnnotationExtractor().extract(marker("TestCaseId")) == []


class TestTagExtractor:
    """Tests for the generic tag extractor."""

    def test_id_shaped_tag(self):
        """Should extract a tag that looks like an identifier."""
        from testhub.extraction.extractors import TagExtractor

        assert TagExtractor().extract(single("Tag", string("TC-500"))) == ["TC-500"]

    def test_plain_tag_ignored(self):
        """Should ignore tags that are not identifiers."""
        from testhub.extraction.extractors import TagExtractor

        assert TagExtractor().extract(single("Tag", string("slow"))) == []

    def test_only_single_member_form(self):
        """Should not support the marker or normal form."""
        from testhub.extraction.extractors import TagExtractor

        assert not TagExtractor().supports(marker("Tag"))
        assert not TagExtractor().supports(normal("Tag", value=string("TC-1")))


class TestExtractorRegistry:
    """Tests for priority dispatch and merging."""

    def test_orders_by_descending_priority(self):
        """Should consult extractors highest priority first regardless of input order."""
        from testhub.extraction.extractors import (
            ExtractorRegistry,
            RichAnnotationExtractor,
            TagExtractor,
            TestCaseIdAnnotationExtractor,
        )

        registry = ExtractorRegistry(
            [TagExtractor(), TestCaseIdAnnotationExtractor(), RichAnnotationExtractor()]
        )

        assert [e.priority for e in registry.extractors] == [100, 90, 50]

    def test_first_supporting_extractor_wins(self):
        """Should answer with only the highest-priority extractor supporting a node."""
        from testhub.extraction.extractors import ExtractorRegistry

        class CatchAll:
            priority = 10

            def supports(self, node):
                return True

            def extract(self, node):
                return ["LOW-1"]

        class Specific:
            priority = 20

            def supports(self, node):
                return node.simple_name == "Tag"

            def extract(self, node):
                return ["HIGH-1"]

        registry = ExtractorRegistry([CatchAll(), Specific()])

        assert registry.extract(single("Tag", string("x"))) == ["HIGH-1"]
        assert registry.extract(marker("Other")) == ["LOW-1"]

    def test_equal_priority_keeps_given_order(self):
        """Should keep construction order among equal priorities."""
        from testhub.extraction.extractors import ExtractorRegistry

        class First:
            priority = 5

            def supports(self, node):
                return True

            def extract(self, node):
                return ["AA-1"]

        class Second(First):
            def extract(self, node):
                return ["BB-1"]

        registry = ExtractorRegistry([First(), Second()])

        assert registry.extract(marker("Any")) == ["AA-1"]

    def test_unsupported_node_yields_empty(self):
        """Should return no ids when no extractor supports the annotation."""
        from testhub.extraction.extractors import default_registry

        assert default_registry().extract(marker("Test")) == []
        assert default_registry().find(marker("Test")) is None

    def test_extract_all_merges_and_deduplicates(self):
        """Should union ids across annotations in first-seen order."""
        from testhub.extraction.extractors import default_registry

        nodes = [
            marker("Test"),
            normal("UnittestCaseInfo", testCaseIds=array("TC-1", "TC-2")),
            single("TestCaseId", array("TC-2", "TC-3")),
            single("Tag", string("TC-1")),
        ]

        assert default_registry().extract_all(nodes) == ["TC-1", "TC-2", "TC-3"]

    def test_registry_is_isolated(self):
        """Should only use the extractors it was given."""
        from testhub.extraction.extractors import ExtractorRegistry, TagExtractor

        registry = ExtractorRegistry([TagExtractor()])

        assert registry.extract_all([single("TestCaseId", string("TC-1"))]) == []
        assert registry.extract_all([single("Tag", string("TC-1"))]) == ["TC-1"]
