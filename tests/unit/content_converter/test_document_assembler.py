"""Unit tests for content_converter.document_assembler module."""

import copy
import logging

import pytest

from notemark.blocks.errors import MalformedDocumentError
from notemark.content_converter.document_assembler import DocumentAssembler
from notemark.content_converter.models import WarningKind
from tests.fixtures.block_fixtures import (
    block,
    bullet,
    check,
    heading,
    numbered,
    paragraph,
    text,
)


@pytest.fixture
def assembler():
    return DocumentAssembler()


def markdown(assembler, blocks, metadata=None):
    return assembler.assemble(blocks, metadata).markdown


class TestExampleScenarios:
    """Literal input/output scenarios."""

    def test_single_paragraph(self, assembler):
        blocks = [{"type": "paragraph", "content": [{"type": "text", "text": "Hello"}]}]
        assert markdown(assembler, blocks) == "Hello\n\n"

    def test_heading_level_two(self, assembler):
        assert markdown(assembler, [heading("Title", level=2)]).startswith("## Title\n\n")

    def test_bold_word(self, assembler):
        blocks = [{"type": "paragraph", "content": [
            {"type": "text", "text": "A ", "attrs": {}},
            {"type": "text", "text": "bold", "attrs": {"bold": True}},
            {"type": "text", "text": " word."},
        ]}]
        assert markdown(assembler, blocks) == "A **bold** word.\n\n"

    def test_tight_bullet_list(self, assembler):
        blocks = [bullet("One"), bullet("Two"), bullet("Three")]
        assert markdown(assembler, blocks) == "- One\n- Two\n- Three\n\n"

    def test_numbered_list_and_reset(self, assembler):
        assert markdown(assembler, [numbered("First"), numbered("Second")]) == "1. First\n2. Second\n\n"

        blocks = [numbered("First"), numbered("Second"), paragraph("Break"), numbered("Again")]
        assert markdown(assembler, blocks) == "1. First\n2. Second\n\nBreak\n\n1. Again\n\n"

    def test_front_matter(self, assembler):
        metadata = {"title": "Meeting Notes", "tags": ["work", "meetings"]}
        result = markdown(assembler, [paragraph("Hello")], metadata)
        assert result == (
            "---\n"
            "title: Meeting Notes\n"
            "tags: [work, meetings]\n"
            "---\n"
            "\n"
            "Hello\n\n"
        )


class TestSpacing:
    """Test cases for block-type-aware spacing."""

    def test_paragraphs_separated_by_blank_line(self, assembler):
        assert markdown(assembler, [paragraph("a"), paragraph("b")]) == "a\n\nb\n\n"

    def test_heading_then_list(self, assembler):
        blocks = [heading("H"), bullet("x"), bullet("y"), paragraph("after")]
        assert markdown(assembler, blocks) == "# H\n\n- x\n- y\n\nafter\n\n"

    def test_different_list_kinds_are_separated(self, assembler):
        blocks = [bullet("b"), numbered("n"), check("c")]
        assert markdown(assembler, blocks) == "- b\n\n1. n\n\n- [ ] c\n\n"

    def test_tight_checklist(self, assembler):
        blocks = [check("a", checked=True), check("b")]
        assert markdown(assembler, blocks) == "- [x] a\n- [ ] b\n\n"

    def test_empty_paragraph_resets_numbering(self, assembler):
        """An empty paragraph renders nothing but still ends the list."""
        blocks = [numbered("a"), paragraph(""), numbered("b")]
        assert markdown(assembler, blocks) == "1. a\n\n1. b\n\n"

    def test_empty_document(self, assembler):
        assert markdown(assembler, []) == ""

    def test_only_empty_blocks(self, assembler):
        assert markdown(assembler, [paragraph(""), paragraph("")]) == ""


class TestNestedBlocks:
    """Test cases for children rendering."""

    def test_nested_bullets(self, assembler):
        blocks = [bullet("parent", children=[bullet("child"), bullet("child 2")]), bullet("sibling")]
        assert markdown(assembler, blocks) == "- parent\n  - child\n  - child 2\n- sibling\n\n"

    def test_children_numbering_is_independent(self, assembler):
        blocks = [
            numbered("one", children=[numbered("inner a"), numbered("inner b")]),
            numbered("two"),
        ]
        assert markdown(assembler, blocks) == "1. one\n   1. inner a\n   2. inner b\n2. two\n\n"

    def test_blank_lines_inside_children_stay_empty(self, assembler):
        blocks = [bullet("p", children=[paragraph("x"), paragraph("y")])]
        assert markdown(assembler, blocks) == "- p\n  x\n\n  y\n\n"

    def test_children_of_skipped_block_are_skipped(self, assembler):
        blocks = [{"type": "kanban", "children": [paragraph("hidden")]}, paragraph("shown")]
        result = assembler.assemble(blocks)
        assert result.markdown == "shown\n\n"
        assert len(result.warnings) == 1


class TestResilience:
    """Test cases for skipping bad blocks."""

    def test_unknown_block_is_skipped_with_warning(self, assembler, caplog):
        blocks = [heading("Title"), {"type": "mermaid", "content": []}, paragraph("Body")]
        with caplog.at_level(logging.WARNING):
            result = assembler.assemble(blocks)

        assert result.markdown == "# Title\n\nBody\n\n"
        assert [w.kind for w in result.warnings] == [WarningKind.UNSUPPORTED_BLOCK]
        assert result.warnings[0].path == "blocks[1]"
        assert result.warnings[0].block_type == "mermaid"
        assert "Skipping block at blocks[1]" in caplog.text

    def test_unknown_block_restarts_numbering(self, assembler):
        """A skipped non-numbered block interrupts the numbered list."""
        blocks = [numbered("A"), block("mysteryWidget", text("x")), numbered("B")]
        assert markdown(assembler, blocks) == "1. A\n1. B\n\n"

    def test_skipped_numbered_item_keeps_counting(self, assembler):
        """An invalid numbered item does not interrupt its own list."""
        blocks = [numbered("a"), {"type": "numberedListItem", "content": 5}, numbered("c")]
        assert markdown(assembler, blocks) == "1. a\n2. c\n\n"

    def test_skipped_block_after_several_items_restarts(self, assembler):
        blocks = [numbered("a"), numbered("b"), {"type": "mystery"}, numbered("c")]
        assert markdown(assembler, blocks) == "1. a\n2. b\n1. c\n\n"

    def test_invalid_content_is_skipped(self, assembler):
        blocks = [paragraph("ok"), {"type": "paragraph", "content": ["not a span"]}]
        result = assembler.assemble(blocks)
        assert result.markdown == "ok\n\n"
        assert result.warnings[0].kind == WarningKind.INVALID_CONTENT

    def test_invalid_child_only_costs_the_child(self, assembler):
        blocks = [bullet("p", children=[{"type": "paragraph", "content": 5}, paragraph("kept")])]
        result = assembler.assemble(blocks)
        assert result.markdown == "- p\n  kept\n\n"
        assert result.warnings[0].path == "blocks[0].children[0]"

    def test_unexpected_render_error_is_skipped(self, assembler):
        """Any exception from a renderer costs only that block."""
        class ExplodingRenderer:
            def __init__(self, inner):
                self.inner = inner

            def render(self, parsed, context):
                if parsed.type == "heading":
                    raise RuntimeError("boom")
                return self.inner.render(parsed, context)

        from notemark.content_converter.block_renderer import BlockRenderer
        exploding = DocumentAssembler(block_renderer=ExplodingRenderer(BlockRenderer()))
        result = exploding.assemble([heading("x"), paragraph("y")])

        assert result.markdown == "y\n\n"
        assert result.warnings[0].kind == WarningKind.RENDER_FAILED
        assert "RuntimeError: boom" in result.warnings[0].message

    def test_structural_failure_raises(self, assembler):
        with pytest.raises(MalformedDocumentError):
            assembler.assemble([paragraph("a"), "not a block"])


class TestFrontMatter:
    """Test cases for metadata handling."""

    def test_no_metadata_no_header(self, assembler):
        assert not markdown(assembler, [paragraph("x")]).startswith("---")

    def test_empty_metadata_emits_empty_header(self, assembler):
        assert markdown(assembler, [paragraph("x")], {}) == "---\n---\n\nx\n\n"

    def test_empty_document_with_metadata(self, assembler):
        assert markdown(assembler, [], {"title": "T"}) == "---\ntitle: T\n---\n"

    def test_result_carries_metadata(self, assembler):
        result = assembler.assemble([], {"folder": "inbox"})
        assert result.metadata == {"folder": "inbox"}
        assert result.skipped_blocks == 0


class TestDeterminism:
    """Test cases for deterministic, side-effect free conversion."""

    def test_same_input_same_bytes(self, assembler):
        blocks = [
            heading("Plan", level=2),
            paragraph("Intro"),
            numbered("a"),
            numbered("b"),
            block("paragraph", text("mixed ", bold=True), text("marks", italic=True)),
            {"type": "unknown-widget"},
        ]
        metadata = {"updated_at": "2024-05-01", "title": "Plan", "zeta": 1, "alpha": True}
        first = assembler.assemble(blocks, metadata).markdown
        second = DocumentAssembler().assemble(copy.deepcopy(blocks), dict(metadata)).markdown
        assert first == second

    def test_input_is_not_mutated(self, assembler):
        blocks = [bullet("x", attrs={"k": [1]}, children=[paragraph("y")])]
        metadata = {"tags": ["a"]}
        snapshot = (copy.deepcopy(blocks), copy.deepcopy(metadata))
        assembler.assemble(blocks, metadata)
        assert (blocks, metadata) == snapshot
