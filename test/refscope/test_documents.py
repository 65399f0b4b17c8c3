"""
Unit tests for DocumentStore.

Tests reading documents from disk and memory and converting between
string offsets and UTF-16 positions.
"""

import pytest
from lsprotocol import types

from refscope.documents import DocumentStore

URI = "file:///ws/notes.ts"


def make_position(line: int, character: int) -> types.Position:
    return types.Position(line=line, character=character)


@pytest.mark.refscope
class TestDocumentSource:
    """Test where document text comes from."""

    def test_reads_file_from_disk(self, documents, write_file) -> None:
        uri = write_file("src/app.ts", "const x = 1;\n")

        assert documents.get_source(uri) == "const x = 1;\n"

    def test_in_memory_text_shadows_disk(self, documents, write_file) -> None:
        uri = write_file("src/app.ts", "const x = 1;\n")

        documents.put_text(uri, "const y = 2;\n", "typescript")

        assert documents.get_source(uri) == "const y = 2;\n"

    def test_read_text_spans_lines(self) -> None:
        documents = DocumentStore()
        documents.put_text(URI, "class A {\n  run() {}\n}\n")

        text = documents.read_text(URI, types.Range(start=make_position(0, 6), end=make_position(1, 5)))

        assert text == "A {\n  run"


@pytest.mark.refscope
class TestOffsetConversion:
    """Test offset <-> position conversion."""

    def test_offset_round_trip_on_ascii(self) -> None:
        documents = DocumentStore()
        documents.put_text(URI, "ab\ncd\nef\n")

        assert documents.offset_at(URI, make_position(1, 1)) == 4
        assert documents.position_at(URI, 4) == make_position(1, 1)

    def test_line_start(self) -> None:
        documents = DocumentStore()
        documents.put_text(URI, "ab\ncd\n")

        assert documents.position_at(URI, 3) == make_position(1, 0)

    def test_positions_use_utf16_units(self) -> None:
        """Test that characters outside the BMP count as two position units."""
        documents = DocumentStore()
        documents.put_text(URI, "é😀x\n")

        assert documents.position_at(URI, 2) == make_position(0, 3)
        assert documents.offset_at(URI, make_position(0, 3)) == 2

    def test_offset_past_end_is_clamped(self) -> None:
        documents = DocumentStore()
        documents.put_text(URI, "ab\ncd")

        assert documents.position_at(URI, 100) == make_position(1, 2)
