"""Document text access for reference anchor resolution.

Wraps a pygls Workspace so that documents are loaded from disk on first
access, or taken from in-memory text when they have been put explicitly.
"""

from __future__ import annotations

import logging

from lsprotocol import types
from pygls.workspace import TextDocument, Workspace

log = logging.getLogger(__name__)


class DocumentStore:
    """Reads text ranges and converts between offsets and positions.

    Positions use the client's position encoding (UTF-16 by default), offsets
    are indices into the Python string holding the document source.
    """

    def __init__(self, workspace: Workspace | None = None) -> None:
        self._workspace = workspace if workspace is not None else Workspace(None)

    @property
    def workspace(self) -> Workspace:
        return self._workspace

    def get_document(self, uri: str) -> TextDocument:
        return self._workspace.get_text_document(uri)

    def put_text(self, uri: str, text: str, language_id: str = "plaintext") -> None:
        """Register in-memory content for a document, shadowing the file on disk."""
        self._workspace.put_text_document(
            types.TextDocumentItem(uri=uri, language_id=language_id, version=0, text=text)
        )

    def get_source(self, uri: str) -> str:
        return self.get_document(uri).source

    def offset_at(self, uri: str, position: types.Position) -> int:
        return self.get_document(uri).offset_at_position(position)

    def position_at(self, uri: str, offset: int) -> types.Position:
        """Decode a string offset back into a (client encoded) line/character position.

        Offsets beyond the end of the document are clamped to the end.
        """
        document = self.get_document(uri)
        lines = document.lines
        remaining = max(offset, 0)
        line = 0
        for line, text in enumerate(lines):
            if remaining < len(text) or line == len(lines) - 1:
                break
            remaining -= len(text)
        if lines:
            remaining = min(remaining, len(lines[line]))
        else:
            remaining = 0
        server_position = types.Position(line=line, character=remaining)
        return document.position_codec.position_to_client_units(lines, server_position)

    def read_text(self, uri: str, text_range: types.Range) -> str:
        """Return the document text spanned by the given range."""
        document = self.get_document(uri)
        start = document.offset_at_position(text_range.start)
        end = document.offset_at_position(text_range.end)
        return document.source[start:end]
