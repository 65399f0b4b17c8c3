"""Shared fixtures for refscope tests: an in-memory symbol provider and file helpers."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from lsprotocol import types

from refscope.documents import DocumentStore
from refscope.errors import ProviderUnavailable
from refscope.symbol import SymbolInfo
from refscope.uri_utils import fs_path_to_uri
from refscope.workspace_roots import WorkspaceRoots


class FakeProvider:
    """SymbolProvider answering from dictionaries and recording every call.

    Attributes:
        symbols: URI -> symbols (or an exception to raise)
        references: (uri, line, character) of the anchor -> locations (or an exception)
        delays: (uri, line, character) -> seconds to wait before answering
    """

    def __init__(self) -> None:
        self.symbols: dict[str, list[SymbolInfo] | Exception] = {}
        self.references: dict[tuple[str, int, int], list[types.Location] | Exception] = {}
        self.delays: dict[tuple[str, int, int], float] = {}
        self.symbol_calls: list[str] = []
        self.reference_calls: list[tuple[str, int, int]] = []

    async def list_symbols(self, uri: str) -> list[SymbolInfo]:
        self.symbol_calls.append(uri)
        await asyncio.sleep(0)
        result = self.symbols.get(uri)
        if result is None:
            raise ProviderUnavailable(f"Could not retrieve symbols for {uri}", uri)
        if isinstance(result, Exception):
            raise result
        return list(result)

    async def find_references(self, uri: str, position: types.Position) -> list[types.Location]:
        key = (uri, position.line, position.character)
        self.reference_calls.append(key)
        await asyncio.sleep(self.delays.get(key, 0))
        result = self.references.get(key)
        if result is None:
            raise ProviderUnavailable(f"Could not retrieve symbol references in {uri}", uri)
        if isinstance(result, Exception):
            raise result
        return list(result)

    async def __aenter__(self) -> FakeProvider:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None


@pytest.fixture
def write_file(tmp_path: Path):
    """Factory writing a file below tmp_path and returning its URI."""

    def write(relative_path: str, content: str) -> str:
        path = tmp_path / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return fs_path_to_uri(str(path))

    return write


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def documents() -> DocumentStore:
    return DocumentStore()


@pytest.fixture
def roots(tmp_path: Path) -> WorkspaceRoots:
    return WorkspaceRoots.from_paths([str(tmp_path)])
