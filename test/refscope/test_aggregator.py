"""
Unit tests for FolderAggregator.

Tests that references between files of the same folder are dropped, that
per-file failures are skipped and that a folder fails only when every file fails.
"""

import asyncio

import pytest
from lsprotocol import types

from refscope.aggregator import FolderAggregator
from refscope.cache import SymbolCache
from refscope.errors import NoReferencesRetrievable, ProviderUnavailable
from refscope.fetcher import ReferenceFetcher
from refscope.symbol import SymbolInfo
from refscope.uri_utils import fs_path_to_uri


def make_range(line: int, start: int, end: int) -> types.Range:
    return types.Range(
        start=types.Position(line=line, character=start),
        end=types.Position(line=line, character=end),
    )


def make_symbol(name: str, uri: str, line: int = 0) -> SymbolInfo:
    """Helper to create a function symbol declared as "def <name>():" on the given line."""
    return SymbolInfo(
        name=name,
        kind=types.SymbolKind.Function,
        location=types.Location(uri=uri, range=make_range(line, 0, len(name) + 7)),
    )


def make_location(uri: str, line: int) -> types.Location:
    return types.Location(uri=uri, range=make_range(line, 0, 5))


@pytest.fixture
def folder(tmp_path, write_file) -> dict[str, str]:
    """A "pkg" folder with two modules, a nested module and an outside caller."""
    return {
        "folder": fs_path_to_uri(str(tmp_path / "pkg")),
        "a": write_file("pkg/a.py", "def alpha():\n    pass\n"),
        "b": write_file("pkg/b.py", "def beta():\n    pass\n"),
        "c": write_file("pkg/sub/c.py", "def gamma():\n    pass\n"),
        "main": write_file("main.py", "alpha()\nbeta()\ngamma()\n"),
    }


def make_aggregator(provider, documents, **kwargs) -> FolderAggregator:
    return FolderAggregator(ReferenceFetcher(provider, documents, SymbolCache()), **kwargs)


def register_all(provider, folder: dict[str, str]) -> None:
    """Register symbols and references for every module of the folder fixture."""
    a, b, c, main = folder["a"], folder["b"], folder["c"], folder["main"]
    provider.symbols[a] = [make_symbol("alpha", a)]
    provider.symbols[b] = [make_symbol("beta", b)]
    provider.symbols[c] = [make_symbol("gamma", c)]
    provider.references[(a, 0, 4)] = [make_location(main, 0), make_location(b, 1)]
    provider.references[(b, 0, 4)] = [make_location(main, 1)]
    provider.references[(c, 0, 4)] = [make_location(a, 1)]


@pytest.mark.refscope
class TestFolderAggregation:
    """Test the merged references of a folder."""

    @pytest.mark.asyncio
    async def test_only_references_from_outside_the_folder_remain(self, provider, documents, folder) -> None:
        register_all(provider, folder)
        aggregator = make_aggregator(provider, documents)

        result = await aggregator.fetch_folder_references(folder["folder"])

        by_name = {r.symbol.name: r.references for r in result}
        assert by_name == {
            "alpha": (make_location(folder["main"], 0),),
            "beta": (make_location(folder["main"], 1),),
        }

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_other_files(self, provider, documents, folder) -> None:
        """Test that a failing file is skipped while the others are reported."""
        register_all(provider, folder)
        provider.symbols[folder["b"]] = ProviderUnavailable("no symbols", folder["b"])
        aggregator = make_aggregator(provider, documents)

        result = await aggregator.fetch_folder_references(folder["folder"])

        assert [r.symbol.name for r in result] == ["alpha"]

    @pytest.mark.asyncio
    async def test_unexpected_file_error_is_skipped(self, provider, documents, folder) -> None:
        """Test that a file failing with a non-refscope error does not abort the folder."""
        register_all(provider, folder)
        provider.symbols[folder["b"]] = RuntimeError("server connection lost")
        aggregator = make_aggregator(provider, documents)

        result = await aggregator.fetch_folder_references(folder["folder"])

        assert [r.symbol.name for r in result] == ["alpha"]

    @pytest.mark.asyncio
    async def test_unexpected_errors_count_as_file_failures(self, provider, documents, folder) -> None:
        error = RuntimeError("server connection lost")
        for key in ("a", "b", "c"):
            provider.symbols[folder[key]] = error
        aggregator = make_aggregator(provider, documents)

        with pytest.raises(NoReferencesRetrievable) as exc_info:
            await aggregator.fetch_folder_references(folder["folder"])

        assert exc_info.value.first_error is error
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_total_failure_raises_with_first_error(self, provider, documents, folder) -> None:
        aggregator = make_aggregator(provider, documents)

        with pytest.raises(NoReferencesRetrievable) as exc_info:
            await aggregator.fetch_folder_references(folder["folder"])

        error = exc_info.value
        assert error.folder_uri == folder["folder"]
        assert isinstance(error.first_error, ProviderUnavailable)
        assert error.__cause__ is error.first_error
        assert "first error was" in str(error)

    @pytest.mark.asyncio
    async def test_failing_symbols_do_not_fail_the_file(self, provider, documents, folder) -> None:
        """Test that files whose symbols all fail still count as processed."""
        for key, name in (("a", "omega"), ("b", "zeta"), ("c", "sigma")):
            provider.symbols[folder[key]] = [make_symbol(name, folder[key])]
        aggregator = make_aggregator(provider, documents)

        assert await aggregator.fetch_folder_references(folder["folder"]) == []

    @pytest.mark.asyncio
    async def test_empty_folder(self, tmp_path, provider, documents) -> None:
        (tmp_path / "empty").mkdir()
        aggregator = make_aggregator(provider, documents)

        assert await aggregator.fetch_folder_references(fs_path_to_uri(str(tmp_path / "empty"))) == []
        assert provider.symbol_calls == []

    @pytest.mark.asyncio
    async def test_excluded_directories_are_skipped(self, provider, documents, folder) -> None:
        register_all(provider, folder)
        aggregator = make_aggregator(provider, documents, exclude_dirs=frozenset({"sub"}))

        await aggregator.fetch_folder_references(folder["folder"])

        assert folder["c"] not in provider.symbol_calls
        assert sorted(provider.symbol_calls) == sorted([folder["a"], folder["b"]])


@pytest.mark.refscope
class TestConcurrencyLimit:
    """Test the optional bound on concurrently processed files."""

    @pytest.mark.asyncio
    async def test_max_concurrency_is_respected(self, provider, documents, folder) -> None:
        class TrackingProvider:
            """Wraps a provider and records the peak number of concurrent symbol listings."""

            def __init__(self, inner) -> None:
                self.inner = inner
                self.active = 0
                self.peak = 0

            async def list_symbols(self, uri: str) -> list[SymbolInfo]:
                self.active += 1
                self.peak = max(self.peak, self.active)
                try:
                    await asyncio.sleep(0.01)
                    return await self.inner.list_symbols(uri)
                finally:
                    self.active -= 1

            async def find_references(self, uri: str, position: types.Position) -> list[types.Location]:
                return await self.inner.find_references(uri, position)

        register_all(provider, folder)
        tracking = TrackingProvider(provider)
        aggregator = make_aggregator(tracking, documents, max_concurrency=1)

        await aggregator.fetch_folder_references(folder["folder"])

        assert tracking.peak == 1
        assert len(provider.symbol_calls) == 3

    @pytest.mark.asyncio
    async def test_result_order_follows_file_order(self, provider, documents, folder) -> None:
        """Test that a slow file does not change the order of the merged result."""
        register_all(provider, folder)
        provider.delays[(folder["a"], 0, 4)] = 0.05
        aggregator = make_aggregator(provider, documents)

        result = await aggregator.fetch_folder_references(folder["folder"])

        assert [r.symbol.name for r in result] == ["alpha", "beta"]

    def test_list_files_is_sorted_and_recursive(self, provider, documents, folder) -> None:
        aggregator = make_aggregator(provider, documents)

        assert aggregator.list_files(folder["folder"]) == [folder["a"], folder["b"], folder["c"]]
