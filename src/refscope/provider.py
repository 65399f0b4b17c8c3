"""Symbol and reference providers.

The reference engine only depends on the SymbolProvider protocol. The
LanguageServerProvider implements it by driving an external language server
over stdio with the pygls LanguageClient.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Protocol, TypeVar

from lsprotocol import types
from pygls.exceptions import JsonRpcException
from pygls.lsp.client import LanguageClient

from refscope import __version__
from refscope.errors import ProviderUnavailable
from refscope.symbol import to_symbol_infos
from refscope.uri_utils import uri_to_fs_path

if TYPE_CHECKING:
    from refscope.config import RefScopeSettings
    from refscope.documents import DocumentStore
    from refscope.symbol import SymbolInfo
    from refscope.workspace_roots import WorkspaceRoots

log = logging.getLogger(__name__)

T = TypeVar("T")


class SymbolProvider(Protocol):
    """Source of symbols and references, usually backed by a language server."""

    async def list_symbols(self, uri: str) -> list[SymbolInfo]:
        """List the symbols defined in a document.

        Raises:
            ProviderUnavailable: If the provider returned no usable result
        """
        ...

    async def find_references(self, uri: str, position: types.Position) -> list[types.Location]:
        """Find the references to the symbol at the given position.

        Raises:
            ProviderUnavailable: If the provider returned no usable result
        """
        ...


class LanguageServerProvider:
    """SymbolProvider backed by a language server process.

    Documents are announced with textDocument/didOpen before their first
    request, since many servers only answer for open documents.
    """

    def __init__(self, settings: RefScopeSettings, roots: WorkspaceRoots, documents: DocumentStore) -> None:
        self._settings = settings
        self._roots = roots
        self._documents = documents
        self._client = LanguageClient("refscope", __version__)
        self._open_documents: set[str] = set()
        self._started = False

    async def start(self) -> None:
        """Start the language server process and run the initialize handshake."""
        if not self._settings.server_command:
            raise ProviderUnavailable("No language server command configured")
        cmd, *args = self._settings.server_command
        folders = self._roots.folders
        root_uri = folders[0].uri if folders else None
        log.info(f"Starting language server: {' '.join(self._settings.server_command)}")
        try:
            await self._client.start_io(cmd, *args, cwd=uri_to_fs_path(root_uri) if root_uri else None)
        except OSError as e:
            raise ProviderUnavailable(f"Could not start language server {cmd!r}: {e}") from e

        params = types.InitializeParams(
            process_id=os.getpid(),
            root_uri=root_uri,
            workspace_folders=folders,
            capabilities=types.ClientCapabilities(
                text_document=types.TextDocumentClientCapabilities(
                    synchronization=types.TextDocumentSyncClientCapabilities(did_save=True),
                    references=types.ReferenceClientCapabilities(),
                    document_symbol=types.DocumentSymbolClientCapabilities(hierarchical_document_symbol_support=True),
                ),
                workspace=types.WorkspaceClientCapabilities(workspace_folders=True),
            ),
        )
        log.info("Sending initialize request and awaiting response")
        try:
            result = await self._request(self._client.initialize_async(params), "initialize")
        except BaseException:
            # the server process is already running
            await self._client.stop()
            raise
        capabilities = result.capabilities
        if not capabilities.document_symbol_provider:
            log.warning("Language server does not report document symbol support")
        if not capabilities.references_provider:
            log.warning("Language server does not report find references support")
        self._client.initialized(types.InitializedParams())
        self._started = True

    async def stop(self) -> None:
        """Shut the language server down."""
        if self._started:
            try:
                await self._request(self._client.shutdown_async(None), "shutdown")
                self._client.exit(None)
            except ProviderUnavailable as e:
                log.warning(f"Language server did not shut down cleanly: {e}")
            self._started = False
        await self._client.stop()

    async def __aenter__(self) -> LanguageServerProvider:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    def _language_id(self, uri: str) -> str:
        extension = os.path.splitext(uri)[1].lower()
        return self._settings.language_ids.get(extension, "plaintext")

    def _ensure_open(self, uri: str) -> None:
        if uri in self._open_documents:
            return
        try:
            text = self._documents.get_source(uri)
        except (OSError, UnicodeError) as e:
            raise ProviderUnavailable(f"Could not read {uri}: {e}", uri) from e
        self._client.text_document_did_open(
            types.DidOpenTextDocumentParams(
                text_document=types.TextDocumentItem(uri=uri, language_id=self._language_id(uri), version=0, text=text)
            )
        )
        self._open_documents.add(uri)

    async def _request(self, request: Awaitable[T], description: str, uri: str | None = None) -> T:
        try:
            return await asyncio.wait_for(request, timeout=self._settings.request_timeout)
        except JsonRpcException as e:
            raise ProviderUnavailable(f"{description} failed for {uri}: {e}", uri) from e
        except asyncio.TimeoutError as e:
            raise ProviderUnavailable(
                f"{description} timed out after {self._settings.request_timeout}s for {uri}", uri
            ) from e

    async def list_symbols(self, uri: str) -> list[SymbolInfo]:
        self._ensure_open(uri)
        result = await self._request(
            self._client.text_document_document_symbol_async(
                types.DocumentSymbolParams(text_document=types.TextDocumentIdentifier(uri=uri))
            ),
            "documentSymbol",
            uri,
        )
        if result is None:
            raise ProviderUnavailable(f"Could not retrieve symbols for {uri}", uri)
        return to_symbol_infos(uri, result)

    async def find_references(self, uri: str, position: types.Position) -> list[types.Location]:
        self._ensure_open(uri)
        result = await self._request(
            self._client.text_document_references_async(
                types.ReferenceParams(
                    text_document=types.TextDocumentIdentifier(uri=uri),
                    position=position,
                    context=types.ReferenceContext(include_declaration=self._settings.include_declaration),
                )
            ),
            "references",
            uri,
        )
        if result is None:
            raise ProviderUnavailable(
                f"Could not retrieve symbol references at {position.line + 1}:{position.character + 1} in {uri}", uri
            )
        return list(result)
