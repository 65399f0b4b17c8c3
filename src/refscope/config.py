"""Configuration for refscope."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field

DEFAULT_LANGUAGE_IDS: dict[str, str] = {
    ".c": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".cs": "csharp",
    ".go": "go",
    ".h": "c",
    ".hpp": "cpp",
    ".java": "java",
    ".js": "javascript",
    ".jsx": "javascriptreact",
    ".kt": "kotlin",
    ".py": "python",
    ".rb": "ruby",
    ".rs": "rust",
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".vbs": "vbscript",
}


@dataclass
class RefScopeSettings:
    """Settings for a reference discovery session.

    Attributes:
        server_command: Command line starting the language server (stdio)
        workspace_roots: Workspace folder paths; display paths are relative to these
        request_timeout: Seconds to wait for a single language server request
        max_concurrency: Upper bound of files processed at once (None = unbounded)
        exclude_dirs: Directory names skipped when traversing a folder
        language_ids: File extension -> LSP language id, used for didOpen
        include_declaration: Whether reference requests include the declaration
    """

    server_command: list[str] = field(default_factory=list)
    workspace_roots: list[str] = field(default_factory=list)
    request_timeout: float = 30.0
    max_concurrency: int | None = None
    exclude_dirs: frozenset[str] = frozenset()
    language_ids: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_LANGUAGE_IDS))
    include_declaration: bool = True

    def __post_init__(self) -> None:
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.max_concurrency is not None and self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {self.max_concurrency}")

    @classmethod
    def from_env(cls, **overrides: object) -> RefScopeSettings:
        """Create settings from REFSCOPE_* environment variables.

        Keyword arguments that are not None take precedence over the environment.
        """
        values: dict[str, object] = {}
        server_command = os.getenv("REFSCOPE_SERVER_COMMAND")
        if server_command:
            values["server_command"] = shlex.split(server_command)
        request_timeout = os.getenv("REFSCOPE_REQUEST_TIMEOUT")
        if request_timeout:
            values["request_timeout"] = float(request_timeout)
        max_concurrency = os.getenv("REFSCOPE_MAX_CONCURRENCY")
        if max_concurrency:
            values["max_concurrency"] = int(max_concurrency)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)  # type: ignore[arg-type]
