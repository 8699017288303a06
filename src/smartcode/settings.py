"""
Centralized application settings.

The configuration is shared by the CLI, the HTTP API and the indexer. Values
come from ``smart_coding.toml`` (or the file named by
``SMART_CODING_CONFIG_PATH``) and can be overridden by ``SMART_CODING_*``
environment variables.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - fallback for older interpreters
    import tomli as tomllib  # type: ignore[attr-defined]

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FILE_EXTENSIONS: List[str] = [
    "verse",
    "js", "ts", "jsx", "tsx", "mjs", "cjs",
    "css", "scss", "sass", "less",
    "html", "htm", "xml",
    "py", "pyw", "pyx",
    "java", "kt", "kts", "scala",
    "c", "cpp", "cc", "cxx", "h", "hpp", "hxx",
    "cs", "go", "rs", "rb", "php", "swift",
    "sh", "bash", "zsh",
    "json", "yaml", "yml", "toml", "ini",
    "md", "mdx", "txt", "rst",
    "sql", "r", "lua", "pl", "pm",
]

DEFAULT_EXCLUDE_PATTERNS: List[str] = [
    ".*",
    "__pycache__",
    "node_modules",
    "dist",
    "build",
    "coverage",
    "target",
    "vendor",
    "venv",
    "*.min.js",
    "*.lock",
]

CACHE_DIRECTORY_NAME = ".smart-coding-cache"


class AppSettings(BaseSettings):
    """Project-wide settings loaded from env, .env files or TOML."""

    model_config = SettingsConfigDict(
        env_prefix="SMART_CODING_",
        env_nested_delimiter="__",
        extra="allow",
    )

    workspace_root: Path = Path(".")
    cache_directory: Optional[Path] = None
    file_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_FILE_EXTENSIONS))
    exclude_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    max_file_size: int = 1_048_576
    worker_threads: int = 4
    verbose: bool = False

    embedding_provider: str = "openai"
    embedding_model: str = "text-embedding-3-small"
    embedding_dimension: int = 384
    embedding_api_base: Optional[str] = None
    embedding_api_key: Optional[str] = None
    embedding_batch_size: int = 100
    embedding_llamacpp_model_path: Optional[Path] = None
    embedding_llamacpp_n_ctx: int = 2048
    embedding_llamacpp_n_threads: int = 4

    chunk_size: int = 15
    chunk_overlap: int = 3
    chunk_target_tokens: Optional[int] = None
    chunk_overlap_tokens: Optional[int] = None

    max_results: int = 5
    semantic_weight: float = 0.7
    exact_match_boost: float = 1.5

    api_key: Optional[str] = None
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    def resolved_cache_directory(self) -> Path:
        """Return the cache directory, defaulting to one inside the workspace."""
        if self.cache_directory is not None:
            return self.cache_directory
        return self.workspace_root / CACHE_DIRECTORY_NAME


_CONFIG_ENV_VAR = "SMART_CODING_CONFIG_PATH"
_DEFAULT_CONFIG_FILE = Path("smart_coding.toml")

# TOML section -> {key in section: AppSettings field}
_SECTION_FIELDS: Dict[str, Dict[str, str]] = {
    "workspace": {
        "root": "workspace_root",
        "cache_directory": "cache_directory",
    },
    "indexing": {
        "file_extensions": "file_extensions",
        "exclude_patterns": "exclude_patterns",
        "max_file_size": "max_file_size",
        "worker_threads": "worker_threads",
    },
    "embedding": {
        "provider": "embedding_provider",
        "model": "embedding_model",
        "dimension": "embedding_dimension",
        "api_base": "embedding_api_base",
        "api_key": "embedding_api_key",
        "batch_size": "embedding_batch_size",
    },
    "chunking": {
        "chunk_size": "chunk_size",
        "chunk_overlap": "chunk_overlap",
        "target_tokens": "chunk_target_tokens",
        "overlap_tokens": "chunk_overlap_tokens",
    },
    "search": {
        "max_results": "max_results",
        "semantic_weight": "semantic_weight",
        "exact_match_boost": "exact_match_boost",
    },
    "api": {
        "host": "api_host",
        "port": "api_port",
        "key": "api_key",
    },
}


def _load_toml_config() -> Dict[str, Any]:
    """Load configuration from the primary TOML file on disk."""
    candidates: List[Path] = []
    config_override = os.getenv(_CONFIG_ENV_VAR)
    if config_override:
        candidates.append(Path(config_override))
    candidates.append(_DEFAULT_CONFIG_FILE)

    for candidate in candidates:
        if candidate.is_file():
            with candidate.open("rb") as handle:
                return tomllib.load(handle)
    return {}


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def _flatten_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Translate grouped TOML sections into AppSettings keyword arguments."""
    data: Dict[str, Any] = {}

    for section_name, fields in _SECTION_FIELDS.items():
        section = raw.get(section_name, {})
        for key, field_name in fields.items():
            if key in section:
                data[field_name] = _blank_to_none(section[key])

    llama_section = raw.get("embedding", {}).get("llamacpp", {})
    if "model_path" in llama_section:
        data["embedding_llamacpp_model_path"] = _blank_to_none(llama_section["model_path"])
    if "n_ctx" in llama_section:
        data["embedding_llamacpp_n_ctx"] = int(llama_section["n_ctx"])
    if "n_threads" in llama_section:
        data["embedding_llamacpp_n_threads"] = int(llama_section["n_threads"])

    general = raw.get("general", {})
    if "verbose" in general:
        data["verbose"] = bool(general["verbose"])

    # Environment variables take precedence over the file.
    return {
        name: value
        for name, value in data.items()
        if f"SMART_CODING_{name.upper()}" not in os.environ
    }


def load_settings() -> AppSettings:
    raw = _load_toml_config()
    flattened = _flatten_config(raw)
    return AppSettings(**flattened)


settings = load_settings()
