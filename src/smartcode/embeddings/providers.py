"""
Embedding client construction.

LangChain embedding wrappers hide vendor differences, so the indexer and the
search layer only ever call ``embed_documents`` and ``embed_query``.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Protocol

from ..logger import get_logger
from ..settings import settings

log = get_logger(__name__)


class EmbeddingAdapter(Protocol):
    """Protocol representing a pluggable embeddings client."""

    def embed_documents(self, texts: Iterable[str]) -> List[List[float]]:
        ...

    def embed_query(self, text: str) -> List[float]:
        ...


class EmbeddingProviderFactory:
    """Factory that returns embedding clients based on configuration."""

    @staticmethod
    def create(provider: str | None = None, model: str | None = None) -> EmbeddingAdapter:
        provider_name = (provider or settings.embedding_provider).lower()
        embed_model = model or settings.embedding_model

        if provider_name in {"openai", "lmstudio"}:
            from langchain_openai import OpenAIEmbeddings  # type: ignore

            log.info("initializing_openai_embeddings", model=embed_model, provider=provider_name)
            kwargs: dict[str, Any] = {"model": embed_model}
            if settings.embedding_api_base:
                kwargs["base_url"] = settings.embedding_api_base
            if settings.embedding_api_key:
                kwargs["api_key"] = settings.embedding_api_key
            if provider_name != "openai":
                # Local OpenAI-compatible servers do not speak tiktoken ids.
                kwargs["tiktoken_enabled"] = False
                kwargs["check_embedding_ctx_length"] = False
            return OpenAIEmbeddings(**kwargs)

        if provider_name in {"huggingface", "sentence-transformers"}:
            try:
                from langchain_community.embeddings import HuggingFaceEmbeddings  # type: ignore
            except ImportError as exc:  # pragma: no cover - optional dependency
                raise RuntimeError(
                    "langchain-community and sentence-transformers are required for "
                    "local HuggingFace embeddings."
                ) from exc

            log.info("initializing_huggingface_embeddings", model=embed_model)
            return HuggingFaceEmbeddings(model_name=embed_model)

        if provider_name in {"llamacpp", "llama.cpp"}:
            try:
                from langchain_community.embeddings import LlamaCppEmbeddings  # type: ignore
            except ImportError as exc:  # pragma: no cover - optional dependency
                raise RuntimeError(
                    "llama-cpp-python is required for llama.cpp embeddings. "
                    "Install it or select a different embedding provider."
                ) from exc

            model_path = settings.embedding_llamacpp_model_path
            if not model_path:
                raise ValueError(
                    "Set SMART_CODING_EMBEDDING_LLAMACPP_MODEL_PATH when using the "
                    "llama.cpp embedding provider."
                )

            log.info("initializing_llamacpp_embeddings", model_path=str(model_path))
            return LlamaCppEmbeddings(
                model_path=str(model_path),
                n_ctx=settings.embedding_llamacpp_n_ctx,
                n_threads=settings.embedding_llamacpp_n_threads,
            )

        if provider_name == "fake":
            from langchain_core.embeddings import DeterministicFakeEmbedding

            log.info("initializing_fake_embeddings", size=settings.embedding_dimension)
            return DeterministicFakeEmbedding(size=settings.embedding_dimension)

        raise NotImplementedError(f"Embedding provider not yet supported: {provider_name}")
