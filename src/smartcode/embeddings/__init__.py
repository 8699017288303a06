"""
Embedding providers for code search.

Providers are LangChain embedding wrappers selected by configuration
(OpenAI-compatible endpoints, local HuggingFace models, llama.cpp, or a
deterministic fake for offline use).
"""

from .providers import EmbeddingAdapter, EmbeddingProviderFactory

__all__ = ["EmbeddingAdapter", "EmbeddingProviderFactory"]
