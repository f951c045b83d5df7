"""
Optional LLM backend for segmentation (Ollama or Claude).

Failures raise ``LLMSegmentationError``; use
``chatsplitter.segmentation.segment_with_fallback`` to get heuristic
segments instead.
"""
from .chunker import MessageChunk, chunk_conversation
from .client import AnthropicClient, OllamaClient, create_client
from .prompts import build_segmentation_prompt
from .segmenter import LLMSegmenter

__all__ = [
    "MessageChunk",
    "chunk_conversation",
    "AnthropicClient",
    "OllamaClient",
    "create_client",
    "build_segmentation_prompt",
    "LLMSegmenter",
]
