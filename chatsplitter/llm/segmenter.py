"""
LLM-assisted segmentation.

Pipeline: health check, chunk, prompt each chunk, parse, deduplicate,
validate, materialize. Every failure raises an ``LLMSegmentationError``
subclass; ``segment_with_fallback`` turns those into a heuristic result.
"""
import json
import logging
import re
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from chatsplitter.core.config import SegmentationConfig
from chatsplitter.core.errors import LLMResponseError, LLMUnavailableError, LLMValidationError
from chatsplitter.core.models import Message, Segment, SegmentationMethod
from chatsplitter.llm.chunker import DEFAULT_OVERLAP_MESSAGES, DEFAULT_TARGET_CHARS, MessageChunk, chunk_conversation
from chatsplitter.llm.prompts import MAX_LLM_TITLE_LENGTH, build_segmentation_prompt
from chatsplitter.segmentation.tags import generate_tags

logger = logging.getLogger(__name__)

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


class LLMSegmentResult(BaseModel):
    """One segment as proposed by the model."""

    model_config = ConfigDict(populate_by_name=True)

    start_index: int = Field(alias="startIndex")
    end_index: int = Field(alias="endIndex")
    title: str = "Untitled"
    summary: str = ""
    confidence: float = 0.5


def _coerce_item(item: Dict[str, Any]) -> LLMSegmentResult:
    confidence = item.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        confidence = 0.5
    title = item.get("title")
    summary = item.get("summary")
    return LLMSegmentResult(
        startIndex=item.get("startIndex"),
        endIndex=item.get("endIndex"),
        title=title if isinstance(title, str) and title.strip() else "Untitled",
        summary=summary if isinstance(summary, str) else "",
        confidence=min(1.0, max(0.0, float(confidence))),
    )


def parse_response(response: str) -> List[LLMSegmentResult]:
    """
    Extract the segment list from a model reply.

    The reply may wrap the JSON array in prose or code fences; the outermost
    ``[...]`` span is parsed.

    Raises
    ------
    LLMResponseError
        If no JSON array is found, it does not parse, or an item lacks
        integer ``startIndex``/``endIndex`` values
    """
    if not isinstance(response, str):
        raise LLMResponseError(f"LLM response is not text: {type(response).__name__}")
    match = _JSON_ARRAY.search(response.strip())
    if not match:
        raise LLMResponseError("LLM response did not contain a JSON array")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"LLM response is not valid JSON: {e}") from e
    if not isinstance(parsed, list):
        raise LLMResponseError("LLM response is not a JSON array")

    results = []
    for item in parsed:
        if not isinstance(item, dict):
            logger.debug("Skipping non-object item in LLM response: %r", item)
            continue
        try:
            results.append(_coerce_item(item))
        except ValidationError as e:
            raise LLMResponseError(f"LLM returned a malformed segment: {item!r}") from e
    return results


def deduplicate_results(
    results: Sequence[LLMSegmentResult],
    messages: Sequence[Message],
) -> List[LLMSegmentResult]:
    """
    Merge per-chunk results.

    Sorts by start index and keeps the first result seen for each start
    index. Results referencing indices outside the conversation are dropped.
    """
    if not results or not messages:
        return []
    max_index = messages[-1].index
    seen = set()
    unique: List[LLMSegmentResult] = []

    for result in sorted(results, key=lambda r: r.start_index):
        if result.start_index < 0 or result.end_index < 0:
            continue
        if result.start_index > max_index or result.end_index > max_index:
            continue
        if result.start_index in seen:
            continue
        seen.add(result.start_index)
        unique.append(result)
    return unique


def validate_results(results: Sequence[LLMSegmentResult], messages: Sequence[Message]) -> None:
    """
    Reject results that cannot be materialized.

    Raises
    ------
    LLMValidationError
        If nothing survived deduplication, an index does not belong to a
        message, or a range is inverted
    """
    if not results:
        raise LLMValidationError("LLM returned no valid segments")

    known = {m.index for m in messages}
    for result in results:
        if result.start_index not in known:
            raise LLMValidationError(f"Invalid startIndex {result.start_index} from LLM")
        if result.end_index not in known:
            raise LLMValidationError(f"Invalid endIndex {result.end_index} from LLM")
        if result.start_index > result.end_index:
            raise LLMValidationError(
                f"startIndex {result.start_index} > endIndex {result.end_index}"
            )


def build_segments(
    results: Sequence[LLMSegmentResult],
    messages: Sequence[Message],
    tag_prefix: str,
) -> List[Segment]:
    """
    Materialize validated results as a partition of the conversation.

    Each segment runs from its start index up to the message before the
    next segment's start, the first segment begins at the first message and
    the last one ends at the last message, so overlapping or gapped model
    ranges still yield contiguous segments.
    """
    position = {m.index: i for i, m in enumerate(messages)}
    starts = [position[r.start_index] for r in results]
    starts[0] = 0
    edges = starts + [len(messages)]

    segments = []
    for result, begin, end in zip(results, edges, edges[1:]):
        run = list(messages[begin:end])
        segments.append(Segment(
            id=str(uuid.uuid4()),
            title=result.title[:MAX_LLM_TITLE_LENGTH],
            summary=result.summary,
            tags=generate_tags(run, tag_prefix),
            messages=run,
            start_index=run[0].index,
            end_index=run[-1].index,
            confidence=result.confidence,
            method=SegmentationMethod.LLM,
        ))
    return segments


class LLMSegmenter:
    """
    Segments a conversation by asking a language model for topic ranges.

    Attributes
    ----------
    client : object
        ``OllamaClient`` or ``AnthropicClient`` (anything with
        ``health_check()`` and ``generate(prompt)``)
    target_chars : int
        Character budget per chunk
    overlap_messages : int
        Messages shared between consecutive chunks
    max_workers : int
        Chunks prompted concurrently; 1 sends them one after another
    """

    def __init__(
        self,
        client,
        target_chars: int = DEFAULT_TARGET_CHARS,
        overlap_messages: int = DEFAULT_OVERLAP_MESSAGES,
        max_workers: int = 1,
    ):
        self.client = client
        self.target_chars = target_chars
        self.overlap_messages = overlap_messages
        self.max_workers = max(1, max_workers)

    def _segment_chunk(self, chunk: MessageChunk, config: SegmentationConfig) -> List[LLMSegmentResult]:
        prompt = build_segmentation_prompt(chunk.messages, config.granularity)
        response = self.client.generate(prompt)
        results = parse_response(response)
        logger.debug(
            "Chunk %d-%d: %d segments proposed", chunk.start_index, chunk.end_index, len(results)
        )
        return results

    def _collect(self, chunks: Sequence[MessageChunk], config: SegmentationConfig) -> List[LLMSegmentResult]:
        if self.max_workers == 1 or len(chunks) == 1:
            collected: List[LLMSegmentResult] = []
            for chunk in chunks:
                collected.extend(self._segment_chunk(chunk, config))
            return collected

        per_chunk: Dict[int, List[LLMSegmentResult]] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self._segment_chunk, chunk, config): i
                for i, chunk in enumerate(chunks)
            }
            for future in as_completed(futures):
                per_chunk[futures[future]] = future.result()
        # restore chunk order so first-seen deduplication does not depend on timing
        return [r for i in sorted(per_chunk) for r in per_chunk[i]]

    def segment(
        self,
        messages: Sequence[Message],
        config: SegmentationConfig,
    ) -> List[Segment]:
        """
        Segment ``messages`` with the model.

        Raises
        ------
        LLMSegmentationError
            Any failure along the pipeline (unreachable backend, malformed
            or empty response, failed validation)
        """
        if not self.client.health_check():
            raise LLMUnavailableError("LLM backend is not reachable")

        chunks = chunk_conversation(messages, self.target_chars, self.overlap_messages)
        logger.info("Prompting LLM with %d chunk(s) for %d messages", len(chunks), len(messages))

        results = self._collect(chunks, config)
        merged = deduplicate_results(results, messages)
        validate_results(merged, messages)
        return build_segments(merged, messages, config.tag_prefix)
