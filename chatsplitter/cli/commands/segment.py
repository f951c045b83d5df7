"""
Segmentation CLI commands (segment, scores, models).
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import click
from pydantic import ValidationError

from chatsplitter.core.config import SegmentationConfig
from chatsplitter.core.models import ContentType, Granularity, Message, Role
from chatsplitter.generators.key_info import extract_key_info
from chatsplitter.llm.client import OllamaClient, create_client
from chatsplitter.llm.segmenter import LLMSegmenter
from chatsplitter.segmentation.scorer import describe_boundaries, score_boundaries
from chatsplitter.segmentation.segmenter import segment_with_fallback

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('plainText', 'text', 'content')
ROLES = {role.value for role in Role}


def _message_text(item: Dict[str, Any]) -> str:
    for field in TEXT_FIELDS:
        value = item.get(field)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def load_messages(path: Path) -> List[Message]:
    """
    Read a conversation from a JSON file.

    Accepts a list of message objects or an object with a ``messages`` list.
    Each message needs a ``role`` and text under ``plainText``, ``text`` or
    ``content``; ``timestamp`` and ``index`` are optional. Messages with
    other roles or no text are skipped. Missing indices are assigned in
    file order.

    Raises
    ------
    click.ClickException
        If the file is not valid JSON or a message fails validation
    """
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, UnicodeDecodeError) as e:
        raise click.ClickException(f"Could not read {path}: {e}")
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{path} is not valid JSON: {e}")

    if isinstance(data, dict):
        data = data.get('messages')
    if not isinstance(data, list):
        raise click.ClickException(f"{path} must contain a list of messages or an object with 'messages'")

    messages = []
    for position, item in enumerate(data):
        if not isinstance(item, dict):
            raise click.ClickException(f"Message {position} is not an object")
        role = str(item.get('role', '')).lower()
        text = _message_text(item)
        if role not in ROLES or not text:
            logger.debug("Skipping message %d (role=%r, %d chars)", position, role, len(text))
            continue
        try:
            messages.append(Message(
                index=item.get('index', len(messages)),
                role=role,
                plain_text=text,
                timestamp=item.get('timestamp'),
            ))
        except ValidationError as e:
            raise click.ClickException(f"Invalid message {position}: {e}")
    return messages


def _config_from_options(ctx, granularity, content_type, tag_prefix, min_messages, min_words) -> SegmentationConfig:
    settings = ctx.obj.settings
    return SegmentationConfig.for_granularity(
        granularity=granularity or settings.granularity,
        content_type=content_type,
        tag_prefix=tag_prefix or settings.tag_prefix,
        min_messages=min_messages,
        min_words=min_words,
    )


def _echo_segments(result, details: bool) -> None:
    for number, seg in enumerate(result.segments, start=1):
        click.secho(
            f"Segment {number}: {seg.title}",
            fg='green', bold=True,
        )
        click.echo(
            f"  messages [{seg.start_index}..{seg.end_index}] ({seg.message_count} msgs, {seg.word_count} words)"
            f"  confidence={seg.confidence:.2f}  method={seg.method.value}"
        )
        click.echo(f"  tags: {', '.join(seg.tags)}")
        if seg.summary:
            click.echo(f"  summary: {seg.summary}")
        if details:
            info = extract_key_info(seg.messages, summary=seg.summary, tags=seg.tags, include_details=True)
            for label, items in (
                ("key points", info.key_points),
                ("questions", info.questions),
                ("topics", info.topics),
                ("takeaways", info.takeaways),
                ("links", info.links),
            ):
                if items:
                    click.echo(f"  {label}:")
                    for item in items:
                        click.echo(f"    - {item}")
        click.echo("")


def _segments_json(result, details: bool) -> Dict[str, Any]:
    segments = []
    for seg in result.segments:
        entry = seg.to_dict()
        if details:
            info = extract_key_info(seg.messages, summary=seg.summary, tags=seg.tags, include_details=True)
            entry['key_info'] = info.model_dump()
        segments.append(entry)
    return {
        'segments': segments,
        'used_fallback': result.used_fallback,
        'fallback_reason': result.fallback_reason,
    }


granularity_option = click.option(
    '--granularity', type=click.Choice([g.value for g in Granularity]), default=None,
    help='Segmentation preset (default: CHATSPLITTER_GRANULARITY or medium)',
)
content_type_option = click.option(
    '--content-type', type=click.Choice([c.value for c in ContentType]), default=ContentType.CHAT.value,
    show_default=True, help='Use document weighting for non-dialogue text',
)
min_messages_option = click.option('--min-messages', type=click.IntRange(min=1), help='Override minimum messages per segment')
min_words_option = click.option('--min-words', type=click.IntRange(min=0), help='Override minimum words per segment')


@click.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@granularity_option
@content_type_option
@click.option('--tag-prefix', envvar='CHATSPLITTER_TAG_PREFIX', help='Namespace for generated tags')
@min_messages_option
@min_words_option
@click.option('--use-llm/--no-llm', default=False, help='Try the LLM backend first, falling back to heuristics')
@click.option('--provider', type=click.Choice(['ollama', 'anthropic']), envvar='CHATSPLITTER_LLM_PROVIDER', help='LLM backend')
@click.option('--endpoint', envvar='CHATSPLITTER_OLLAMA_ENDPOINT', help='Ollama endpoint URL')
@click.option('--model', help='Model name for the LLM backend')
@click.option('--details', is_flag=True, help='Include key points, questions, topics, takeaways and links')
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']), default='text', show_default=True)
@click.pass_context
def segment(ctx, file, granularity, content_type, tag_prefix, min_messages, min_words,
            use_llm, provider, endpoint, model, details, output_format):
    """Split the conversation in FILE into topic segments."""
    settings = ctx.obj.settings
    messages = load_messages(file)
    if not messages:
        raise click.ClickException(f"No user or assistant messages found in {file}")

    config = _config_from_options(ctx, granularity, content_type, tag_prefix, min_messages, min_words)

    llm_segmenter = None
    if use_llm:
        provider = provider or settings.llm_provider
        if provider == 'ollama':
            model = model or settings.ollama_model
            if not model:
                raise click.UsageError("--model (or CHATSPLITTER_OLLAMA_MODEL) is required for the Ollama backend")
        else:
            model = model or settings.anthropic_model
        client = create_client(
            provider,
            endpoint=endpoint or settings.ollama_endpoint,
            model=model,
            timeout=settings.llm_timeout,
        )
        llm_segmenter = LLMSegmenter(client)

    result = segment_with_fallback(messages, config, llm_segmenter)
    if result.used_fallback:
        click.secho(
            f"LLM segmentation failed ({result.fallback_reason}); used heuristic segmentation instead.",
            fg='yellow', err=True,
        )

    if output_format == 'json':
        click.echo(json.dumps(_segments_json(result, details), indent=2))
    else:
        _echo_segments(result, details)


@click.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@granularity_option
@content_type_option
@min_messages_option
@min_words_option
@click.pass_context
def scores(ctx, file, granularity, content_type, min_messages, min_words):
    """Print the boundary score report for the conversation in FILE."""
    messages = load_messages(file)
    config = _config_from_options(ctx, granularity, content_type, None, min_messages, min_words)
    boundaries = score_boundaries(messages, config)
    click.echo(describe_boundaries(messages, boundaries, config))


@click.command()
@click.option('--endpoint', envvar='CHATSPLITTER_OLLAMA_ENDPOINT', help='Ollama endpoint URL')
@click.pass_context
def models(ctx, endpoint):
    """List models available on the Ollama endpoint."""
    client = OllamaClient(endpoint or ctx.obj.settings.ollama_endpoint)
    if not client.health_check():
        click.secho(f"Ollama is not reachable at {client.endpoint}", fg='red', err=True)
        raise click.exceptions.Exit(1)
    names = client.list_models()
    if not names:
        click.secho("No models installed.", fg='yellow')
        return
    for name in names:
        click.echo(name)
