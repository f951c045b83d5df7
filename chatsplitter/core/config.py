"""
Configuration for the segmentation engine.

Segmentation settings are immutable values passed explicitly into every
scoring and assembly call. Runtime settings (LLM endpoint, tag prefix, etc.)
are resolved from ``CHATSPLITTER_*`` environment variables.
"""
import logging
import os
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from chatsplitter.core.models import ContentType, Granularity

logger = logging.getLogger(__name__)

# Signal names, in evaluation order
TRANSITION_PHRASES = "transition-phrases"
DOMAIN_SHIFT = "domain-shift"
VOCABULARY_SHIFT = "vocabulary-shift"
TEMPORAL_GAP = "temporal-gap"
SELF_CONTAINED = "self-contained"
REINTRODUCTION = "reintroduction"

SIGNAL_NAMES = (
    TRANSITION_PHRASES,
    DOMAIN_SHIFT,
    VOCABULARY_SHIFT,
    TEMPORAL_GAP,
    SELF_CONTAINED,
    REINTRODUCTION,
)

DEFAULT_SIGNAL_WEIGHTS: Mapping[str, float] = MappingProxyType({
    TRANSITION_PHRASES: 0.25,
    DOMAIN_SHIFT: 0.20,
    VOCABULARY_SHIFT: 0.20,
    REINTRODUCTION: 0.15,
    TEMPORAL_GAP: 0.10,
    SELF_CONTAINED: 0.10,
})

# Documents have no conversational cues, so lean on content shift
DOCUMENT_SIGNAL_WEIGHTS: Mapping[str, float] = MappingProxyType({
    TRANSITION_PHRASES: 0.05,
    DOMAIN_SHIFT: 0.35,
    VOCABULARY_SHIFT: 0.35,
    REINTRODUCTION: 0.0,
    TEMPORAL_GAP: 0.15,
    SELF_CONTAINED: 0.10,
})

DEFAULT_WINDOW_SIZE = 4
DEFAULT_TAG_PREFIX = "ai-chat"
DEFAULT_OLLAMA_ENDPOINT = "http://localhost:11434"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-haiku-20241022"


class GranularityThresholds(BaseModel):
    """Acceptance threshold and minimum segment size for one granularity."""

    model_config = ConfigDict(frozen=True)

    confidence_threshold: float = Field(ge=0.0)
    min_messages: int = Field(ge=1)
    min_words: int = Field(ge=0)


GRANULARITY_PRESETS: Mapping[Granularity, GranularityThresholds] = MappingProxyType({
    Granularity.COARSE: GranularityThresholds(confidence_threshold=0.55, min_messages=8, min_words=500),
    Granularity.MEDIUM: GranularityThresholds(confidence_threshold=0.40, min_messages=4, min_words=200),
    Granularity.FINE: GranularityThresholds(confidence_threshold=0.30, min_messages=2, min_words=80),
})


def weights_for(content_type: Union[ContentType, str]) -> Mapping[str, float]:
    """Return the signal weighting appropriate for a content type."""
    if ContentType(content_type) == ContentType.DOCUMENT:
        return DOCUMENT_SIGNAL_WEIGHTS
    return DEFAULT_SIGNAL_WEIGHTS


class SegmentationConfig(BaseModel):
    """
    Immutable configuration for one segmentation run.

    Attributes
    ----------
    granularity : Granularity
        Preset the thresholds were derived from
    signal_weights : dict[str, float]
        Weight per signal name; missing signals weigh 0
    thresholds : GranularityThresholds
        Confidence threshold and minimum segment size; defaults to the
        granularity preset
    window_size : int
        Messages on each side of a boundary used by the shift signals
    tag_prefix : str
        Namespace for generated tags
    """

    model_config = ConfigDict(frozen=True)

    granularity: Granularity = Granularity.MEDIUM
    signal_weights: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_SIGNAL_WEIGHTS))
    thresholds: GranularityThresholds = GRANULARITY_PRESETS[Granularity.MEDIUM]
    window_size: int = Field(default=DEFAULT_WINDOW_SIZE, ge=1)
    tag_prefix: str = DEFAULT_TAG_PREFIX

    @model_validator(mode="before")
    @classmethod
    def _preset_thresholds(cls, data):
        # thresholds follow the granularity preset unless given explicitly
        if isinstance(data, dict) and data.get("thresholds") is None:
            granularity = Granularity(data.get("granularity", Granularity.MEDIUM))
            data = {**data, "thresholds": GRANULARITY_PRESETS[granularity]}
        return data

    @field_validator("signal_weights", mode="before")
    @classmethod
    def _copy_weights(cls, value):
        # Never alias a caller's (or a module-level) mapping
        return dict(value)

    @classmethod
    def for_granularity(
        cls,
        granularity: Union[Granularity, str] = Granularity.MEDIUM,
        content_type: Union[ContentType, str] = ContentType.CHAT,
        tag_prefix: str = DEFAULT_TAG_PREFIX,
        signal_weights: Optional[Mapping[str, float]] = None,
        min_messages: Optional[int] = None,
        min_words: Optional[int] = None,
        window_size: int = DEFAULT_WINDOW_SIZE,
    ) -> "SegmentationConfig":
        """
        Build a configuration from a granularity preset.

        Parameters
        ----------
        granularity : Granularity or str
            coarse, medium or fine
        content_type : ContentType or str
            chat uses the default weights, document the content-shift weighting
        tag_prefix : str
            Namespace for generated tags
        signal_weights : Mapping[str, float], optional
            Explicit weights; overrides the content-type weighting
        min_messages, min_words : int, optional
            Override the preset's minimum segment size

        Returns
        -------
        SegmentationConfig
        """
        granularity = Granularity(granularity)
        preset = GRANULARITY_PRESETS[granularity]
        overrides = {}
        if min_messages is not None:
            overrides["min_messages"] = min_messages
        if min_words is not None:
            overrides["min_words"] = min_words
        thresholds = preset.model_copy(update=overrides) if overrides else preset

        return cls(
            granularity=granularity,
            signal_weights=signal_weights if signal_weights is not None else weights_for(content_type),
            thresholds=thresholds,
            window_size=window_size,
            tag_prefix=tag_prefix,
        )

    def weight(self, signal: str) -> float:
        return float(self.signal_weights.get(signal, 0.0))


def _env_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """
    Runtime settings for the CLI and the LLM backend.

    Resolved from environment variables via ``Settings.from_env()``.
    """

    tag_prefix: str = DEFAULT_TAG_PREFIX
    granularity: Granularity = Granularity.MEDIUM
    llm_provider: str = "ollama"
    ollama_endpoint: str = DEFAULT_OLLAMA_ENDPOINT
    ollama_model: str = ""
    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL
    llm_timeout: float = Field(default=120.0, gt=0)
    debug: bool = False

    @field_validator("llm_provider")
    @classmethod
    def _check_provider(cls, value: str) -> str:
        value = value.lower()
        if value not in ("ollama", "anthropic"):
            raise ValueError(f"Unknown LLM provider: {value}")
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Load settings from ``CHATSPLITTER_*`` environment variables.

        Unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        values = {}
        mapping = {
            "CHATSPLITTER_TAG_PREFIX": "tag_prefix",
            "CHATSPLITTER_GRANULARITY": "granularity",
            "CHATSPLITTER_LLM_PROVIDER": "llm_provider",
            "CHATSPLITTER_OLLAMA_ENDPOINT": "ollama_endpoint",
            "CHATSPLITTER_OLLAMA_MODEL": "ollama_model",
            "CHATSPLITTER_ANTHROPIC_MODEL": "anthropic_model",
            "CHATSPLITTER_LLM_TIMEOUT": "llm_timeout",
        }
        for var, field in mapping.items():
            if env.get(var):
                values[field] = env[var]
        if "CHATSPLITTER_DEBUG" in env:
            values["debug"] = _env_bool(env.get("CHATSPLITTER_DEBUG"))

        settings = cls(**values)
        logger.debug("Loaded settings: %s", settings.model_dump())
        return settings
