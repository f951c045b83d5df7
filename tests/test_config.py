"""
Tests for segmentation configuration and runtime settings.
"""
import pytest
from pydantic import ValidationError

from chatsplitter.core.config import (
    DEFAULT_SIGNAL_WEIGHTS,
    DOCUMENT_SIGNAL_WEIGHTS,
    GRANULARITY_PRESETS,
    REINTRODUCTION,
    SIGNAL_NAMES,
    TRANSITION_PHRASES,
    SegmentationConfig,
    Settings,
    weights_for,
)
from chatsplitter.core.models import ContentType, Granularity


class TestPresets:
    """Tests for the granularity presets and weightings."""

    @pytest.mark.parametrize("granularity, threshold, min_messages, min_words", [
        (Granularity.COARSE, 0.55, 8, 500),
        (Granularity.MEDIUM, 0.40, 4, 200),
        (Granularity.FINE, 0.30, 2, 80),
    ])
    def test_preset_values(self, granularity, threshold, min_messages, min_words):
        preset = GRANULARITY_PRESETS[granularity]
        assert preset.confidence_threshold == threshold
        assert preset.min_messages == min_messages
        assert preset.min_words == min_words

    def test_default_weights_sum_to_one(self):
        assert sum(DEFAULT_SIGNAL_WEIGHTS.values()) == pytest.approx(1.0)
        assert set(DEFAULT_SIGNAL_WEIGHTS) == set(SIGNAL_NAMES)

    def test_document_weights(self):
        assert weights_for("document") is DOCUMENT_SIGNAL_WEIGHTS
        assert weights_for(ContentType.CHAT) is DEFAULT_SIGNAL_WEIGHTS
        assert DOCUMENT_SIGNAL_WEIGHTS[REINTRODUCTION] == 0.0


class TestSegmentationConfig:
    """Tests for SegmentationConfig."""

    def test_defaults_are_medium(self):
        config = SegmentationConfig()
        assert config.granularity == Granularity.MEDIUM
        assert config.thresholds == GRANULARITY_PRESETS[Granularity.MEDIUM]
        assert config.tag_prefix == "ai-chat"

    def test_for_granularity_string(self):
        config = SegmentationConfig.for_granularity("fine")
        assert config.granularity == Granularity.FINE
        assert config.thresholds.confidence_threshold == 0.30

    @pytest.mark.parametrize("granularity", list(Granularity))
    def test_direct_construction_uses_preset(self, granularity):
        config = SegmentationConfig(granularity=granularity)
        assert config.thresholds == GRANULARITY_PRESETS[granularity]

    def test_direct_construction_from_string(self):
        config = SegmentationConfig(granularity="fine")
        assert config.thresholds.confidence_threshold == 0.30
        assert config.thresholds.min_messages == 2

    def test_explicit_thresholds_kept(self):
        coarse = GRANULARITY_PRESETS[Granularity.COARSE]
        config = SegmentationConfig(granularity=Granularity.FINE, thresholds=coarse)
        assert config.thresholds == coarse

    def test_minimum_overrides(self):
        config = SegmentationConfig.for_granularity(Granularity.MEDIUM, min_messages=2, min_words=40)
        assert config.thresholds.min_messages == 2
        assert config.thresholds.min_words == 40
        assert config.thresholds.confidence_threshold == 0.40
        assert GRANULARITY_PRESETS[Granularity.MEDIUM].min_messages == 4

    def test_document_content_type(self):
        config = SegmentationConfig.for_granularity(content_type=ContentType.DOCUMENT)
        assert config.weight(REINTRODUCTION) == 0.0
        assert config.weight(TRANSITION_PHRASES) == 0.05

    def test_explicit_weights_win(self):
        config = SegmentationConfig.for_granularity(
            content_type=ContentType.DOCUMENT, signal_weights={TRANSITION_PHRASES: 1.0}
        )
        assert config.weight(TRANSITION_PHRASES) == 1.0
        assert config.weight(REINTRODUCTION) == 0.0

    def test_weights_are_copied(self):
        weights = {TRANSITION_PHRASES: 0.5}
        config = SegmentationConfig(signal_weights=weights)
        weights[TRANSITION_PHRASES] = 0.9
        assert config.weight(TRANSITION_PHRASES) == 0.5

    def test_frozen(self):
        config = SegmentationConfig()
        with pytest.raises(ValidationError):
            config.tag_prefix = "other"

    def test_unknown_granularity(self):
        with pytest.raises(ValueError):
            SegmentationConfig.for_granularity("extreme")


class TestSettings:
    """Tests for Settings.from_env."""

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.tag_prefix == "ai-chat"
        assert settings.granularity == Granularity.MEDIUM
        assert settings.llm_provider == "ollama"
        assert settings.ollama_endpoint == "http://localhost:11434"
        assert settings.debug is False

    def test_from_environment(self):
        settings = Settings.from_env({
            "CHATSPLITTER_TAG_PREFIX": "notes",
            "CHATSPLITTER_GRANULARITY": "fine",
            "CHATSPLITTER_LLM_PROVIDER": "Anthropic",
            "CHATSPLITTER_OLLAMA_MODEL": "llama3",
            "CHATSPLITTER_LLM_TIMEOUT": "30",
            "CHATSPLITTER_DEBUG": "yes",
        })
        assert settings.tag_prefix == "notes"
        assert settings.granularity == Granularity.FINE
        assert settings.llm_provider == "anthropic"
        assert settings.ollama_model == "llama3"
        assert settings.llm_timeout == 30.0
        assert settings.debug is True

    def test_empty_values_keep_defaults(self):
        settings = Settings.from_env({"CHATSPLITTER_TAG_PREFIX": ""})
        assert settings.tag_prefix == "ai-chat"

    def test_invalid_provider(self):
        with pytest.raises(ValueError):
            Settings.from_env({"CHATSPLITTER_LLM_PROVIDER": "openai"})

    def test_invalid_timeout(self):
        with pytest.raises(ValueError):
            Settings.from_env({"CHATSPLITTER_LLM_TIMEOUT": "0"})
