"""
Configuration for the CineArchive text engine.

All options have sensible defaults. Create a config only
if you need to customize behavior.
"""

import os
from dataclasses import dataclass

from cinearchive.exceptions import ConfigurationError

# Models the correction service is priced for (see cinearchive.service.pricing)
DEFAULT_DETECTION_MODEL = "gpt-4o"
LOW_COST_MODEL = "gpt-4o-mini"


def _check_unit_interval(name: str, value: float) -> None:
    if value < 0.0 or value > 1.0:
        raise ConfigurationError(f"{name} must be between 0.0 and 1.0, got {value}")


@dataclass
class DetectionConfig:
    """
    Configuration for correction detection and validation.

    The default confidence threshold is deliberately strict: the source text
    is historical, archaic Arabic where a false correction costs more than a
    missed one.

    Example:
        >>> config = DetectionConfig(confidence_threshold=0.95)
        >>> result = await detect_corrections(text, service, config)
    """

    # Corrections below this confidence are discarded (inclusive threshold)
    confidence_threshold: float = 0.99

    # Text is truncated to this length before submission
    max_text_length: int = 20000

    # Position resolution windows, in characters
    anchor_radius: int = 100  # how far before the claimed start to look for the word
    anchor_tolerance: int = 200  # how far from the claim an anchored match may land
    search_radius: int = 500  # proximity window around the claimed span

    # Max length difference for "close" text when a position is not found
    length_tolerance: int = 3

    def __post_init__(self):
        """Validate configuration."""
        _check_unit_interval("confidence_threshold", self.confidence_threshold)
        if self.max_text_length < 1:
            raise ConfigurationError(f"max_text_length must be >= 1, got {self.max_text_length}")
        for name in ("anchor_radius", "anchor_tolerance", "search_radius", "length_tolerance"):
            value = getattr(self, name)
            if value < 0:
                raise ConfigurationError(f"{name} must be >= 0, got {value}")

    @classmethod
    def strict(cls) -> "DetectionConfig":
        """Only near-certain corrections survive (the default)."""
        return cls()

    @classmethod
    def lenient(cls) -> "DetectionConfig":
        """Surface more suggestions to reviewers - expect more false positives."""
        return cls(confidence_threshold=0.9)


@dataclass
class DuplicateConfig:
    """
    Similarity bands for duplicate page detection.

    A pair is reported when its similarity reaches similar_threshold and
    tagged with the highest band it reaches.
    """

    exact_threshold: float = 0.95
    near_duplicate_threshold: float = 0.80
    similar_threshold: float = 0.60
    ngram_size: int = 3

    def __post_init__(self):
        """Validate configuration."""
        for name in ("exact_threshold", "near_duplicate_threshold", "similar_threshold"):
            _check_unit_interval(name, getattr(self, name))
        if not (
            self.similar_threshold <= self.near_duplicate_threshold <= self.exact_threshold
        ):
            raise ConfigurationError(
                "Thresholds must be: similar <= near_duplicate <= exact, got "
                f"{self.similar_threshold}, {self.near_duplicate_threshold}, "
                f"{self.exact_threshold}"
            )
        if self.ngram_size < 1:
            raise ConfigurationError(f"ngram_size must be >= 1, got {self.ngram_size}")


@dataclass
class BatchConfig:
    """
    Pacing for batch detection across many documents.

    Documents in a batch are sent concurrently; delay_seconds is slept
    between batches to stay inside the service's rate limit.
    """

    batch_size: int = 3
    delay_seconds: float = 1.0

    def __post_init__(self):
        """Validate configuration."""
        if self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.delay_seconds < 0:
            raise ConfigurationError(f"delay_seconds must be >= 0, got {self.delay_seconds}")

    @classmethod
    def for_model(cls, model: str) -> "BatchConfig":
        """Pacing tuned to a model's rate limits (the low-cost model allows more)."""
        if model == LOW_COST_MODEL:
            return cls(batch_size=5, delay_seconds=0.5)
        return cls(batch_size=3, delay_seconds=1.0)


@dataclass
class ServiceConfig:
    """
    Connection settings for the OpenAI-backed correction service.

    Example:
        >>> config = ServiceConfig.from_env()
        >>> service = create_openai_service(config)
    """

    api_key: str | None = None
    model: str = DEFAULT_DETECTION_MODEL
    temperature: float = 0.1
    max_tokens: int = 16000

    def __post_init__(self):
        """Validate configuration."""
        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError(f"temperature must be between 0.0 and 2.0, got {self.temperature}")
        if self.max_tokens < 1:
            raise ConfigurationError(f"max_tokens must be >= 1, got {self.max_tokens}")

    @classmethod
    def from_env(cls) -> "ServiceConfig":
        """Read OPENAI_API_KEY and CINEARCHIVE_MODEL from the environment."""
        return cls(
            api_key=os.environ.get("OPENAI_API_KEY") or None,
            model=os.environ.get("CINEARCHIVE_MODEL", DEFAULT_DETECTION_MODEL),
        )
