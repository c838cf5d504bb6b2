"""Shared configuration for the anchoring engine."""

from __future__ import annotations

from pathlib import Path
from typing import Self

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from textanchor.models import AnchorStrategy

# Minimum similarity for a resolved span to be accepted
DEFAULT_MIN_CONFIDENCE = 0.7

# Wall-clock budget for one resolution, in milliseconds
DEFAULT_MAX_RESOLUTION_MS = 50.0

DEFAULT_STRATEGY_ORDER = (
    AnchorStrategy.PATH_BASED,
    AnchorStrategy.OFFSET_BASED,
    AnchorStrategy.FUZZY_MATCH,
)

# Oldest metric samples are dropped beyond this many entries
METRICS_CAPACITY = 1000

# Characters of context captured on each side of a selection
CONTEXT_LENGTH = 50

# Attributes through which adapters expose a container's logical id
CONTAINER_ID_ATTRIBUTES = ("data-container-id", "data-message-id", "id")


class AnchorConfig(BaseModel):
    """
    Engine configuration.

    Attributes:
        min_confidence: Similarity needed to accept a non-exact span
        max_resolution_ms: Soft wall-clock budget per resolution
        strategy_order: Strategies tried during resolution, in order
        metrics_capacity: Number of metric samples kept
        context_length: Context captured around new selections
        container_attributes: Attributes searched for a container id
    """

    model_config = ConfigDict(frozen=True)

    min_confidence: float = Field(default=DEFAULT_MIN_CONFIDENCE, ge=0.0, le=1.0)
    max_resolution_ms: float = Field(default=DEFAULT_MAX_RESOLUTION_MS, ge=0.0)
    strategy_order: tuple[AnchorStrategy, ...] = DEFAULT_STRATEGY_ORDER
    metrics_capacity: int = Field(default=METRICS_CAPACITY, gt=0)
    context_length: int = Field(default=CONTEXT_LENGTH, gt=0)
    container_attributes: tuple[str, ...] = CONTAINER_ID_ATTRIBUTES

    @field_validator("strategy_order")
    @classmethod
    def _check_strategy_order(
        cls, value: tuple[AnchorStrategy, ...]
    ) -> tuple[AnchorStrategy, ...]:
        if not value:
            raise ValueError("strategy_order must name at least one strategy")
        if len(set(value)) != len(value):
            raise ValueError(f"strategy_order contains duplicates: {list(value)}")
        return value

    @classmethod
    def from_yaml(cls, yaml_text: str) -> Self:
        """
        Load configuration overrides from YAML.

        Example:
            config = AnchorConfig.from_yaml('''
                min_confidence: 0.8
                max_resolution_ms: 100
                strategy_order: [offset, fuzzy]
            ''')
        """
        data = yaml.safe_load(yaml_text) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: str | Path) -> Self:
        """Load configuration overrides from a YAML file."""
        with open(path) as f:
            return cls.from_yaml(f.read())
