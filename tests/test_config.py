"""Tests for engine configuration."""

import pytest
from pydantic import ValidationError

from textanchor.config import (
    CONTAINER_ID_ATTRIBUTES,
    DEFAULT_STRATEGY_ORDER,
    AnchorConfig,
)
from textanchor.models import AnchorStrategy


class TestAnchorConfig:
    """Tests for AnchorConfig."""

    def test_defaults(self) -> None:
        config = AnchorConfig()
        assert config.min_confidence == 0.7
        assert config.max_resolution_ms == 50.0
        assert config.strategy_order == DEFAULT_STRATEGY_ORDER
        assert config.metrics_capacity == 1000
        assert config.context_length == 50
        assert config.container_attributes == CONTAINER_ID_ATTRIBUTES

    def test_from_yaml(self) -> None:
        config = AnchorConfig.from_yaml(
            """
            min_confidence: 0.8
            max_resolution_ms: 100
            strategy_order: [offset, fuzzy]
            """
        )
        assert config.min_confidence == 0.8
        assert config.max_resolution_ms == 100.0
        assert config.strategy_order == (
            AnchorStrategy.OFFSET_BASED,
            AnchorStrategy.FUZZY_MATCH,
        )

    def test_empty_yaml_gives_defaults(self) -> None:
        assert AnchorConfig.from_yaml("") == AnchorConfig()

    def test_from_yaml_file(self, tmp_path) -> None:
        path = tmp_path / "anchors.yaml"
        path.write_text("container_attributes: [data-message-id]\n")
        config = AnchorConfig.from_yaml_file(path)
        assert config.container_attributes == ("data-message-id",)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"min_confidence": 1.5},
            {"max_resolution_ms": -1},
            {"metrics_capacity": 0},
            {"strategy_order": []},
            {"strategy_order": ["path", "path"]},
            {"strategy_order": ["xpath"]},
        ],
    )
    def test_invalid_values(self, overrides) -> None:
        with pytest.raises(ValidationError):
            AnchorConfig(**overrides)
