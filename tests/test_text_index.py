"""Tests for the weighted text index."""

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from storefront.core.config import settings
from storefront.models.product import Product
from storefront.services.text_index import (
    TEXT_INDEX_WEIGHTS,
    PostgresWeightedTextIndex,
    get_text_index,
)


class TestPostgresWeightedTextIndex:
    def test_score_weights_every_field(self) -> None:
        score = PostgresWeightedTextIndex().score("red dress")
        sql = str(select(Product.id, score).compile(dialect=postgresql.dialect()))
        assert sql.count("ts_rank(to_tsvector") == len(TEXT_INDEX_WEIGHTS)
        assert "string_agg" in sql

    def test_weights_rank_name_highest(self) -> None:
        assert max(TEXT_INDEX_WEIGHTS, key=TEXT_INDEX_WEIGHTS.__getitem__) == "name"
        assert min(TEXT_INDEX_WEIGHTS, key=TEXT_INDEX_WEIGHTS.__getitem__) == "description"


class TestGetTextIndex:
    def test_disabled_by_default(self) -> None:
        assert get_text_index("postgresql") is None

    def test_enabled_only_on_postgres(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "text_index_enabled", True)
        assert isinstance(get_text_index("postgresql"), PostgresWeightedTextIndex)
        assert get_text_index("sqlite") is None
