"""
Tests for relation stores and relation value normalization.
"""
from unittest.mock import MagicMock

import pytest

from formgate import InMemoryRelationStore, RelationConfig, normalize_relation_value
from formgate.relations import is_record


@pytest.fixture
def config(categories):
    return RelationConfig(store=categories, label_field="name")


class TestInMemoryRelationStore:
    def test_find_by_matches_string_identifiers(self, categories):
        assert [c.id for c in categories.find_by("id", ["7", 1])] == [1, 7]

    def test_find_by_keeps_store_order(self, categories):
        assert [c.id for c in categories.find_by("id", [7, 2, 1])] == [1, 2, 7]

    def test_get_and_add(self, categories):
        assert categories.get("2").name == "Music"
        assert categories.get(99) is None

        categories.add({"id": 99, "name": "Toys"})

        assert categories.get(99) == {"id": 99, "name": "Toys"}
        assert len(categories) == 4

    def test_custom_id_field(self):
        store = InMemoryRelationStore([{"code": "eu"}, {"code": "us"}], id_field="code")

        assert store.get("us") == {"code": "us"}


class TestRelationConfig:
    def test_identify_record_and_scalar(self, config, categories):
        assert config.identify(categories.get(7)) == 7
        assert config.identify({"id": 3}) == 3
        assert config.identify("7") == "7"

    def test_label(self, config, categories):
        assert config.label(categories.get(1)) == "Books"
        assert RelationConfig(store=categories).label("x") == "x"

    def test_is_record(self, categories):
        assert is_record(categories.get(1)) is True
        assert is_record({"id": 1}) is True
        assert is_record(7) is False
        assert is_record("7") is False
        assert is_record(None) is False


class TestNormalizeRelationValue:
    """Tests for raw identifier to record conversion."""

    def test_single_identifier_resolved(self, config, categories):
        assert normalize_relation_value("7", config) == [categories.get(7)]

    def test_identifier_list_resolved(self, config, categories):
        records = normalize_relation_value(["1", "7"], config)

        assert records == [categories.get(1), categories.get(7)]

    @pytest.mark.parametrize("value", [None, "", [], ["", None]])
    def test_empty_values(self, config, value):
        assert normalize_relation_value(value, config) == []

    def test_single_record_wrapped(self, config, categories):
        record = categories.get(2)

        assert normalize_relation_value(record, config) == [record]

    def test_record_list_returned_unchanged(self, categories):
        store = MagicMock()
        config = RelationConfig(store=store)
        records = [categories.get(1), categories.get(2)]

        assert normalize_relation_value(records, config) == records
        store.find_by.assert_not_called()

    def test_unknown_identifiers_dropped(self, config, categories):
        assert normalize_relation_value(["7", "404"], config) == [categories.get(7)]
        assert normalize_relation_value("404", config) == []

    def test_lookup_uses_configured_id_field(self):
        store = MagicMock()
        store.find_by.return_value = []
        config = RelationConfig(store=store, id_field="slug")

        normalize_relation_value(["books"], config)

        store.find_by.assert_called_once_with("slug", ["books"])
