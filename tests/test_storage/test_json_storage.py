"""
JSON 매핑 저장소 / 카테고리 디스크 캐시 테스트
"""

import json

import pytest

from marketmap.models.category import CategoryNode, MappingAttributeEntry, MappingPayload
from marketmap.storage import CategoryCacheStore, JSONMappingStore


@pytest.fixture
def store(tmp_path):
    return JSONMappingStore(str(tmp_path / "mappings"))


@pytest.fixture
def payload():
    return MappingPayload(
        category_id=11,
        attributes=[
            MappingAttributeEntry(attribute_id=100, attribute_value_id=1),
            MappingAttributeEntry(attribute_id=101, attribute_value_id=None),
        ],
    )


class TestJSONMappingStore:
    def test_save_and_get(self, store, payload):
        record = store.save_mapping(1, "P-1", payload)

        assert record["payload"]["categoryId"] == 11
        assert store.get_mapping(1, "P-1")["id"] == record["id"]
        assert JSONMappingStore.payload_of(record) == payload

    def test_persisted_to_file(self, store, payload, tmp_path):
        store.save_mapping(1, "P-1", payload)

        reloaded = JSONMappingStore(str(tmp_path / "mappings"))

        assert reloaded.get_mapping(1, "P-1")["payload"]["attributes"][1] == {
            "attributeId": 101,
            "attributeValueId": None,
        }

    def test_replace_deactivates_previous(self, store, payload):
        first = store.save_mapping(1, "P-1", payload)
        second = store.save_mapping(1, "P-1", MappingPayload(category_id=14))

        assert first["is_active"] is False
        assert store.get_mapping(1, "P-1")["id"] == second["id"]
        assert len(store.list_mappings(1)) == 1

    def test_duplicate_without_replace(self, store, payload):
        store.save_mapping(1, "P-1", payload)

        with pytest.raises(ValueError):
            store.save_mapping(1, "P-1", payload, replace=False)

    def test_store_isolation(self, store, payload):
        store.save_mapping(1, "P-1", payload)

        assert store.get_mapping(2, "P-1") is None
        assert store.list_mappings(2) == []

    def test_delete(self, store, payload):
        store.save_mapping(1, "P-1", payload)

        assert store.delete_mapping(1, "P-1") is True
        assert store.get_mapping(1, "P-1") is None
        assert store.delete_mapping(1, "P-1") is False

    def test_corrupted_file_is_ignored(self, tmp_path):
        path = tmp_path / "mappings"
        path.mkdir()
        (path / "category_mappings.json").write_text("{not json", encoding="utf-8")

        store = JSONMappingStore(str(path))

        assert store.list_mappings(1) == []


class TestCategoryCacheStore:
    def test_round_trip_per_key(self, tmp_path):
        cache = CategoryCacheStore(tmp_path / "categories.json")
        flat = [CategoryNode(id=1, name="Elektronik"), CategoryNode(id=11, name="Telefon", parent_id=1, is_leaf=True)]

        cache.save("123", flat, source="https://a.test")

        data = cache.load("123")
        assert data["flat"] == flat
        assert data["source"] == "https://a.test"
        assert data["fetched_at"] > 0
        assert (tmp_path / "categories_123.json").exists()
        assert cache.load("456") is None

    def test_invalid_file(self, tmp_path):
        cache = CategoryCacheStore(tmp_path / "categories.json")
        (tmp_path / "categories_1.json").write_text(json.dumps({"flat": [{"name": "no id"}]}))

        assert cache.load("1") is None

    def test_empty_list_is_not_cached(self, tmp_path):
        cache = CategoryCacheStore(tmp_path / "categories.json")
        cache.save("1", [])

        assert cache.load("1") is None

    def test_clear(self, tmp_path):
        cache = CategoryCacheStore(tmp_path / "categories.json")
        cache.save("1", [CategoryNode(id=1, name="A")])

        cache.clear("1")

        assert cache.load("1") is None
