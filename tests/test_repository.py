"""
Test the synchronous repository facade over in-memory and mocked collections.
"""

from unittest.mock import Mock

import pytest

from docmodel import (
    CollectionHandle, DuplicateKeyError, MappingConfig, MemoryCollection, MissingIdentifierValue,
    NoIdentifierField, Repository, UnknownField, field,
)
from tests.entities import Jedi, LogEntry, Profile, Rank, User

@pytest.fixture
def users(users_collection, mapping):
    return Repository(User, users_collection, mapping)

@pytest.fixture
def jedis(jedis_collection, mapping):
    repository = Repository(Jedi, jedis_collection, mapping)
    repository.insert_many([
        Jedi(id="yoda", name="Yoda", light_saber_color="Green", rank=Rank.MASTER, age=900),
        Jedi(id="luke", name="Luke", light_saber_color="Green", rank=Rank.KNIGHT, age=53),
        Jedi(id="obi", name="Obi-Wan", light_saber_color="Blue", rank=Rank.MASTER, age=57),
        Jedi(id="anakin", name="Anakin", light_saber_color="Blue", is_active=False, age=45),
    ])
    return repository

@pytest.fixture
def handle():
    return Mock(spec=CollectionHandle)

class TestUserScenario:
    """Insert a user and read it back every way the repository offers."""

    def test_insert_stores_mapped_document(self, users, users_collection):
        joel = User(id="1", name="Joel", age=25)

        assert users.insert(joel) is joel
        assert list(users_collection.find({})) == [{"_id": "1", "first_name": "Joel", "age": 25}]

    def test_read_back(self, users):
        joel = User(id="1", name="Joel", age=25)
        users.insert(joel)

        assert users.find_one(field("name") == "Joel") == joel
        assert users.find_by_id("1") == joel
        assert users.find(field("age") >= 18) == [joel]
        assert users.find_all() == [joel]

    def test_absent_results(self, users):
        assert users.find_one(field("name") == "Nobody") is None
        assert users.find_by_id("missing") is None
        assert users.find(field("age") > 0) == []

    def test_exact_handle_calls(self, handle, mapping):
        handle.find.return_value = iter([{"_id": "1", "first_name": "Joel", "age": 25}])
        users = Repository(User, handle, mapping)

        users.insert(User(id="1", name="Joel", age=25))
        found = users.find_one(field("name") == "Joel")

        handle.insert_one.assert_called_once_with({"_id": "1", "first_name": "Joel", "age": 25})
        handle.find.assert_called_once_with({"first_name": "Joel"})
        assert found == User(id="1", name="Joel", age=25)

class TestJediQueries:
    def test_conjunction(self, jedis):
        expression = (
            (field("is_active") == True)
            & (field("light_saber_color") == "Green")
            & (field("age") > 60)
        )
        assert [jedi.name for jedi in jedis.find(expression)] == ["Yoda"]

    def test_disjunction(self, jedis):
        expression = (field("age") > 800) | (field("is_active") == False)
        assert sorted(jedi.name for jedi in jedis.find(expression)) == ["Anakin", "Yoda"]

    def test_in_and_regex(self, jedis):
        in_result = jedis.find(field("name").in_(["Luke", "Obi-Wan", "Rey"]))
        regex_result = jedis.find(field("name").regex("^an"))

        assert sorted(jedi.id for jedi in in_result) == ["luke", "obi"]
        assert [jedi.id for jedi in regex_result] == ["anakin"]

    def test_enum_filter(self, jedis):
        masters = jedis.find(field("rank") == Rank.MASTER)
        assert sorted(jedi.name for jedi in masters) == ["Obi-Wan", "Yoda"]
        assert all(jedi.rank is Rank.MASTER for jedi in masters)

    def test_not_equal_matches_missing(self, jedis):
        """Anakin has no rank stored and still satisfies rank != master"""
        result = jedis.find(field("rank") != Rank.MASTER)
        assert sorted(jedi.name for jedi in result) == ["Anakin", "Luke"]

class TestWrites:
    def test_insert_many_empty_makes_no_call(self, handle, mapping):
        jedis = Repository(Jedi, handle, mapping)

        assert jedis.insert_many([]) == []
        handle.insert_many.assert_not_called()

    def test_insert_many_single_call(self, handle, mapping):
        jedis = Repository(Jedi, handle, mapping)
        batch = [
            Jedi(id="rey", name="Rey", light_saber_color="Yellow", age=19),
            Jedi(id="kanan", name="Kanan", light_saber_color="Blue", age=31),
        ]

        assert jedis.insert_many(iter(batch)) == batch
        handle.insert_many.assert_called_once()
        assert [document["_id"] for document in handle.insert_many.call_args[0][0]] == ["rey", "kanan"]

    def test_upsert_replaces_existing(self, jedis, jedis_collection):
        older_luke = Jedi(id="luke", name="Luke", light_saber_color="Green", rank=Rank.MASTER, age=60)

        jedis.upsert(field("id") == "luke", older_luke)

        assert jedis.find_by_id("luke") == older_luke
        assert len(jedis_collection) == 4

    def test_upsert_creates_missing(self, jedis, jedis_collection):
        rey = Jedi(id="rey", name="Rey", light_saber_color="Yellow", age=19)

        jedis.upsert(field("name") == "Rey", rey)

        assert jedis.find_by_id("rey") == rey
        assert len(jedis_collection) == 5

    def test_upsert_is_sparse(self, jedis, jedis_collection):
        """Null fields are not written, so the stored document drops them"""
        jedis.upsert(field("id") == "obi", Jedi(id="obi", name="Ben", light_saber_color="Blue", age=57))

        stored = next(jedis_collection.find({"_id": "obi"}))
        assert "rank" not in stored
        assert stored["name"] == "Ben"

    def test_none_field_round_trip(self, mapping):
        """An entity written with a None field reads back unchanged"""
        collection = MemoryCollection("profiles")
        profiles = Repository(Profile, collection, mapping)
        anonymous = Profile(id="1", nickname=None)

        profiles.insert(anonymous)

        assert list(collection.find({})) == [{"_id": "1"}]
        assert profiles.find_by_id("1") == anonymous
        assert profiles.find(field("nickname") == None) == [anonymous]

    def test_delete_one(self, jedis):
        assert jedis.delete_one(field("name") == "Anakin") is True
        assert jedis.delete_one(field("name") == "Anakin") is False
        assert jedis.find_by_id("anakin") is None

    def test_duplicate_insert(self, users):
        users.insert(User(id="1", name="Joel", age=25))

        with pytest.raises(DuplicateKeyError):
            users.insert(User(id="1", name="Ellie", age=14))
        assert users.get_metrics()["failed_operations"] == 1

    def test_wrong_entity_type(self, users):
        with pytest.raises(TypeError):
            users.insert(LogEntry(message="hello"))

class TestIdentifierPolicy:
    def test_missing_identifier_value_rejected(self, handle, mapping):
        jedis = Repository(Jedi, handle, mapping)
        rey = Jedi(name="Rey", light_saber_color="Yellow", age=19)

        with pytest.raises(MissingIdentifierValue):
            jedis.insert(rey)
        with pytest.raises(MissingIdentifierValue):
            jedis.upsert(field("name") == "Rey", rey)
        handle.insert_one.assert_not_called()
        handle.replace_one_upsert.assert_not_called()

    def test_empty_identifier_rejected(self, handle, mapping):
        with pytest.raises(MissingIdentifierValue):
            Repository(User, handle, mapping).insert(User(id="", name="Joel", age=25))

    def test_store_generated_identifier(self, jedis_collection):
        jedis = Repository(Jedi, jedis_collection, MappingConfig(require_identifier=False))

        jedis.insert(Jedi(name="Rey", light_saber_color="Yellow", age=19))
        (rey,) = jedis.find(field("name") == "Rey")

        assert isinstance(rey.id, str)
        assert len(rey.id) == 24
        assert jedis.find_by_id(rey.id) is None, "Generated ids are stored as ObjectId"

    def test_find_by_id_without_identifier(self, handle, mapping):
        logs = Repository(LogEntry, handle, mapping)

        with pytest.raises(NoIdentifierField):
            logs.find_by_id("1")
        handle.find.assert_not_called()

    def test_upsert_without_identifier(self, handle, mapping):
        logs = Repository(LogEntry, handle, mapping)

        with pytest.raises(NoIdentifierField):
            logs.upsert(field("message") == "boot", LogEntry(message="boot"))
        handle.replace_one_upsert.assert_not_called()

    def test_identifier_free_types_still_insert_and_find(self, mapping):
        logs = Repository(LogEntry, MemoryCollection("logs"), mapping)
        logs.insert(LogEntry(message="boot"))

        assert logs.find(field("level") == "info") == [LogEntry(message="boot")]

class TestConfiguration:
    def test_strict_fields(self, users_collection, strict_mapping):
        users = Repository(User, users_collection, strict_mapping)

        with pytest.raises(UnknownField):
            users.find(field("nickname") == "J")
        assert users.find(field("name") == "Joel") == []

    def test_defaults_to_global_mapping(self, users_collection):
        users = Repository(User, users_collection)
        assert users.config.require_identifier is True
        assert users.collection_name == "users"

class TestMetrics:
    def test_operation_counts(self, users):
        users.insert(User(id="1", name="Joel", age=25))
        users.find_all()
        with pytest.raises(UnknownField):
            Repository(User, users.collection, MappingConfig(strict_fields=True)).find(field("x") == 1)

        metrics = users.get_metrics()
        assert metrics["total_operations"] == 2
        assert metrics["successful_operations"] == 2
        assert metrics["success_rate"] == 1.0
        assert metrics["average_response_time_ms"] >= 0

    def test_handle_errors_propagate_and_count(self, handle, mapping):
        handle.find.side_effect = ConnectionError("store unreachable")
        users = Repository(User, handle, mapping)

        with pytest.raises(ConnectionError):
            users.find_all()
        assert users.metrics.failed_operations == 1
        assert users.metrics.successful_operations == 0
