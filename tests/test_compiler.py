"""
Test filter compilation into query documents.
"""

import pytest

from docmodel import (
    And, CompileError, Eq, FilterCompiler, In, Or, Regex, UnknownField,
    compile_filter, describe, field,
)
from tests.entities import Jedi, Rank, User

@pytest.fixture
def users():
    return describe(User)

@pytest.fixture
def jedis():
    return describe(Jedi)

class TestShapes:
    """Each filter variant compiles to its query document shape."""

    def test_equality(self, users):
        assert compile_filter(field("age") == 25, users) == {"age": 25}

    @pytest.mark.parametrize("expression,operator", [
        (field("age") != 3, "$ne"),
        (field("age") > 3, "$gt"),
        (field("age") >= 3, "$gte"),
        (field("age") < 3, "$lt"),
        (field("age") <= 3, "$lte"),
    ])
    def test_comparisons(self, users, expression, operator):
        assert compile_filter(expression, users) == {"age": {operator: 3}}

    def test_in(self, users):
        assert compile_filter(In("age", (25, 30)), users) == {"age": {"$in": [25, 30]}}

    def test_regex(self, users):
        assert compile_filter(Regex("name", "^jo"), users) == {
            "first_name": {"$regex": "^jo", "$options": "i"},
        }

    def test_regex_options(self, users):
        compiled = compile_filter(field("name").regex("^Jo", ""), users)
        assert compiled == {"first_name": {"$regex": "^Jo", "$options": ""}}

    def test_or(self, users):
        expression = (field("age") < 18) | (field("age") > 65)
        assert compile_filter(expression, users) == {
            "$or": [{"age": {"$lt": 18}}, {"age": {"$gt": 65}}],
        }

    def test_enum_values_compile_to_their_value(self, jedis):
        assert compile_filter(field("rank") == Rank.MASTER, jedis) == {"rank": "master"}
        assert compile_filter(field("rank").in_([Rank.KNIGHT]), jedis) == {"rank": {"$in": ["knight"]}}

class TestNameResolution:
    def test_renamed_field(self, users):
        assert compile_filter(Eq("name", "Joel"), users) == {"first_name": "Joel"}

    def test_identifier(self, users):
        assert compile_filter(field("id") == "1", users) == {"_id": "1"}

    def test_unknown_names_pass_through(self, users):
        assert compile_filter(Eq("nickname", "J"), users) == {"nickname": "J"}

    def test_stored_names_pass_through(self, users):
        assert compile_filter(Eq("_id", "1"), users) == {"_id": "1"}
        assert compile_filter(Eq("first_name", "Joel"), users) == {"first_name": "Joel"}

    def test_strict_mode_rejects_unknown_names(self, users):
        with pytest.raises(UnknownField) as exc_info:
            compile_filter(Eq("nickname", "J"), users, strict=True)
        assert exc_info.value.field_name == "nickname"

    def test_strict_mode_accepts_declared_names(self, users):
        compiler = FilterCompiler(users, strict=True)

        assert compiler.compile(Eq("name", "Joel")) == {"first_name": "Joel"}
        assert compiler.compile(Eq("_id", "1")) == {"_id": "1"}

    def test_strict_mode_checks_nested_leaves(self, users):
        expression = (field("age") > 1) & ((field("name") == "Joel") | (field("nick") == "J"))
        with pytest.raises(UnknownField):
            compile_filter(expression, users, strict=True)

class TestNesting:
    """Conjunction chains keep their two-child structure."""

    def test_chained_conjunction(self, jedis):
        expression = (
            (field("is_active") == True)
            & (field("light_saber_color") == "Green")
            & (field("age") > 40)
        )

        assert compile_filter(expression, jedis) == {
            "$and": [
                {"$and": [{"is_active": True}, {"lightSaberColor": "Green"}]},
                {"age": {"$gt": 40}},
            ],
        }

    def test_right_nested_conjunction(self, jedis):
        a, b, c = Eq("name", "Yoda"), Eq("age", 900), Eq("is_active", True)
        assert compile_filter(And((a, And((b, c)))), jedis) == {
            "$and": [{"name": "Yoda"}, {"$and": [{"age": 900}, {"is_active": True}]}],
        }

    def test_mixed_or_and(self, jedis):
        expression = Or((Eq("name", "Rey"), Eq("name", "Luke"))) & (field("age") < 60)
        assert compile_filter(expression, jedis) == {
            "$and": [{"$or": [{"name": "Rey"}, {"name": "Luke"}]}, {"age": {"$lt": 60}}],
        }

def test_non_filter_is_a_compile_error(users):
    with pytest.raises(CompileError):
        FilterCompiler(users).compile({"age": 25})
