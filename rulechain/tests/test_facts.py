"""
Tests for Fact, FactMap and Result.
"""
import dataclasses

import pytest

from chaining import Fact, FactMap, Result


class TestFact:
    """Test the immutable name/value binding."""

    def test_fact_is_immutable(self):
        fact = Fact("a", 1)

        with pytest.raises(dataclasses.FrozenInstanceError):
            fact.value = 2

    def test_facts_with_same_name_and_value_are_equal(self):
        assert Fact("a", 1) == Fact("a", 1)
        assert Fact("a", 1) != Fact("a", 2)


class TestFactMap:
    """Test the name-keyed fact container."""

    def test_put_replaces_by_name(self):
        facts = FactMap()
        facts.put(Fact("a", 1))
        facts.put(Fact("a", 2))

        assert len(facts) == 1
        assert facts.get_value("a") == 2

    def test_unknown_names_are_absent_not_errors(self):
        facts = FactMap()

        assert facts.get("missing") is None
        assert facts.get_value("missing") is None
        assert "missing" not in facts

    def test_put_rejects_non_facts(self):
        with pytest.raises(TypeError):
            FactMap().put(("a", 1))

    def test_seed_from_mapping(self):
        facts = FactMap({"a": 1, "b": "two"})

        assert facts.get("b") == Fact("b", "two")
        assert facts.names() == ["a", "b"]

    def test_values_and_items_keep_insertion_order(self, mixed_facts):
        assert [fact.name for fact in mixed_facts.values()] == ["a", "b", "label", "ratio"]
        assert mixed_facts.items()[0] == ("a", 5)
        assert list(mixed_facts) == ["a", "b", "label", "ratio"]

    def test_of_type_projects_matching_values(self, mixed_facts):
        ints = mixed_facts.of_type(int)

        assert ints.names() == ["a", "b"]
        assert ints.get("a") == Fact("a", 5)

    def test_of_type_is_recomputed_each_call(self, mixed_facts):
        before = mixed_facts.of_type(int)
        mixed_facts.set_value("c", 9)
        after = mixed_facts.of_type(int)

        assert "c" not in before
        assert after.get_value("c") == 9

    def test_remove(self, mixed_facts):
        removed = mixed_facts.remove("a")

        assert removed == Fact("a", 5)
        assert "a" not in mixed_facts
        assert mixed_facts.remove("a") is None


class TestResult:
    """Test the shared result slot."""

    def test_starts_at_default(self):
        assert Result(4.5).value == 4.5
        assert Result().value is None

    def test_set_and_reset(self):
        result = Result("default")
        result.set_value("changed")

        assert result.get_value() == "changed"

        result.reset()
        assert result.value == "default"

    def test_set_default_applies_to_unassigned_value(self):
        result = Result()
        result.set_default(3)

        assert result.value == 3
        assert result.default == 3

    def test_set_default_keeps_assigned_value(self):
        result = Result()
        result.value = "assigned"
        result.set_default(3)

        assert result.value == "assigned"
        result.reset()
        assert result.value == 3
