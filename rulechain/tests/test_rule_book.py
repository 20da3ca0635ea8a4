"""
Tests for the RuleBook.

Validates ordered chaining, default results and the evaluation trace.
"""
import pytest

from chaining import FactMap, Rule, RuleBook
from binding import given, result, rule, then, when


class TestRuleBook:
    """Test building and running rule books."""

    def test_rules_run_in_insertion_order(self):
        calls = []
        book = RuleBook([
            Rule(name="one").then(lambda facts: calls.append("one")),
            Rule(name="two").then(lambda facts: calls.append("two")),
        ])
        book.add_rule(Rule(name="three").then(lambda facts: calls.append("three")))

        book.run(FactMap())

        assert calls == ["one", "two", "three"]
        assert [r.name for r in book.rules] == ["one", "two", "three"]

    def test_empty_book_returns_default_result(self):
        book = RuleBook(default_result=4.5)

        outcome = book.run(FactMap())

        assert not book.has_rules()
        assert outcome.value == 4.5

    def test_result_is_reset_between_runs(self):
        book = RuleBook(default_result=0)
        book.add_rule(
            Rule()
            .when(lambda facts: facts.get_value("hit") is True)
            .then(lambda facts, res: res.set_value(res.value + 1))
        )

        assert book.run(FactMap({"hit": True})).value == 1
        assert book.run(FactMap({"hit": True})).value == 1
        assert book.run(FactMap({"hit": False})).value == 0

    def test_set_default_result(self):
        book = RuleBook([Rule()])
        book.set_default_result("fallback")

        assert book.run(FactMap()).value == "fallback"

    def test_rule_cannot_be_added_twice(self):
        shared = Rule()
        book = RuleBook([shared])

        with pytest.raises(ValueError):
            book.add_rule(shared)

    def test_facts_are_mutated_in_place(self):
        facts = FactMap({"count": 1})
        book = RuleBook([
            Rule(int).then(lambda visible: facts.set_value("count", visible.get_value("count") + 1)),
            Rule(int).then(lambda visible: facts.set_value("count", visible.get_value("count") * 3)),
        ])

        book.run(facts)

        assert facts.get_value("count") == 6

    def test_explain_reports_trace_and_stop(self):
        def boom(facts):
            raise RuntimeError("kaput")

        book = RuleBook([
            Rule(name="errors").then(boom),
            Rule(name="skipped").when(lambda facts: False),
            Rule(name="stopper").then(lambda facts, res: res.set_value("done")).stop(),
            Rule(name="never"),
        ])

        explanation = book.explain(FactMap())

        assert explanation['result'] == "done"
        assert explanation['total_rules_evaluated'] == 3
        assert explanation['stopped_by'] == "stopper"
        trace = {entry['rule']: entry for entry in explanation['evaluation_trace']}
        assert trace['errors']['error'] == "kaput"
        assert trace['skipped']['fired'] is False
        assert trace['stopper']['actions_run'] == 1


@rule(order=2)
class SecondRule:
    trail: list = given("trail")

    @then
    def mark(self):
        self.trail.append("second")


@rule(order=1)
class FirstRule:
    trail: list = given("trail")

    @when
    def always(self) -> bool:
        return True

    @then
    def mark(self):
        self.trail.append("first")


@rule
class ScoringRule:
    score: int = given("score")
    rating: str = result("unrated")

    @when
    def high(self) -> bool:
        return self.score > 700

    @then
    def rate(self):
        self.rating = "prime"


class TestRuleBookSpecifications:
    """Test rule books built from declarative specifications."""

    def test_from_specifications_orders_by_declared_order(self):
        trail = []
        book = RuleBook.from_specifications([SecondRule, FirstRule])

        book.run(FactMap({"trail": trail}))

        assert [r.name for r in book.rules] == ["FirstRule", "SecondRule"]
        assert trail == ["first"]

    def test_mixed_programmatic_and_declarative_rules(self):
        book = RuleBook(default_result="unrated")
        book.add_rule(Rule(int).then(lambda facts: facts.get("score")))
        book.add_specification(ScoringRule())

        assert book.run(FactMap({"score": 720})).value == "prime"
        assert book.run(FactMap({"score": 500})).value == "unrated"
