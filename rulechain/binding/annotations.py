"""
Tag vocabulary for declarative rule specifications.

A rule specification is a plain class marked with @rule. Fields bound to
facts use given("name"), the field holding the chain's output uses
result(), the condition method is tagged @when and action methods @then:

    @rule(order=1)
    class CreditScoreRule:
        applicant: Applicant = given("applicant")
        rate: float = result()

        @when
        def is_low_score(self) -> bool:
            return self.applicant.credit_score < 600

        @then
        def raise_rate(self):
            self.rate = self.rate * 4
            return RuleState.BREAK

The @rule decorator reads the tags once, at class creation, into a
RuleSpecification registration table stored on the class. The adapter
works from that table only.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple
import inspect
import logging
import typing


logger = logging.getLogger(__name__)

SPEC_ATTRIBUTE = "__rule_spec__"
_TAG_ATTRIBUTE = "__rule_tag__"
_WHEN = "when"
_THEN = "then"


class RuleSpecificationError(TypeError):
    """Raised when an object handed to the engine is not a rule specification."""
    pass


class GivenField:
    """Class-level placeholder for a field bound to the fact called fact_name."""

    def __init__(self, fact_name: str):
        self.fact_name = fact_name

    def __repr__(self) -> str:
        return f"given({self.fact_name!r})"


class ResultField:
    """Class-level placeholder for the field copied into the chain's Result."""

    def __init__(self, default: Any = None):
        self.default = default

    def __repr__(self) -> str:
        return f"result({self.default!r})"


@dataclass(frozen=True)
class GivenBinding:
    """One given-field entry of the registration table."""
    attribute: str
    fact_name: str
    declared_type: Any = Any


@dataclass(frozen=True)
class RuleSpecification:
    """
    Registration table built by @rule.

    Holds the names of the tagged members; resolving them to callables
    and values is the adapter's job.
    """
    name: str
    order: int = 0
    when_method: Optional[str] = None
    then_methods: Tuple[str, ...] = ()
    result_field: Optional[str] = None
    given_fields: Tuple[GivenBinding, ...] = field(default_factory=tuple)


def given(fact_name: str) -> Any:
    """Bind the annotated field to the fact named fact_name."""
    return GivenField(fact_name)


def result(default: Any = None) -> Any:
    """Mark the annotated field as the one copied into the chain's Result."""
    return ResultField(default)


def when(func: Callable) -> Callable:
    """Tag a method as the rule's condition. It must return a bool."""
    setattr(func, _TAG_ATTRIBUTE, _WHEN)
    return func


def then(func: Callable) -> Callable:
    """Tag a method as a rule action. Returning RuleState.BREAK stops the chain."""
    setattr(func, _TAG_ATTRIBUTE, _THEN)
    return func


def rule(cls: Optional[type] = None, *, name: Optional[str] = None, order: int = 0):
    """
    Mark a class as a rule specification.

    Usable bare (@rule) or with arguments (@rule(name="...", order=2)).
    Lower order values run earlier when a RuleBook is built from
    specifications.
    """
    def decorate(klass: type) -> type:
        spec = _build_specification(klass, name or klass.__name__, order)
        setattr(klass, SPEC_ATTRIBUTE, spec)

        # Placeholders become ordinary class-level defaults
        for binding in spec.given_fields:
            if isinstance(klass.__dict__.get(binding.attribute), GivenField):
                setattr(klass, binding.attribute, None)
        if spec.result_field and isinstance(klass.__dict__.get(spec.result_field), ResultField):
            setattr(klass, spec.result_field, klass.__dict__[spec.result_field].default)

        logger.debug(
            f"Registered rule specification {spec.name}: "
            f"{len(spec.given_fields)} given, {len(spec.then_methods)} then"
        )
        return klass

    if cls is not None:
        return decorate(cls)
    return decorate


def is_rule_specification(obj: Any) -> bool:
    klass = obj if isinstance(obj, type) else type(obj)
    return isinstance(getattr(klass, SPEC_ATTRIBUTE, None), RuleSpecification)


def specification_of(obj: Any) -> RuleSpecification:
    """
    Return the registration table of a rule specification (class or instance).

    Raises:
        RuleSpecificationError: If obj's class isn't marked with @rule
    """
    klass = obj if isinstance(obj, type) else type(obj)
    spec = getattr(klass, SPEC_ATTRIBUTE, None)
    if not isinstance(spec, RuleSpecification):
        raise RuleSpecificationError(f"{klass.__qualname__} is not a rule; missing @rule marker")
    return spec


def _build_specification(klass: type, name: str, order: int) -> RuleSpecification:
    """Collect tagged members, base classes first, in definition order."""
    hints = _type_hints(klass)
    givens: Dict[str, GivenBinding] = {}
    result_field = None
    when_candidates = []
    then_methods: Dict[str, None] = {}

    for base in reversed(klass.__mro__):
        if base is object:
            continue

        inherited = base.__dict__.get(SPEC_ATTRIBUTE)
        if isinstance(inherited, RuleSpecification):
            for binding in inherited.given_fields:
                givens[binding.attribute] = binding
            result_field = inherited.result_field or result_field

        for attribute, value in base.__dict__.items():
            if isinstance(value, GivenField):
                givens[attribute] = GivenBinding(attribute, value.fact_name, hints.get(attribute, Any))
            elif isinstance(value, ResultField):
                result_field = attribute
            elif inspect.isfunction(value):
                tag = getattr(value, _TAG_ATTRIBUTE, None)
                if tag == _WHEN:
                    when_candidates.append((attribute, value))
                elif tag == _THEN:
                    then_methods.pop(attribute, None)
                    then_methods[attribute] = None
                elif attribute in then_methods:
                    # Overridden without the tag
                    del then_methods[attribute]

    when_method = next(
        (attribute for attribute, func in when_candidates if _returns_bool(func)),
        None
    )

    return RuleSpecification(
        name=name,
        order=order,
        when_method=when_method,
        then_methods=tuple(then_methods),
        result_field=result_field,
        given_fields=tuple(givens.values())
    )


def _type_hints(klass: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(klass)
    except Exception as e:
        logger.warning(f"Could not resolve annotations of {klass.__qualname__}: {e}")
        hints: Dict[str, Any] = {}
        for base in reversed(klass.__mro__):
            hints.update(getattr(base, "__annotations__", None) or {})
        return hints


def _returns_bool(func: Callable) -> bool:
    """A @when method qualifies unless it declares a non-bool return type."""
    try:
        annotation = typing.get_type_hints(func).get("return", inspect.Signature.empty)
    except Exception:
        annotation = func.__annotations__.get("return", inspect.Signature.empty)
    return annotation in (inspect.Signature.empty, bool, "bool")
