"""
Facts and fact maps shared by the rules of a chain.

A Fact is an immutable name/value binding. A FactMap is the ordered,
name-keyed container every rule in a chain reads from and writes to.

Design decisions:
- Re-putting a name replaces the prior Fact, it never merges
- Lookups of unknown names return None instead of raising
- Type-filtered views are rebuilt on every call, never cached
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Iterable, Iterator, List, Mapping, Optional, TypeVar, Union


T = TypeVar("T")


@dataclass(frozen=True)
class Fact(Generic[T]):
    """A named value available to rules."""
    name: str
    value: T


class FactMap:
    """
    Ordered mapping of fact name -> Fact.

    Insertion order is kept but carries no meaning; only lookup by name
    and type-filtered enumeration matter to the engine.
    """

    def __init__(self, facts: Union[Iterable[Fact], Mapping[str, Any], None] = None):
        """
        Initialize the fact map.

        Args:
            facts: Optional Facts, or a mapping of name -> value, to seed the map
        """
        self._facts: Dict[str, Fact] = {}

        if isinstance(facts, Mapping):
            for name, value in facts.items():
                self.set_value(name, value)
        elif facts is not None:
            for fact in facts:
                self.put(fact)

    def put(self, fact: Fact) -> Fact:
        """Insert or replace a fact by name."""
        if not isinstance(fact, Fact):
            raise TypeError(f"Expected a Fact, got {type(fact).__name__}")
        self._facts[fact.name] = fact
        return fact

    def set_value(self, name: str, value: Any) -> Fact:
        """Shorthand for put(Fact(name, value))."""
        return self.put(Fact(name, value))

    def get(self, name: str) -> Optional[Fact]:
        return self._facts.get(name)

    def get_value(self, name: str) -> Any:
        fact = self._facts.get(name)
        return fact.value if fact is not None else None

    def remove(self, name: str) -> Optional[Fact]:
        return self._facts.pop(name, None)

    def values(self) -> List[Fact]:
        return list(self._facts.values())

    def names(self) -> List[str]:
        return list(self._facts.keys())

    def items(self) -> List[tuple]:
        return [(name, fact.value) for name, fact in self._facts.items()]

    def filter(self, accepts: Callable[[Any], bool]) -> "FactMap":
        """
        Build a new FactMap holding only facts whose value is accepted.

        Args:
            accepts: Predicate applied to each fact's value

        Returns:
            New FactMap keyed by the same names
        """
        return FactMap(fact for fact in self._facts.values() if accepts(fact.value))

    def of_type(self, fact_type: type) -> "FactMap":
        """Project the facts whose value is an instance of fact_type."""
        return self.filter(lambda value: isinstance(value, fact_type))

    def __contains__(self, name: object) -> bool:
        return name in self._facts

    def __len__(self) -> int:
        return len(self._facts)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._facts))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FactMap):
            return NotImplemented
        return self._facts == other._facts

    def __repr__(self) -> str:
        return f"FactMap({dict(self.items())!r})"
