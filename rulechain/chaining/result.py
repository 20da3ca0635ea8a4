"""
Result slot shared by every rule of a chain.
"""
from typing import Any


class Result:
    """
    Mutable single-value holder with a caller-assignable default.

    Any rule's action may assign it; reset() restores the default
    before a new chain execution.
    """

    def __init__(self, default: Any = None):
        self._default = default
        self._value = default

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, value: Any):
        self._value = value

    @property
    def default(self) -> Any:
        return self._default

    def get_value(self) -> Any:
        return self._value

    def set_value(self, value: Any):
        self._value = value

    def set_default(self, value: Any):
        """Change the default; also applies to the current value if it was never assigned."""
        if self._value is self._default:
            self._value = value
        self._default = value

    def reset(self):
        self._value = self._default

    def __repr__(self) -> str:
        return f"Result(value={self._value!r}, default={self._default!r})"
