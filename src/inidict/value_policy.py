"""Value ownership policies for IniDict.

Every dictionary is bound to exactly one policy, which decides what a
value may be and what happens to it when it is replaced, removed or the
dictionary is destroyed:

- STRING_VALUES (the default): values are strings (or None). Python
  strings are immutable, so the dictionary's owned copy is the string
  itself and releasing it needs no work.
- NESTED_DICT_VALUES: values are IniDict instances (or None). Storing a
  child transfers exclusive ownership of it to the parent entry;
  replacing, removing or destroying that entry destroys the child
  recursively. This is what makes tree-shaped configuration possible.

Policies are singletons; compare them with ``is``.

Examples:
    >>> from inidict import IniDict, NESTED_DICT_VALUES
    >>> root = IniDict(value_policy=NESTED_DICT_VALUES)
    >>> root["section"] = IniDict()
    >>> root.destroy()  # destroys root["section"] as well
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from mixinforge import SingletonMixin

from .exceptions import PolicyViolationError

if TYPE_CHECKING:
    from .dictionary import IniDict


class ValuePolicy(SingletonMixin):
    """Base class for value ownership policies.

    Subclasses define ``name`` and implement ``adopt`` and ``release``.
    """
    name: str = ""

    def adopt(self, owner: IniDict, value: Any) -> Any:
        """Validate a value and take ownership of it on behalf of owner.

        Args:
            owner: Dictionary that is going to store the value.
            value: Value passed to ``set``. None is always accepted.

        Returns:
            Any: The value to store in the entry.
        """
        raise NotImplementedError

    def release(self, value: Any) -> None:
        """Give up ownership of a stored value."""
        raise NotImplementedError

    def check_dump(self) -> None:
        """Raise PolicyViolationError if values cannot be dumped as text."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class StringValuePolicy(ValuePolicy):
    """Values are strings owned by the dictionary."""
    name = "string"

    def adopt(self, owner: IniDict, value: Any) -> str | None:
        if value is None or isinstance(value, str):
            return value
        raise TypeError(
            f"Value must be a str or None, but it is {type(value)} instead.")

    def release(self, value: Any) -> None:
        pass


class NestedDictPolicy(ValuePolicy):
    """Values are child dictionaries exclusively owned by the parent entry."""
    name = "dict"

    def adopt(self, owner: IniDict, value: Any) -> IniDict | None:
        from .dictionary import IniDict

        if value is None:
            return None
        if not isinstance(value, IniDict):
            raise TypeError(
                f"Value must be an IniDict or None, but it is {type(value)} instead.")
        if value.is_destroyed:
            raise PolicyViolationError(self.name, "cannot store a destroyed dictionary")
        if value.owner is not None:
            raise PolicyViolationError(self.name, "dictionary is already owned by another entry")
        ancestor = owner
        while ancestor is not None:
            if ancestor is value:
                raise PolicyViolationError(self.name, "a dictionary cannot own itself or its ancestors")
            ancestor = ancestor.owner
        value._owner = owner
        return value

    def release(self, value: Any) -> None:
        if value is None:
            return
        value._owner = None
        value.destroy()

    def check_dump(self) -> None:
        raise PolicyViolationError(self.name, "only string values can be dumped")


STRING_VALUES = StringValuePolicy()
NESTED_DICT_VALUES = NestedDictPolicy()

_POLICIES_BY_NAME: dict[str, ValuePolicy] = {
    STRING_VALUES.name: STRING_VALUES,
    NESTED_DICT_VALUES.name: NESTED_DICT_VALUES,
}


def get_value_policy(policy: ValuePolicy | str) -> ValuePolicy:
    """Resolve a policy instance or policy name.

    Args:
        policy: A ValuePolicy instance, or one of the names "string", "dict".

    Returns:
        ValuePolicy: The singleton policy.

    Raises:
        ValueError: If the name is unknown.
        TypeError: If policy is neither a ValuePolicy nor a str.
    """
    if isinstance(policy, ValuePolicy):
        return policy
    if isinstance(policy, str):
        try:
            return _POLICIES_BY_NAME[policy]
        except KeyError:
            raise ValueError(
                f"Unknown value policy {policy!r}; expected one of"
                f" {sorted(_POLICIES_BY_NAME)}") from None
    raise TypeError("value_policy must be a ValuePolicy or a policy name")
