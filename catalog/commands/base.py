"""Command abstraction: a unit of work that can be validated, executed and undone."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")


class Command(ABC, Generic[T]):
    """A mutation with a captured compensating action.

    Contract:
    - ``is_valid()`` checks cheap preconditions and never mutates state.
    - ``execute()`` checks the remaining preconditions, captures the prior state of
      the target, performs the mutation and returns the new state. Failures raise
      ``CommandError``.
    - ``undo()`` reverses a successful ``execute()`` from the captured state. Before
      ``execute()``, or after a failed one, it does nothing.
    - ``describe()`` is an audit line: command name, target and actor.

    Instances are built per call and discarded after use.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    def is_valid(self) -> bool:
        return True

    @abstractmethod
    def execute(self) -> T:
        ...

    @abstractmethod
    def undo(self) -> None:
        ...

    @abstractmethod
    def describe(self) -> str:
        ...

    def __repr__(self) -> str:
        return f"<{self.name}: {self.describe()}>"
