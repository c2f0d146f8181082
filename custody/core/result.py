"""Ok / Err — outcome values for ledger operations.

A ledger call that can be refused returns Ok(value) or Err(error) and never
raises for a business rule. Callers branch with ``match``:

    match ledger.withdraw(alice, 40):
        case Ok(receipt): ...
        case Err(InsufficientBalanceError() as e): ...

unwrap() and unwrap_err() are for tests and process boundaries, where an
unexpected variant is a bug and may raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, final


@final
@dataclass(frozen=True, slots=True)
class Ok[T]:
    """The operation was applied; value is its receipt."""

    value: T


@final
@dataclass(frozen=True, slots=True)
class Err[E]:
    """The operation was refused; error says why. State is unchanged."""

    error: E


type Result[T, E] = Ok[T] | Err[E]


def unwrap[T](result: Ok[T] | Err[Any]) -> T:
    """Value of an Ok. RuntimeError on Err."""
    match result:
        case Ok(value):
            return value
        case Err(error):
            raise RuntimeError(f"unwrap on Err: {error}")
        case _:
            raise TypeError(f"Expected Ok or Err, got {type(result).__name__}")


def unwrap_err[E](result: Ok[Any] | Err[E]) -> E:
    """Error of an Err. RuntimeError on Ok."""
    match result:
        case Err(error):
            return error
        case Ok(value):
            raise RuntimeError(f"unwrap_err on Ok: {value}")
        case _:
            raise TypeError(f"Expected Ok or Err, got {type(result).__name__}")
