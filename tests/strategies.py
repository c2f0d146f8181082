"""Hypothesis strategies for ledger inputs.

Strategies are composable: operation sequences are built from principals
and amounts.
"""

from __future__ import annotations

from hypothesis import strategies as st
from hypothesis.strategies import SearchStrategy

from custody.core.types import Principal

PRINCIPAL_NAMES = ("alice", "bob", "carol", "dave")


def principals() -> SearchStrategy[Principal]:
    """A small pool so operations collide on the same accounts."""
    return st.sampled_from(PRINCIPAL_NAMES).map(lambda name: Principal(value=name))


def amounts(max_value: int = 500) -> SearchStrategy[int]:
    """Strictly positive amounts."""
    return st.integers(min_value=1, max_value=max_value)


def limits(max_value: int = 2000) -> SearchStrategy[int]:
    """Non-negative limits; zero is a legal configuration."""
    return st.integers(min_value=0, max_value=max_value)


def operations() -> SearchStrategy[tuple[str, Principal, int]]:
    """(kind, principal, amount) where kind is "deposit" or "withdraw"."""
    return st.tuples(
        st.sampled_from(("deposit", "withdraw")),
        principals(),
        st.integers(min_value=0, max_value=600),
    )
