"""
Denomination allocation for cash withdrawals.

``allocate`` maps a requested amount to a note combination the ATM can hand
out. A greedy pass is tried first. When it leaves a remainder, a bounded
search walks the counts of the two largest notes downward from their greedy
values; for each pair the residual is filled with 200s and then 100s.

Counts of the two largest notes never go above what the greedy pass took, so
some feasible mixes are not found. For example, with one 2000, one 500, eight
200 and no 100 notes, 2100 is reported infeasible although 500 + 8 x 200 works.
"""

import itertools
import logging
from typing import List, NamedTuple, Optional

from .exceptions import InvalidAmountError
from .models import DENOMINATIONS, NoteCounts, NoteInventory


logger = logging.getLogger(__name__)

SMALLEST_NOTE = DENOMINATIONS[-1]
SEARCHED_NOTES = DENOMINATIONS[:2]
FILL_NOTES = DENOMINATIONS[2:]


class Allocation(NamedTuple):
    """Notes chosen for an amount, and whether they sum to it exactly."""

    combination: NoteCounts
    feasible: bool


def _take(amount: int, denominations, inventory: NoteInventory) -> List[int]:
    counts = []
    for denomination in denominations:
        use = min(amount // denomination, inventory.count(denomination))
        counts.append(use)
        amount -= use * denomination
    return counts


def greedy_counts(amount: int, inventory: NoteInventory) -> List[int]:
    """Take as many of each note as fits, largest first."""
    return _take(amount, DENOMINATIONS, inventory)


def _fill(residual: int, inventory: NoteInventory) -> Optional[List[int]]:
    """Cover the residual with the smaller notes, or None if it cannot be done."""
    counts = _take(residual, FILL_NOTES, inventory)
    if sum(count * denomination for count, denomination in zip(counts, FILL_NOTES)) != residual:
        return None
    return counts


def allocate(amount: int, inventory: NoteInventory) -> Allocation:
    """
    Choose notes for ``amount`` from ``inventory``.

    Args:
        amount: Positive multiple of 100
        inventory: Notes currently available

    Returns:
        Allocation whose combination sums to ``amount`` when ``feasible``;
        otherwise the greedy breakdown with ``feasible`` set to False

    Raises:
        InvalidAmountError: If ``amount`` is not a positive multiple of 100
    """
    if amount <= 0 or amount % SMALLEST_NOTE != 0:
        raise InvalidAmountError(f"Amount must be a positive multiple of {SMALLEST_NOTE}")

    greedy = greedy_counts(amount, inventory)
    if NoteCounts(*greedy).total == amount:
        return Allocation(NoteCounts(*greedy), True)

    logger.debug(f"Greedy allocation for {amount} left a remainder, searching")

    # Outer loop over 2000s, inner over 500s, both descending
    ranges = [range(greedy[index], -1, -1) for index in range(len(SEARCHED_NOTES))]
    for large in itertools.product(*ranges):
        residual = amount - sum(count * denomination
                                for count, denomination in zip(large, SEARCHED_NOTES))
        if residual < 0:
            continue
        small = _fill(residual, inventory)
        if small is not None:
            return Allocation(NoteCounts(*large, *small), True)

    return Allocation(NoteCounts(*greedy), False)
