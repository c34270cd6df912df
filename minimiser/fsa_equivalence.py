import logging
from typing import Dict, List

from .automaton import Automaton, NonDeterministicError

logger = logging.getLogger(__name__)


class DistinguishabilityTable:
    """
    Symmetric relation over state indices, stored as a lower triangle.

    Row i holds the pairs (i, j) for j < i. Both orientations of a pair map
    to the same cell and a state is never distinguishable from itself.
    """

    def __init__(self, size: int):
        self.size = size
        self._rows: List[List[bool]] = [[False] * i for i in range(size)]

    def mark(self, i: int, j: int) -> None:
        if i == j:
            raise ValueError(f"A state cannot be distinguishable from itself ({i})")
        if i < j:
            i, j = j, i
        self._rows[i][j] = True

    def is_distinguishable(self, i: int, j: int) -> bool:
        if i == j:
            return False
        if i < j:
            i, j = j, i
        return self._rows[i][j]

    def marked_count(self) -> int:
        return sum(sum(row) for row in self._rows)

    def equivalence_classes(self) -> List[List[int]]:
        """
        Group indices into classes of mutually non-distinguishable states.

        Returns:
            List[List[int]]: Classes with members ascending, ordered by their
            lowest member
        """
        classes = []
        assigned = [False] * self.size
        for i in range(self.size):
            if assigned[i]:
                continue
            members = [i]
            assigned[i] = True
            for j in range(i + 1, self.size):
                if not assigned[j] and not self.is_distinguishable(i, j):
                    members.append(j)
                    assigned[j] = True
            classes.append(members)
        return classes

    def __repr__(self):
        return f"DistinguishabilityTable(size={self.size}, marked={self.marked_count()})"


def build_next_state_table(automaton: Automaton) -> List[List[int]]:
    """
    Resolve the next-state index of every state for every alphabet symbol.

    A state without a transition for a symbol is treated as looping to itself.

    Args:
        automaton: The automaton to analyse

    Returns:
        List[List[int]]: One row per state, one column per symbol in alphabet order

    Raises:
        NonDeterministicError: If some state has several destinations for a symbol
    """
    state_index: Dict[str, int] = {state.id: i for i, state in enumerate(automaton.states)}

    table = []
    for i, state in enumerate(automaton.states):
        row = []
        for symbol in automaton.alphabet:
            candidates = state.next_states(symbol)
            if len(candidates) > 1:
                raise NonDeterministicError(state.id, symbol, [c.id for c in candidates])
            row.append(state_index[candidates[0].id] if candidates else i)
        table.append(row)
    return table


def get_distinguishable_pairs(automaton: Automaton) -> DistinguishabilityTable:
    """
    Compute which pairs of states are distinguishable using the table-filling
    (Moore) algorithm.

    Two states start out distinguishable when their behaviour types differ.
    A pair is then marked whenever some symbol leads it to an already marked
    pair, and full passes repeat until one marks nothing new.

    The result is indexed by position in ``automaton.states`` and is only
    valid while that order is unchanged.

    Args:
        automaton: The automaton to analyse, already pruned

    Returns:
        DistinguishabilityTable: The distinguishability relation

    Raises:
        NonDeterministicError: If the automaton is not deterministic
    """
    states = automaton.states
    state_count = len(states)
    table = DistinguishabilityTable(state_count)

    next_state_table = build_next_state_table(automaton)

    for i in range(state_count):
        for j in range(i):
            if states[i].behaviour_type != states[j].behaviour_type:
                table.mark(i, j)

    logger.debug("Behaviour types separate %d of %d pairs",
                 table.marked_count(), state_count * (state_count - 1) // 2)

    passes = 0
    marked = True
    while marked:
        marked = False
        passes += 1
        for i in range(state_count):
            next_i = next_state_table[i]
            for j in range(i):
                if table.is_distinguishable(i, j):
                    continue
                next_j = next_state_table[j]
                for k in range(len(automaton.alphabet)):
                    if table.is_distinguishable(next_i[k], next_j[k]):
                        table.mark(i, j)
                        marked = True
                        break

    logger.debug("Table filling converged after %d passes, %d pairs distinguishable",
                 passes, table.marked_count())
    return table


def find_equivalent_states(automaton: Automaton) -> List[List[str]]:
    """
    Report the classes of equivalent states without modifying the automaton.

    Args:
        automaton: The automaton to analyse

    Returns:
        List[List[str]]: State ids per equivalence class, in state order

    Raises:
        NonDeterministicError: If the automaton is not deterministic
    """
    table = get_distinguishable_pairs(automaton)
    return [[automaton.states[i].id for i in members] for members in table.equivalence_classes()]
