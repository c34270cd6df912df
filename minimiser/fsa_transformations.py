import logging
from typing import List, Optional

from .automaton import Automaton
from .fsa_equivalence import DistinguishabilityTable, get_distinguishable_pairs

logger = logging.getLogger(__name__)


def strip_loops(automaton: Automaton) -> None:
    """
    Remove every transition whose origin and destination are the same state.

    The alphabet is not modified. Remaining transitions get their ids assigned.

    Args:
        automaton: The automaton to modify in place
    """
    removed = automaton.remove_transitions(lambda t: t.is_loop())

    for transition in automaton.transitions:
        transition.id  # assigns the id on first access

    logger.debug("Stripped %d self-loops", removed)


def remove_unreachable_states(automaton: Automaton) -> None:
    """
    Remove states that are unreachable from the initial state, together with
    the transitions leaving them.

    Args:
        automaton: The automaton to modify in place

    Raises:
        ValueError: If the automaton has no initial state
    """
    if automaton.initial_state is None:
        raise ValueError("Automaton has no initial state")

    # DFS from the initial state to find all reachable states
    reachable = {automaton.initial_state.id}
    stack = [automaton.initial_state]

    while stack:
        current = stack.pop()
        for transition in current.transitions:
            target = transition.destination
            if target.id not in reachable:
                reachable.add(target.id)
                stack.append(target)

    if len(reachable) == len(automaton.states):
        return

    removed = automaton.remove_states(lambda s: s.id not in reachable)

    # A reachable origin only leads to reachable states, so every transition
    # into an unreachable state also leaves one and filtering by origin is enough.
    automaton.remove_transitions(lambda t: t.origin.id not in reachable)

    logger.debug("Removed %d unreachable states", removed)


def merge_equivalent_states(automaton: Automaton, distinguishable: DistinguishabilityTable) -> None:
    """
    Collapse every class of equivalent states into a single state.

    Pairs are visited with the keep candidate i rising and the delete candidate
    j < i rising, so the lower-indexed state of an equivalent pair is always the
    one removed and each class ends up represented by its highest-indexed member.

    Args:
        automaton: The automaton to modify in place, in the same state order
            the table was computed for
        distinguishable: Output of get_distinguishable_pairs
    """
    states = automaton.states
    if distinguishable.size != len(states):
        raise ValueError(
            f"Distinguishability table covers {distinguishable.size} states, "
            f"automaton has {len(states)}"
        )

    # Tombstones: merged_into[j] is the index that absorbed j, None while j is alive
    merged_into: List[Optional[int]] = [None] * len(states)

    for i in range(len(states)):
        for j in range(i):
            if merged_into[j] is not None:
                continue
            if not distinguishable.is_distinguishable(i, j):
                merged_into[j] = i
                logger.debug("Merging state '%s' into '%s'", states[j].id, states[i].id)

    def representative(index: int) -> int:
        while merged_into[index] is not None:
            index = merged_into[index]
        return index

    if not any(target is not None for target in merged_into):
        return

    representatives = {state.id: states[representative(i)] for i, state in enumerate(states)}
    deleted = {state.id for i, state in enumerate(states) if merged_into[i] is not None}

    initial = automaton.initial_state
    if initial is not None and initial.id in deleted:
        automaton.set_initial_state(representatives[initial.id])

    # The kept state already has an equivalent transition for each of these
    automaton.remove_transitions(lambda t: t.origin.id in deleted)

    for transition in automaton.transitions:
        if transition.destination.id in deleted:
            keep = representatives[transition.destination.id]
            transition.origin.redirect_transition(transition.symbol, keep)

    automaton.remove_states(lambda s: s.id in deleted)


def minimise_dfa(automaton: Automaton) -> None:
    """
    Minimise a deterministic automaton in place.

    Unreachable states are pruned, the distinguishability relation is computed
    and every class of equivalent states is merged. A missing transition counts
    as a self-loop while deciding equivalence.

    Args:
        automaton: The automaton to minimise

    Raises:
        NonDeterministicError: If some state has several destinations for a
            symbol. Nothing is merged in that case.
    """
    if not automaton.states:
        return

    original_states = len(automaton.states)

    remove_unreachable_states(automaton)
    distinguishable = get_distinguishable_pairs(automaton)
    merge_equivalent_states(automaton, distinguishable)

    logger.info("Minimised automaton from %d to %d states", original_states, len(automaton.states))
