from typing import Any, Iterable, List, Tuple

from .automaton import Automaton, NonDeterministicError


def simulate_deterministic_automaton(automaton: Automaton, symbols: Iterable[str]) -> List[Tuple[str, str, str]]:
    """
    Runs a deterministic automaton over a sequence of symbols.

    A symbol with no transition from the current state (including symbols outside
    the alphabet) leaves the automaton where it is, the same default the
    equivalence analysis uses.

    Args:
        automaton: The automaton to run, with an initial state
        symbols: The symbols to feed, one at a time

    Returns:
        List of steps in the format [(current_state, symbol, next_state), ...]

    Raises:
        ValueError: If the automaton has no initial state
        NonDeterministicError: If a visited state has several destinations for a symbol
    """
    if automaton.initial_state is None:
        raise ValueError("Automaton has no initial state")

    current_state = automaton.initial_state
    execution_path = []

    for symbol in symbols:
        candidates = current_state.next_states(symbol)
        if len(candidates) > 1:
            raise NonDeterministicError(current_state.id, symbol, [c.id for c in candidates])

        next_state = candidates[0] if candidates else current_state
        execution_path.append((current_state.id, symbol, next_state.id))
        current_state = next_state

    return execution_path


def trace_behaviour(automaton: Automaton, symbols: Iterable[str]) -> List[Any]:
    """
    Lists the behaviour types visited while running the automaton, starting
    with the initial state's.

    Two automata behave the same on a symbol sequence exactly when their
    traces for it are equal.
    """
    path = simulate_deterministic_automaton(automaton, symbols)
    trace = [automaton.initial_state.behaviour_type]
    for _, _, next_state in path:
        trace.append(automaton.get_state(next_state).behaviour_type)
    return trace
