from typing import Dict
from collections import deque


def validate_fsa_structure(fsa: Dict) -> Dict:
    """
    Validates that the FSA has the structure required to build an automaton.

    Args:
        fsa: The FSA dictionary to validate

    Returns:
        Dict: Validation result with 'valid' boolean and optional 'error' message
    """
    if not isinstance(fsa, dict):
        return {'valid': False, 'error': 'FSA must be a dictionary'}

    required_keys = ['states', 'alphabet', 'transitions', 'startingState', 'behaviourTypes']

    # Check all required keys exist
    for key in required_keys:
        if key not in fsa:
            return {'valid': False, 'error': f'Missing required key: {key}'}

    if not isinstance(fsa['states'], list):
        return {'valid': False, 'error': 'states must be a list'}

    if not isinstance(fsa['alphabet'], list):
        return {'valid': False, 'error': 'alphabet must be a list'}

    if not isinstance(fsa['transitions'], dict):
        return {'valid': False, 'error': 'transitions must be a dictionary'}

    if not isinstance(fsa['behaviourTypes'], dict):
        return {'valid': False, 'error': 'behaviourTypes must be a dictionary'}

    states = set(fsa['states'])
    if len(states) != len(fsa['states']):
        return {'valid': False, 'error': 'states must not contain duplicates'}

    # A non-empty automaton needs somewhere to start
    if fsa['states']:
        if not fsa['startingState']:
            return {'valid': False, 'error': 'Missing starting state'}
        if fsa['startingState'] not in states:
            return {'valid': False, 'error': 'Starting state not in states list'}

    for state in fsa['states']:
        if state not in fsa['behaviourTypes']:
            return {'valid': False, 'error': f'State {state} has no behaviour type'}

    for state, state_transitions in fsa['transitions'].items():
        if state not in states:
            return {'valid': False, 'error': f'Transition origin {state} not in states list'}
        if not isinstance(state_transitions, dict):
            return {'valid': False, 'error': f'Transitions of state {state} must be a dictionary'}

        for symbol, targets in state_transitions.items():
            if symbol not in fsa['alphabet']:
                return {'valid': False, 'error': f'Symbol {symbol} not in alphabet'}
            if not isinstance(targets, list):
                return {'valid': False, 'error': f'Targets of {state} on {symbol} must be a list'}
            for target in targets:
                if target not in states:
                    return {'valid': False, 'error': f'Transition target {target} not in states list'}

    return {'valid': True}


def is_deterministic(fsa: Dict) -> bool:
    """
    Checks if the FSA is deterministic.

    An FSA is deterministic if, for each state and each symbol, there is at most
    one distinct destination. Missing transitions are allowed.

    Args:
        fsa: A dictionary representing the FSA

    Returns:
        bool: True if the FSA is deterministic, False otherwise
    """
    for state in fsa.get('states', []):
        for targets in fsa.get('transitions', {}).get(state, {}).values():
            if len(set(targets)) > 1:
                return False

    return True


def is_connected(fsa: Dict) -> bool:
    """
    Checks if the FSA is connected.

    An FSA is connected if all states are reachable from the starting state.

    Args:
        fsa: A dictionary representing the FSA

    Returns:
        bool: True if the FSA is connected, False otherwise
    """
    # Trivially connected if no states
    if not fsa.get('states'):
        return True

    if fsa.get('startingState') not in fsa['states']:
        return False

    # Use BFS to find all reachable states from the starting state
    reachable_states = {fsa['startingState']}
    queue = deque([fsa['startingState']])

    while queue:
        current_state = queue.popleft()
        for targets in fsa.get('transitions', {}).get(current_state, {}).values():
            for next_state in targets:
                if next_state not in reachable_states:
                    reachable_states.add(next_state)
                    queue.append(next_state)

    return len(reachable_states) == len(fsa['states'])


def has_self_loops(fsa: Dict) -> bool:
    """Checks if any state has a transition back to itself."""
    for state, state_transitions in fsa.get('transitions', {}).items():
        for targets in state_transitions.values():
            if state in targets:
                return True
    return False


def check_all_properties(fsa: Dict) -> Dict:
    """
    Check all FSA properties at once.

    Args:
        fsa: A dictionary representing the FSA

    Returns:
        Dict: Dictionary containing all property check results:
        {
            'deterministic': bool,
            'connected': bool,
            'has_self_loops': bool
        }
    """
    return {
        'deterministic': is_deterministic(fsa),
        'connected': is_connected(fsa),
        'has_self_loops': has_self_loops(fsa)
    }
