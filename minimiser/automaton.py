from typing import Any, Dict, Iterable, List, Optional


class NonDeterministicError(ValueError):
    """
    Raised when a state resolves to more than one destination for a symbol.

    Attributes:
        state_id: Identifier of the offending state
        symbol: The symbol with several destinations
        destinations: Identifiers of the candidate destinations
    """

    def __init__(self, state_id: str, symbol: str, destinations: List[str]):
        self.state_id = state_id
        self.symbol = symbol
        self.destinations = destinations
        super().__init__(
            f"State '{state_id}' has {len(destinations)} destinations for symbol "
            f"'{symbol}': {', '.join(destinations)}"
        )


class Transition:
    """A symbol-labelled edge between two states."""

    def __init__(self, origin: 'State', destination: 'State', symbol: str):
        self.origin = origin
        self.destination = destination
        self.symbol = symbol
        self._id: Optional[str] = None

    @property
    def id(self) -> str:
        # Fixed at first access, later redirects do not rename the transition
        if self._id is None:
            self._id = f"{self.origin.id}-{self.symbol}->{self.destination.id}"
        return self._id

    def is_loop(self) -> bool:
        return self.origin is self.destination

    def __repr__(self):
        return f"Transition({self.origin.id!r} --{self.symbol}--> {self.destination.id!r})"


class State:
    """
    A state of an automaton.

    The ``transitions`` list holds the same Transition objects as the owning
    automaton's global list. Only the Automaton mutators change membership.
    """

    def __init__(self, state_id: str, behaviour_type: Any, is_initial: bool = False):
        self.id = state_id
        self.behaviour_type = behaviour_type
        self.is_initial = is_initial
        self.transitions: List[Transition] = []

    def next_states(self, symbol: str) -> List['State']:
        """
        Resolve the destinations reachable from this state under a symbol.

        Args:
            symbol: The symbol to follow

        Returns:
            List[State]: Distinct destinations in first-seen order. An empty list
            means no transition is defined, more than one means the state is
            non-deterministic for this symbol.
        """
        destinations = []
        for transition in self.transitions:
            if transition.symbol != symbol:
                continue
            if not any(transition.destination is seen for seen in destinations):
                destinations.append(transition.destination)
        return destinations

    def redirect_transition(self, symbol: str, destination: 'State') -> None:
        """Point every outgoing transition labelled with symbol at destination."""
        for transition in self.transitions:
            if transition.symbol == symbol:
                transition.destination = destination

    def __repr__(self):
        flag = ', initial' if self.is_initial else ''
        return f"State({self.id!r}, {self.behaviour_type!r}{flag})"


class Automaton:
    """
    A finite automaton with an ordered state list and a fixed-order alphabet.

    State order is meaningful: it defines the positional indices used during
    equivalence analysis and which state survives a merge.
    """

    def __init__(self, alphabet: Iterable[str] = ()):
        self.states: List[State] = []
        self.transitions: List[Transition] = []
        self.alphabet: List[str] = list(dict.fromkeys(alphabet))
        self.initial_state: Optional[State] = None
        self._states_by_id: Dict[str, State] = {}

    def __len__(self) -> int:
        return len(self.states)

    def __repr__(self):
        initial = self.initial_state.id if self.initial_state else None
        return (f"Automaton(|Q|={len(self.states)}, |Σ|={len(self.alphabet)}, "
                f"|δ|={len(self.transitions)}, q0={initial!r})")

    def get_state(self, state_id: str) -> State:
        try:
            return self._states_by_id[state_id]
        except KeyError:
            raise ValueError(f"Unknown state: {state_id}") from None

    def has_state(self, state_id: str) -> bool:
        return state_id in self._states_by_id

    def add_state(self, state_id: str, behaviour_type: Any, initial: bool = False) -> State:
        if state_id in self._states_by_id:
            raise ValueError(f"Duplicate state: {state_id}")

        state = State(state_id, behaviour_type)
        self.states.append(state)
        self._states_by_id[state_id] = state

        if initial:
            self.set_initial_state(state)
        return state

    def set_initial_state(self, state: State) -> None:
        if self.initial_state is not None:
            self.initial_state.is_initial = False
        state.is_initial = True
        self.initial_state = state

    def add_transition(self, origin_id: str, symbol: str, destination_id: str) -> Transition:
        origin = self.get_state(origin_id)
        destination = self.get_state(destination_id)

        if symbol not in self.alphabet:
            self.alphabet.append(symbol)

        transition = Transition(origin, destination, symbol)
        origin.transitions.append(transition)
        self.transitions.append(transition)
        return transition

    def remove_transitions(self, predicate) -> int:
        """
        Remove every transition matching predicate from both the global list
        and the owning states.

        Returns:
            int: Number of transitions removed
        """
        kept = [t for t in self.transitions if not predicate(t)]
        removed = len(self.transitions) - len(kept)
        if removed:
            self.transitions = kept
            for state in self.states:
                state.transitions = [t for t in state.transitions if not predicate(t)]
        return removed

    def remove_states(self, predicate) -> int:
        """
        Remove every state matching predicate, preserving the order of the rest.

        Transitions are not touched; callers remove them separately.

        Returns:
            int: Number of states removed
        """
        kept = [s for s in self.states if not predicate(s)]
        removed = len(self.states) - len(kept)
        if removed:
            self.states = kept
            self._states_by_id = {s.id: s for s in kept}
        return removed

    @classmethod
    def from_dict(cls, fsa: Dict) -> 'Automaton':
        """
        Build an automaton from the JSON dictionary format.

        Args:
            fsa: A dictionary with the following keys:
                - states: List of state identifiers, in order
                - alphabet: List of symbols
                - transitions: Dictionary state -> symbol -> list of destinations
                - startingState: The initial state ('' or missing for none)
                - behaviourTypes: Dictionary state -> behaviour type

        Returns:
            Automaton: The constructed automaton

        Raises:
            ValueError: If a state is duplicated or a transition names an unknown state
        """
        automaton = cls(fsa.get('alphabet', []))
        behaviour_types = fsa.get('behaviourTypes', {})

        for state_id in fsa.get('states', []):
            automaton.add_state(state_id, behaviour_types.get(state_id))

        starting_state = fsa.get('startingState')
        if starting_state:
            automaton.set_initial_state(automaton.get_state(starting_state))

        for state_id in fsa.get('states', []):
            for symbol, destinations in fsa.get('transitions', {}).get(state_id, {}).items():
                for destination in destinations:
                    automaton.add_transition(state_id, symbol, destination)

        return automaton

    def to_dict(self) -> Dict:
        transitions = {}
        for state in self.states:
            transitions[state.id] = {}
            for transition in state.transitions:
                transitions[state.id].setdefault(transition.symbol, []).append(transition.destination.id)

        return {
            'states': [state.id for state in self.states],
            'alphabet': self.alphabet[:],
            'transitions': transitions,
            'startingState': self.initial_state.id if self.initial_state else '',
            'behaviourTypes': {state.id: state.behaviour_type for state in self.states}
        }
