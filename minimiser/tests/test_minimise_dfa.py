from itertools import product

from django.test import TestCase
from minimiser.automaton import Automaton, NonDeterministicError
from minimiser.fsa_equivalence import DistinguishabilityTable, get_distinguishable_pairs
from minimiser.fsa_simulation import trace_behaviour
from minimiser.fsa_transformations import (
    merge_equivalent_states,
    minimise_dfa,
    strip_loops
)


def all_sequences(alphabet, max_length):
    return [seq for length in range(max_length + 1) for seq in product(alphabet, repeat=length)]


def reachable_ids(automaton):
    seen = {automaton.initial_state.id}
    stack = [automaton.initial_state]
    while stack:
        for transition in stack.pop().transitions:
            if transition.destination.id not in seen:
                seen.add(transition.destination.id)
                stack.append(transition.destination)
    return seen


class TestMinimiseDFA(TestCase):
    """Test cases for DFA minimisation"""

    def setUp(self):
        self.chain = {
            'states': ['A', 'B', 'C', 'D'],
            'alphabet': ['x'],
            'transitions': {
                'A': {'x': ['B']},
                'B': {'x': ['C']},
                'C': {'x': ['D']},
                'D': {'x': ['D']}
            },
            'startingState': 'A',
            'behaviourTypes': {'A': 'idle', 'B': 'idle', 'C': 'idle', 'D': 'idle'}
        }

    def test_chain_collapses_to_single_state(self):
        """A chain of identical states collapses into one looping state"""
        automaton = Automaton.from_dict(self.chain)
        minimise_dfa(automaton)

        self.assertEqual(len(automaton.states), 1)
        survivor = automaton.states[0]
        # The highest-indexed state of a class is the one kept
        self.assertEqual(survivor.id, 'D')
        self.assertTrue(survivor.is_initial)
        self.assertIs(automaton.initial_state, survivor)
        self.assertEqual([s.id for s in survivor.next_states('x')], ['D'])
        self.assertEqual(len(automaton.transitions), 1)

    def test_chain_after_strip_loops(self):
        """Stripping loops first leaves the last state without transitions"""
        automaton = Automaton.from_dict(self.chain)
        strip_loops(automaton)

        self.assertEqual(automaton.get_state('D').transitions, [])

        minimise_dfa(automaton)

        self.assertEqual([s.id for s in automaton.states], ['D'])
        self.assertTrue(automaton.states[0].is_initial)
        self.assertEqual(automaton.transitions, [])

    def test_distinct_behaviours_kept(self):
        """States with different behaviour ahead are not merged"""
        fsa = {
            'states': ['S0', 'S1', 'S2'],
            'alphabet': ['a', 'b'],
            'transitions': {
                'S0': {'a': ['S1'], 'b': ['S0']},
                'S1': {'a': ['S2'], 'b': ['S0']},
                'S2': {'a': ['S2'], 'b': ['S2']}
            },
            'startingState': 'S0',
            'behaviourTypes': {'S0': 'waiting', 'S1': 'waiting', 'S2': 'granted'}
        }
        automaton = Automaton.from_dict(fsa)
        minimise_dfa(automaton)

        self.assertEqual(automaton.to_dict(), fsa)

    def test_equivalent_states_merged(self):
        """Equivalent states merge and transitions into them are redirected"""
        # S1 and S2 behave the same, S0 and S3 do not match anything
        automaton = Automaton.from_dict({
            'states': ['S0', 'S1', 'S2', 'S3'],
            'alphabet': ['a', 'b'],
            'transitions': {
                'S0': {'a': ['S1'], 'b': ['S2']},
                'S1': {'a': ['S3']},
                'S2': {'a': ['S3']},
                'S3': {'b': ['S0']}
            },
            'startingState': 'S0',
            'behaviourTypes': {'S0': 'start', 'S1': 'mid', 'S2': 'mid', 'S3': 'end'}
        })

        minimise_dfa(automaton)

        self.assertEqual([s.id for s in automaton.states], ['S0', 'S2', 'S3'])
        s0 = automaton.get_state('S0')
        self.assertEqual([s.id for s in s0.next_states('a')], ['S2'])
        self.assertEqual([s.id for s in s0.next_states('b')], ['S2'])
        # The global list sees the redirect as well
        destinations = sorted(t.destination.id for t in automaton.transitions if t.origin is s0)
        self.assertEqual(destinations, ['S2', 'S2'])

    def test_initial_state_transferred(self):
        """Merging away the initial state moves the flag to the kept state"""
        automaton = Automaton.from_dict({
            'states': ['S0', 'S1'],
            'alphabet': ['a'],
            'transitions': {'S0': {'a': ['S1']}, 'S1': {'a': ['S0']}},
            'startingState': 'S0',
            'behaviourTypes': {'S0': 1, 'S1': 1}
        })

        minimise_dfa(automaton)

        self.assertEqual([s.id for s in automaton.states], ['S1'])
        self.assertIs(automaton.initial_state, automaton.get_state('S1'))
        self.assertTrue(automaton.get_state('S1').is_initial)
        self.assertEqual([s.id for s in automaton.get_state('S1').next_states('a')], ['S1'])

    def test_unreachable_states_removed(self):
        """Unreachable states do not survive minimisation"""
        automaton = Automaton.from_dict({
            'states': ['S0', 'S1', 'S2'],
            'alphabet': ['a'],
            'transitions': {'S0': {'a': ['S1']}, 'S1': {'a': ['S0']}, 'S2': {'a': ['S0']}},
            'startingState': 'S0',
            'behaviourTypes': {'S0': 'on', 'S1': 'off', 'S2': 'broken'}
        })

        minimise_dfa(automaton)

        self.assertEqual([s.id for s in automaton.states], ['S0', 'S1'])
        self.assertEqual(reachable_ids(automaton), {'S0', 'S1'})

    def test_behaviour_preserved(self):
        """The minimised automaton produces the same behaviour traces"""
        fsa = {
            'states': ['q0', 'q1', 'q2', 'q3', 'q4', 'q5', 'q6'],
            'alphabet': ['open', 'read', 'close'],
            'transitions': {
                'q0': {'open': ['q1'], 'read': ['q5']},
                'q1': {'read': ['q2'], 'close': ['q3']},
                'q2': {'read': ['q4'], 'close': ['q3']},
                'q3': {'open': ['q1']},
                'q4': {'read': ['q2'], 'close': ['q0']},
                'q5': {'open': ['q4']},
                'q6': {'open': ['q6']}
            },
            'startingState': 'q0',
            'behaviourTypes': {
                'q0': 'closed', 'q1': 'opened', 'q2': 'reading', 'q3': 'closed',
                'q4': 'reading', 'q5': 'error', 'q6': 'closed'
            }
        }
        original = Automaton.from_dict(fsa)
        minimised = Automaton.from_dict(fsa)
        minimise_dfa(minimised)

        self.assertLess(len(minimised.states), len(original.states))
        for sequence in all_sequences(fsa['alphabet'], 5):
            self.assertEqual(trace_behaviour(minimised, sequence), trace_behaviour(original, sequence),
                             f"Traces differ on {sequence}")

    def test_result_is_connected(self):
        """Every surviving state is reachable from the initial state"""
        automaton = Automaton.from_dict({
            'states': ['S0', 'S1', 'S2', 'S3', 'S4'],
            'alphabet': ['a', 'b'],
            'transitions': {
                'S0': {'a': ['S1'], 'b': ['S2']},
                'S1': {'a': ['S3']},
                'S2': {'a': ['S3']},
                'S3': {'b': ['S3']},
                'S4': {'a': ['S0']}
            },
            'startingState': 'S0',
            'behaviourTypes': {'S0': 0, 'S1': 1, 'S2': 1, 'S3': 2, 'S4': 0}
        })

        minimise_dfa(automaton)

        self.assertEqual(reachable_ids(automaton), {s.id for s in automaton.states})

    def test_idempotent(self):
        """Minimising a minimal automaton changes nothing"""
        automaton = Automaton.from_dict(self.chain)
        minimise_dfa(automaton)
        once = automaton.to_dict()

        minimise_dfa(automaton)

        self.assertEqual(automaton.to_dict(), once)

    def test_already_minimal(self):
        """An already minimal automaton keeps its state count"""
        fsa = {
            'states': ['S0', 'S1'],
            'alphabet': ['a', 'b'],
            'transitions': {
                'S0': {'a': ['S1'], 'b': ['S0']},
                'S1': {'a': ['S0'], 'b': ['S1']}
            },
            'startingState': 'S0',
            'behaviourTypes': {'S0': 'even', 'S1': 'odd'}
        }
        automaton = Automaton.from_dict(fsa)
        minimise_dfa(automaton)

        self.assertEqual(automaton.to_dict(), fsa)

    def test_empty_automaton(self):
        """An automaton without states is left alone"""
        automaton = Automaton(['a'])
        minimise_dfa(automaton)

        self.assertEqual(automaton.states, [])
        self.assertIsNone(automaton.initial_state)

    def test_non_deterministic_fails_before_merging(self):
        """Non-determinism aborts minimisation with nothing merged"""
        automaton = Automaton.from_dict({
            'states': ['S0', 'S1', 'S2', 'S3'],
            'alphabet': ['a'],
            'transitions': {
                'S0': {'a': ['S1']},
                'S1': {'a': ['S2', 'S0']},
                'S2': {'a': ['S2']}
            },
            'startingState': 'S0',
            'behaviourTypes': {'S0': 0, 'S1': 0, 'S2': 0, 'S3': 0}
        })

        with self.assertRaises(NonDeterministicError) as context:
            minimise_dfa(automaton)

        self.assertEqual(context.exception.state_id, 'S1')
        # Pruning already ran, but every reachable state is still there
        self.assertEqual([s.id for s in automaton.states], ['S0', 'S1', 'S2'])
        self.assertEqual(len(automaton.transitions), 4)
        self.assertIs(automaton.initial_state, automaton.get_state('S0'))


class TestMergeEquivalentStates(TestCase):
    """Test cases for merging with a given distinguishability table"""

    def build(self, state_count):
        automaton = Automaton(['a'])
        for i in range(state_count):
            automaton.add_state(f'S{i}', 0)
        automaton.set_initial_state(automaton.states[0])
        return automaton

    def test_lower_index_deleted(self):
        """Within a class the highest index survives"""
        automaton = self.build(4)
        automaton.add_transition('S0', 'a', 'S1')
        automaton.add_transition('S1', 'a', 'S2')
        automaton.add_transition('S2', 'a', 'S3')
        automaton.add_transition('S3', 'a', 'S0')

        table = DistinguishabilityTable(4)
        # Classes {S0, S2} and {S1, S3}
        for i, j in [(0, 1), (0, 3), (1, 2), (2, 3)]:
            table.mark(i, j)

        merge_equivalent_states(automaton, table)

        self.assertEqual([s.id for s in automaton.states], ['S2', 'S3'])
        self.assertIs(automaton.initial_state, automaton.get_state('S2'))
        self.assertEqual(sorted(t.id for t in automaton.transitions), ['S2-a->S3', 'S3-a->S2'])
        self.assertEqual([s.id for s in automaton.get_state('S3').next_states('a')], ['S2'])

    def test_nothing_to_merge(self):
        """A fully distinguishable table leaves the automaton untouched"""
        automaton = self.build(3)
        automaton.add_transition('S0', 'a', 'S1')
        table = DistinguishabilityTable(3)
        for i, j in [(0, 1), (0, 2), (1, 2)]:
            table.mark(i, j)

        merge_equivalent_states(automaton, table)

        self.assertEqual(len(automaton.states), 3)
        self.assertEqual(len(automaton.transitions), 1)

    def test_table_size_mismatch(self):
        """A table computed for another state list is rejected"""
        automaton = self.build(3)

        with self.assertRaises(ValueError):
            merge_equivalent_states(automaton, DistinguishabilityTable(2))

    def test_merge_matches_analysis(self):
        """Merging with the computed table keeps one state per class"""
        automaton = Automaton.from_dict({
            'states': ['S0', 'S1', 'S2', 'S3', 'S4', 'S5'],
            'alphabet': ['a'],
            'transitions': {
                'S0': {'a': ['S1']},
                'S1': {'a': ['S2']},
                'S2': {'a': ['S3']},
                'S3': {'a': ['S4']},
                'S4': {'a': ['S5']},
                'S5': {'a': ['S0']}
            },
            'startingState': 'S0',
            'behaviourTypes': {'S0': 'a', 'S1': 'b', 'S2': 'a', 'S3': 'b', 'S4': 'a', 'S5': 'b'}
        })

        table = get_distinguishable_pairs(automaton)
        merge_equivalent_states(automaton, table)

        self.assertEqual([s.id for s in automaton.states], ['S4', 'S5'])
        self.assertTrue(automaton.get_state('S4').is_initial)
        self.assertEqual([s.id for s in automaton.get_state('S4').next_states('a')], ['S5'])
        self.assertEqual([s.id for s in automaton.get_state('S5').next_states('a')], ['S4'])
