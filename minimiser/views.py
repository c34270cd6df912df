import json
import logging

from django.http import JsonResponse
from django.views.decorators.http import require_POST
from django.views.decorators.csrf import csrf_exempt

from .automaton import Automaton, NonDeterministicError
from .conf import get_setting
from .fsa_properties import check_all_properties, validate_fsa_structure
from .fsa_equivalence import find_equivalent_states
from .fsa_transformations import minimise_dfa, strip_loops

logger = logging.getLogger(__name__)


def _load_fsa(request):
    """
    Parse the request body and validate the FSA it carries.

    Returns:
        Tuple of (fsa, data, error_response). error_response is None when the
        FSA is usable.
    """
    data = json.loads(request.body)
    fsa = data.get('fsa')

    if not fsa:
        return None, data, JsonResponse({'error': 'Missing FSA definition'}, status=400)

    validation = validate_fsa_structure(fsa)
    if not validation['valid']:
        return None, data, JsonResponse({'error': validation['error']}, status=400)

    max_states = get_setting('MAX_STATES')
    if len(fsa['states']) > max_states:
        return None, data, JsonResponse({
            'error': f'FSA has {len(fsa["states"])} states, the limit is {max_states}'
        }, status=400)

    return fsa, data, None


def _statistics(automaton: Automaton) -> dict:
    return {
        'states_count': len(automaton.states),
        'alphabet_size': len(automaton.alphabet),
        'transitions_count': len(automaton.transitions),
        'behaviour_types_count': len({repr(state.behaviour_type) for state in automaton.states})
    }


def _non_deterministic_response(error: NonDeterministicError) -> JsonResponse:
    logger.warning("Rejected non-deterministic FSA: %s", error)
    return JsonResponse({
        'error': f'DFA minimisation requires a deterministic FSA. {error}',
        'state': error.state_id,
        'symbol': error.symbol
    }, status=400)


@csrf_exempt
@require_POST
def min_dfa(request):
    """
    Django view to handle DFA minimisation requests.

    Expects a POST request with a JSON body containing:
    - fsa: The FSA definition in the proper format (must be deterministic)
    - stripLoops: Optional, remove self-loops before minimising

    Returns a JSON response with the minimised DFA.
    """
    try:
        fsa, data, error_response = _load_fsa(request)
        if error_response:
            return error_response

        strip = data.get('stripLoops', get_setting('STRIP_LOOPS'))
        if not isinstance(strip, bool):
            return JsonResponse({'error': 'stripLoops must be a boolean'}, status=400)

        automaton = Automaton.from_dict(fsa)
        original_stats = _statistics(automaton)

        if strip:
            strip_loops(automaton)

        minimise_dfa(automaton)
        minimised_stats = _statistics(automaton)

        # Calculate reduction statistics
        reduction_stats = {
            'states_reduced': original_stats['states_count'] - minimised_stats['states_count'],
            'states_reduction_percentage': round(
                ((original_stats['states_count'] - minimised_stats['states_count']) /
                 original_stats['states_count']) * 100, 2
            ) if original_stats['states_count'] > 0 else 0,
            'transitions_reduced': original_stats['transitions_count'] - minimised_stats['transitions_count'],
            'is_already_minimal': original_stats['states_count'] == minimised_stats['states_count']
        }

        return JsonResponse({
            'success': True,
            'original_fsa': fsa,
            'minimised_fsa': automaton.to_dict(),
            'statistics': {
                'original': original_stats,
                'minimised': minimised_stats,
                'reduction': reduction_stats
            },
            'message': 'DFA minimised successfully' if not reduction_stats['is_already_minimal']
                      else 'DFA was already minimal'
        })

    except NonDeterministicError as e:
        return _non_deterministic_response(e)
    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        logger.exception("Minimisation failed")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def strip_fsa_loops(request):
    """
    Django view to remove self-loop transitions from an FSA.

    Expects a POST request with a JSON body containing:
    - fsa: The FSA definition in the proper format

    Returns a JSON response with the FSA without self-loops.
    """
    try:
        fsa, _, error_response = _load_fsa(request)
        if error_response:
            return error_response

        automaton = Automaton.from_dict(fsa)
        transitions_before = len(automaton.transitions)
        strip_loops(automaton)

        return JsonResponse({
            'success': True,
            'stripped_fsa': automaton.to_dict(),
            'loops_removed': transitions_before - len(automaton.transitions)
        })

    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        logger.exception("Stripping loops failed")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def equivalent_states(request):
    """
    Django view to report the classes of equivalent states of a DFA without
    minimising it.
    """
    try:
        fsa, _, error_response = _load_fsa(request)
        if error_response:
            return error_response

        classes = find_equivalent_states(Automaton.from_dict(fsa))

        return JsonResponse({
            'equivalence_classes': classes,
            'is_minimal': all(len(members) == 1 for members in classes)
        })

    except NonDeterministicError as e:
        return _non_deterministic_response(e)
    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        logger.exception("Equivalence analysis failed")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def check_fsa_properties(request):
    """
    Django view to check FSA properties (deterministic, connected, self-loops).

    Expects a POST request with a JSON body containing:
    - fsa: The FSA definition in the proper format

    Returns a JSON response with property check results.
    """
    try:
        fsa, _, error_response = _load_fsa(request)
        if error_response:
            return error_response

        properties = check_all_properties(fsa)

        return JsonResponse({
            'properties': properties,
            'summary': {
                'total_states': len(fsa['states']),
                'alphabet_size': len(fsa['alphabet']),
                'starting_state': fsa['startingState'],
                'transitions_count': sum(
                    len(targets) for state_transitions in fsa['transitions'].values()
                    for targets in state_transitions.values()
                )
            }
        })

    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        logger.exception("Property check failed")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)
