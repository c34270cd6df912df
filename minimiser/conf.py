from django.conf import settings

DEFAULTS = {
    # Strip self-loops before minimising unless the request says otherwise
    'STRIP_LOOPS': False,
    # Larger automata are rejected before any analysis
    'MAX_STATES': 500,
}


def get_setting(name: str):
    """Look up an option from the FSA_MINIMISER settings dict, falling back to DEFAULTS."""
    if name not in DEFAULTS:
        raise KeyError(f"Unknown minimiser setting: {name}")
    return getattr(settings, 'FSA_MINIMISER', {}).get(name, DEFAULTS[name])
