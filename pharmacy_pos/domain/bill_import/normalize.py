import re

_DOSAGE_FORMS = re.compile(r"\b(tab|tablet|tabs|cap|capsule|caps|inj|injection|syp|syrup)\b")
_SYMBOLS = re.compile(r"[^a-z0-9\s]")
_SPACES = re.compile(r"\s+")


def normalize_medicine_name(name: str) -> str:
    """Reduce an extracted medicine name to a comparable key.

    >>> normalize_medicine_name("TAB. Paracetamol-500mg")
    'paracetamol 500mg'
    """
    if not name:
        return ""

    normalized = name.lower()
    normalized = _DOSAGE_FORMS.sub("", normalized)
    normalized = _SYMBOLS.sub(" ", normalized)
    return _SPACES.sub(" ", normalized).strip()
