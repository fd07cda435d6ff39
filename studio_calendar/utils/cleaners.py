import re

from studio_calendar.config import WEEKDAYS

_DAY_MAP = {d.lower(): d for d in WEEKDAYS}
_DAY_MAP.update({d[:3].lower(): d for d in WEEKDAYS})
_DAY_MAP.update({"tues": "Tuesday", "thur": "Thursday", "thurs": "Thursday"})

_WORD = re.compile(r"[a-z0-9]+")
_LEADING_WORDS = ("studio", "the")


def clean_day(day) -> str:
    """'mon' / 'MONDAY' -> 'Monday'; unknown values are returned stripped."""
    s = str(day or "").strip()
    return _DAY_MAP.get(s.lower().rstrip("."), s)


def clean_location(location) -> str:
    s = re.sub(r"\s+", " ", str(location or "").strip())
    s = re.sub(r",\s*", ", ", s)
    return " ".join(w[:1].upper() + w[1:].lower() for w in s.split(" ") if w)


def clean_class(name) -> str:
    return re.sub(r"\s+", " ", str(name or "").strip())


def normalize_name(value) -> str:
    """
    Comparison form for class and location names:
    lower-case words, a leading "studio" word and then a leading "the" word
    dropped, joined without separators.
    "Studio Barre 57" -> "barre57", "Theory" -> "theory"
    """
    words = _WORD.findall(str(value or "").lower())
    for lead in _LEADING_WORDS:
        if len(words) > 1 and words[0] == lead:
            words = words[1:]
    return "".join(words)
