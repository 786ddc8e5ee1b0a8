# backend/ctiengine/services/risk_scoring/sentiment.py
from afinn import Afinn

# AFINN word list: integer valences in [-5, 5]
_afinn = Afinn(language="en")


def lexicon_valence(text: str) -> float:
    """
    Sum of AFINN word valences in `text`.

    Negative totals mean alarming wording ("damage", "victims", "hurt", ...).
    """
    if not text or not text.strip():
        return 0.0
    return float(_afinn.score(text))
