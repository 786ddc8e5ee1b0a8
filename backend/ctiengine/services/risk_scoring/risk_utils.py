def severity_from_score(score: float) -> str:
    """Band a 0–1 severity into the labels used by alerts and stats."""
    if score > 0.8:
        return "critical"
    if score > 0.6:
        return "high"
    if score > 0.4:
        return "medium"
    return "low"


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return max(lower, min(value, upper))
