# backend/ctiengine/services/correlation/rule_engine.py
import logging
from typing import Any, Callable, List, Tuple

logger = logging.getLogger(__name__)

Rule = Callable[[Any], List[Any]]


class RuleEngine:
    """
    Ordered registry of rules over a shared context.

    A rule returns a list of findings. A rule that raises contributes
    nothing; the remaining rules still run.
    """

    def __init__(self):
        self.rules: List[Tuple[str, Rule]] = []

    def register_rule(self, rule_func: Rule, name: str | None = None):
        self.rules.append((name or rule_func.__name__, rule_func))
        return rule_func

    def run(self, context) -> List[Any]:
        findings: List[Any] = []
        for name, rule in self.rules:
            try:
                r = rule(context)
            except Exception:
                logger.exception("Rule %s failed; skipping its findings.", name)
                continue
            if r:
                findings.extend(r)
        return findings
