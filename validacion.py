import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Set

from utils import EPSILON, Grammar

log = logging.getLogger(__name__)


@dataclass
class GrammarReport:
    """Diagnóstico de una gramática. Ningún conjunto es un error fatal."""
    defined: Set[str] = field(default_factory=set)
    used: Set[str] = field(default_factory=set)
    undefined: Set[str] = field(default_factory=set)
    reachable: Set[str] = field(default_factory=set)
    unreachable: Set[str] = field(default_factory=set)
    never_used: Set[str] = field(default_factory=set)
    productive: Set[str] = field(default_factory=set)
    non_productive: Set[str] = field(default_factory=set)

    @property
    def is_clean(self) -> bool:
        return not (self.undefined or self.unreachable
                    or self.never_used or self.non_productive)

    def to_rows(self) -> List[dict]:
        def _fmt(s: Set[str]) -> str:
            return ", ".join(sorted(s)) or "—"
        return [
            {"Diagnóstico": "No definidos", "Símbolos": _fmt(self.undefined)},
            {"Diagnóstico": "Inalcanzables", "Símbolos": _fmt(self.unreachable)},
            {"Diagnóstico": "Nunca usados", "Símbolos": _fmt(self.never_used)},
            {"Diagnóstico": "No productivos", "Símbolos": _fmt(self.non_productive)},
        ]


def reachable_from(grammar: Grammar, start: str) -> Set[str]:
    """Cierre hacia adelante desde `start` (DFS, cada NT se visita una vez)."""
    if start not in grammar:
        return set()
    seen = {start}
    stack = [start]
    while stack:
        A = stack.pop()
        for alt in grammar[A]:
            for s in alt:
                if s in grammar and s not in seen:
                    seen.add(s)
                    stack.append(s)
    return seen


def productive_nonterminals(grammar: Grammar,
                            nonterminals: Iterable[str] = ()) -> Set[str]:
    """Menor punto fijo: A es productivo si alguna alternativa sólo tiene
    terminales, ε o no terminales ya productivos.

    `nonterminals`: NT declarados aparte; los que no tienen producciones
    nunca son productivos (no se confunden con terminales)."""
    nts = set(grammar) | set(nonterminals)
    productive: Set[str] = set()
    changed = True
    while changed:
        changed = False
        for A, alts in grammar.items():
            if A in productive:
                continue
            for alt in alts:
                if all(s == EPSILON or s not in nts or s in productive for s in alt):
                    productive.add(A)
                    changed = True
                    break
    return productive


def validate_grammar(grammar: Grammar, start: str,
                     extra_nonterminals: Iterable[str] = ()) -> GrammarReport:
    """`extra_nonterminals`: símbolos declarados como NT por otra fuente parcial."""
    declared = set(grammar) | set(extra_nonterminals)
    defined = set(grammar)

    used: Set[str] = set()
    for alts in grammar.values():
        for alt in alts:
            used.update(s for s in alt if s in declared)

    reachable = reachable_from(grammar, start)
    productive = productive_nonterminals(grammar, declared)

    report = GrammarReport(
        defined=defined,
        used=used,
        undefined=used - defined,
        reachable=reachable,
        unreachable=defined - reachable,
        never_used=defined - used - {start},
        productive=productive,
        non_productive=defined - productive,
    )
    if not report.is_clean:
        log.debug("gramática con diagnósticos: inalcanzables=%s no productivos=%s",
                  sorted(report.unreachable), sorted(report.non_productive))
    return report
