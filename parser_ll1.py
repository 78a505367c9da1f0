import logging
from dataclasses import dataclass
from typing import Collection, Dict, List, Set, Tuple

from transformaciones import preparar_para_ll1
from utils import EPSILON, END_MARKER, Grammar, parse_grammar

__all__ = [
    "first_of_sequence",
    "compute_first",
    "compute_follow",
    "LL1Conflict",
    "build_predictive_table",
    "is_ll1",
    "table_terminals",
    "sets_to_rows",
    "table_to_rows",
    "analizar_gramatica",
    "analizar_ll1",
]

log = logging.getLogger(__name__)

# Tabla predictiva: (A, a) -> alternativas registradas
Table = Dict[Tuple[str, str], List[List[str]]]


@dataclass
class LL1Conflict:
    """Celda de la tabla con más de una alternativa."""
    nonterminal: str
    terminal: str
    alternatives: List[List[str]]

    def __str__(self) -> str:
        alts = " || ".join(" ".join(alt) for alt in self.alternatives)
        return f"Conflicto en M[{self.nonterminal}, {self.terminal}]: {alts}"


# ---------------------------------------------------------------------------
# FIRST
# ---------------------------------------------------------------------------

def first_of_sequence(seq: List[str],
                      first: Dict[str, Set[str]],
                      nonterminals: Collection[str]) -> Set[str]:
    """FIRST(α) para una secuencia α de símbolos."""
    acc: Set[str] = set()
    for s in seq:
        if s == EPSILON:
            acc.add(EPSILON)
            return acc
        if s not in nonterminals:  # terminal
            acc.add(s)
            return acc
        Fs = first.get(s, set())
        acc |= (Fs - {EPSILON})
        if EPSILON not in Fs:
            return acc
    # Todos los símbolos pueden desaparecer (o α es vacía)
    acc.add(EPSILON)
    return acc


def compute_first(grammar: Grammar) -> Dict[str, Set[str]]:
    # Inicialización: FIRST(A) = ∅
    first: Dict[str, Set[str]] = {A: set() for A in grammar}

    changed = True
    passes = 0
    while changed:
        changed = False
        passes += 1
        # Para cada A → α
        for A, prods in grammar.items():
            before_size = len(first[A])
            for prod in prods:
                first[A] |= first_of_sequence(prod, first, grammar)
            if len(first[A]) > before_size:
                changed = True

    log.debug("FIRST estable tras %d pasadas", passes)
    return first


# ---------------------------------------------------------------------------
# FOLLOW
# ---------------------------------------------------------------------------

def compute_follow(grammar: Grammar,
                   first: Dict[str, Set[str]],
                   start_symbol: str) -> Dict[str, Set[str]]:
    follow: Dict[str, Set[str]] = {A: set() for A in grammar}
    # Regla 1: $ en FOLLOW(S)
    if start_symbol in follow:
        follow[start_symbol].add(END_MARKER)
    else:
        log.warning("el símbolo inicial %r no tiene producciones; FOLLOW sin $", start_symbol)

    changed = True
    passes = 0
    while changed:
        changed = False
        passes += 1
        for A, prods in grammar.items():
            for prod in prods:
                # Recorre posiciones donde haya un no terminal B
                for i, B in enumerate(prod):
                    if B not in grammar:
                        continue
                    beta = prod[i + 1:]  # secuencia después de B
                    first_beta = first_of_sequence(beta, first, grammar)

                    before_size = len(follow[B])

                    # Regla 2: FIRST(β) - {ε} ⊆ FOLLOW(B)
                    follow[B] |= (first_beta - {EPSILON})

                    # Regla 3: si β es vacío o ε ∈ FIRST(β) → FOLLOW(A) ⊆ FOLLOW(B)
                    if EPSILON in first_beta:
                        follow[B] |= follow[A]

                    if len(follow[B]) > before_size:
                        changed = True

    log.debug("FOLLOW estable tras %d pasadas", passes)
    return follow


# ---------------------------------------------------------------------------
# TABLA PREDICTIVA LL(1)
# ---------------------------------------------------------------------------

def _register(table: Table, A: str, a: str, alt: List[str]) -> None:
    cell = table.setdefault((A, a), [])
    if alt not in cell:
        cell.append(alt[:])


def build_predictive_table(grammar: Grammar,
                           first: Dict[str, Set[str]],
                           follow: Dict[str, Set[str]]) -> Tuple[Table, List[LL1Conflict]]:
    """Construye M[A, a] y devuelve (tabla, conflictos)."""
    table: Table = {}

    for A, prods in grammar.items():
        for alt in prods:
            first_alt = first_of_sequence(alt, first, grammar)
            for t in sorted(first_alt - {EPSILON}):
                _register(table, A, t, alt)
            if EPSILON in first_alt:
                for b in sorted(follow.get(A, set())):
                    _register(table, A, b, alt)

    # Detectar conflictos
    conflicts = [
        LL1Conflict(A, a, [alt[:] for alt in cell])
        for (A, a), cell in table.items()
        if len(cell) > 1
    ]
    if conflicts:
        log.debug("tabla LL(1) con %d conflictos", len(conflicts))
    return table, conflicts


def is_ll1(conflicts: List[LL1Conflict]) -> bool:
    return not conflicts


def table_terminals(table: Table) -> List[str]:
    """Columnas de la tabla: terminales ordenados y $ al final."""
    cols = {a for (_, a) in table}
    ordered = sorted(cols - {END_MARKER})
    if END_MARKER in cols:
        ordered.append(END_MARKER)
    return ordered


# ---------------------------------------------------------------------------
# FILAS PARA TABLAS (DataFrame / HTML)
# ---------------------------------------------------------------------------

def sets_to_rows(first: Dict[str, Set[str]], follow: Dict[str, Set[str]]) -> List[dict]:
    return [
        {
            "No Terminal": A,
            "FIRST": ", ".join(sorted(first.get(A, set()))),
            "FOLLOW": ", ".join(sorted(follow.get(A, set()))),
        }
        for A in first
    ]


def table_to_rows(grammar: Grammar, table: Table) -> List[dict]:
    """Una fila por no terminal y una columna por terminal."""
    cols = table_terminals(table)
    rows = []
    for A in grammar:
        row = {"No Terminal": A}
        for a in cols:
            cell = table.get((A, a), [])
            row[a] = " || ".join(f"{A} -> {' '.join(alt)}" for alt in cell)
        rows.append(row)
    return rows


# ---------------------------------------------------------------------------
# Front-ends "puros" para la app (sin Streamlit)
# ---------------------------------------------------------------------------

def analizar_gramatica(texto: str) -> Tuple[Grammar, Dict, Dict, str, str]:
    grammar, start_symbol, _, error = parse_grammar(texto)
    if error:
        return {}, {}, {}, "", error

    first = compute_first(grammar)
    follow = compute_follow(grammar, first, start_symbol)
    return grammar, first, follow, start_symbol, ""


def analizar_ll1(texto: str, transformar: bool = False) -> Tuple[
    Grammar, Dict, Dict,       # grammar, first, follow
    Table, List[LL1Conflict],  # table, conflicts
    str, str                   # start, error
]:
    grammar, start_symbol, _, error = parse_grammar(texto)
    if error:
        return {}, {}, {}, {}, [], "", error

    if transformar:
        grammar = preparar_para_ll1(grammar)

    first = compute_first(grammar)
    follow = compute_follow(grammar, first, start_symbol)
    table, conflicts = build_predictive_table(grammar, first, follow)
    return grammar, first, follow, table, conflicts, start_symbol, ""
