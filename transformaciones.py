import logging
from typing import Dict, List, Set

from utils import EPSILON, Grammar, clone_grammar, fresh_symbol, grammar_symbols

__all__ = [
    "eliminate_left_recursion",
    "left_factor",
    "preparar_para_ll1",
    "left_recursive_nonterminals",
]

log = logging.getLogger(__name__)

PRIME = "'"
FACT_SUFFIX = "_fact"


# ---------------------------------------------------------------------------
# AUXILIARES
# ---------------------------------------------------------------------------

def _concat(*partes: List[str]) -> List[str]:
    """Concatena secuencias; ε desaparece y ε·ε = [ε]."""
    out = [s for p in partes for s in p if s != EPSILON]
    return out if out else [EPSILON]


def _dedupe(alts: List[List[str]]) -> List[List[str]]:
    out: List[List[str]] = []
    for alt in alts:
        if alt not in out:
            out.append(alt)
    return out


def _common_prefix(alts: List[List[str]]) -> List[str]:
    prefix = alts[0][:]
    for other in alts[1:]:
        k = 0
        while k < len(prefix) and k < len(other) and prefix[k] == other[k]:
            k += 1
        prefix = prefix[:k]
        if not prefix:
            break
    return prefix


# ===============================================================
# ELIMINACIÓN DE RECURSIÓN POR LA IZQUIERDA
# ===============================================================

def _substitute(alts: List[List[str]], Aj: str, alts_j: List[List[str]]) -> List[List[str]]:
    """Reemplaza Ai -> Aj γ por Ai -> δ γ para cada Aj -> δ."""
    out: List[List[str]] = []
    for rhs in alts:
        if rhs[0] == Aj:
            for delta in alts_j:
                out.append(_concat(delta, rhs[1:]))
        else:
            out.append(rhs)
    return _dedupe(out)


def _remove_immediate(prods: Grammar, A: str, taken: Set[str]) -> str:
    """Quita A -> A α de A. Devuelve el nuevo A' o '' si no hacía falta."""
    alphas: List[List[str]] = []
    betas: List[List[str]] = []
    cycles = 0
    for rhs in prods[A]:
        if rhs[0] != A:
            betas.append(rhs)
        elif len(rhs) > 1:
            alphas.append(rhs[1:])
        else:
            cycles += 1

    if not alphas:
        if cycles and betas:
            # A -> A no aporta nada al lenguaje
            log.debug("ciclo trivial %s -> %s eliminado", A, A)
            prods[A] = betas
        elif cycles:
            # Sólo A -> A: A no genera ninguna cadena. Se deja tal cual para
            # que la validación lo reporte como no productivo.
            log.warning("%s -> %s es su única producción; %s no es productivo", A, A, A)
        return ""

    prime = fresh_symbol(A, PRIME, taken)
    taken.add(prime)
    prods[A] = [_concat(b, [prime]) for b in betas] or [[prime]]
    prods[prime] = [_concat(a, [prime]) for a in alphas] + [[EPSILON]]
    log.debug("recursión inmediata en %s: nuevo símbolo %s", A, prime)
    return prime


def eliminate_left_recursion(grammar: Grammar) -> Grammar:
    """Algoritmo clásico A1..An; los A' nuevos se añaden al final del orden."""
    prods = clone_grammar(grammar)
    order = list(prods.keys())
    taken = grammar_symbols(prods)

    i = 0
    while i < len(order):
        Ai = order[i]
        # Se repite: con Aj -> ε el resto puede volver a empezar por un Aj anterior
        while True:
            antes = prods[Ai]
            for Aj in order[:i]:
                prods[Ai] = _substitute(prods[Ai], Aj, prods[Aj])
            if prods[Ai] == antes:
                break
        prime = _remove_immediate(prods, Ai, taken)
        if prime:
            order.append(prime)
        i += 1
    return prods


def _nullable(grammar: Grammar) -> Set[str]:
    """No terminales que derivan ε."""
    nullable: Set[str] = set()
    changed = True
    while changed:
        changed = False
        for A, alts in grammar.items():
            if A not in nullable and any(
                    all(s == EPSILON or s in nullable for s in alt) for alt in alts):
                nullable.add(A)
                changed = True
    return nullable


def _leading_nonterminals(alt: List[str], grammar: Grammar, nullable: Set[str]) -> Set[str]:
    """NT que pueden quedar al frente de `alt` (se saltan los anulables)."""
    out: Set[str] = set()
    for s in alt:
        if s not in grammar:  # terminal o ε
            break
        out.add(s)
        if s not in nullable:
            break
    return out


def left_recursive_nonterminals(grammar: Grammar) -> List[str]:
    """No terminales A con A ⇒+ A α (directa o indirectamente)."""
    nullable = _nullable(grammar)
    edges: Dict[str, Set[str]] = {
        A: set().union(*(_leading_nonterminals(alt, grammar, nullable) for alt in alts))
        for A, alts in grammar.items()
    }
    recursive = []
    for A in grammar:
        seen: Set[str] = set()
        stack = list(edges[A])
        while stack:
            B = stack.pop()
            if B == A:
                recursive.append(A)
                break
            if B in seen:
                continue
            seen.add(B)
            stack.extend(edges[B])
    return recursive


# ===============================================================
# FACTORIZACIÓN POR LA IZQUIERDA
# ===============================================================

def _factor_once(prods: Grammar, taken: Set[str]) -> bool:
    """Extrae un prefijo común. True si hubo cambio."""
    for A in list(prods):
        alts = prods[A]
        if len(alts) < 2:
            continue

        # Agrupar por primer símbolo (en orden de aparición)
        groups: Dict[str, List[int]] = {}
        for k, alt in enumerate(alts):
            if alt[0] == EPSILON:
                continue
            groups.setdefault(alt[0], []).append(k)

        for idxs in groups.values():
            if len(idxs) < 2:
                continue
            members = [alts[k] for k in idxs]
            prefix = _common_prefix(members)

            new = fresh_symbol(A, FACT_SUFFIX, taken, extra="_")
            taken.add(new)
            new_alts = []
            for k, alt in enumerate(alts):
                if k == idxs[0]:
                    new_alts.append(prefix + [new])
                elif k not in idxs:
                    new_alts.append(alt)
            prods[A] = new_alts
            prods[new] = _dedupe([m[len(prefix):] or [EPSILON] for m in members])
            log.debug("prefijo %s extraído de %s en %s", prefix, A, new)
            return True
    return False


def left_factor(grammar: Grammar) -> Grammar:
    """Factoriza hasta el punto fijo: ninguna pareja de alternativas comparte prefijo."""
    prods = clone_grammar(grammar)
    taken = grammar_symbols(prods)
    while _factor_once(prods, taken):
        pass
    return prods


def preparar_para_ll1(grammar: Grammar) -> Grammar:
    """Recursión izquierda primero, luego factorización."""
    return left_factor(eliminate_left_recursion(grammar))
