# utils.py
# Helpers generales: modelo de símbolos, tokenizador y parser de gramáticas.
import logging
import re
from typing import Any, Dict, Iterable, List, Set, Tuple

log = logging.getLogger(__name__)

EPSILON = "ε"  # símbolo para epsilon
END_MARKER = "$"  # fin de entrada, sólo en FOLLOW y columnas de la tabla
EMPTY_SET = "∅"  # nombre del conjunto vacío / estado muerto
ARROWS = ("->", "→")

Grammar = Dict[str, List[List[str]]]

# ---------------------------------------------------------------------------
# TOKENIZACIÓN DE ALTERNATIVAS
# ---------------------------------------------------------------------------

# ε | epsilon | NT (E, E', Expr, A_1, A₁) | terminal (id, num1) | operadores | resto
TOKEN_RE = re.compile(r"""
      ε
    | epsilon(?![a-z0-9])
    | [A-Z][a-z0-9_₀-₉]*'*
    | [a-z0-9]+
    | ==|!=|<=|>=|\|\||&&
    | \S
""", re.VERBOSE)


def limpiar_texto(texto):
    # Función para limpiar o preprocesar texto de entrada
    return texto.strip()


def _es_epsilon(token: str) -> bool:
    return token == EPSILON or token.lower() == "epsilon"


def tokenize_alternative(alt: str) -> List[str]:
    """Divide una alternativa en símbolos. Alternativa vacía → [ε]."""
    alt = alt.strip()
    if not alt:
        return [EPSILON]
    if any(c.isspace() for c in alt):
        # El autor separó los símbolos con espacios: se respeta tal cual
        tokens = alt.split()
    else:
        tokens = [m.group(0) for m in TOKEN_RE.finditer(alt)]
    tokens = [EPSILON if _es_epsilon(t) else t for t in tokens]

    # ε concatenado con otros símbolos desaparece
    sin_eps = [t for t in tokens if t != EPSILON]
    return sin_eps if sin_eps else [EPSILON]


def split_arrow(linea: str) -> Tuple[str, str]:
    """Parte la línea en la primera flecha; ('', '') si no hay flecha."""
    posiciones = [(linea.find(a), a) for a in ARROWS if a in linea]
    if not posiciones:
        return "", ""
    idx, arrow = min(posiciones)
    return linea[:idx], linea[idx + len(arrow):]


# ---------------------------------------------------------------------------
# PARSER DE GRAMÁTICAS
# ---------------------------------------------------------------------------

def parse_grammar(texto: str) -> Tuple[Grammar, str, List[str], str]:
    """Devuelve (gramática, símbolo inicial, líneas ignoradas, error)."""
    grammar: Grammar = {}
    start_symbol = ""
    skipped: List[str] = []

    for line_num, raw in enumerate(texto.splitlines(), start=1):
        linea = raw.strip()
        if not linea:
            continue

        izquierda, derecha = split_arrow(linea)
        izquierda = izquierda.strip()
        if not izquierda:
            # Parsing tolerante: la línea se ignora pero queda registrada
            log.debug("línea %d ignorada: %r", line_num, linea)
            skipped.append(linea)
            continue

        if not start_symbol:
            start_symbol = izquierda

        alternativas = grammar.setdefault(izquierda, [])
        for alt in derecha.split('|'):
            alternativas.append(tokenize_alternative(alt))

    if not grammar:
        return {}, "", skipped, "Error: no se reconoció ninguna producción (formato 'A -> α | β')"
    return grammar, start_symbol, skipped, ""


def stringify_grammar(grammar: Grammar) -> str:
    return "\n".join(
        f"{A} -> {' | '.join(' '.join(alt) for alt in alts)}"
        for A, alts in grammar.items()
    )


def clone_grammar(grammar: Grammar) -> Grammar:
    return {A: [alt[:] for alt in alts] for A, alts in grammar.items()}


def identify_symbols(grammar: Grammar) -> Tuple[List[str], List[str]]:
    """(no terminales, terminales) en orden de aparición; ε no es terminal."""
    nonterminals = list(grammar.keys())
    terminals: List[str] = []
    for alts in grammar.values():
        for alt in alts:
            for s in alt:
                if s == EPSILON or s in grammar or s in terminals:
                    continue
                terminals.append(s)
    return nonterminals, terminals


def grammar_symbols(grammar: Grammar) -> Set[str]:
    """Universo de nombres usados: lados izquierdos y derechos."""
    symbols: Set[str] = set(grammar.keys())
    for alts in grammar.values():
        for alt in alts:
            symbols.update(alt)
    return symbols


def fresh_symbol(base: str, suffix: str, taken: Iterable[str], extra: str = "") -> str:
    """base+suffix, alargado con `extra` (o el sufijo) hasta no chocar con `taken`."""
    taken = set(taken)
    nombre = base + suffix
    while nombre in taken:
        nombre += extra or suffix
    return nombre


# ---------------------------------------------------------------------------
# PROBADOR DE EXPRESIONES REGULARES
# ---------------------------------------------------------------------------

_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}


def probar_regex(pattern: str, text: str, flags: str = "") -> Dict[str, Any]:
    """Busca todas las coincidencias; un patrón inválido devuelve {'error': ...}."""
    opciones = 0
    for f in flags:
        if f == "g":  # búsqueda global: finditer ya recorre todo el texto
            continue
        if f not in _REGEX_FLAGS:
            return {"error": f"Flag desconocida: '{f}'"}
        opciones |= _REGEX_FLAGS[f]

    try:
        rx = re.compile(pattern, opciones)
    except re.error as e:
        return {"error": str(e)}

    matches = [
        {"text": m.group(0), "index": m.start(), "groups": list(m.groups())}
        for m in rx.finditer(text)
    ]
    return {"matches": matches}
