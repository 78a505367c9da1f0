import logging
import re
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from utils import EMPTY_SET, EPSILON, fresh_symbol, split_arrow

log = logging.getLogger(__name__)

# Transiciones: (estado, símbolo o ε) -> destinos
Transitions = Dict[Tuple[str, str], Set[str]]

SECTIONS = ("states", "alphabet", "start", "accept", "transitions")
SECTION_RE = re.compile(r"^(states|alphabet|start|accept|transitions)\s*:(.*)$", re.IGNORECASE)


# ===============================================================
# MODELO DE AUTÓMATA
# ===============================================================

@dataclass
class Automaton:
    """AFN (posiblemente con ε) o AFD; un AFD tiene a lo sumo un destino por par."""
    states: List[str]
    alphabet: List[str]
    start: str
    accept: Set[str] = field(default_factory=set)
    transitions: Transitions = field(default_factory=dict)

    def targets(self, state: str, symbol: str) -> Set[str]:
        return self.transitions.get((state, symbol), set())

    def add_transition(self, src: str, symbol: str, dst: str) -> None:
        self.transitions.setdefault((src, symbol), set()).add(dst)

    def is_deterministic(self) -> bool:
        return all(sym != EPSILON and len(dst) <= 1
                   for (_, sym), dst in self.transitions.items())

    def is_complete(self) -> bool:
        return all(self.targets(s, a) for s in self.states for a in self.alphabet)

    def copy(self) -> "Automaton":
        return Automaton(
            states=self.states[:],
            alphabet=self.alphabet[:],
            start=self.start,
            accept=set(self.accept),
            transitions={k: set(v) for k, v in self.transitions.items()},
        )


def _es_epsilon(sym: str) -> bool:
    return sym == EPSILON or sym.lower() == "epsilon"


def _split_list(texto: str) -> List[str]:
    return [x.strip() for x in texto.split(",") if x.strip()]


# ===============================================================
# PARSER DE LA DESCRIPCIÓN TEXTUAL
# ===============================================================

def _parse_transition(entry: str) -> Optional[Tuple[str, str, List[str]]]:
    """'q0,a->q1,q2' -> ('q0', 'a', ['q1', 'q2']); None si está mal formada."""
    izquierda, derecha = split_arrow(entry)
    partes = [p.strip() for p in izquierda.split(",")]
    destinos = _split_list(derecha)
    if len(partes) != 2 or not all(partes) or not destinos:
        return None
    src, sym = partes
    return src, (EPSILON if _es_epsilon(sym) else sym), destinos


def parse_automata(texto: str) -> Tuple[Optional[Automaton], List[str], str]:
    """Devuelve (autómata, líneas ignoradas, error)."""
    sections: Dict[str, List[str]] = {k: [] for k in SECTIONS}
    skipped: List[str] = []
    current = None

    for raw in texto.splitlines():
        linea = raw.strip()
        if not linea:
            continue
        m = SECTION_RE.match(linea)
        if m:
            current = m.group(1).lower()
            resto = m.group(2).strip()
            if resto:
                sections[current].append(resto)
        elif current is None:
            log.debug("línea fuera de sección ignorada: %r", linea)
            skipped.append(linea)
        else:
            sections[current].append(linea)

    states: List[str] = []
    alphabet: List[str] = []

    def _mention(s: str) -> None:
        if s not in states:
            states.append(s)

    def _symbol(a: str) -> None:
        if not _es_epsilon(a) and a not in alphabet:
            alphabet.append(a)

    for linea in sections["states"]:
        for s in _split_list(linea):
            _mention(s)
    for linea in sections["alphabet"]:
        for a in _split_list(linea):
            _symbol(a)

    start_decl = [s for linea in sections["start"] for s in _split_list(linea)]
    accept = [s for linea in sections["accept"] for s in _split_list(linea)]
    for s in start_decl[:1] + accept:
        _mention(s)

    transitions: List[Tuple[str, str, List[str]]] = []
    for linea in sections["transitions"]:
        for entry in linea.split(";"):
            entry = entry.strip()
            if not entry:
                continue
            parsed = _parse_transition(entry)
            if parsed is None:
                log.debug("transición mal formada ignorada: %r", entry)
                skipped.append(entry)
                continue
            src, sym, destinos = parsed
            _mention(src)
            _symbol(sym)
            for d in destinos:
                _mention(d)
            transitions.append(parsed)

    if not states:
        return None, skipped, "Error: no se pudo determinar ningún estado (sección 'States:')"

    automata = Automaton(
        states=states,
        alphabet=alphabet,
        start=start_decl[0] if start_decl else states[0],
        accept=set(accept),
    )
    for src, sym, destinos in transitions:
        for d in destinos:
            automata.add_transition(src, sym, d)
    return automata, skipped, ""


# ===============================================================
# CONSTRUCCIÓN DE SUBCONJUNTOS (AFN -> AFD)
# ===============================================================

def epsilon_closure(nfa: Automaton, states: Iterable[str]) -> FrozenSet[str]:
    closure = set(states)
    stack = list(closure)
    while stack:
        s = stack.pop()
        for nxt in nfa.targets(s, EPSILON):
            if nxt not in closure:
                closure.add(nxt)
                stack.append(nxt)
    return frozenset(closure)


def move(nfa: Automaton, states: Iterable[str], symbol: str) -> FrozenSet[str]:
    result: Set[str] = set()
    for s in states:
        result |= nfa.targets(s, symbol)
    return frozenset(result)


def state_set_name(states: Iterable[str]) -> str:
    """Nombre canónico de un conjunto de estados: 'q0,q1' o ∅."""
    members = sorted(states)
    return ",".join(members) if members else EMPTY_SET


def nfa_to_dfa(nfa: Automaton) -> Automaton:
    start_set = epsilon_closure(nfa, [nfa.start])
    start_name = state_set_name(start_set)

    dfa = Automaton(states=[start_name], alphabet=nfa.alphabet[:], start=start_name)
    composition: Dict[str, FrozenSet[str]] = {start_name: start_set}
    queue = deque([start_name])

    while queue:
        T_name = queue.popleft()
        T = composition[T_name]
        if T & nfa.accept:
            dfa.accept.add(T_name)
        for a in nfa.alphabet:
            U = epsilon_closure(nfa, move(nfa, T, a))
            if not U:
                continue
            U_name = state_set_name(U)
            if U_name not in composition:
                composition[U_name] = U
                dfa.states.append(U_name)
                queue.append(U_name)
            dfa.transitions[(T_name, a)] = {U_name}

    log.debug("subconjuntos: %d estados AFN -> %d estados AFD", len(nfa.states), len(dfa.states))
    return dfa


# ===============================================================
# COMPLETAR Y MINIMIZAR AFD
# ===============================================================

def complete_dfa(dfa: Automaton) -> Automaton:
    """Agrega un único estado muerto para los pares (estado, símbolo) sin transición."""
    out = dfa.copy()
    missing = [(s, a) for s in out.states for a in out.alphabet if not out.targets(s, a)]
    if not missing:
        return out

    dead = fresh_symbol(EMPTY_SET, "", out.states, extra="'")
    out.states.append(dead)
    for s, a in missing:
        out.transitions[(s, a)] = {dead}
    for a in out.alphabet:
        out.transitions[(dead, a)] = {dead}
    return out


def remove_unreachable(dfa: Automaton) -> Automaton:
    reachable = {dfa.start}
    stack = [dfa.start]
    while stack:
        s = stack.pop()
        for (src, _), dsts in dfa.transitions.items():
            if src != s:
                continue
            for d in dsts:
                if d not in reachable:
                    reachable.add(d)
                    stack.append(d)

    return Automaton(
        states=[s for s in dfa.states if s in reachable],
        alphabet=dfa.alphabet[:],
        start=dfa.start,
        accept={s for s in dfa.accept if s in reachable},
        transitions={
            (s, a): {d for d in dsts if d in reachable}
            for (s, a), dsts in dfa.transitions.items()
            if s in reachable
        },
    )


def _target(dfa: Automaton, state: str, symbol: str) -> Optional[str]:
    dsts = dfa.targets(state, symbol)
    return min(dsts) if dsts else None


def _block_name(block: List[str]) -> str:
    if len(block) == 1:
        return block[0]
    return "{" + ",".join(sorted(block)) + "}"


def minimize_dfa(dfa: Automaton) -> Tuple[Optional[Automaton], str]:
    """Refinamiento de particiones (Moore). Devuelve (afd mínimo, error)."""
    if not dfa.states or dfa.start not in dfa.states:
        return None, "Error: el autómata no tiene estados"
    if not dfa.is_deterministic():
        log.warning("minimize_dfa recibió un autómata no determinista; se usa un destino por par")

    dfa = remove_unreachable(dfa)

    # Partición inicial: aceptación vs no aceptación
    accepting = [s for s in dfa.states if s in dfa.accept]
    rest = [s for s in dfa.states if s not in dfa.accept]
    blocks = [b for b in (accepting, rest) if b]

    changed = True
    while changed:
        changed = False
        index = {s: i for i, b in enumerate(blocks) for s in b}
        refined: List[List[str]] = []
        for b in blocks:
            if len(b) == 1:
                refined.append(b)
                continue
            groups: Dict[Tuple[int, ...], List[str]] = {}
            for s in b:
                sig = tuple(index.get(_target(dfa, s, a), -1) for a in dfa.alphabet)
                groups.setdefault(sig, []).append(s)
            if len(groups) > 1:
                changed = True
                log.debug("bloque %s dividido en %d", b, len(groups))
            refined.extend(groups.values())
        blocks = refined

    # El bloque inicial va primero
    blocks.sort(key=lambda b: dfa.start not in b)
    names = {s: _block_name(b) for b in blocks for s in b}

    minimo = Automaton(
        states=[_block_name(b) for b in blocks],
        alphabet=dfa.alphabet[:],
        start=names[dfa.start],
        accept={names[s] for s in dfa.accept},
    )
    for b in blocks:
        rep = b[0]
        for a in dfa.alphabet:
            d = _target(dfa, rep, a)
            if d is not None:
                minimo.transitions[(names[rep], a)] = {names[d]}
    return minimo, ""


# ===============================================================
# REPRESENTACIÓN (TABLAS, DOT)
# ===============================================================

def _fmt_targets(dsts: Set[str]) -> str:
    if not dsts:
        return "—"
    if len(dsts) == 1:
        return next(iter(dsts))
    return "{" + ", ".join(sorted(dsts)) + "}"


def transitions_to_rows(automata: Automaton) -> List[dict]:
    """Tabla de transiciones: una fila por estado (→ inicial, * aceptación)."""
    symbols = automata.alphabet[:]
    if any(sym == EPSILON for (_, sym) in automata.transitions):
        symbols.append(EPSILON)
    rows = []
    for s in automata.states:
        marca = ("→" if s == automata.start else "") + ("*" if s in automata.accept else "")
        row = {"Estado": f"{marca}{s}"}
        for a in symbols:
            row[a] = _fmt_targets(automata.targets(s, a))
        rows.append(row)
    return rows


def to_dot_automata(automata: Automaton, nombre: str = "AF") -> str:
    """Genera el grafo DOT del autómata; las aristas paralelas se agrupan."""
    def _esc(s: str) -> str:
        return s.replace('"', r'\"')

    lines = [
        f'digraph "{_esc(nombre)}" {{',
        "  rankdir=LR;",
        '  node [shape=circle, fontname="Courier"];',
        '  __start [shape=point, label=""];',
    ]
    for s in automata.states:
        shape = "doublecircle" if s in automata.accept else "circle"
        lines.append(f'  "{_esc(s)}" [shape={shape}, label="{_esc(s)}"];')
    lines.append(f'  __start -> "{_esc(automata.start)}";')

    edges: Dict[Tuple[str, str], List[str]] = {}
    for (src, sym), dsts in automata.transitions.items():
        for d in sorted(dsts):
            edges.setdefault((src, d), []).append(sym)
    for (src, d), syms in edges.items():
        lines.append(f'  "{_esc(src)}" -> "{_esc(d)}" [label="{_esc(",".join(syms))}"];')

    lines.append("}")
    return "\n".join(lines)


# ===============================================================
# Front-end "puro" para la app
# ===============================================================

def analizar_automata(texto: str) -> Tuple[
    Optional[Automaton], Optional[Automaton],  # afn, afd
    Optional[Automaton], Optional[Automaton],  # afd completo, afd mínimo
    str                                        # error
]:
    nfa, _, error = parse_automata(texto)
    if error:
        return None, None, None, None, error

    dfa = nfa_to_dfa(nfa)
    completo = complete_dfa(dfa)
    minimo, error = minimize_dfa(dfa)
    if error:
        return nfa, dfa, completo, None, error
    return nfa, dfa, completo, minimo, ""
