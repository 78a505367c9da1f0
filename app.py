import logging

import pandas as pd
import streamlit as st

from automatas import analizar_automata, to_dot_automata, transitions_to_rows
from parser_ll1 import analizar_gramatica, analizar_ll1, sets_to_rows, table_to_rows
from transformaciones import eliminate_left_recursion, left_factor, left_recursive_nonterminals
from utils import limpiar_texto, parse_grammar, probar_regex, stringify_grammar
from validacion import validate_grammar

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="Gramáticas y Autómatas", page_icon="🧩", layout="wide")

EJEMPLO_LL1 = "E -> T E'\nE' -> + T E' | ε\nT -> F T'\nT' -> * F T' | ε\nF -> ( E ) | id\n"
EJEMPLO_RECURSION = "E -> E + T | T\nT -> T * F | F\nF -> ( E ) | id\n"
EJEMPLO_FACTOR = "A -> a b c | a b d | a x | b y\n"
EJEMPLO_AFN = (
    "States: q0,q1,q2\n"
    "Alphabet: a,b\n"
    "Start: q0\n"
    "Accept: q2\n"
    "Transitions:\n"
    "q0,a->q0,q1\n"
    "q0,b->q0\n"
    "q1,b->q2\n"
)


# ---------- Session helpers ----------
def _store_results(clave: str, **kwargs):
    st.session_state[clave] = kwargs

def _get_results(clave: str):
    return st.session_state.get(clave, {})


def _df(rows):
    return st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)


# ---------- Secciones ----------
def seccion_first_follow():
    st.subheader("FIRST y FOLLOW")
    texto = st.text_area("Gramática:", value=EJEMPLO_RECURSION, height=180, key="ff_text")
    if st.button("Calcular FIRST / FOLLOW", type="primary"):
        grammar, first, follow, start, error = analizar_gramatica(limpiar_texto(texto))
        if error:
            st.error(error)
            return
        st.caption(f"Símbolo inicial: **{start}**")
        _df(sets_to_rows(first, follow))

        reporte = validate_grammar(grammar, start)
        if reporte.is_clean:
            st.success("Todos los no terminales son alcanzables y productivos.")
        else:
            st.warning("La gramática tiene símbolos problemáticos:")
            _df(reporte.to_rows())


def seccion_transformaciones():
    st.subheader("Recursión izquierda y factorización")
    texto = st.text_area("Gramática:", value=EJEMPLO_RECURSION + EJEMPLO_FACTOR, height=180, key="tr_text")
    col1, col2 = st.columns(2)
    grammar, _, skipped, error = parse_grammar(limpiar_texto(texto))
    if skipped:
        st.info(f"Líneas ignoradas: {len(skipped)}")

    with col1:
        if st.button("1) Eliminar recursión izquierda", use_container_width=True):
            if error:
                st.error(error)
            else:
                recursivos = left_recursive_nonterminals(grammar)
                st.caption("Recursivos por la izquierda: " + (", ".join(recursivos) or "ninguno"))
                st.code(stringify_grammar(eliminate_left_recursion(grammar)), language="none")
    with col2:
        if st.button("2) Factorizar por la izquierda", use_container_width=True):
            if error:
                st.error(error)
            else:
                st.code(stringify_grammar(left_factor(grammar)), language="none")


def seccion_ll1():
    st.subheader("Tabla predictiva LL(1)")
    texto = st.text_area("Gramática:", value=EJEMPLO_LL1, height=180, key="ll1_text")
    transformar = st.checkbox("Eliminar recursión y factorizar antes de construir la tabla")

    if st.button("Construir tabla LL(1)", type="primary"):
        grammar, first, follow, table, conflicts, start, error = analizar_ll1(
            limpiar_texto(texto), transformar=transformar)
        if error:
            st.error(error)
        else:
            _store_results("ll1", grammar=grammar, first=first, follow=follow,
                           table=table, conflicts=conflicts, start=start,
                           transformada=transformar)

    res = _get_results("ll1")
    if not res:
        return

    if res["transformada"]:
        st.code(stringify_grammar(res["grammar"]), language="none")
    _df(sets_to_rows(res["first"], res["follow"]))
    _df(table_to_rows(res["grammar"], res["table"]))

    if res["conflicts"]:
        st.error("⚠️ Conflictos detectados:")
        for c in res["conflicts"]:
            st.write("- " + str(c))
    else:
        st.success("Sin conflictos: la gramática es LL(1).")


def seccion_automatas():
    st.subheader("AFN → AFD → AFD mínimo")
    texto = st.text_area("Autómata:", value=EJEMPLO_AFN, height=220, key="af_text")
    if st.button("Convertir", type="primary"):
        nfa, dfa, completo, minimo, error = analizar_automata(texto)
        if nfa is None:
            st.error(error)
            return

        for titulo, automata in (("AFN", nfa), ("AFD (subconjuntos)", dfa),
                                 ("AFD completo", completo), ("AFD mínimo", minimo)):
            if automata is None:
                st.error(error)
                continue
            st.markdown(f"**{titulo}**: {len(automata.states)} estados")
            _df(transitions_to_rows(automata))
            st.graphviz_chart(to_dot_automata(automata, titulo), use_container_width=True)


def seccion_regex():
    st.subheader("Probador de expresiones regulares")
    col1, col2 = st.columns([3, 1])
    with col1:
        patron = st.text_input("Patrón:", value=r"\b\d+\b")
    with col2:
        flags = st.text_input("Flags:", value="g")
    texto = st.text_area("Texto:", value="Pedidos: 42, 256 y 1024.", height=100)
    if st.button("Probar"):
        resultado = probar_regex(patron, texto, flags)
        if "error" in resultado:
            st.error(f"Patrón inválido: {resultado['error']}")
        else:
            _df(resultado["matches"])


SECCIONES = {
    "FIRST / FOLLOW": seccion_first_follow,
    "Transformaciones": seccion_transformaciones,
    "LL(1)": seccion_ll1,
    "Autómatas": seccion_automatas,
    "Regex": seccion_regex,
}


# ---------- App ----------
def app():
    st.title("Herramientas de Compiladores: gramáticas y autómatas")
    st.caption("Formato: `A -> α | β` (una producción por línea). ε o `epsilon` para la cadena vacía.")
    opcion = st.sidebar.radio("Herramienta", list(SECCIONES))
    SECCIONES[opcion]()


if __name__ == "__main__":
    app()
