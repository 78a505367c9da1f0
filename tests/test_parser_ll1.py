from parser_ll1 import (
    analizar_gramatica,
    analizar_ll1,
    build_predictive_table,
    compute_first,
    compute_follow,
    first_of_sequence,
    is_ll1,
    sets_to_rows,
    table_terminals,
    table_to_rows,
)
from utils import END_MARKER, EPSILON, parse_grammar

CLASICA = """
E -> T E'
E' -> + T E' | ε
T -> F T'
T' -> * F T' | ε
F -> ( E ) | id
"""

RECURSIVA = """
S -> A
A -> a B | A d
B -> b
C -> g
"""

EXPRESIONES = """
E -> E + T | T
T -> T * F | F
F -> ( E ) | id
"""


def _sets(texto):
    grammar, start, _, _ = parse_grammar(texto)
    first = compute_first(grammar)
    follow = compute_follow(grammar, first, start)
    return grammar, first, follow


def test_first_gramatica_clasica():
    _, first, _ = _sets(CLASICA)
    assert first["E"] == {"(", "id"}
    assert first["T"] == {"(", "id"}
    assert first["F"] == {"(", "id"}
    assert first["E'"] == {"+", EPSILON}
    assert first["T'"] == {"*", EPSILON}


def test_follow_gramatica_clasica():
    _, _, follow = _sets(CLASICA)
    assert follow["E"] == {")", END_MARKER}
    assert follow["E'"] == {")", END_MARKER}
    assert follow["T"] == {"+", ")", END_MARKER}
    assert follow["T'"] == {"+", ")", END_MARKER}
    assert follow["F"] == {"*", "+", ")", END_MARKER}


def test_first_y_follow_invariantes():
    for texto in (CLASICA, RECURSIVA, EXPRESIONES):
        grammar, first, follow = _sets(texto)
        start = next(iter(grammar))
        assert END_MARKER in follow[start]
        for A in grammar:
            assert END_MARKER not in first[A]
            assert EPSILON not in follow[A]


def test_first_of_sequence():
    grammar, first, _ = _sets(CLASICA)
    assert first_of_sequence([], first, grammar) == {EPSILON}
    assert first_of_sequence([EPSILON], first, grammar) == {EPSILON}
    assert first_of_sequence(["E'", "T'"], first, grammar) == {"+", "*", EPSILON}
    assert first_of_sequence(["T'", ")"], first, grammar) == {"*", ")"}
    assert first_of_sequence(["id", "E"], first, grammar) == {"id"}


def test_epsilon_a_traves_de_cadena_de_anulables():
    grammar, first, follow = _sets("S -> A B c\nA -> B | a\nB -> ε | b")
    assert first["B"] == {"b", EPSILON}
    assert first["A"] == {"a", "b", EPSILON}
    assert first["S"] == {"a", "b", "c"}
    assert follow["A"] == {"b", "c"}
    assert follow["B"] == {"b", "c"}


def test_follow_sin_simbolo_inicial_valido():
    grammar, _, _, _ = parse_grammar("S -> a")
    first = compute_first(grammar)
    follow = compute_follow(grammar, first, "Z")
    assert follow == {"S": set()}


def test_tabla_clasica_sin_conflictos():
    grammar, first, follow = _sets(CLASICA)
    table, conflicts = build_predictive_table(grammar, first, follow)
    assert conflicts == []
    assert is_ll1(conflicts)
    assert all(len(cell) <= 1 for cell in table.values())
    assert table[("E", "id")] == [["T", "E'"]]
    assert table[("E'", ")")] == [[EPSILON]]
    assert table[("E'", END_MARKER)] == [[EPSILON]]
    assert table[("F", "(")] == [["(", "E", ")"]]
    assert ("F", "+") not in table


def test_tabla_recursiva_tiene_conflicto():
    grammar, first, follow = _sets(RECURSIVA)
    table, conflicts = build_predictive_table(grammar, first, follow)
    assert not is_ll1(conflicts)
    assert [(c.nonterminal, c.terminal) for c in conflicts] == [("A", "a")]
    assert conflicts[0].alternatives == [["a", "B"], ["A", "d"]]
    assert str(conflicts[0]) == "Conflicto en M[A, a]: a B || A d"


def test_registro_idempotente():
    grammar, first, follow = _sets("S -> a | a")
    table, conflicts = build_predictive_table(grammar, first, follow)
    assert table[("S", "a")] == [["a"]]
    assert conflicts == []


def test_columnas_con_fin_de_entrada_al_final():
    grammar, first, follow = _sets(CLASICA)
    table, _ = build_predictive_table(grammar, first, follow)
    assert table_terminals(table) == ["(", ")", "*", "+", "id", END_MARKER]


def test_filas_para_dataframe():
    grammar, first, follow = _sets(CLASICA)
    table, _ = build_predictive_table(grammar, first, follow)
    filas = sets_to_rows(first, follow)
    assert filas[0] == {"No Terminal": "E", "FIRST": "(, id", "FOLLOW": "$, )"}
    tabla = table_to_rows(grammar, table)
    assert [f["No Terminal"] for f in tabla] == list(grammar)
    assert tabla[0]["id"] == "E -> T E'"
    assert tabla[0]["+"] == ""


def test_analizar_gramatica():
    grammar, first, follow, start, error = analizar_gramatica(CLASICA)
    assert error == ""
    assert start == "E"
    assert set(first) == set(follow) == set(grammar)


def test_analizar_errores():
    assert analizar_gramatica("")[-1]
    *_, start, error = analizar_ll1("sin flecha")
    assert start == ""
    assert error


def test_analizar_ll1_con_y_sin_transformar():
    *_, conflicts, _, error = analizar_ll1(RECURSIVA)
    assert error == ""
    assert conflicts

    grammar, _, follow, _, conflicts, start, error = analizar_ll1(RECURSIVA, transformar=True)
    assert error == ""
    assert start == "S"
    assert conflicts == []
    assert grammar["A"] == [["a", "B", "A'"]]
    assert grammar["A'"] == [["d", "A'"], [EPSILON]]
    assert follow["A'"] == {END_MARKER}


def test_analizar_ll1_expresiones_transformadas():
    grammar, _, _, _, conflicts, _, _ = analizar_ll1(EXPRESIONES, transformar=True)
    assert conflicts == []
    assert list(grammar) == ["E", "T", "F", "E'", "T'"]
