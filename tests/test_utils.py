import pytest

from utils import (
    EPSILON,
    clone_grammar,
    fresh_symbol,
    identify_symbols,
    parse_grammar,
    probar_regex,
    stringify_grammar,
    tokenize_alternative,
)

CLASICA = """
E -> T E'
E' -> + T E' | ε
T -> F T'
T' -> * F T' | ε
F -> ( E ) | id
"""


@pytest.mark.parametrize("alt, esperado", [
    ("TE'", ["T", "E'"]),
    ("+TE'", ["+", "T", "E'"]),
    ("(E)", ["(", "E", ")"]),
    ("id", ["id"]),
    ("a==b", ["a", "==", "b"]),
    ("x<=y", ["x", "<=", "y"]),
    ("Expr+1", ["Expr", "+", "1"]),
    ("aB", ["a", "B"]),
    ("epsilon", [EPSILON]),
    ("ε", [EPSILON]),
    ("", [EPSILON]),
    ("   ", [EPSILON]),
])
def test_tokenize_sin_espacios(alt, esperado):
    assert tokenize_alternative(alt) == esperado


def test_tokenize_respeta_espacios():
    assert tokenize_alternative("T E'") == ["T", "E'"]
    assert tokenize_alternative("id1 + id2") == ["id1", "+", "id2"]


def test_tokenize_epsilon_concatenado_desaparece():
    assert tokenize_alternative("a epsilon") == ["a"]
    assert tokenize_alternative("ε ε") == [EPSILON]


def test_parse_gramatica_clasica():
    grammar, start, skipped, error = parse_grammar(CLASICA)
    assert error == ""
    assert skipped == []
    assert start == "E"
    assert list(grammar) == ["E", "E'", "T", "T'", "F"]
    assert grammar["E'"] == [["+", "T", "E'"], [EPSILON]]
    assert grammar["F"] == [["(", "E", ")"], ["id"]]


def test_parse_flecha_unicode_y_redeclaracion():
    grammar, start, _, error = parse_grammar("S → a S\nS -> b")
    assert error == ""
    assert start == "S"
    assert grammar == {"S": [["a", "S"], ["b"]]}


def test_parse_alternativa_vacia_es_epsilon():
    grammar, _, _, _ = parse_grammar("A -> a |")
    assert grammar["A"] == [["a"], [EPSILON]]


def test_parse_ignora_lineas_mal_formadas():
    texto = "esto no es una producción\nS -> a\n-> b\n\n"
    grammar, start, skipped, error = parse_grammar(texto)
    assert error == ""
    assert grammar == {"S": [["a"]]}
    assert skipped == ["esto no es una producción", "-> b"]


def test_parse_sin_producciones_es_error():
    grammar, start, skipped, error = parse_grammar("nada por aquí")
    assert grammar == {}
    assert start == ""
    assert error
    assert skipped == ["nada por aquí"]


def test_stringify_ida_y_vuelta():
    grammar, _, _, _ = parse_grammar(CLASICA)
    texto = stringify_grammar(grammar)
    assert texto.splitlines()[1] == "E' -> + T E' | ε"
    otra, _, _, _ = parse_grammar(texto)
    assert stringify_grammar(otra) == texto


def test_clone_es_profundo():
    grammar, _, _, _ = parse_grammar("S -> a b")
    copia = clone_grammar(grammar)
    copia["S"][0].append("c")
    assert grammar["S"] == [["a", "b"]]


def test_identify_symbols():
    grammar, _, _, _ = parse_grammar(CLASICA)
    nonterminals, terminals = identify_symbols(grammar)
    assert nonterminals == ["E", "E'", "T", "T'", "F"]
    assert terminals == ["+", "*", "(", ")", "id"]


def test_fresh_symbol():
    assert fresh_symbol("A", "'", {"A"}) == "A'"
    assert fresh_symbol("A", "'", {"A", "A'", "A''"}) == "A'''"
    assert fresh_symbol("A", "_fact", {"A_fact"}, extra="_") == "A_fact_"


def test_probar_regex_coincidencias():
    res = probar_regex(r"\b\d+\b", "Order numbers: 42, 256, and 1024.", "g")
    assert [m["text"] for m in res["matches"]] == ["42", "256", "1024"]
    assert res["matches"][0]["index"] == 15


def test_probar_regex_flags_y_grupos():
    res = probar_regex(r"(a)(b)?", "A", "i")
    assert res["matches"] == [{"text": "A", "index": 0, "groups": ["A", None]}]


@pytest.mark.parametrize("patron, flags", [("(abc", ""), ("a", "q")])
def test_probar_regex_error_no_escapa(patron, flags):
    res = probar_regex(patron, "abc", flags)
    assert "error" in res
    assert "matches" not in res
