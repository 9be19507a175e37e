# tests/test_record_graph.py

from __future__ import annotations

from family_archive.loader import build_tree, tokenize_text
from family_archive.registry.build_registry import build_graph
from family_archive.registry.link_entities import link_entities


def _graph(text: str):
    return build_graph(build_tree(tokenize_text(text)))


def test_graph_registers_individuals_and_families_in_file_order(family_ged: str) -> None:
    graph = _graph(family_ged)

    assert list(graph.individuals) == ["@I1@", "@I2@", "@I3@", "@I4@", "@I5@", "@I6@", "@I7@"]
    assert list(graph.families) == ["@F0@", "@F1@", "@F2@"]


def test_neighbour_queries(family_ged: str) -> None:
    graph = _graph(family_ged)

    assert graph.parents_of("@I3@") == ["@I1@", "@I2@"]
    assert graph.children_of("@I1@") == ["@I3@"]
    assert graph.spouses_of("@I1@") == ["@I2@"]
    assert graph.spouses_of("@I2@") == ["@I1@"]
    assert graph.parents_of("@I1@") == ["@I6@"]
    assert graph.parents_of("@I7@") == []
    assert graph.spouses_of("@I6@") == []


def test_links_declared_only_on_individuals_are_used() -> None:
    text = (
        "0 @I1@ INDI\n1 SEX M\n1 FAMS @F1@\n"
        "0 @I2@ INDI\n1 SEX F\n1 FAMS @F1@\n"
        "0 @I3@ INDI\n1 FAMC @F1@\n"
        "0 @F1@ FAM\n"
    )
    graph = _graph(text)
    fam = graph.get_family("@F1@")

    assert fam.husband == "@I1@"
    assert fam.wife == "@I2@"
    assert fam.children == ["@I3@"]
    assert graph.parents_of("@I3@") == ["@I1@", "@I2@"]
    assert graph.spouses_of("@I2@") == ["@I1@"]


def test_links_declared_only_on_families_are_used() -> None:
    text = (
        "0 @I1@ INDI\n0 @I2@ INDI\n"
        "0 @F1@ FAM\n1 HUSB @I1@\n1 CHIL @I2@\n"
    )
    graph = _graph(text)

    assert graph.families_of("@I1@").as_spouse == ["@F1@"]
    assert graph.families_of("@I2@").as_child == ["@F1@"]
    assert graph.children_of("@I1@") == ["@I2@"]


def test_dangling_references_are_ignored() -> None:
    text = (
        "0 @I1@ INDI\n1 FAMS @F9@\n1 FAMC @F1@\n"
        "0 @F1@ FAM\n1 HUSB @I404@\n1 CHIL @I1@\n1 CHIL @I405@\n"
    )
    graph = _graph(text)

    assert graph.families_of("@I1@").as_spouse == []
    assert graph.families_of("@I1@").as_child == ["@F1@"]
    # The family still names the missing husband, but queries skip him.
    assert graph.parents_of("@I1@") == []
    assert "@I404@" not in graph.links


def test_fams_into_full_family_is_dropped_on_both_sides() -> None:
    text = (
        "0 @I1@ INDI\n1 SEX M\n1 FAMS @F1@\n"
        "0 @I2@ INDI\n1 SEX F\n1 FAMS @F1@\n"
        "0 @I3@ INDI\n1 SEX M\n1 FAMS @F1@\n"
        "0 @F1@ FAM\n1 HUSB @I1@\n1 WIFE @I2@\n"
    )
    graph = _graph(text)

    assert graph.families_of("@I3@").as_spouse == []
    assert graph.spouses_of("@I3@") == []
    assert graph.spouses_of("@I1@") == ["@I2@"]
    assert graph.families["@F1@"].spouses == ["@I1@", "@I2@"]


def test_link_entities_is_idempotent(family_ged: str) -> None:
    graph = _graph(family_ged)
    before = {ptr: (list(l.as_child), list(l.as_spouse)) for ptr, l in graph.links.items()}

    link_entities(graph)
    link_entities(graph)

    after = {ptr: (list(l.as_child), list(l.as_spouse)) for ptr, l in graph.links.items()}
    assert after == before
    assert graph.get_family("@F1@").children == ["@I3@"]


def test_records_without_pointer_are_skipped() -> None:
    graph = _graph("0 INDI\n1 NAME Lost\n0 @I1@ INDI\n")
    assert list(graph.individuals) == ["@I1@"]
