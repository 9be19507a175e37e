from family_archive.loader.segmenter import GEDCOMNode
from family_archive.registry.build_individual import build_individual, clean_name

import pytest


def make_node(tag, value="", pointer=None, children=None, level=0, lineno=1):
    return GEDCOMNode(
        tag=tag,
        value=value,
        pointer=pointer,
        children=children or [],
        lineno=lineno,
        level=level,
    )


def test_build_individual_basic():
    indi = make_node(
        "INDI",
        pointer="@I1@",
        children=[
            make_node("NAME", value="John  /Doe/", level=1),
            make_node("SEX", "m", level=1),
            make_node("FAMS", "@F1@", level=1),
            make_node("FAMC", "@F2@", level=1),
            make_node(
                "BIRT",
                level=1,
                lineno=5,
                children=[
                    make_node("DATE", "1 JAN 1850", level=2),
                    make_node("PLAC", "Leeds", level=2),
                ],
            ),
            make_node("OCCU", "Farmer", level=1, lineno=8),
            make_node("NOTE", "Kept bees", level=1),
            make_node("NOTE", "@N1@", level=1),
            make_node("SOUR", "@S1@", level=1),
            make_node("SOUR", "@S1@", level=1),
            make_node("OBJE", level=1, children=[make_node("FILE", "a.jpg", level=2)]),
            make_node("OBJE", level=1, children=[make_node("FILE", "b.jpg", level=2)]),
        ],
    )

    entity = build_individual(indi)

    assert entity.pointer == "@I1@"
    assert entity.name == "John Doe"
    assert entity.sex == "M"

    assert entity.families_as_spouse == ["@F1@"]
    assert entity.families_as_child == ["@F2@"]

    assert [e.tag for e in entity.events] == ["BIRT", "OCCU"]
    birth = entity.first_event("BIRT")
    assert birth.date == "1 JAN 1850"
    assert birth.place == "Leeds"
    assert birth.label == "Birth"

    # Pointer notes belong to shared NOTE records and are not inlined.
    assert entity.notes == ["Kept bees"]
    assert entity.sources == ["@S1@"]
    assert entity.image_file == "a.jpg"


def test_build_individual_name_from_parts():
    indi = make_node(
        "INDI",
        pointer="@I2@",
        children=[
            make_node(
                "NAME",
                level=1,
                children=[make_node("GIVN", "Ann", level=2), make_node("SURN", "Lee", level=2)],
            ),
        ],
    )

    assert build_individual(indi).name == "Ann Lee"


def test_build_individual_without_name_or_sex():
    entity = build_individual(make_node("INDI", pointer="@I3@"))
    assert entity.name == ""
    assert entity.sex is None
    assert entity.events == []


def test_build_individual_rejects_wrong_records():
    with pytest.raises(ValueError):
        build_individual(make_node("FAM", pointer="@F1@"))
    with pytest.raises(ValueError):
        build_individual(make_node("INDI"))


def test_clean_name():
    assert clean_name("Mary  Ann /O'Neil/ ") == "Mary Ann O'Neil"
    assert clean_name(None) == ""
