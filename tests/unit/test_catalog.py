import pytest

from catalog import BUNDLED_CATALOG, Question, QuestionCatalog, ScoringGuide, default_catalog, load_catalog


def test_bundled_catalog_loads():
    catalog = default_catalog()

    assert len(catalog) >= 3
    first = catalog.at(0)
    assert first.number == 1
    assert first.disqualifies_if_no is True
    assert first.requirements[0] == "OHS Policy Document"
    assert "  " not in first.text
    assert catalog.get(2).evidence_trigger == "both"
    assert BUNDLED_CATALOG.exists()


def test_evidence_triggers():
    question = Question(number=1, text="Q", requirements=["Doc", "  "], evidence_trigger="yes")
    assert question.requirements == ("Doc",)
    assert question.requires_evidence("Yes")
    assert not question.requires_evidence("No")

    both = question.model_copy(update={"evidence_trigger": "both"})
    assert both.requires_evidence("No")

    bare = Question(number=2, text="Q", evidence_trigger="both")
    assert not bare.requires_evidence("Yes")


def test_disqualification_only_on_no():
    question = Question(number=1, text="Q", disqualifies_if_no=True)
    assert question.disqualifies("No")
    assert not question.disqualifies("Yes")


def test_catalog_is_ordered_and_unique():
    catalog = QuestionCatalog([Question(number=5, text="B"), Question(number=2, text="A")])
    assert [q.number for q in catalog] == [2, 5]
    assert catalog.index_of(5) == 1
    assert not catalog.has(3)

    with pytest.raises(ValueError):
        QuestionCatalog([Question(number=1, text="A"), Question(number=1, text="B")])
    with pytest.raises(ValueError):
        QuestionCatalog([])
    with pytest.raises(IndexError):
        catalog.requirement(2, 0)


def test_scoring_guide_renders_in_band_order():
    guide = ScoringGuide(offtrack="Nothing", stretch="Excellent")
    assert guide.render().splitlines() == ["- STRETCH (5/5): Excellent", "- OFFTRACK (1/5): Nothing"]


def test_load_catalog_from_yaml(tmp_path):
    path = tmp_path / "mini.yaml"
    path.write_text(
        "name: mini\nquestions:\n  - number: 1\n    text: Any policy?\n    requirements: [Policy]\n",
        encoding="utf-8",
    )
    catalog = load_catalog(path)

    assert catalog.name == "mini"
    assert catalog.requirement(1, 0) == "Policy"

    path.write_text("- just a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_catalog(path)
