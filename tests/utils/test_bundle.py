from higcorpus.utils.bundle import DOCUMENT_SEPARATOR, join_bundle, split_bundle
from higcorpus.utils.frontmatter import parse_document
from conftest import make_document_text


def test_join_then_split_keeps_document_order():
    first = make_document_text()
    second = make_document_text(id="ios-toggles", title="Toggles", platform="ios")

    unit = join_bundle([first, second])
    texts = split_bundle(unit)

    assert unit.count(DOCUMENT_SEPARATOR) == 1
    assert texts == [first, second]
    assert [parse_document(t).id for t in texts] == ["universal-boxes", "ios-toggles"]


def test_split_bundle_ignores_leading_and_trailing_separators():
    text = f"{DOCUMENT_SEPARATOR}\nfirst\n{DOCUMENT_SEPARATOR}\n\n{DOCUMENT_SEPARATOR}\nsecond\n{DOCUMENT_SEPARATOR}\n"
    assert split_bundle(text) == ["first\n", "second\n"]


def test_split_bundle_requires_the_separator_on_its_own_line():
    text = f"first\nnot a boundary: {DOCUMENT_SEPARATOR}\nstill first\n"
    assert split_bundle(text) == [text]


def test_split_bundle_of_empty_text():
    assert split_bundle("") == []
    assert split_bundle("\n  \n") == []


def test_join_bundle_adds_missing_newlines():
    assert join_bundle(["a", "b\n"]) == f"a\n{DOCUMENT_SEPARATOR}\nb\n"


def test_split_bundle_ignores_indented_separators():
    """A separator quoted inside a code block does not split the document."""
    text = f"first\n```\n    {DOCUMENT_SEPARATOR}\n```\n{DOCUMENT_SEPARATOR}  \nsecond\n"
    assert split_bundle(text) == [f"first\n```\n    {DOCUMENT_SEPARATOR}\n```\n", "second\n"]
