from spdxgraph.error import MalformedReference
from spdxgraph.identifier import (
    DOCUMENT_ID,
    ElementID,
    ScopedReference,
    Sentinel,
    local,
    make_element_id,
    parse_document_ref_id,
    parse_element_id,
    parse_reference,
    reference_sort_key,
    render_reference,
)

import pytest


def test_parse_element_id():
    assert parse_element_id("SPDXRef-Package-1.0") == ElementID("Package-1.0")
    assert str(parse_element_id(" SPDXRef-DOCUMENT ")) == "SPDXRef-DOCUMENT"
    assert parse_element_id("SPDXRef-DOCUMENT") == DOCUMENT_ID


@pytest.mark.parametrize(
    "text", ["Package", "SPDXRef-", "SPDXRef-a b", "SPDXRef-a_b", "spdxref-a"]
)
def test_parse_element_id_malformed(text):
    with pytest.raises(MalformedReference) as err:
        parse_element_id(text)
    assert err.value.text


def test_parse_reference():
    assert parse_reference("SPDXRef-File") == ScopedReference(ElementID("File"))
    assert parse_reference("SPDXRef-File").is_local

    ref = parse_reference("DocumentRef-spdx-tool-1.2:SPDXRef-ToolsElement")
    assert ref == ScopedReference(ElementID("ToolsElement"), "spdx-tool-1.2")
    assert not ref.is_local

    assert parse_reference("NONE") is Sentinel.NONE
    assert parse_reference("NOASSERTION") is Sentinel.NOASSERTION


@pytest.mark.parametrize(
    "text",
    [
        "DocumentRef-other",
        "DocumentRef-other:",
        "DocumentRef-:SPDXRef-a",
        "Document-other:SPDXRef-a",
        "DocumentRef-other:File",
        "",
        "noassertion",
    ],
)
def test_parse_reference_malformed(text):
    with pytest.raises(MalformedReference):
        parse_reference(text)


def test_render_reference():
    for text in (
        "SPDXRef-DOCUMENT",
        "DocumentRef-other:SPDXRef-lib",
        "NONE",
        "NOASSERTION",
    ):
        assert render_reference(parse_reference(text)) == text
    assert str(ScopedReference(ElementID("lib"), "other")) == (
        "DocumentRef-other:SPDXRef-lib"
    )


def test_parse_document_ref_id():
    assert parse_document_ref_id("DocumentRef-other") == "other"
    with pytest.raises(MalformedReference):
        parse_document_ref_id("DocumentRef-a:b")
    with pytest.raises(MalformedReference):
        parse_document_ref_id("SPDXRef-a")


def test_element_id_validation():
    with pytest.raises(MalformedReference):
        ElementID("a/b")
    with pytest.raises(MalformedReference):
        ScopedReference(ElementID("a"), "bad ref")


def test_local():
    assert local("SPDXRef-P") == local("P") == ScopedReference(ElementID("P"))
    assert local(ElementID("P")).is_local


def test_make_element_id():
    assert make_element_id("my package 1.0") == ElementID("mypackage1.0")
    assert make_element_id("SPDXRef-already") == ElementID("already")
    with pytest.raises(MalformedReference):
        make_element_id("$$$")


def test_reference_sort_key():
    refs = [Sentinel.NONE, local("b"), ScopedReference(ElementID("a"), "x"), local("a")]
    assert [render_reference(r) for r in sorted(refs, key=reference_sort_key)] == [
        "DocumentRef-x:SPDXRef-a",
        "NONE",
        "SPDXRef-a",
        "SPDXRef-b",
    ]


def test_local_invalid_idstring():
    with pytest.raises(MalformedReference):
        local("a b")
    with pytest.raises(MalformedReference):
        local("SPDXRef-")


def test_malformed_scoped_reference_message():
    with pytest.raises(MalformedReference) as err:
        parse_reference("DocumentRef-:SPDXRef-x")
    assert err.value.reason == "empty document ref id"
    assert str(err.value).count("malformed reference") == 1
    assert "'DocumentRef-:SPDXRef-x'" in str(err.value)
