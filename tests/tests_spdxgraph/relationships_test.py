from spdxgraph.config import Config
from spdxgraph.document import File, Relationship, RelationshipType, Snippet
from spdxgraph.identifier import ElementID, ScopedReference, local
from spdxgraph.relationships import (
    add_derived,
    dedupe_derived,
    described_packages,
    file_owners,
    filter_relationships,
    package_file_ids,
    snippet_owners,
)


def contains(a, b, comment=""):
    return Relationship(local(a), RelationshipType.CONTAINS, local(b), comment)


def test_described_packages(simple_document):
    doc = simple_document
    assert described_packages(doc) == [ElementID("P")]

    # DESCRIBED_BY the document is the inverse of DESCRIBES
    doc.relationships = [
        Relationship(local("P"), RelationshipType.DESCRIBED_BY, doc.reference)
    ]
    assert described_packages(doc) == [ElementID("P")]
    assert described_packages(doc, include_inverse=False) == []

    # External elements are never described
    doc.relationships = [
        Relationship(
            doc.reference,
            RelationshipType.DESCRIBES,
            ScopedReference(ElementID("P"), "other"),
        )
    ]
    assert described_packages(doc) == []

    doc.root_elements = [ElementID("P"), ElementID("F")]
    assert described_packages(doc) == [ElementID("F"), ElementID("P")]


def test_filter_relationships(full_document):
    doc = full_document
    assert len(filter_relationships(doc)) == len(doc.relationships)
    depends = filter_relationships(doc, RelationshipType.DEPENDS_ON)
    assert [str(r.ref_a) for r in depends] == ["SPDXRef-P", "SPDXRef-Q"]
    assert filter_relationships(doc, RelationshipType.DEPENDS_ON, ref_b=local("Q")) == [
        depends[0]
    ]
    assert filter_relationships(doc, ref_a=local("F1")) == []


def test_package_file_ids(simple_document):
    doc = simple_document
    assert package_file_ids(doc, ElementID("P")) == [ElementID("F")]

    # A file listed both nested and through CONTAINS is counted once
    doc.packages[0].files.append(doc.files[0])
    assert package_file_ids(doc, ElementID("P")) == [ElementID("F")]

    doc.add_file(File(ElementID("G"), "./g"))
    doc.add_relationship(
        Relationship(local("G"), RelationshipType.CONTAINED_BY, local("P"))
    )
    assert package_file_ids(doc, ElementID("P")) == [ElementID("F")]
    assert package_file_ids(doc, ElementID("P"), include_inverse=True) == [
        ElementID("F"),
        ElementID("G"),
    ]

    # CONTAINS towards something that is not a file is ignored
    doc.add_relationship(contains("P", "P"))
    assert package_file_ids(doc, ElementID("P")) == [ElementID("F")]


def test_owners(full_document):
    assert file_owners(full_document) == {ElementID("F1"): ElementID("P")}
    assert snippet_owners(full_document) == {ElementID("S1"): ElementID("F1")}

    full_document.add_snippet(
        Snippet(ElementID("S2"), ScopedReference(ElementID("F"), "other"))
    )
    assert ElementID("S2") not in snippet_owners(full_document)


def test_dedupe_derived():
    existing = [contains("P", "F", "explicit")]
    derived = [contains("P", "F"), contains("P", "G"), contains("P", "G")]
    assert dedupe_derived(existing, derived) == [contains("P", "G")]


def test_add_derived_keeps_explicit_duplicates(simple_document):
    doc = simple_document
    # Explicit relationships are never merged
    doc.add_relationship(contains("P", "F"))
    assert len(filter_relationships(doc, RelationshipType.CONTAINS)) == 2

    add_derived(doc, [contains("P", "F")])
    assert len(filter_relationships(doc, RelationshipType.CONTAINS)) == 2


def test_add_derived_without_dedupe(simple_document, monkeypatch):
    monkeypatch.setattr(
        Config, "data", {"codec": {"dedupe_derived_relationships": False}}
    )
    add_derived(simple_document, [contains("P", "F")])
    assert len(filter_relationships(simple_document, RelationshipType.CONTAINS)) == 2
