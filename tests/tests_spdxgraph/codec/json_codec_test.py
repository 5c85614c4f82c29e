import json

from spdxgraph.codec.json import JSONCodec, from_json_dict, to_json_dict
from spdxgraph.codec import normalize
from spdxgraph.document import (
    Actor,
    ActorType,
    Annotation,
    AnnotationType,
    PrimaryPackagePurpose,
    RelationshipType,
)
from spdxgraph.error import EncodeError, FormatError
from spdxgraph.identifier import ElementID, ScopedReference
from spdxgraph.relationships import described_packages, filter_relationships

import pytest


def minimal(**kwargs):
    result = {
        "spdxVersion": "SPDX-2.3",
        "dataLicense": "CC0-1.0",
        "SPDXID": "SPDXRef-DOCUMENT",
        "name": "minimal",
        "documentNamespace": "https://example.org/spdx/minimal-1",
        "creationInfo": {
            "creators": ["Tool: spdxgraph-0.1.0"],
            "created": "2023-01-01T00:00:00Z",
        },
    }
    result.update(kwargs)
    return result


def decode(obj):
    return JSONCodec().decode(json.dumps(obj).encode("utf-8"))


def test_to_json_dict(full_document):
    result = to_json_dict(normalize(full_document))
    assert result["spdxVersion"] == "SPDX-2.3"
    assert result["documentDescribes"] == ["SPDXRef-P"]
    assert result["annotations"][0]["annotationType"] == "REVIEW"

    packages = {p["SPDXID"]: p for p in result["packages"]}
    assert packages["SPDXRef-P"]["hasFiles"] == ["SPDXRef-F1"]
    assert packages["SPDXRef-P"]["primaryPackagePurpose"] == "LIBRARY"
    assert packages["SPDXRef-P"]["annotations"][0]["annotator"] == "Tool: scanner-2.0"
    assert packages["SPDXRef-P"]["originator"] == "NOASSERTION"
    assert "hasFiles" not in packages["SPDXRef-Q"]
    assert packages["SPDXRef-Q"]["copyrightText"] == ""
    assert packages["SPDXRef-Q"]["filesAnalyzed"] is False

    (snippet,) = result["snippets"]
    assert snippet["ranges"][0]["startPointer"] == {
        "reference": "SPDXRef-F1",
        "offset": 1,
    }
    assert snippet["ranges"][1]["endPointer"] == {
        "reference": "SPDXRef-F1",
        "lineNumber": 3,
    }
    assert {
        "spdxElementId": "SPDXRef-F2",
        "relationshipType": "GENERATED_FROM",
        "relatedSpdxElement": "NOASSERTION",
    } in result["relationships"]


def test_document_describes():
    obj = minimal(
        documentDescribes=["SPDXRef-P"],
        packages=[{"SPDXID": "SPDXRef-P", "name": "p", "filesAnalyzed": False}],
        relationships=[
            {
                "spdxElementId": "SPDXRef-DOCUMENT",
                "relationshipType": "DESCRIBES",
                "relatedSpdxElement": "SPDXRef-P",
                "comment": "explicit",
            }
        ],
    )
    doc = decode(obj)
    (describes,) = filter_relationships(doc, RelationshipType.DESCRIBES)
    assert describes.comment == "explicit"


def test_described_by_is_not_a_shorthand():
    obj = minimal(
        packages=[{"SPDXID": "SPDXRef-P", "name": "p", "filesAnalyzed": False}],
        relationships=[
            {
                "spdxElementId": "SPDXRef-P",
                "relationshipType": "DESCRIBED_BY",
                "relatedSpdxElement": "SPDXRef-DOCUMENT",
            }
        ],
    )
    doc = decode(obj)
    assert described_packages(doc) == [ElementID("P")]

    result = json.loads(JSONCodec().encode(doc))
    assert result["documentDescribes"] == []
    assert [r["relationshipType"] for r in result["relationships"]] == [
        "DESCRIBED_BY"
    ]


def test_has_files():
    obj = minimal(
        packages=[{"SPDXID": "SPDXRef-P", "name": "p", "hasFiles": ["SPDXRef-F"]}],
        files=[{"SPDXID": "SPDXRef-F", "fileName": "./f"}],
        relationships=[
            {
                "spdxElementId": "SPDXRef-P",
                "relationshipType": "CONTAINS",
                "relatedSpdxElement": "SPDXRef-F",
            },
            {
                "spdxElementId": "SPDXRef-P",
                "relationshipType": "CONTAINS",
                "relatedSpdxElement": "SPDXRef-F",
            },
        ],
    )
    # Explicit duplicates are kept, the hasFiles shorthand adds nothing
    doc = decode(obj)
    assert len(filter_relationships(doc, RelationshipType.CONTAINS)) == 2


def test_primary_package_purpose_fallback():
    packages = [
        {"SPDXID": "SPDXRef-A", "name": "a", "primaryPackagePurpose": "APPLICATION"},
        {"SPDXID": "SPDXRef-B", "name": "b"},
    ]
    doc = decode(minimal(packages=packages))
    assert described_packages(doc) == [ElementID("A")]
    assert doc.root_elements == [ElementID("A")]

    # An explicit empty list disables the fallback
    doc = decode(minimal(packages=packages, documentDescribes=[]))
    assert described_packages(doc) == []


def test_revieweds():
    doc = decode(
        minimal(
            revieweds=[
                {
                    "reviewer": "Person: Jane Doe",
                    "reviewDate": "2023-01-02T00:00:00Z",
                    "comment": "fine",
                }
            ]
        )
    )
    (review,) = doc.annotations
    assert review.annotation_type == AnnotationType.REVIEW
    assert review.target == doc.reference


@pytest.mark.parametrize(
    "obj, message",
    [
        ([], "must be an object"),
        ({"spdxVersion": "SPDX-2.3"}, "missing property 'creationInfo'"),
        (minimal(name=12), "property 'name' has an unexpected type"),
        (minimal(packages=["SPDXRef-P"]), "must be a list of objects"),
        (
            minimal(packages=[{"SPDXID": "SPDXRef-P", "name": "p", "filesAnalyzed": "no"}]),
            "'filesAnalyzed' has an unexpected type",
        ),
        (
            minimal(files=[{"SPDXID": "SPDXRef-F", "fileName": "f", "fileTypes": ["X"]}]),
            "invalid FileType",
        ),
        (
            minimal(
                snippets=[
                    {
                        "SPDXID": "SPDXRef-S",
                        "snippetFromFile": "SPDXRef-F",
                        "ranges": [
                            {
                                "startPointer": {"reference": "SPDXRef-F"},
                                "endPointer": {"reference": "SPDXRef-F"},
                            }
                        ],
                    }
                ]
            ),
            "without offset nor lineNumber",
        ),
    ],
)
def test_format_errors(obj, message):
    with pytest.raises(FormatError) as err:
        decode(obj)
    assert message in str(err.value)


def test_syntax_error():
    with pytest.raises(FormatError) as err:
        JSONCodec().decode(b'{\n  "spdxVersion": \n}')
    assert err.value.line == 3


def test_external_annotation_target(simple_document):
    simple_document.add_annotation(
        Annotation(
            target=ScopedReference(ElementID("lib"), "other"),
            annotator=Actor(ActorType.PERSON, "Jane Doe"),
            annotation_type=AnnotationType.OTHER,
            date="2023-01-01T00:00:00Z",
        )
    )
    with pytest.raises(EncodeError):
        to_json_dict(simple_document)


def test_from_json_dict_does_not_validate():
    obj = minimal(
        relationships=[
            {
                "spdxElementId": "SPDXRef-DOCUMENT",
                "relationshipType": "DESCRIBES",
                "relatedSpdxElement": "SPDXRef-Missing",
            }
        ]
    )
    doc = from_json_dict(obj)
    assert described_packages(doc) == [ElementID("Missing")]


def test_field_newer_than_version():
    packages = [
        {"SPDXID": "SPDXRef-P", "name": "p", "primaryPackagePurpose": "LIBRARY"}
    ]
    with pytest.raises(FormatError) as err:
        decode(minimal(spdxVersion="SPDX-2.2", packages=packages))
    assert "package SPDXRef-P: primary_package_purpose" in str(err.value)
    assert "not defined in SPDX-2.2" in str(err.value)

    doc = decode(minimal(packages=packages))
    assert doc.packages[0].primary_package_purpose == PrimaryPackagePurpose.LIBRARY
