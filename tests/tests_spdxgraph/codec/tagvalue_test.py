from spdxgraph.codec import structurally_equivalent
from spdxgraph.codec.tagvalue import TagValueCodec
from spdxgraph.config import Config
from spdxgraph.document import AnnotationType, RelationshipType
from spdxgraph.error import EncodeError, FormatError, MalformedReference
from spdxgraph.identifier import ElementID, local
from spdxgraph.relationships import (
    described_packages,
    filter_relationships,
    package_file_ids,
)
from spdxgraph.version import SchemaVersion

import pytest

HEADER = [
    "SPDXVersion: SPDX-2.2",
    "DataLicense: CC0-1.0",
    "SPDXID: SPDXRef-DOCUMENT",
    "DocumentName: hello",
    "DocumentNamespace: https://example.org/spdx/hello-1",
    "Creator: Tool: spdxgraph-0.1.0",
    "Created: 2023-01-01T00:00:00Z",
]

HELLO = HEADER + [
    "",
    "# Package",
    "",
    "PackageName: hello",
    "SPDXID: SPDXRef-Package",
    "PackageDownloadLocation: NOASSERTION",
    "FilesAnalyzed: true",
    "PackageVerificationCode: d6a770ba38583ed4bb4525bd96e50461655d2758"
    " (excludes: ./hello.spdx, ./other.spdx)",
    "PackageLicenseConcluded: MIT",
    "PackageLicenseDeclared: MIT",
    "PackageCopyrightText: <text>Copyright 2023",
    "ACME</text>",
    "",
    "FileName: ./hello.c",
    "SPDXID: SPDXRef-File",
    "FileChecksum: SHA1: d6a770ba38583ed4bb4525bd96e50461655d2758",
    "LicenseConcluded: MIT",
    "FileCopyrightText: NOASSERTION",
    "",
    "Relationship: SPDXRef-DOCUMENT DESCRIBES SPDXRef-Package",
    "",
    "Reviewer: Person: Jane Doe",
    "ReviewDate: 2023-01-02T00:00:00Z",
    "ReviewComment: <text>ok</text>",
]


def decode(lines):
    return TagValueCodec().decode("\n".join(lines).encode("utf-8"))


def parse_error(lines):
    with pytest.raises(FormatError) as err:
        decode(lines)
    assert err.value.format == "tag-value"
    return err.value


def test_decode():
    doc = decode(HELLO)
    assert doc.spec_version == SchemaVersion.SPDX_2_2
    assert doc.name == "hello"
    assert described_packages(doc) == [ElementID("Package")]
    # Files following a package belong to it
    assert package_file_ids(doc, ElementID("Package")) == [ElementID("File")]
    assert filter_relationships(doc, RelationshipType.CONTAINS)[0].ref_a == local(
        "Package"
    )

    pkg = doc.packages[0]
    assert pkg.copyright_text == "Copyright 2023\nACME"
    assert pkg.verification_code.excluded_files == ["./hello.spdx", "./other.spdx"]

    (review,) = doc.annotations
    assert review.annotation_type == AnnotationType.REVIEW
    assert review.target == doc.reference
    assert str(review.annotator) == "Person: Jane Doe"
    assert review.comment == "ok"


def test_explicit_contains_is_not_duplicated():
    doc = decode(HELLO + ["Relationship: SPDXRef-Package CONTAINS SPDXRef-File"])
    assert len(filter_relationships(doc, RelationshipType.CONTAINS)) == 1


def test_unpackaged_files():
    lines = HEADER + [
        "FileName: ./alone.c",
        "SPDXID: SPDXRef-Alone",
        "PackageName: p",
        "SPDXID: SPDXRef-P",
        "FilesAnalyzed: false",
    ]
    doc = decode(lines)
    assert filter_relationships(doc, RelationshipType.CONTAINS) == []
    assert [f.spdx_id for f in doc.files] == [ElementID("Alone")]


def test_single_package_is_described():
    lines = HEADER + [
        "PackageName: p",
        "SPDXID: SPDXRef-P",
        "PackageDownloadLocation: NOASSERTION",
        "FilesAnalyzed: false",
    ]
    doc = decode(lines)
    assert described_packages(doc) == [ElementID("P")]
    assert doc.root_elements == [ElementID("P")]

    # An explicit DESCRIBED_BY is enough
    doc = decode(lines + ["Relationship: SPDXRef-P DESCRIBED_BY SPDXRef-DOCUMENT"])
    assert doc.root_elements == []
    assert described_packages(doc) == [ElementID("P")]

    # Nothing is assumed when there are several packages
    doc = decode(
        lines
        + [
            "PackageName: q",
            "SPDXID: SPDXRef-Q",
            "PackageDownloadLocation: NOASSERTION",
            "FilesAnalyzed: false",
        ]
    )
    assert described_packages(doc) == []


def test_annotations_and_snippets():
    lines = HELLO + [
        "SnippetSPDXID: SPDXRef-Snippet",
        "SnippetFromFileSPDXID: SPDXRef-File",
        "SnippetByteRange: 10:20",
        "SnippetLineRange: 1:2",
        "SnippetLicenseConcluded: MIT",
        "LicenseInfoInSnippet: MIT",
        "Annotator: Tool: scanner",
        "AnnotationDate: 2023-01-03T00:00:00Z",
        "AnnotationType: OTHER",
        "SPDXREF: SPDXRef-Snippet",
        "AnnotationComment: <text>found",
        "by the scanner</text>",
    ]
    doc = decode(lines)
    (snippet,) = doc.snippets
    assert snippet.from_file == local("File")
    assert snippet.byte_range == (10, 20)
    assert snippet.line_range == (1, 2)

    annotation = [a for a in doc.annotations if a.target == local("Snippet")][0]
    assert annotation.annotation_type == AnnotationType.OTHER
    assert annotation.comment == "found\nby the scanner"


@pytest.mark.parametrize(
    "lines, line, message",
    [
        (["DocumentName: x"] + HEADER, 1, "expecting SPDXVersion"),
        (HEADER + ["Foo: bar"], 8, "unknown tag Foo"),
        (HEADER + ["no colon here"], 8, "expecting 'Tag: value'"),
        (HEADER + ["DocumentComment: <text>never", "closed"], 8, "unterminated"),
        (HEADER + ["PackageVersion: 1.0"], 8, "outside of a package section"),
        (HEADER + ["SnippetSPDXID: SPDXRef-S"], 8, "snippet without a preceding file"),
        (HEADER + ["Created: yesterday"], 8, "invalid date"),
        (HEADER + ["FileName: f", "FileType: MOVIE"], 9, "invalid FileType"),
        (HEADER + ["Relationship: SPDXRef-A DESCRIBES"], 8, "expecting"),
        (HEADER + ["RelationshipComment: orphan"], 8, "without Relationship"),
        (
            HEADER + ["PackageName: p", "SPDXID: SPDXRef-P", "FilesAnalyzed: maybe"],
            10,
            "FilesAnalyzed must be true or false",
        ),
        (
            HEADER + ["PackageName: p", "SPDXID: SPDXRef-P", "PackageChecksum: CRC: 0"],
            10,
            "unknown checksum algorithm",
        ),
        (
            HEADER + ["PackageName: p", "PrimaryPackagePurpose: LIBRARY"],
            9,
            "is not defined in SPDX-2.2",
        ),
        (HEADER + ["PackageName: p"], 8, "p has no SPDXID"),
    ],
)
def test_format_errors(lines, line, message):
    err = parse_error(lines)
    assert err.line == line
    assert message in str(err)


def test_missing_document_fields():
    assert "missing DocumentNamespace" in str(
        parse_error([line for line in HEADER if "Namespace" not in line])
    )
    assert "empty document" in str(parse_error(["# nothing but a comment"]))


def test_malformed_reference():
    with pytest.raises(MalformedReference):
        decode(HEADER + ["Relationship: SPDXRef-DOCUMENT DESCRIBES Package"])


def test_not_utf8():
    with pytest.raises(FormatError):
        TagValueCodec().decode(b"SPDXVersion: SPDX-2.3\nDocumentName: \xff\n")


def test_render(full_document):
    text = TagValueCodec().encode(full_document).decode("utf-8")
    lines = text.splitlines()
    assert lines[0] == "# Document Information"
    assert "SPDXVersion: SPDX-2.3" in lines
    assert "# Package" in lines
    assert "Relationship: SPDXRef-P DEPENDS_ON SPDXRef-Q" in lines
    assert "RelationshipComment: <text>at runtime</text>" in lines
    assert "Relationship: SPDXRef-F2 GENERATED_FROM NOASSERTION" in lines
    assert "Relationship: SPDXRef-Q DEPENDS_ON DocumentRef-other:SPDXRef-lib" in lines
    assert "PrimaryPackagePurpose: LIBRARY" in lines
    assert "PackageOriginator: NOASSERTION" in lines
    assert "PackageCopyrightText: <text></text>" in lines
    assert (
        "PackageVerificationCode: 85ed0817af83a24ad8da68c2b5094de69833983c"
        " (excludes: ./p.spdx)"
    ) in lines
    assert "DocumentComment: <text>A document" in lines

    # Packaged files follow their package
    assert lines.index("FileName: ./generated.c") < lines.index("PackageName: p")
    assert (
        lines.index("PackageName: p")
        < lines.index("FileName: ./src/f1.c")
        < lines.index("SnippetSPDXID: SPDXRef-S1")
        < lines.index("PackageName: q")
    )


def test_render_without_sections(monkeypatch, simple_document):
    monkeypatch.setattr(Config, "data", {"codec": {"tagvalue_sections": False}})
    text = TagValueCodec().encode(simple_document).decode("utf-8")
    assert text.startswith("SPDXVersion: SPDX-2.3\n")
    assert "#" not in text


def test_creator_noassertion():
    lines = [line for line in HEADER if not line.startswith("Creator")]
    with pytest.raises(FormatError) as err:
        decode(lines + ["Creator: NOASSERTION"])
    assert "invalid actor 'NOASSERTION'" in str(err.value)


def test_surrounding_whitespace(simple_document):
    simple_document.packages[0].name = " p "
    simple_document.packages[0].version = "1.0\t"
    codec = TagValueCodec()
    data = codec.encode(simple_document)
    assert "PackageName: <text> p </text>" in data.decode("utf-8").splitlines()

    doc = codec.decode(data)
    assert doc.packages[0].name == " p "
    assert doc.packages[0].version == "1.0\t"
    assert structurally_equivalent(doc, simple_document)


def test_text_like_values(simple_document):
    simple_document.packages[0].comment = "<text>is not a block"
    codec = TagValueCodec()
    doc = codec.decode(codec.encode(simple_document))
    assert doc.packages[0].comment == "<text>is not a block"

    simple_document.packages[0].comment = "see </text> here"
    with pytest.raises(EncodeError) as err:
        codec.encode(simple_document)
    assert "PackageComment: </text> cannot be written" in str(err.value)
