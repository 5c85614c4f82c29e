# type: ignore
import pytest

from spdxgraph.document import (
    Actor,
    ActorType,
    Annotation,
    AnnotationType,
    Checksum,
    ChecksumAlgorithm,
    CreationInfo,
    Document,
    ExternalDocumentRef,
    ExternalRef,
    ExternalRefCategory,
    File,
    FileType,
    OtherLicense,
    Package,
    PackageVerificationCode,
    PrimaryPackagePurpose,
    Relationship,
    RelationshipType,
    Snippet,
)
from spdxgraph.identifier import ElementID, ScopedReference, Sentinel, local
from spdxgraph.version import SchemaVersion

P_SHA1 = "85ed0817af83a24ad8da68c2b5094de69833983c"
P_SHA256 = "11b6d3ee554eedf79299905a98f9b9a04e498210b59f15094c916c91d150efcd"
F_SHA1 = "d6a770ba38583ed4bb4525bd96e50461655d2758"


def make_simple_document(version=SchemaVersion.SPDX_2_3):
    """Return a document describing P which contains F."""
    doc = Document(
        name="simple",
        namespace="https://example.org/spdx/simple-1",
        spec_version=version,
        creation_info=CreationInfo(
            creators=[Actor(ActorType.TOOL, "spdxgraph-0.1.0")],
            created="2023-01-01T00:00:00Z",
        ),
    )
    doc.add_package(
        Package(
            spdx_id=ElementID("P"),
            name="p",
            download_location="NOASSERTION",
            files_analyzed=True,
        ),
        describe=True,
    )
    doc.add_file(
        File(
            spdx_id=ElementID("F"),
            name="./src/f.c",
            checksums=[Checksum(ChecksumAlgorithm.SHA1, F_SHA1)],
            license_concluded="MIT",
        ),
        package=ElementID("P"),
    )
    return doc


def make_full_document():
    """Return an SPDX-2.3 document using all the element fields."""
    doc = Document(
        name="full",
        namespace="https://example.org/spdx/full-1",
        spec_version=SchemaVersion.SPDX_2_3,
        comment="A document\nwith a multi-line comment",
        creation_info=CreationInfo(
            creators=[
                Actor(ActorType.TOOL, "spdxgraph-0.1.0"),
                Actor(ActorType.ORGANIZATION, "ACME", "contact@acme.org"),
                Actor(ActorType.PERSON, "Jane Doe"),
            ],
            created="2023-01-01T00:00:00Z",
            license_list_version="3.19",
            comment="Generated for the tests",
        ),
    )
    doc.add_external_document_ref(
        ExternalDocumentRef(
            "other",
            "https://example.org/spdx/other-1",
            Checksum(ChecksumAlgorithm.SHA1, P_SHA1),
        )
    )
    doc.add_package(
        Package(
            spdx_id=ElementID("P"),
            name="p",
            download_location="https://example.org/p-1.0.tar.gz",
            version="1.0",
            file_name="p-1.0.tar.gz",
            supplier=Actor(ActorType.ORGANIZATION, "ACME", "contact@acme.org"),
            originator=Sentinel.NOASSERTION,
            files_analyzed=True,
            verification_code=PackageVerificationCode(P_SHA1, ["./p.spdx"]),
            checksums=[
                Checksum(ChecksumAlgorithm.SHA1, P_SHA1),
                Checksum(ChecksumAlgorithm.SHA256, P_SHA256),
            ],
            homepage="https://example.org/p",
            source_info="built from the release tarball",
            license_concluded="MIT",
            license_info_from_files=["MIT", "LicenseRef-custom"],
            license_declared="MIT OR Apache-2.0",
            license_comments="checked by hand",
            copyright_text="Copyright 2023 ACME",
            summary="A package",
            description="A package used in tests.\nIt has two lines.",
            comment="no comment",
            external_refs=[
                ExternalRef(
                    ExternalRefCategory.PACKAGE_MANAGER,
                    "purl",
                    "pkg:generic/p@1.0",
                    "the package url",
                ),
                ExternalRef(ExternalRefCategory.OTHER, "acme-id", "p-1.0"),
            ],
            attribution_texts=['Thanks to "the ACME team"', "first line\nsecond line"],
            primary_package_purpose=PrimaryPackagePurpose.LIBRARY,
            release_date="2023-01-01T00:00:00Z",
        ),
        describe=True,
    )
    doc.add_package(
        Package(
            spdx_id=ElementID("Q"),
            name="q",
            download_location="NONE",
            files_analyzed=False,
            copyright_text="",
        )
    )
    doc.add_file(
        File(
            spdx_id=ElementID("F1"),
            name="./src/f1.c",
            types=[FileType.SOURCE, FileType.TEXT],
            checksums=[Checksum(ChecksumAlgorithm.SHA1, F_SHA1)],
            license_concluded="MIT",
            license_info_in_files=["MIT"],
            license_comments="header",
            copyright_text="Copyright 2023 Jane Doe",
            comment="main file",
            notice="NOTICE",
            contributors=["Jane Doe", "John Roe"],
            attribution_texts=["attribution of f1"],
        ),
        package=ElementID("P"),
    )
    doc.add_file(
        File(
            spdx_id=ElementID("F2"),
            name="./generated.c",
            checksums=[Checksum(ChecksumAlgorithm.SHA1, P_SHA1)],
        )
    )
    doc.add_snippet(
        Snippet(
            spdx_id=ElementID("S1"),
            from_file=local("F1"),
            byte_range=(1, 20),
            line_range=(1, 3),
            license_concluded="MIT",
            license_info_in_snippet=["MIT"],
            copyright_text="Copyright 2023 Jane Doe",
            comment="copied from somewhere",
            name="snippet",
        )
    )
    doc.add_other_license(
        OtherLicense(
            license_id="LicenseRef-custom",
            extracted_text="Do what you want\nbut keep this notice",
            name="Custom license",
            cross_references=["https://example.org/license"],
            comment="found in f1",
        )
    )
    doc.add_relationship(
        Relationship(local("P"), RelationshipType.DEPENDS_ON, local("Q"), "at runtime")
    )
    doc.add_relationship(
        Relationship(
            local("Q"),
            RelationshipType.DEPENDS_ON,
            ScopedReference(ElementID("lib"), "other"),
        )
    )
    doc.add_relationship(
        Relationship(local("F2"), RelationshipType.GENERATED_FROM, Sentinel.NOASSERTION)
    )
    doc.add_annotation(
        Annotation(
            target=doc.reference,
            annotator=Actor(ActorType.PERSON, "Jane Doe", "jane@example.org"),
            annotation_type=AnnotationType.REVIEW,
            date="2023-01-02T00:00:00Z",
            comment="looks good",
        )
    )
    doc.add_annotation(
        Annotation(
            target=local("P"),
            annotator=Actor(ActorType.TOOL, "scanner-2.0"),
            annotation_type=AnnotationType.OTHER,
            date="2023-01-03T00:00:00Z",
            comment="scanned",
        )
    )
    return doc


@pytest.fixture
def simple_document():
    return make_simple_document()


@pytest.fixture
def full_document():
    return make_full_document()
