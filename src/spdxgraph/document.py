"""In-memory model of an SPDX 2.x document.

The document owns all its elements by value. Elements refer to each other
only through identifiers (:class:`~spdxgraph.identifier.ElementID`) and
scoped references, the relationships being the single source of truth for
the links between elements.

This is following the specification from https://spdx.github.io/spdx-spec/v2.3/
"""

from __future__ import annotations

import re

from dataclasses import dataclass, field
from enum import Enum

from dateutil.parser import isoparse

from typing import TYPE_CHECKING

from spdxgraph.config import codec_config
from spdxgraph.error import FormatError
from spdxgraph.identifier import DOCUMENT_ID, Sentinel, ScopedReference
from spdxgraph.version import SchemaVersion

if TYPE_CHECKING:
    from typing import Iterator, Optional, Union

    from spdxgraph.identifier import ElementID, Reference

    Element = Union["Package", "File", "Snippet"]

NOASSERTION = "NOASSERTION"
NONE_VALUE = "NONE"
DATA_LICENSE = "CC0-1.0"
LICENSE_REF_PREFIX = "LicenseRef-"


def _default_spec_version() -> SchemaVersion:
    return SchemaVersion.from_string(codec_config().default_schema_version)


def check_timestamp(value: str, origin: Optional[str] = None) -> str:
    """Check that *value* is an ISO 8601 timestamp.

    The value is returned unchanged so that it can be stored verbatim.

    :param value: a date such as ``2010-01-29T18:30:22Z``
    :param origin: the codec reading the value, used in error messages
    :raise FormatError: if *value* cannot be parsed
    """  # noqa RST304
    try:
        isoparse(value)
    except ValueError as err:
        raise FormatError(f"invalid date {value!r}: {err}", origin=origin) from err
    return value


class _LenientEnum(Enum):
    """Enum accepting its values regardless of case and of - or _."""

    @classmethod
    def _missing_(cls, value: object) -> Optional[Enum]:
        if isinstance(value, str):
            key = re.sub("[-_]", "", value).upper()
            for member in cls:
                if re.sub("[-_]", "", member.value).upper() == key:
                    return member
        return None


class ChecksumAlgorithm(_LenientEnum):
    SHA1 = "SHA1"
    SHA224 = "SHA224"
    SHA256 = "SHA256"
    SHA384 = "SHA384"
    SHA512 = "SHA512"
    SHA3_256 = "SHA3-256"
    SHA3_384 = "SHA3-384"
    SHA3_512 = "SHA3-512"
    BLAKE2B_256 = "BLAKE2b-256"
    BLAKE2B_384 = "BLAKE2b-384"
    BLAKE2B_512 = "BLAKE2b-512"
    BLAKE3 = "BLAKE3"
    MD2 = "MD2"
    MD4 = "MD4"
    MD5 = "MD5"
    MD6 = "MD6"
    ADLER32 = "ADLER32"


@dataclass(frozen=True, order=True)
class Checksum:
    algorithm: ChecksumAlgorithm
    value: str

    def __str__(self) -> str:
        return f"{self.algorithm.value}: {self.value}"

    @classmethod
    def from_string(cls, value: str, origin: Optional[str] = None) -> Checksum:
        """Parse ``<algorithm>: <value>``."""
        if ":" not in value:
            raise FormatError(f"invalid checksum {value!r}", origin=origin)
        algorithm, digest = value.split(":", 1)
        try:
            return Checksum(ChecksumAlgorithm(algorithm.strip()), digest.strip())
        except ValueError:
            raise FormatError(
                f"unknown checksum algorithm {algorithm.strip()!r}", origin=origin
            ) from None


class ActorType(Enum):
    """Kind of entity creating or distributing an SPDX element."""

    ORGANIZATION = "Organization"
    PERSON = "Person"
    TOOL = "Tool"


ACTOR_R = re.compile(r"^(?P<name>.*?)\s*\((?P<email>[^()]*)\)$")


@dataclass(frozen=True, order=True)
class Actor:
    """An organization, a person or a tool.

    :ivar actor_type: the kind of actor
    :ivar name: the actor name
    :ivar email: the email address, None when the text form has no
        parenthesized part
    """

    actor_type: ActorType
    name: str
    email: Optional[str] = None

    def __str__(self) -> str:
        if self.email is None:
            return f"{self.actor_type.value}: {self.name}"
        return f"{self.actor_type.value}: {self.name} ({self.email})"


def parse_actor(
    value: str, origin: Optional[str] = None, allow_noassertion: bool = True
) -> Union[Actor, Sentinel]:
    """Get an actor according to an actor string.

    The actor string looks like ``<actor_type>: <name> [(<email>)]`` where
    the actor type is ``Organization``, ``Person`` or ``Tool``. ``NOASSERTION``
    is returned as :attr:`Sentinel.NOASSERTION`.

    :param value: A string to extract the actor definition from.
    :param origin: the codec reading the value, used in error messages
    :param allow_noassertion: whether NOASSERTION is an acceptable value
    :raise FormatError: on unknown actor type
    """  # noqa RST304
    value = value.strip()
    if value == NOASSERTION and allow_noassertion:
        return Sentinel.NOASSERTION
    if ":" in value:
        actor_type, name = value.split(":", 1)
        for kind in ActorType:
            if actor_type.strip().lower() == kind.value.lower():
                name = name.strip()
                email: Optional[str] = None
                if kind != ActorType.TOOL:
                    m = ACTOR_R.match(name)
                    if m is not None:
                        name, email = m.group("name"), m.group("email").strip()
                return Actor(kind, name, email)
    raise FormatError(f"invalid actor {value!r}", origin=origin)


class ExternalRefCategory(_LenientEnum):
    """Identify the category of an ExternalRef."""

    SECURITY = "SECURITY"
    PACKAGE_MANAGER = "PACKAGE-MANAGER"
    PERSISTENT_ID = "PERSISTENT-ID"
    OTHER = "OTHER"


# List of valid external reference types when Category is not OTHER
SPDX_EXTERNAL_REF_TYPES = (
    (ExternalRefCategory.SECURITY, "cpe22Type"),
    (ExternalRefCategory.SECURITY, "cpe23Type"),
    (ExternalRefCategory.SECURITY, "advisory"),
    (ExternalRefCategory.SECURITY, "fix"),
    (ExternalRefCategory.SECURITY, "url"),
    (ExternalRefCategory.SECURITY, "swid"),
    (ExternalRefCategory.PACKAGE_MANAGER, "maven-central"),
    (ExternalRefCategory.PACKAGE_MANAGER, "npm"),
    (ExternalRefCategory.PACKAGE_MANAGER, "nuget"),
    (ExternalRefCategory.PACKAGE_MANAGER, "bower"),
    (ExternalRefCategory.PACKAGE_MANAGER, "purl"),
    (ExternalRefCategory.PERSISTENT_ID, "swh"),
    (ExternalRefCategory.PERSISTENT_ID, "gitoid"),
)


@dataclass(frozen=True, order=True)
class ExternalRef:
    """Reference an external source of information relevant to a package.

    :ivar category: the external reference category
    :ivar reference_type: one of the types listed in SPDX annex F unless
        the category is OTHER
    :ivar locator: unique string with no space
    :ivar comment: optional comment
    """

    category: ExternalRefCategory
    reference_type: str
    locator: str
    comment: str = ""

    def __str__(self) -> str:
        return " ".join((self.category.value, self.reference_type, self.locator))

    @property
    def is_known_type(self) -> bool:
        """Return True if the type is listed in annex F for the category."""
        if self.category == ExternalRefCategory.OTHER:
            return True
        return (self.category, self.reference_type) in SPDX_EXTERNAL_REF_TYPES


class PrimaryPackagePurpose(_LenientEnum):
    """Primary purpose of a package (since SPDX-2.3)."""

    APPLICATION = "APPLICATION"
    FRAMEWORK = "FRAMEWORK"
    LIBRARY = "LIBRARY"
    CONTAINER = "CONTAINER"
    OPERATING_SYSTEM = "OPERATING_SYSTEM"
    DEVICE = "DEVICE"
    FIRMWARE = "FIRMWARE"
    SOURCE = "SOURCE"
    ARCHIVE = "ARCHIVE"
    FILE = "FILE"
    INSTALL = "INSTALL"
    OTHER = "OTHER"


class FileType(_LenientEnum):
    SOURCE = "SOURCE"
    BINARY = "BINARY"
    ARCHIVE = "ARCHIVE"
    APPLICATION = "APPLICATION"
    AUDIO = "AUDIO"
    IMAGE = "IMAGE"
    TEXT = "TEXT"
    VIDEO = "VIDEO"
    DOCUMENTATION = "DOCUMENTATION"
    SPDX = "SPDX"
    OTHER = "OTHER"


class AnnotationType(_LenientEnum):
    REVIEW = "REVIEW"
    OTHER = "OTHER"


class RelationshipType(_LenientEnum):
    """Type of a relationship between two SPDX elements A and B."""

    DESCRIBES = "DESCRIBES"  # the document describes B
    DESCRIBED_BY = "DESCRIBED_BY"  # A is described by the document
    CONTAINS = "CONTAINS"
    CONTAINED_BY = "CONTAINED_BY"
    DEPENDS_ON = "DEPENDS_ON"
    DEPENDENCY_OF = "DEPENDENCY_OF"
    DEPENDENCY_MANIFEST_OF = "DEPENDENCY_MANIFEST_OF"  # A lists B's dependencies
    BUILD_DEPENDENCY_OF = "BUILD_DEPENDENCY_OF"
    DEV_DEPENDENCY_OF = "DEV_DEPENDENCY_OF"
    OPTIONAL_DEPENDENCY_OF = "OPTIONAL_DEPENDENCY_OF"
    PROVIDED_DEPENDENCY_OF = "PROVIDED_DEPENDENCY_OF"
    TEST_DEPENDENCY_OF = "TEST_DEPENDENCY_OF"
    RUNTIME_DEPENDENCY_OF = "RUNTIME_DEPENDENCY_OF"
    EXAMPLE_OF = "EXAMPLE_OF"
    GENERATES = "GENERATES"
    GENERATED_FROM = "GENERATED_FROM"
    ANCESTOR_OF = "ANCESTOR_OF"  # same lineage, A pre-dates B
    DESCENDANT_OF = "DESCENDANT_OF"  # same lineage, A postdates B
    VARIANT_OF = "VARIANT_OF"  # same lineage, unknown order
    DISTRIBUTION_ARTIFACT = "DISTRIBUTION_ARTIFACT"  # distributing A requires B
    PATCH_FOR = "PATCH_FOR"
    PATCH_APPLIED = "PATCH_APPLIED"
    COPY_OF = "COPY_OF"
    FILE_ADDED = "FILE_ADDED"
    FILE_DELETED = "FILE_DELETED"
    FILE_MODIFIED = "FILE_MODIFIED"
    EXPANDED_FROM_ARCHIVE = "EXPANDED_FROM_ARCHIVE"
    DYNAMIC_LINK = "DYNAMIC_LINK"
    STATIC_LINK = "STATIC_LINK"
    DATA_FILE_OF = "DATA_FILE_OF"
    TEST_CASE_OF = "TEST_CASE_OF"
    BUILD_TOOL_OF = "BUILD_TOOL_OF"
    DEV_TOOL_OF = "DEV_TOOL_OF"
    TEST_OF = "TEST_OF"
    TEST_TOOL_OF = "TEST_TOOL_OF"
    DOCUMENTATION_OF = "DOCUMENTATION_OF"
    OPTIONAL_COMPONENT_OF = "OPTIONAL_COMPONENT_OF"
    METAFILE_OF = "METAFILE_OF"
    PACKAGE_OF = "PACKAGE_OF"
    AMENDS = "AMENDS"  # the document amends the SPDX information in B
    PREREQUISITE_FOR = "PREREQUISITE_FOR"
    HAS_PREREQUISITE = "HAS_PREREQUISITE"
    REQUIREMENT_DESCRIPTION_FOR = "REQUIREMENT_DESCRIPTION_FOR"
    SPECIFICATION_FOR = "SPECIFICATION_FOR"
    OTHER = "OTHER"


@dataclass(frozen=True)
class Relationship:
    """Directed edge between two elements.

    See 11.1 `Relationship field
    <https://spdx.github.io/spdx-spec/v2.3/relationships-between-SPDX-elements/#111-relationship-field>`_.

    :ivar ref_a: the left side of the relationship
    :ivar relationship_type: the type of the relationship
    :ivar ref_b: the right side of the relationship, may be a sentinel
    :ivar comment: optional comment
    """

    ref_a: Reference
    relationship_type: RelationshipType
    ref_b: Reference
    comment: str = ""

    @property
    def triple(self) -> tuple[Reference, RelationshipType, Reference]:
        return self.ref_a, self.relationship_type, self.ref_b

    def __str__(self) -> str:
        return f"{self.ref_a} {self.relationship_type.value} {self.ref_b}"


@dataclass(frozen=True)
class Annotation:
    """A comment about an element, recorded by an annotator.

    Annotations are stored at the document level and point to their target.
    """

    target: Reference
    annotator: Actor
    annotation_type: AnnotationType
    date: str
    comment: str = ""


@dataclass
class ExternalDocumentRef:
    """Entry of the external document references table.

    :ivar id: the id used in scoped references, without the
        ``DocumentRef-`` prefix
    :ivar uri: the namespace of the external document
    :ivar checksum: checksum of the external document
    """

    id: str
    uri: str
    checksum: Checksum


@dataclass
class CreationInfo:
    creators: list[Actor] = field(default_factory=list)
    created: str = ""
    license_list_version: str = ""
    comment: str = ""


@dataclass
class OtherLicense:
    """License text not in the SPDX license list found in the document.

    :ivar license_id: an id starting with ``LicenseRef-``
    """

    license_id: str
    extracted_text: str
    name: str = ""
    cross_references: list[str] = field(default_factory=list)
    comment: str = ""

    def __post_init__(self) -> None:
        if not self.license_id.startswith(LICENSE_REF_PREFIX):
            raise FormatError(
                f"license id {self.license_id!r} does not start"
                f" with {LICENSE_REF_PREFIX}"
            )


@dataclass
class PackageVerificationCode:
    """SHA1 over the SHA1 of all the files of a package.

    See :func:`spdxgraph.hash.verification_code`.
    """

    value: str
    excluded_files: list[str] = field(default_factory=list)


@dataclass
class Snippet:
    """A part of a file.

    :ivar from_file: the file containing the snippet, it must be a file of
        this document
    :ivar byte_range: (start, end) offsets, 1-based and inclusive
    :ivar line_range: (start, end) line numbers, 1-based and inclusive
    """

    spdx_id: ElementID
    from_file: Reference
    byte_range: Optional[tuple[int, int]] = None
    line_range: Optional[tuple[int, int]] = None
    license_concluded: str = NOASSERTION
    license_info_in_snippet: list[str] = field(default_factory=list)
    license_comments: str = ""
    copyright_text: str = NOASSERTION
    comment: str = ""
    name: str = ""
    attribution_texts: list[str] = field(default_factory=list)


@dataclass
class File:
    """A file, either unpackaged or part of a package.

    In the legacy SPDX 2.x shape a file may be nested under a package in
    :attr:`Package.files`; otherwise its membership is expressed by a
    CONTAINS relationship.
    """

    spdx_id: ElementID
    name: str
    types: list[FileType] = field(default_factory=list)
    checksums: list[Checksum] = field(default_factory=list)
    license_concluded: str = NOASSERTION
    license_info_in_files: list[str] = field(default_factory=list)
    license_comments: str = ""
    copyright_text: str = NOASSERTION
    comment: str = ""
    notice: str = ""
    contributors: list[str] = field(default_factory=list)
    attribution_texts: list[str] = field(default_factory=list)
    snippets: list[Snippet] = field(default_factory=list)

    def checksum(self, algorithm: ChecksumAlgorithm) -> Optional[str]:
        """Return the value of the checksum computed with *algorithm*."""
        for ck in self.checksums:
            if ck.algorithm == algorithm:
                return ck.value
        return None


@dataclass
class Package:
    """Describe a package.

    See `7 Package information section
    <https://spdx.github.io/spdx-spec/v2.3/package-information/>`_

    :ivar spdx_id: uniquely identify the package in the document
    :ivar name: full name of the package as given by the originator
    :ivar download_location: URL or VCS location, or NONE/NOASSERTION
    :ivar files_analyzed: whether the file content of the package has been
        subjected to analysis. If ``False``, the package shall not contain any
        files, nor license information from files, nor verification code.
    :ivar verification_code: see :class:`PackageVerificationCode`
    :ivar supplier: the actual distribution source of the package
    :ivar originator: where or whom the package originally came from
    :ivar license_concluded: license expression concluded by the SPDX
        document creator
    :ivar license_declared: license expression declared by the authors
    :ivar license_info_from_files: licenses found in the package files
    :ivar files: files nested under the package (legacy shape), see
        :class:`File`
    :ivar primary_package_purpose: since SPDX-2.3
    :ivar release_date: since SPDX-2.3
    :ivar built_date: since SPDX-2.3
    :ivar valid_until_date: since SPDX-2.3
    """  # noqa RST304

    spdx_id: ElementID
    name: str
    download_location: str = NOASSERTION
    version: str = ""
    file_name: str = ""
    supplier: Optional[Union[Actor, Sentinel]] = None
    originator: Optional[Union[Actor, Sentinel]] = None
    files_analyzed: bool = True
    verification_code: Optional[PackageVerificationCode] = None
    checksums: list[Checksum] = field(default_factory=list)
    homepage: str = ""
    source_info: str = ""
    license_concluded: str = NOASSERTION
    license_info_from_files: list[str] = field(default_factory=list)
    license_declared: str = NOASSERTION
    license_comments: str = ""
    copyright_text: str = NOASSERTION
    summary: str = ""
    description: str = ""
    comment: str = ""
    external_refs: list[ExternalRef] = field(default_factory=list)
    attribution_texts: list[str] = field(default_factory=list)
    primary_package_purpose: Optional[PrimaryPackagePurpose] = None
    release_date: str = ""
    built_date: str = ""
    valid_until_date: str = ""
    files: list[File] = field(default_factory=list)


@dataclass
class Document:
    """Describe the SPDX Document.

    :ivar root_elements: elements declared as described by the document in
        formats that have no relationship to express it. Use
        :func:`spdxgraph.relationships.described_packages` to get the
        described elements.
    """

    name: str
    namespace: str
    spec_version: SchemaVersion = field(default_factory=_default_spec_version)
    data_license: str = DATA_LICENSE
    spdx_id: ElementID = DOCUMENT_ID
    comment: str = ""
    creation_info: CreationInfo = field(default_factory=CreationInfo)
    external_document_refs: list[ExternalDocumentRef] = field(default_factory=list)
    packages: list[Package] = field(default_factory=list)
    files: list[File] = field(default_factory=list)
    snippets: list[Snippet] = field(default_factory=list)
    other_licenses: list[OtherLicense] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    root_elements: list[ElementID] = field(default_factory=list)

    @property
    def reference(self) -> ScopedReference:
        """Return a reference to the document element."""
        return ScopedReference(self.spdx_id)

    def iter_files(self) -> Iterator[File]:
        """Iterate over nested files then over document level files."""
        for pkg in self.packages:
            yield from pkg.files
        yield from self.files

    def iter_snippets(self) -> Iterator[Snippet]:
        """Iterate over nested snippets then over document level snippets."""
        for f in self.iter_files():
            yield from f.snippets
        yield from self.snippets

    def iter_elements(self) -> Iterator[Element]:
        yield from self.packages
        yield from self.iter_files()
        yield from self.iter_snippets()

    def all_identifiers(self) -> set[ElementID]:
        """Return the identifiers of the document and of all its elements."""
        result = {self.spdx_id}
        result.update(element.spdx_id for element in self.iter_elements())
        return result

    def get_element(self, spdx_id: ElementID) -> Optional[Element]:
        """Return the first element with identifier *spdx_id*."""
        for element in self.iter_elements():
            if element.spdx_id == spdx_id:
                return element
        return None

    def external_document_ref(self, ref_id: str) -> Optional[ExternalDocumentRef]:
        for ext in self.external_document_refs:
            if ext.id == ref_id:
                return ext
        return None

    def add_package(self, package: Package, describe: bool = False) -> ElementID:
        """Add a new package.

        :param package: the package to add
        :param describe: if True also record that the document DESCRIBES the
            package
        :return: the package SPDX_ID
        """
        self.packages.append(package)
        if describe:
            self.add_relationship(
                Relationship(
                    self.reference,
                    RelationshipType.DESCRIBES,
                    ScopedReference(package.spdx_id),
                )
            )
        return package.spdx_id

    def add_file(self, file: File, package: Optional[ElementID] = None) -> ElementID:
        """Add a document level file.

        :param file: the file to add
        :param package: if set, record that this package CONTAINS the file
        """
        self.files.append(file)
        if package is not None:
            self.add_relationship(
                Relationship(
                    ScopedReference(package),
                    RelationshipType.CONTAINS,
                    ScopedReference(file.spdx_id),
                )
            )
        return file.spdx_id

    def add_snippet(self, snippet: Snippet) -> ElementID:
        self.snippets.append(snippet)
        return snippet.spdx_id

    def add_relationship(self, relationship: Relationship) -> None:
        """Add a new relationship to the document.

        :param relationship: the Relationship to add
        """
        self.relationships.append(relationship)

    def add_annotation(self, annotation: Annotation) -> None:
        self.annotations.append(annotation)

    def add_other_license(self, other_license: OtherLicense) -> None:
        self.other_licenses.append(other_license)

    def add_external_document_ref(self, ext: ExternalDocumentRef) -> None:
        self.external_document_refs.append(ext)
