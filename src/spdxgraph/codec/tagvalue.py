"""SPDX tag-value format.

Each line is a ``Tag: value`` pair; values spanning several lines are
enclosed in ``<text>...</text>``, and lines starting with ``#`` are comments.
Files written after a package belong to that package and snippets are written
after the file they are taken from. Relationships are always written
explicitly, so nesting is only a presentation of the CONTAINS relationships.
"""

from __future__ import annotations

import dataclasses
import re

from typing import TYPE_CHECKING

from spdxgraph.codec import Codec
from spdxgraph.config import codec_config
from spdxgraph.document import (
    Actor,
    Annotation,
    AnnotationType,
    Checksum,
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
    check_timestamp,
    parse_actor,
)
from spdxgraph.error import EncodeError, FormatError
from spdxgraph.identifier import (
    ScopedReference,
    parse_document_ref_id,
    parse_element_id,
    parse_reference,
    render_document_ref_id,
    render_reference,
)
from spdxgraph.relationships import add_derived, described_packages, file_owners
from spdxgraph.version import FIELD_INTRODUCTIONS, SchemaVersion
import spdxgraph.log

if TYPE_CHECKING:
    from typing import Any, Callable, Iterator, Optional

    from spdxgraph.identifier import ElementID

logger = spdxgraph.log.getLogger("codec.tagvalue")

TEXT_START = "<text>"
TEXT_END = "</text>"

# Tags whose value is written in a <text> block
TEXT_TAGS = {
    "DocumentComment",
    "CreatorComment",
    "PackageSourceInfo",
    "PackageLicenseComments",
    "PackageCopyrightText",
    "PackageSummary",
    "PackageDescription",
    "PackageComment",
    "ExternalRefComment",
    "PackageAttributionText",
    "LicenseComments",
    "FileCopyrightText",
    "FileComment",
    "FileNotice",
    "FileAttributionText",
    "SnippetLicenseComments",
    "SnippetCopyrightText",
    "SnippetComment",
    "SnippetAttributionText",
    "ExtractedText",
    "LicenseComment",
    "RelationshipComment",
    "AnnotationComment",
    "ReviewComment",
}

# Tags mapped to a field introduced after SPDX-2.1
VERSIONED_TAGS = {
    "PackageAttributionText": ("package", "attribution_texts"),
    "PrimaryPackagePurpose": ("package", "primary_package_purpose"),
    "ReleaseDate": ("package", "release_date"),
    "BuiltDate": ("package", "built_date"),
    "ValidUntilDate": ("package", "valid_until_date"),
    "FileAttributionText": ("file", "attribution_texts"),
    "SnippetAttributionText": ("snippet", "attribution_texts"),
}

EXCLUDES_R = re.compile(r"^(?P<code>\S+)\s*(\(excludes:\s*(?P<excludes>.*)\))?$")
RANGE_R = re.compile(r"^(?P<start>\d+):(?P<end>\d+)$")


def _tokenize(text: str) -> Iterator[tuple[int, str, str]]:
    """Yield (line number, tag, value) for each tag of the document."""
    lines = text.splitlines()
    index = 0
    while index < len(lines):
        lineno = index + 1
        line = lines[index].strip()
        index += 1
        if not line or line.startswith("#"):
            continue
        if ":" not in line:
            raise FormatError(
                f"expecting 'Tag: value', got {line!r}", origin="tag-value", line=lineno
            )
        tag, value = lines[index - 1].split(":", 1)
        tag = tag.strip()
        value = value.lstrip()
        if value.startswith(TEXT_START):
            value = value[len(TEXT_START) :]
            chunks = []
            while TEXT_END not in value:
                chunks.append(value)
                if index >= len(lines):
                    raise FormatError(
                        f"unterminated {TEXT_START} block for {tag}",
                        origin="tag-value",
                        line=lineno,
                    )
                value = lines[index]
                index += 1
            chunks.append(value[: value.index(TEXT_END)])
            yield lineno, tag, "\n".join(chunks)
        else:
            yield lineno, tag, value.strip()


class _Parser:
    """Build a document out of tag-value pairs."""

    def __init__(self, origin: str) -> None:
        self.origin = origin
        self.line = 0
        self.doc = Document(
            name="",
            namespace="",
            spec_version=SchemaVersion.SPDX_2_3,
            creation_info=CreationInfo(),
        )
        self.version_seen = False
        self.section = "document"
        self.package: Optional[Package] = None
        self.file: Optional[File] = None
        self.snippet: Optional[Snippet] = None
        self.license: Optional[dict[str, Any]] = None
        self.review: Optional[dict[str, str]] = None
        # (package, file) for each file read after a package
        self.nested: list[tuple[Package, File]] = []
        self.handlers: dict[str, Callable[[str], None]] = {}
        self.handlers.update(self._document_handlers())
        self.handlers.update(self._package_handlers())
        self.handlers.update(self._file_handlers())
        self.handlers.update(self._snippet_handlers())
        self.handlers.update(self._license_handlers())
        self.handlers.update(self._relationship_handlers())

    def error(self, message: str) -> FormatError:
        return FormatError(message, origin=self.origin, line=self.line)

    def parse(self, text: str) -> Document:
        for lineno, tag, value in _tokenize(text):
            self.line = lineno
            if not self.version_seen and tag != "SPDXVersion":
                raise self.error(f"expecting SPDXVersion, got {tag}")
            handler = self.handlers.get(tag)
            if handler is None:
                raise self.error(f"unknown tag {tag}")
            if tag in VERSIONED_TAGS:
                kind, name = VERSIONED_TAGS[tag]
                introduced = FIELD_INTRODUCTIONS[kind][name]
                if introduced > self.doc.spec_version:
                    raise self.error(
                        f"{tag} is not defined in {self.doc.spec_version}"
                        f" (introduced in {introduced})"
                    )
            handler(value)
        return self.finish()

    def finish(self) -> Document:
        self.close_license()
        self.close_review()
        doc = self.doc
        if not self.version_seen:
            raise self.error("empty document")
        if not doc.name:
            raise self.error("missing DocumentName")
        if not doc.namespace:
            raise self.error("missing DocumentNamespace")
        for element in [*doc.packages, *doc.files]:
            if element.spdx_id is None:
                raise self.error(f"{element.name} has no SPDXID")
        if self.nested:
            logger.debug(f"deriving CONTAINS relationships for {len(self.nested)} files")
        add_derived(
            doc,
            [
                Relationship(
                    ScopedReference(pkg.spdx_id),
                    RelationshipType.CONTAINS,
                    ScopedReference(f.spdx_id),
                )
                for pkg, f in self.nested
            ],
        )
        if len(doc.packages) == 1 and not described_packages(doc):
            # Without any describes information the only package is the
            # described one
            logger.debug(
                "no DESCRIBES relationship, describing the only package",
                spdx_id=str(doc.packages[0].spdx_id),
            )
            doc.root_elements.append(doc.packages[0].spdx_id)
        return doc

    # Helpers

    def current(self, section: str) -> Any:
        element = getattr(self, section)
        if self.section != section or element is None:
            raise self.error(f"tag outside of a {section} section")
        return element

    def setter(self, section: str, name: str) -> Callable[[str], None]:
        def handler(value: str) -> None:
            setattr(self.current(section), name, value)

        return handler

    def appender(self, section: str, name: str) -> Callable[[str], None]:
        def handler(value: str) -> None:
            getattr(self.current(section), name).append(value)

        return handler

    def actor(self, value: str) -> Actor:
        result = parse_actor(value, origin=self.origin, allow_noassertion=False)
        if not isinstance(result, Actor):
            raise self.error(f"expecting an actor, got {value!r}")
        return result

    def date(self, value: str) -> str:
        try:
            return check_timestamp(value, origin=self.origin)
        except FormatError as err:
            raise self.error(err.messages[-1]) from err

    def checksum(self, value: str) -> Checksum:
        try:
            return Checksum.from_string(value, origin=self.origin)
        except FormatError as err:
            raise self.error(err.messages[-1]) from err

    def range(self, value: str) -> tuple[int, int]:
        m = RANGE_R.match(value)
        if m is None:
            raise self.error(f"invalid range {value!r}, expecting start:end")
        return int(m.group("start")), int(m.group("end"))

    def enum(self, enum_type: Any, value: str) -> Any:
        try:
            return enum_type(value)
        except ValueError:
            raise self.error(f"invalid {enum_type.__name__} {value!r}") from None

    def leave_sections(self) -> None:
        self.close_license()
        self.snippet = None

    # Document and creation information

    def _document_handlers(self) -> dict[str, Callable[[str], None]]:
        doc = self.doc

        def spdx_version(value: str) -> None:
            doc.spec_version = SchemaVersion.from_string(value)
            self.version_seen = True

        def data_license(value: str) -> None:
            doc.data_license = value

        def spdx_id(value: str) -> None:
            element_id = parse_element_id(value)
            if self.section == "document":
                doc.spdx_id = element_id
            elif self.section == "package" and self.package is not None:
                self.package.spdx_id = element_id
            elif self.section == "file" and self.file is not None:
                self.file.spdx_id = element_id
            else:
                raise self.error("SPDXID outside of a document, package or file")

        def name(value: str) -> None:
            doc.name = value

        def namespace(value: str) -> None:
            doc.namespace = value

        def external_document_ref(value: str) -> None:
            parts = value.split(None, 2)
            if len(parts) != 3:
                raise self.error(
                    "expecting 'DocumentRef-<id> <uri> <algorithm>: <checksum>'"
                )
            doc.add_external_document_ref(
                ExternalDocumentRef(
                    parse_document_ref_id(parts[0]), parts[1], self.checksum(parts[2])
                )
            )

        def comment(value: str) -> None:
            doc.comment = value

        def license_list_version(value: str) -> None:
            doc.creation_info.license_list_version = value

        def creator(value: str) -> None:
            doc.creation_info.creators.append(self.actor(value))

        def created(value: str) -> None:
            doc.creation_info.created = self.date(value)

        def creator_comment(value: str) -> None:
            doc.creation_info.comment = value

        return {
            "SPDXVersion": spdx_version,
            "DataLicense": data_license,
            "SPDXID": spdx_id,
            "DocumentName": name,
            "DocumentNamespace": namespace,
            "ExternalDocumentRef": external_document_ref,
            "DocumentComment": comment,
            "LicenseListVersion": license_list_version,
            "Creator": creator,
            "Created": created,
            "CreatorComment": creator_comment,
        }

    # Package information

    def _package_handlers(self) -> dict[str, Callable[[str], None]]:
        def package_name(value: str) -> None:
            self.leave_sections()
            self.file = None
            self.package = Package(spdx_id=None, name=value)  # type: ignore
            self.doc.add_package(self.package)
            self.section = "package"

        def actor_or_noassertion(name: str) -> Callable[[str], None]:
            def handler(value: str) -> None:
                setattr(
                    self.current("package"),
                    name,
                    parse_actor(value, origin=self.origin),
                )

            return handler

        def files_analyzed(value: str) -> None:
            if value.lower() not in ("true", "false"):
                raise self.error(f"FilesAnalyzed must be true or false, not {value!r}")
            self.current("package").files_analyzed = value.lower() == "true"

        def verification_code(value: str) -> None:
            m = EXCLUDES_R.match(value)
            if m is None:
                raise self.error(f"invalid verification code {value!r}")
            excludes = m.group("excludes")
            self.current("package").verification_code = PackageVerificationCode(
                m.group("code"),
                [f.strip() for f in excludes.split(",")] if excludes else [],
            )

        def checksum(value: str) -> None:
            self.current("package").checksums.append(self.checksum(value))

        def external_ref(value: str) -> None:
            parts = value.split(None, 2)
            if len(parts) != 3:
                raise self.error("expecting '<category> <type> <locator>'")
            self.current("package").external_refs.append(
                ExternalRef(self.enum(ExternalRefCategory, parts[0]), parts[1], parts[2])
            )

        def external_ref_comment(value: str) -> None:
            refs = self.current("package").external_refs
            if not refs:
                raise self.error("ExternalRefComment without ExternalRef")
            refs[-1] = dataclasses.replace(refs[-1], comment=value)

        def purpose(value: str) -> None:
            self.current("package").primary_package_purpose = self.enum(
                PrimaryPackagePurpose, value
            )

        def date(name: str) -> Callable[[str], None]:
            def handler(value: str) -> None:
                setattr(self.current("package"), name, self.date(value))

            return handler

        return {
            "PackageName": package_name,
            "PackageVersion": self.setter("package", "version"),
            "PackageFileName": self.setter("package", "file_name"),
            "PackageSupplier": actor_or_noassertion("supplier"),
            "PackageOriginator": actor_or_noassertion("originator"),
            "PackageDownloadLocation": self.setter("package", "download_location"),
            "FilesAnalyzed": files_analyzed,
            "PackageVerificationCode": verification_code,
            "PackageChecksum": checksum,
            "PackageHomePage": self.setter("package", "homepage"),
            "PackageSourceInfo": self.setter("package", "source_info"),
            "PackageLicenseConcluded": self.setter("package", "license_concluded"),
            "PackageLicenseInfoFromFiles": self.appender(
                "package", "license_info_from_files"
            ),
            "PackageLicenseDeclared": self.setter("package", "license_declared"),
            "PackageLicenseComments": self.setter("package", "license_comments"),
            "PackageCopyrightText": self.setter("package", "copyright_text"),
            "PackageSummary": self.setter("package", "summary"),
            "PackageDescription": self.setter("package", "description"),
            "PackageComment": self.setter("package", "comment"),
            "ExternalRef": external_ref,
            "ExternalRefComment": external_ref_comment,
            "PackageAttributionText": self.appender("package", "attribution_texts"),
            "PrimaryPackagePurpose": purpose,
            "ReleaseDate": date("release_date"),
            "BuiltDate": date("built_date"),
            "ValidUntilDate": date("valid_until_date"),
        }

    # File information

    def _file_handlers(self) -> dict[str, Callable[[str], None]]:
        def file_name(value: str) -> None:
            self.leave_sections()
            self.file = File(spdx_id=None, name=value)  # type: ignore
            self.doc.files.append(self.file)
            if self.package is not None:
                self.nested.append((self.package, self.file))
            self.section = "file"

        def file_type(value: str) -> None:
            self.current("file").types.append(self.enum(FileType, value))

        def checksum(value: str) -> None:
            self.current("file").checksums.append(self.checksum(value))

        return {
            "FileName": file_name,
            "FileType": file_type,
            "FileChecksum": checksum,
            "LicenseConcluded": self.setter("file", "license_concluded"),
            "LicenseInfoInFile": self.appender("file", "license_info_in_files"),
            "LicenseComments": self.setter("file", "license_comments"),
            "FileCopyrightText": self.setter("file", "copyright_text"),
            "FileComment": self.setter("file", "comment"),
            "FileNotice": self.setter("file", "notice"),
            "FileContributor": self.appender("file", "contributors"),
            "FileAttributionText": self.appender("file", "attribution_texts"),
        }

    # Snippet information

    def _snippet_handlers(self) -> dict[str, Callable[[str], None]]:
        def snippet_id(value: str) -> None:
            self.leave_sections()
            if self.file is None:
                raise self.error("snippet without a preceding file")
            if self.file.spdx_id is None:
                raise self.error(f"file {self.file.name} has no SPDXID")
            self.snippet = Snippet(
                spdx_id=parse_element_id(value),
                from_file=ScopedReference(self.file.spdx_id),
            )
            self.doc.add_snippet(self.snippet)
            self.section = "snippet"

        def from_file(value: str) -> None:
            self.current("snippet").from_file = parse_reference(value)

        def byte_range(value: str) -> None:
            self.current("snippet").byte_range = self.range(value)

        def line_range(value: str) -> None:
            self.current("snippet").line_range = self.range(value)

        return {
            "SnippetSPDXID": snippet_id,
            "SnippetFromFileSPDXID": from_file,
            "SnippetByteRange": byte_range,
            "SnippetLineRange": line_range,
            "SnippetLicenseConcluded": self.setter("snippet", "license_concluded"),
            "LicenseInfoInSnippet": self.appender("snippet", "license_info_in_snippet"),
            "SnippetLicenseComments": self.setter("snippet", "license_comments"),
            "SnippetCopyrightText": self.setter("snippet", "copyright_text"),
            "SnippetComment": self.setter("snippet", "comment"),
            "SnippetName": self.setter("snippet", "name"),
            "SnippetAttributionText": self.appender("snippet", "attribution_texts"),
        }

    # Other licensing information

    def close_license(self) -> None:
        if self.license is not None:
            self.doc.add_other_license(OtherLicense(**self.license))
            self.license = None

    def _license_handlers(self) -> dict[str, Callable[[str], None]]:
        def license_id(value: str) -> None:
            self.leave_sections()
            self.license = {"license_id": value, "extracted_text": ""}
            self.section = "license"

        def field(name: str, multiple: bool = False) -> Callable[[str], None]:
            def handler(value: str) -> None:
                if self.section != "license" or self.license is None:
                    raise self.error("tag outside of an other license section")
                if multiple:
                    self.license.setdefault(name, []).append(value)
                else:
                    self.license[name] = value

            return handler

        return {
            "LicenseID": license_id,
            "ExtractedText": field("extracted_text"),
            "LicenseName": field("name"),
            "LicenseCrossReference": field("cross_references", multiple=True),
            "LicenseComment": field("comment"),
        }

    # Relationships, annotations and reviews

    def close_review(self) -> None:
        if self.review is not None:
            self.doc.add_annotation(
                Annotation(
                    target=self.doc.reference,
                    annotator=self.actor(self.review["annotator"]),
                    annotation_type=AnnotationType.REVIEW,
                    date=self.review.get("date", ""),
                    comment=self.review.get("comment", ""),
                )
            )
            self.review = None

    def _relationship_handlers(self) -> dict[str, Callable[[str], None]]:
        doc = self.doc

        def relationship(value: str) -> None:
            parts = value.split()
            if len(parts) != 3:
                raise self.error("expecting '<element> <type> <element>'")
            doc.add_relationship(
                Relationship(
                    parse_reference(parts[0]),
                    self.enum(RelationshipType, parts[1]),
                    parse_reference(parts[2]),
                )
            )

        def relationship_comment(value: str) -> None:
            if not doc.relationships:
                raise self.error("RelationshipComment without Relationship")
            doc.relationships[-1] = dataclasses.replace(
                doc.relationships[-1], comment=value
            )

        def annotator(value: str) -> None:
            doc.add_annotation(
                Annotation(
                    target=doc.reference,
                    annotator=self.actor(value),
                    annotation_type=AnnotationType.OTHER,
                    date="",
                )
            )

        def annotation_field(name: str) -> Callable[[str], None]:
            def handler(value: str) -> None:
                if not doc.annotations:
                    raise self.error("annotation field without Annotator")
                new_value: Any = value
                if name == "date":
                    new_value = self.date(value)
                elif name == "annotation_type":
                    new_value = self.enum(AnnotationType, value)
                elif name == "target":
                    new_value = parse_reference(value)
                doc.annotations[-1] = dataclasses.replace(
                    doc.annotations[-1], **{name: new_value}
                )

            return handler

        def reviewer(value: str) -> None:
            self.close_review()
            self.review = {"annotator": value}

        def review_field(name: str) -> Callable[[str], None]:
            def handler(value: str) -> None:
                if self.review is None:
                    raise self.error("review field without Reviewer")
                self.review[name] = self.date(value) if name == "date" else value

            return handler

        return {
            "Relationship": relationship,
            "RelationshipComment": relationship_comment,
            "Annotator": annotator,
            "AnnotationDate": annotation_field("date"),
            "AnnotationType": annotation_field("annotation_type"),
            "SPDXREF": annotation_field("target"),
            "AnnotationComment": annotation_field("comment"),
            "Reviewer": reviewer,
            "ReviewDate": review_field("date"),
            "ReviewComment": review_field("comment"),
        }


class _Writer:
    """Render a normalized document as tag-value lines."""

    def __init__(self, doc: Document) -> None:
        self.doc = doc
        self.output: list[str] = []
        self.sections = codec_config().tagvalue_sections
        self.is_first_section = True

    def add_section(self, section: str) -> None:
        if not self.is_first_section:
            self.output.append("")
        self.is_first_section = False
        if self.sections:
            self.output += [f"# {section}", ""]

    def add(self, tag: str, value: Any, always: bool = False) -> None:
        """Add a tag to the output.

        :param tag: the tag name
        :param value: the tag value, skipped when None or empty
        :param always: write empty values too. Used for the fields that
            default to NOASSERTION when the tag is missing
        """
        if value is None or (value == "" and not always):
            return
        value = str(value)
        if TEXT_END in value:
            raise EncodeError(f"{tag}: {TEXT_END} cannot be written", origin="tag-value")
        if (
            (tag in TEXT_TAGS and value not in ("NONE", "NOASSERTION"))
            or "\n" in value
            or value != value.strip()
            or value.startswith(TEXT_START)
        ):
            # Values outside of a text block are stripped
            value = f"{TEXT_START}{value}{TEXT_END}"
        self.output.append(f"{tag}: {value}")

    def add_all(self, tag: str, values: list[Any]) -> None:
        for value in values:
            self.add(tag, value)

    def render(self) -> str:
        doc = self.doc
        self.add_section("Document Information")
        self.add("SPDXVersion", doc.spec_version)
        self.add("DataLicense", doc.data_license)
        self.add("SPDXID", doc.spdx_id)
        self.add("DocumentName", doc.name)
        self.add("DocumentNamespace", doc.namespace)
        for ext in doc.external_document_refs:
            self.add(
                "ExternalDocumentRef",
                f"{render_document_ref_id(ext.id)} {ext.uri} {ext.checksum}",
            )
        self.add("DocumentComment", doc.comment)

        self.add_section("Creation Info")
        self.add("LicenseListVersion", doc.creation_info.license_list_version)
        self.add_all("Creator", doc.creation_info.creators)
        self.add("Created", doc.creation_info.created)
        self.add("CreatorComment", doc.creation_info.comment)

        owners = file_owners(doc)
        files_by_owner: dict[Optional[ElementID], list[File]] = {}
        for f in doc.files:
            files_by_owner.setdefault(owners.get(f.spdx_id), []).append(f)

        for f in files_by_owner.get(None, []):
            self.render_file(f)
        for pkg in doc.packages:
            self.render_package(pkg)
            for f in files_by_owner.get(pkg.spdx_id, []):
                self.render_file(f)

        if doc.other_licenses:
            self.add_section("Other Licensing Information")
            for lic in doc.other_licenses:
                self.add("LicenseID", lic.license_id)
                self.add("ExtractedText", lic.extracted_text)
                self.add("LicenseName", lic.name)
                self.add_all("LicenseCrossReference", lic.cross_references)
                self.add("LicenseComment", lic.comment)
                self.output.append("")

        if doc.relationships:
            self.add_section("Relationships")
            for rel in doc.relationships:
                self.add(
                    "Relationship",
                    f"{render_reference(rel.ref_a)} {rel.relationship_type.value}"
                    f" {render_reference(rel.ref_b)}",
                )
                self.add("RelationshipComment", rel.comment)

        if doc.annotations:
            self.add_section("Annotations")
            for annotation in doc.annotations:
                self.add("Annotator", annotation.annotator)
                self.add("AnnotationDate", annotation.date)
                self.add("AnnotationType", annotation.annotation_type.value)
                self.add("SPDXREF", render_reference(annotation.target))
                self.add("AnnotationComment", annotation.comment)
                self.output.append("")

        return "\n".join(self.output) + "\n"

    def render_package(self, pkg: Package) -> None:
        self.add_section("Package")
        self.add("PackageName", pkg.name)
        self.add("SPDXID", pkg.spdx_id)
        self.add("PackageVersion", pkg.version)
        self.add("PackageFileName", pkg.file_name)
        self.add("PackageSupplier", pkg.supplier)
        self.add("PackageOriginator", pkg.originator)
        self.add("PackageDownloadLocation", pkg.download_location, always=True)
        self.add("FilesAnalyzed", "true" if pkg.files_analyzed else "false")
        if pkg.verification_code is not None:
            code = pkg.verification_code.value
            if pkg.verification_code.excluded_files:
                code += (
                    f" (excludes: {', '.join(pkg.verification_code.excluded_files)})"
                )
            self.add("PackageVerificationCode", code)
        self.add_all("PackageChecksum", pkg.checksums)
        self.add("PackageHomePage", pkg.homepage)
        self.add("PackageSourceInfo", pkg.source_info)
        self.add("PackageLicenseConcluded", pkg.license_concluded, always=True)
        self.add_all("PackageLicenseInfoFromFiles", pkg.license_info_from_files)
        self.add("PackageLicenseDeclared", pkg.license_declared, always=True)
        self.add("PackageLicenseComments", pkg.license_comments)
        self.add("PackageCopyrightText", pkg.copyright_text, always=True)
        self.add("PackageSummary", pkg.summary)
        self.add("PackageDescription", pkg.description)
        self.add("PackageComment", pkg.comment)
        for ref in pkg.external_refs:
            self.add("ExternalRef", ref)
            self.add("ExternalRefComment", ref.comment)
        self.add_all("PackageAttributionText", pkg.attribution_texts)
        if pkg.primary_package_purpose is not None:
            self.add(
                "PrimaryPackagePurpose",
                pkg.primary_package_purpose.value.replace("_", "-"),
            )
        self.add("ReleaseDate", pkg.release_date)
        self.add("BuiltDate", pkg.built_date)
        self.add("ValidUntilDate", pkg.valid_until_date)

    def render_file(self, f: File) -> None:
        self.output.append("")
        self.add("FileName", f.name)
        self.add("SPDXID", f.spdx_id)
        self.add_all("FileType", [t.value for t in f.types])
        self.add_all("FileChecksum", f.checksums)
        self.add("LicenseConcluded", f.license_concluded, always=True)
        self.add_all("LicenseInfoInFile", f.license_info_in_files)
        self.add("LicenseComments", f.license_comments)
        self.add("FileCopyrightText", f.copyright_text, always=True)
        self.add("FileComment", f.comment)
        self.add("FileNotice", f.notice)
        self.add_all("FileContributor", f.contributors)
        self.add_all("FileAttributionText", f.attribution_texts)
        for snippet in self.doc.snippets:
            if snippet.from_file == ScopedReference(f.spdx_id):
                self.render_snippet(snippet)

    def render_snippet(self, snippet: Snippet) -> None:
        self.output.append("")
        self.add("SnippetSPDXID", snippet.spdx_id)
        self.add("SnippetFromFileSPDXID", render_reference(snippet.from_file))
        if snippet.byte_range is not None:
            self.add("SnippetByteRange", "{}:{}".format(*snippet.byte_range))
        if snippet.line_range is not None:
            self.add("SnippetLineRange", "{}:{}".format(*snippet.line_range))
        self.add("SnippetLicenseConcluded", snippet.license_concluded, always=True)
        self.add_all("LicenseInfoInSnippet", snippet.license_info_in_snippet)
        self.add("SnippetLicenseComments", snippet.license_comments)
        self.add("SnippetCopyrightText", snippet.copyright_text, always=True)
        self.add("SnippetComment", snippet.comment)
        self.add("SnippetName", snippet.name)
        self.add_all("SnippetAttributionText", snippet.attribution_texts)


class TagValueCodec(Codec):
    """Read and write SPDX tag-value documents."""

    name = "tag-value"
    supported_versions = (
        SchemaVersion.SPDX_2_1,
        SchemaVersion.SPDX_2_2,
        SchemaVersion.SPDX_2_3,
    )

    def parse(self, data: bytes) -> Document:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as err:
            raise FormatError(f"not an UTF-8 document: {err}", origin=self.name) from err
        return _Parser(self.name).parse(text)

    def render(self, doc: Document) -> bytes:
        return _Writer(doc).render().encode("utf-8")
