"""SPDX JSON format.

The mapping between a :class:`~spdxgraph.document.Document` and the SPDX
JSON property names lives in :func:`to_json_dict` and :func:`from_json_dict`;
it is shared with the YAML codec.

Annotations are nested under the element they target. Package membership
is written both as ``hasFiles`` and as CONTAINS relationships, and the
described elements both as ``documentDescribes`` and as DESCRIBES
relationships.
"""

from __future__ import annotations

import json

from typing import TYPE_CHECKING

from spdxgraph.codec import Codec
from spdxgraph.document import (
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
    NOASSERTION,
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
from spdxgraph.relationships import (
    add_derived,
    described_packages,
    filter_relationships,
    package_file_ids,
)
from spdxgraph.version import SchemaVersion
import spdxgraph.log

if TYPE_CHECKING:
    from typing import Any, Optional

    from spdxgraph.identifier import ElementID

logger = spdxgraph.log.getLogger("codec.json")


class _Reader:
    """Extract typed values from JSON objects."""

    def __init__(self, origin: str) -> None:
        self.origin = origin

    def error(self, message: str) -> FormatError:
        return FormatError(message, origin=self.origin)

    def get(
        self,
        obj: dict[str, Any],
        key: str,
        expected: type | tuple[type, ...] = str,
        default: Any = "",
        required: bool = False,
    ) -> Any:
        if key not in obj:
            if required:
                raise self.error(f"missing property {key!r}")
            return default
        value = obj[key]
        if not isinstance(value, expected):
            raise self.error(f"property {key!r} has an unexpected type")
        return value

    def objects(self, obj: dict[str, Any], key: str) -> list[dict[str, Any]]:
        values = self.get(obj, key, list, [])
        for value in values:
            if not isinstance(value, dict):
                raise self.error(f"property {key!r} must be a list of objects")
        return values

    def strings(self, obj: dict[str, Any], key: str) -> list[str]:
        values = self.get(obj, key, list, [])
        for value in values:
            if not isinstance(value, str):
                raise self.error(f"property {key!r} must be a list of strings")
        return list(values)

    def enum(self, enum_type: Any, value: str) -> Any:
        try:
            return enum_type(value)
        except ValueError:
            raise self.error(f"invalid {enum_type.__name__} {value!r}") from None

    def checksum(self, obj: dict[str, Any]) -> Checksum:
        return Checksum(
            self.enum(ChecksumAlgorithm, self.get(obj, "algorithm", required=True)),
            self.get(obj, "checksumValue", required=True),
        )

    def date(self, value: str) -> str:
        return check_timestamp(value, origin=self.origin) if value else value


def _checksum_dict(checksum: Checksum) -> dict[str, str]:
    return {"algorithm": checksum.algorithm.value, "checksumValue": checksum.value}


def _annotation_dict(annotation: Annotation) -> dict[str, str]:
    result = {
        "annotator": str(annotation.annotator),
        "annotationDate": annotation.date,
        "annotationType": annotation.annotation_type.value,
    }
    if annotation.comment:
        result["comment"] = annotation.comment
    return result


def _set(result: dict[str, Any], key: str, value: Any) -> None:
    """Add key to the result unless value is empty."""
    if value is not None and value != "" and value != []:
        result[key] = value


def to_json_dict(doc: Document, origin: str = "json") -> dict[str, Any]:
    """Generate a representation of a normalized document following the SPDX
    JSON schema.

    :param doc: a normalized document, see :func:`spdxgraph.codec.normalize`
    :param origin: the codec name used in error messages
    :raise EncodeError: if an annotation cannot be attached to an element
    """
    annotations: dict[ElementID, list[dict[str, str]]] = {}
    element_ids = doc.all_identifiers()
    for annotation in doc.annotations:
        target = annotation.target
        if (
            not isinstance(target, ScopedReference)
            or not target.is_local
            or target.element not in element_ids
        ):
            raise EncodeError(
                f"annotation target {render_reference(target)} is not an element"
                " of the document",
                origin=origin,
            )
        annotations.setdefault(target.element, []).append(_annotation_dict(annotation))

    output: dict[str, Any] = {
        "spdxVersion": str(doc.spec_version),
        "dataLicense": doc.data_license,
        "SPDXID": str(doc.spdx_id),
        "name": doc.name,
        "documentNamespace": doc.namespace,
    }
    _set(output, "comment", doc.comment)
    _set(
        output,
        "externalDocumentRefs",
        [
            {
                "externalDocumentId": render_document_ref_id(ext.id),
                "spdxDocument": ext.uri,
                "checksum": _checksum_dict(ext.checksum),
            }
            for ext in doc.external_document_refs
        ],
    )
    creation_info: dict[str, Any] = {
        "creators": [str(actor) for actor in doc.creation_info.creators],
        "created": doc.creation_info.created,
    }
    _set(creation_info, "licenseListVersion", doc.creation_info.license_list_version)
    _set(creation_info, "comment", doc.creation_info.comment)
    output["creationInfo"] = creation_info
    _set(output, "annotations", annotations.get(doc.spdx_id, []))

    output["documentDescribes"] = [
        str(spdx_id) for spdx_id in described_packages(doc, include_inverse=False)
    ]

    packages = []
    for pkg in doc.packages:
        pkg_dict: dict[str, Any] = {"SPDXID": str(pkg.spdx_id), "name": pkg.name}
        _set(pkg_dict, "versionInfo", pkg.version)
        _set(pkg_dict, "packageFileName", pkg.file_name)
        if pkg.supplier is not None:
            pkg_dict["supplier"] = str(pkg.supplier)
        if pkg.originator is not None:
            pkg_dict["originator"] = str(pkg.originator)
        pkg_dict["downloadLocation"] = pkg.download_location
        pkg_dict["filesAnalyzed"] = pkg.files_analyzed
        if pkg.verification_code is not None:
            code: dict[str, Any] = {
                "packageVerificationCodeValue": pkg.verification_code.value
            }
            _set(
                code,
                "packageVerificationCodeExcludedFiles",
                pkg.verification_code.excluded_files,
            )
            pkg_dict["packageVerificationCode"] = code
        _set(pkg_dict, "checksums", [_checksum_dict(ck) for ck in pkg.checksums])
        _set(pkg_dict, "homepage", pkg.homepage)
        _set(pkg_dict, "sourceInfo", pkg.source_info)
        pkg_dict["licenseConcluded"] = pkg.license_concluded
        _set(pkg_dict, "licenseInfoFromFiles", pkg.license_info_from_files)
        pkg_dict["licenseDeclared"] = pkg.license_declared
        _set(pkg_dict, "licenseComments", pkg.license_comments)
        pkg_dict["copyrightText"] = pkg.copyright_text
        _set(pkg_dict, "summary", pkg.summary)
        _set(pkg_dict, "description", pkg.description)
        _set(pkg_dict, "comment", pkg.comment)
        external_refs = []
        for ref in pkg.external_refs:
            ref_dict = {
                "referenceCategory": ref.category.value,
                "referenceType": ref.reference_type,
                "referenceLocator": ref.locator,
            }
            _set(ref_dict, "comment", ref.comment)
            external_refs.append(ref_dict)
        _set(pkg_dict, "externalRefs", external_refs)
        _set(pkg_dict, "attributionTexts", pkg.attribution_texts)
        if pkg.primary_package_purpose is not None:
            pkg_dict["primaryPackagePurpose"] = pkg.primary_package_purpose.value
        _set(pkg_dict, "releaseDate", pkg.release_date)
        _set(pkg_dict, "builtDate", pkg.built_date)
        _set(pkg_dict, "validUntilDate", pkg.valid_until_date)
        _set(
            pkg_dict,
            "hasFiles",
            [str(file_id) for file_id in package_file_ids(doc, pkg.spdx_id)],
        )
        _set(pkg_dict, "annotations", annotations.get(pkg.spdx_id, []))
        packages.append(pkg_dict)
    _set(output, "packages", packages)

    files = []
    for f in doc.files:
        file_dict: dict[str, Any] = {"SPDXID": str(f.spdx_id), "fileName": f.name}
        _set(file_dict, "fileTypes", [t.value for t in f.types])
        _set(file_dict, "checksums", [_checksum_dict(ck) for ck in f.checksums])
        file_dict["licenseConcluded"] = f.license_concluded
        _set(file_dict, "licenseInfoInFiles", f.license_info_in_files)
        _set(file_dict, "licenseComments", f.license_comments)
        file_dict["copyrightText"] = f.copyright_text
        _set(file_dict, "comment", f.comment)
        _set(file_dict, "noticeText", f.notice)
        _set(file_dict, "fileContributors", f.contributors)
        _set(file_dict, "attributionTexts", f.attribution_texts)
        _set(file_dict, "annotations", annotations.get(f.spdx_id, []))
        files.append(file_dict)
    _set(output, "files", files)

    snippets = []
    for snippet in doc.snippets:
        from_file = render_reference(snippet.from_file)
        ranges = []
        if snippet.byte_range is not None:
            ranges.append(
                {
                    "startPointer": {
                        "reference": from_file,
                        "offset": snippet.byte_range[0],
                    },
                    "endPointer": {
                        "reference": from_file,
                        "offset": snippet.byte_range[1],
                    },
                }
            )
        if snippet.line_range is not None:
            ranges.append(
                {
                    "startPointer": {
                        "reference": from_file,
                        "lineNumber": snippet.line_range[0],
                    },
                    "endPointer": {
                        "reference": from_file,
                        "lineNumber": snippet.line_range[1],
                    },
                }
            )
        snippet_dict: dict[str, Any] = {
            "SPDXID": str(snippet.spdx_id),
            "snippetFromFile": from_file,
            "ranges": ranges,
        }
        _set(snippet_dict, "name", snippet.name)
        snippet_dict["licenseConcluded"] = snippet.license_concluded
        _set(snippet_dict, "licenseInfoInSnippets", snippet.license_info_in_snippet)
        _set(snippet_dict, "licenseComments", snippet.license_comments)
        snippet_dict["copyrightText"] = snippet.copyright_text
        _set(snippet_dict, "comment", snippet.comment)
        _set(snippet_dict, "attributionTexts", snippet.attribution_texts)
        _set(snippet_dict, "annotations", annotations.get(snippet.spdx_id, []))
        snippets.append(snippet_dict)
    _set(output, "snippets", snippets)

    licenses = []
    for lic in doc.other_licenses:
        lic_dict = {"licenseId": lic.license_id, "extractedText": lic.extracted_text}
        _set(lic_dict, "name", lic.name)
        _set(lic_dict, "seeAlsos", lic.cross_references)
        _set(lic_dict, "comment", lic.comment)
        licenses.append(lic_dict)
    _set(output, "hasExtractedLicensingInfos", licenses)

    relationships = []
    for rel in doc.relationships:
        rel_dict = {
            "spdxElementId": render_reference(rel.ref_a),
            "relationshipType": rel.relationship_type.value,
            "relatedSpdxElement": render_reference(rel.ref_b),
        }
        _set(rel_dict, "comment", rel.comment)
        relationships.append(rel_dict)
    _set(output, "relationships", relationships)
    return output


def _read_annotations(
    reader: _Reader, obj: dict[str, Any], target: ScopedReference, doc: Document
) -> None:
    for ann in reader.objects(obj, "annotations"):
        doc.add_annotation(
            Annotation(
                target=target,
                annotator=parse_actor(
                    reader.get(ann, "annotator", required=True),
                    origin=reader.origin,
                    allow_noassertion=False,
                ),  # type: ignore
                annotation_type=reader.enum(
                    AnnotationType, reader.get(ann, "annotationType", required=True)
                ),
                date=reader.date(reader.get(ann, "annotationDate", required=True)),
                comment=reader.get(ann, "comment"),
            )
        )


def _read_actor(reader: _Reader, obj: dict[str, Any], key: str) -> Any:
    value = reader.get(obj, key, default=None)
    if value is None:
        return None
    return parse_actor(value, origin=reader.origin)


def _read_package(reader: _Reader, obj: dict[str, Any], doc: Document) -> Package:
    code: Optional[PackageVerificationCode] = None
    code_dict = reader.get(obj, "packageVerificationCode", dict, None)
    if code_dict is not None:
        code = PackageVerificationCode(
            reader.get(code_dict, "packageVerificationCodeValue", required=True),
            reader.strings(code_dict, "packageVerificationCodeExcludedFiles"),
        )
    purpose = reader.get(obj, "primaryPackagePurpose", default=None)
    pkg = Package(
        spdx_id=parse_element_id(reader.get(obj, "SPDXID", required=True)),
        name=reader.get(obj, "name", required=True),
        download_location=reader.get(obj, "downloadLocation", default=NOASSERTION),
        version=reader.get(obj, "versionInfo"),
        file_name=reader.get(obj, "packageFileName"),
        supplier=_read_actor(reader, obj, "supplier"),
        originator=_read_actor(reader, obj, "originator"),
        files_analyzed=reader.get(obj, "filesAnalyzed", bool, True),
        verification_code=code,
        checksums=[reader.checksum(ck) for ck in reader.objects(obj, "checksums")],
        homepage=reader.get(obj, "homepage"),
        source_info=reader.get(obj, "sourceInfo"),
        license_concluded=reader.get(obj, "licenseConcluded", default=NOASSERTION),
        license_info_from_files=reader.strings(obj, "licenseInfoFromFiles"),
        license_declared=reader.get(obj, "licenseDeclared", default=NOASSERTION),
        license_comments=reader.get(obj, "licenseComments"),
        copyright_text=reader.get(obj, "copyrightText", default=NOASSERTION),
        summary=reader.get(obj, "summary"),
        description=reader.get(obj, "description"),
        comment=reader.get(obj, "comment"),
        external_refs=[
            ExternalRef(
                reader.enum(
                    ExternalRefCategory,
                    reader.get(ref, "referenceCategory", required=True),
                ),
                reader.get(ref, "referenceType", required=True),
                reader.get(ref, "referenceLocator", required=True),
                reader.get(ref, "comment"),
            )
            for ref in reader.objects(obj, "externalRefs")
        ],
        attribution_texts=reader.strings(obj, "attributionTexts"),
        primary_package_purpose=(
            reader.enum(PrimaryPackagePurpose, purpose) if purpose else None
        ),
        release_date=reader.date(reader.get(obj, "releaseDate")),
        built_date=reader.date(reader.get(obj, "builtDate")),
        valid_until_date=reader.date(reader.get(obj, "validUntilDate")),
    )
    _read_annotations(reader, obj, ScopedReference(pkg.spdx_id), doc)
    return pkg


def _read_file(reader: _Reader, obj: dict[str, Any], doc: Document) -> File:
    f = File(
        spdx_id=parse_element_id(reader.get(obj, "SPDXID", required=True)),
        name=reader.get(obj, "fileName", required=True),
        types=[reader.enum(FileType, t) for t in reader.strings(obj, "fileTypes")],
        checksums=[reader.checksum(ck) for ck in reader.objects(obj, "checksums")],
        license_concluded=reader.get(obj, "licenseConcluded", default=NOASSERTION),
        license_info_in_files=reader.strings(obj, "licenseInfoInFiles"),
        license_comments=reader.get(obj, "licenseComments"),
        copyright_text=reader.get(obj, "copyrightText", default=NOASSERTION),
        comment=reader.get(obj, "comment"),
        notice=reader.get(obj, "noticeText"),
        contributors=reader.strings(obj, "fileContributors"),
        attribution_texts=reader.strings(obj, "attributionTexts"),
    )
    _read_annotations(reader, obj, ScopedReference(f.spdx_id), doc)
    return f


def _read_snippet(reader: _Reader, obj: dict[str, Any], doc: Document) -> Snippet:
    byte_range: Optional[tuple[int, int]] = None
    line_range: Optional[tuple[int, int]] = None
    for range_dict in reader.objects(obj, "ranges"):
        start = reader.get(range_dict, "startPointer", dict, required=True)
        end = reader.get(range_dict, "endPointer", dict, required=True)
        if "offset" in start:
            byte_range = (
                reader.get(start, "offset", int, required=True),
                reader.get(end, "offset", int, required=True),
            )
        elif "lineNumber" in start:
            line_range = (
                reader.get(start, "lineNumber", int, required=True),
                reader.get(end, "lineNumber", int, required=True),
            )
        else:
            raise reader.error("snippet range without offset nor lineNumber")
    snippet = Snippet(
        spdx_id=parse_element_id(reader.get(obj, "SPDXID", required=True)),
        from_file=parse_reference(reader.get(obj, "snippetFromFile", required=True)),
        byte_range=byte_range,
        line_range=line_range,
        license_concluded=reader.get(obj, "licenseConcluded", default=NOASSERTION),
        license_info_in_snippet=reader.strings(obj, "licenseInfoInSnippets"),
        license_comments=reader.get(obj, "licenseComments"),
        copyright_text=reader.get(obj, "copyrightText", default=NOASSERTION),
        comment=reader.get(obj, "comment"),
        name=reader.get(obj, "name"),
        attribution_texts=reader.strings(obj, "attributionTexts"),
    )
    _read_annotations(reader, obj, ScopedReference(snippet.spdx_id), doc)
    return snippet


def from_json_dict(obj: Any, origin: str = "json") -> Document:
    """Create a :class:`Document` out of an SPDX JSON :class:`dict`.

    The document is not validated.

    When the document has neither ``documentDescribes`` nor a DESCRIBES
    relationship from the document, the packages with a
    ``primaryPackagePurpose`` are considered as described.

    :param obj: the decoded JSON (or YAML) content
    :param origin: the codec name used in error messages
    :raise FormatError: if a property is missing or has an unexpected type
    """  # noqa RST304
    reader = _Reader(origin)
    if not isinstance(obj, dict):
        raise reader.error("an SPDX document must be an object")

    creation_dict = reader.get(obj, "creationInfo", dict, required=True)
    doc = Document(
        name=reader.get(obj, "name", required=True),
        namespace=reader.get(obj, "documentNamespace", required=True),
        spec_version=SchemaVersion.from_string(
            reader.get(obj, "spdxVersion", required=True)
        ),
        data_license=reader.get(obj, "dataLicense", required=True),
        spdx_id=parse_element_id(reader.get(obj, "SPDXID", required=True)),
        comment=reader.get(obj, "comment"),
        creation_info=CreationInfo(
            creators=[
                parse_actor(value, origin=origin, allow_noassertion=False)  # type: ignore
                for value in reader.strings(creation_dict, "creators")
            ],
            created=reader.date(reader.get(creation_dict, "created", required=True)),
            license_list_version=reader.get(creation_dict, "licenseListVersion"),
            comment=reader.get(creation_dict, "comment"),
        ),
    )

    for ext in reader.objects(obj, "externalDocumentRefs"):
        doc.add_external_document_ref(
            ExternalDocumentRef(
                parse_document_ref_id(reader.get(ext, "externalDocumentId", required=True)),
                reader.get(ext, "spdxDocument", required=True),
                reader.checksum(reader.get(ext, "checksum", dict, required=True)),
            )
        )
    _read_annotations(reader, obj, doc.reference, doc)

    for review in reader.objects(obj, "revieweds"):
        doc.add_annotation(
            Annotation(
                target=doc.reference,
                annotator=parse_actor(
                    reader.get(review, "reviewer", required=True),
                    origin=origin,
                    allow_noassertion=False,
                ),  # type: ignore
                annotation_type=AnnotationType.REVIEW,
                date=reader.date(reader.get(review, "reviewDate")),
                comment=reader.get(review, "comment"),
            )
        )

    derived: list[Relationship] = []
    for pkg_dict in reader.objects(obj, "packages"):
        pkg = _read_package(reader, pkg_dict, doc)
        doc.add_package(pkg)
        for file_id in reader.strings(pkg_dict, "hasFiles"):
            derived.append(
                Relationship(
                    ScopedReference(pkg.spdx_id),
                    RelationshipType.CONTAINS,
                    parse_reference(file_id),
                )
            )
    for file_dict in reader.objects(obj, "files"):
        doc.add_file(_read_file(reader, file_dict, doc))
    for snippet_dict in reader.objects(obj, "snippets"):
        doc.add_snippet(_read_snippet(reader, snippet_dict, doc))

    for lic in reader.objects(obj, "hasExtractedLicensingInfos"):
        doc.add_other_license(
            OtherLicense(
                license_id=reader.get(lic, "licenseId", required=True),
                extracted_text=reader.get(lic, "extractedText"),
                name=reader.get(lic, "name"),
                cross_references=reader.strings(lic, "seeAlsos"),
                comment=reader.get(lic, "comment"),
            )
        )

    for rel in reader.objects(obj, "relationships"):
        doc.add_relationship(
            Relationship(
                parse_reference(reader.get(rel, "spdxElementId", required=True)),
                reader.enum(
                    RelationshipType, reader.get(rel, "relationshipType", required=True)
                ),
                parse_reference(reader.get(rel, "relatedSpdxElement", required=True)),
                reader.get(rel, "comment"),
            )
        )

    if "documentDescribes" in obj:
        for spdx_id in reader.strings(obj, "documentDescribes"):
            derived.append(
                Relationship(
                    doc.reference, RelationshipType.DESCRIBES, parse_reference(spdx_id)
                )
            )
    elif not filter_relationships(doc, RelationshipType.DESCRIBES, ref_a=doc.reference):
        # Look for packages with a primaryPackagePurpose field
        for pkg in doc.packages:
            if pkg.primary_package_purpose is not None:
                logger.debug(
                    "no documentDescribes, using the primary package purpose",
                    spdx_id=str(pkg.spdx_id),
                )
                doc.root_elements.append(pkg.spdx_id)

    add_derived(doc, derived)
    return doc


class JSONCodec(Codec):
    """Read and write SPDX JSON documents."""

    name = "json"
    supported_versions = (SchemaVersion.SPDX_2_2, SchemaVersion.SPDX_2_3)

    def load(self, data: bytes) -> Any:
        try:
            return json.loads(data.decode("utf-8"))
        except json.JSONDecodeError as err:
            raise FormatError(err.msg, origin=self.name, line=err.lineno) from err
        except UnicodeDecodeError as err:
            raise FormatError(f"not an UTF-8 document: {err}", origin=self.name) from err

    def dump(self, obj: dict[str, Any]) -> bytes:
        return json.dumps(obj, indent=2).encode("utf-8")

    def parse(self, data: bytes) -> Document:
        return from_json_dict(self.load(data), origin=self.name)

    def render(self, doc: Document) -> bytes:
        return self.dump(to_json_dict(doc, origin=self.name))
