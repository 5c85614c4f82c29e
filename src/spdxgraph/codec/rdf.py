"""SPDX RDF/XML format.

Elements are RDF nodes addressed by ``<namespace>#SPDXRef-<idstring>``;
elements of an external document are addressed with the namespace recorded
in the external document references table. ``NONE`` and ``NOASSERTION``
are written as the ``spdx:none`` and ``spdx:noassertion`` resources.

Relationships and annotations are children of their source (resp. target)
node. When that node is not an element of the document, a bare
``spdx:SpdxElement`` node is written to hold them.

Documents are parsed with :mod:`defusedxml` so that entity expansion and
external references are rejected.
"""

from __future__ import annotations

import re

from typing import TYPE_CHECKING
from xml.etree.ElementTree import (
    Element,
    ParseError,
    SubElement,
    indent,
    register_namespace,
    tostring,
)

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import fromstring

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
    Sentinel,
    parse_document_ref_id,
    parse_element_id,
    render_document_ref_id,
)
from spdxgraph.relationships import add_derived, described_packages, package_file_ids
from spdxgraph.version import SchemaVersion
import spdxgraph.log

if TYPE_CHECKING:
    from typing import Any, Callable, Optional

    from spdxgraph.identifier import Reference

logger = spdxgraph.log.getLogger("codec.rdf")

SPDX_NS = "http://spdx.org/rdf/terms#"
RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
RDFS_NS = "http://www.w3.org/2000/01/rdf-schema#"
PTR_NS = "http://www.w3.org/2009/pointers#"
DOAP_NS = "http://usefulinc.com/ns/doap#"

LICENSES_URI = "http://spdx.org/licenses/"
REFERENCES_URI = "http://spdx.org/rdf/references/"

for _prefix, _uri in (
    ("spdx", SPDX_NS),
    ("rdf", RDF_NS),
    ("rdfs", RDFS_NS),
    ("ptr", PTR_NS),
    ("doap", DOAP_NS),
):
    register_namespace(_prefix, _uri)


def spdx(name: str) -> str:
    return f"{{{SPDX_NS}}}{name}"


def rdf(name: str) -> str:
    return f"{{{RDF_NS}}}{name}"


def rdfs(name: str) -> str:
    return f"{{{RDFS_NS}}}{name}"


def ptr(name: str) -> str:
    return f"{{{PTR_NS}}}{name}"


ABOUT = rdf("about")
RESOURCE = rdf("resource")

# (tag, attribute) of the single valued literal properties of each element
PACKAGE_FIELDS = (
    (spdx("name"), "name"),
    (spdx("versionInfo"), "version"),
    (spdx("packageFileName"), "file_name"),
    (spdx("downloadLocation"), "download_location"),
    (f"{{{DOAP_NS}}}homepage", "homepage"),
    (spdx("sourceInfo"), "source_info"),
    (spdx("licenseConcluded"), "license_concluded"),
    (spdx("licenseDeclared"), "license_declared"),
    (spdx("licenseComments"), "license_comments"),
    (spdx("copyrightText"), "copyright_text"),
    (spdx("summary"), "summary"),
    (spdx("description"), "description"),
    (rdfs("comment"), "comment"),
    (spdx("releaseDate"), "release_date"),
    (spdx("builtDate"), "built_date"),
    (spdx("validUntilDate"), "valid_until_date"),
)
PACKAGE_LISTS = (
    (spdx("licenseInfoFromFiles"), "license_info_from_files"),
    (spdx("attributionText"), "attribution_texts"),
)
FILE_FIELDS = (
    (spdx("fileName"), "name"),
    (spdx("licenseConcluded"), "license_concluded"),
    (spdx("licenseComments"), "license_comments"),
    (spdx("copyrightText"), "copyright_text"),
    (rdfs("comment"), "comment"),
    (spdx("noticeText"), "notice"),
)
FILE_LISTS = (
    (spdx("licenseInfoInFile"), "license_info_in_files"),
    (spdx("fileContributor"), "contributors"),
    (spdx("attributionText"), "attribution_texts"),
)
SNIPPET_FIELDS = (
    (spdx("name"), "name"),
    (spdx("licenseConcluded"), "license_concluded"),
    (spdx("licenseComments"), "license_comments"),
    (spdx("copyrightText"), "copyright_text"),
    (rdfs("comment"), "comment"),
)
SNIPPET_LISTS = (
    (spdx("licenseInfoInSnippet"), "license_info_in_snippet"),
    (spdx("attributionText"), "attribution_texts"),
)

# Literal properties written even when empty
ALWAYS_WRITTEN = {
    "name",
    "download_location",
    "license_concluded",
    "license_declared",
    "copyright_text",
}
DATE_FIELDS = {"release_date", "built_date", "valid_until_date"}


def _camel_case(name: str) -> str:
    first, *rest = name.lower().split("_")
    return first + "".join(word.capitalize() for word in rest)


def enum_uri(kind: str, member: Any) -> str:
    """Return the SPDX vocabulary URI of an enumeration value.

    >>> enum_uri("relationshipType", RelationshipType.DESCRIBED_BY)
    'http://spdx.org/rdf/terms#relationshipType_describedBy'
    """
    return f"{SPDX_NS}{kind}_{_camel_case(member.name)}"


class _Writer:
    def __init__(self, doc: Document, origin: str) -> None:
        self.doc = doc
        self.origin = origin
        self.ext_uris: dict[str, str] = {}
        ids_by_uri: dict[str, str] = {}
        for ext in doc.external_document_refs:
            # External elements are only known by their URI
            other = ids_by_uri.setdefault(ext.uri, ext.id)
            if other != ext.id:
                raise EncodeError(
                    f"DocumentRef-{other} and DocumentRef-{ext.id} both refer to"
                    f" {ext.uri}",
                    origin=origin,
                )
            self.ext_uris[ext.id] = ext.uri
        self.root = Element(rdf("RDF"))
        self.nodes: dict[Reference, Element] = {}

    def uri(self, ref: Reference) -> str:
        if isinstance(ref, Sentinel):
            return f"{SPDX_NS}{ref.value.lower()}"
        if ref.is_local:
            return f"{self.doc.namespace}#{ref.element}"
        return f"{self.ext_uris[ref.document_ref]}#{ref.element}"

    def node(self, tag: str, ref: Reference) -> Element:
        result = SubElement(self.root, tag, {ABOUT: self.uri(ref)})
        self.nodes[ref] = result
        return result

    def node_for(self, ref: Reference) -> Element:
        """Return the node of *ref*, creating an SpdxElement if needed."""
        if ref not in self.nodes:
            return self.node(spdx("SpdxElement"), ref)
        return self.nodes[ref]

    @staticmethod
    def literal(parent: Element, tag: str, value: str) -> Element:
        result = SubElement(parent, tag)
        result.text = value
        return result

    @staticmethod
    def resource(parent: Element, tag: str, uri: str) -> Element:
        return SubElement(parent, tag, {RESOURCE: uri})

    def fields(self, parent: Element, element: Any, table: Any, lists: Any) -> None:
        for tag, attr in table:
            value = getattr(element, attr)
            if value or attr in ALWAYS_WRITTEN:
                self.literal(parent, tag, value)
        for tag, attr in lists:
            for value in getattr(element, attr):
                self.literal(parent, tag, value)

    def checksum(self, parent: Element, checksum: Checksum) -> None:
        node = SubElement(SubElement(parent, spdx("checksum")), spdx("Checksum"))
        self.resource(
            node, spdx("algorithm"), enum_uri("checksumAlgorithm", checksum.algorithm)
        )
        self.literal(node, spdx("checksumValue"), checksum.value)

    def package(self, pkg: Package) -> None:
        node = self.node(spdx("Package"), ScopedReference(pkg.spdx_id))
        self.fields(node, pkg, PACKAGE_FIELDS, PACKAGE_LISTS)
        if pkg.supplier is not None:
            self.literal(node, spdx("supplier"), str(pkg.supplier))
        if pkg.originator is not None:
            self.literal(node, spdx("originator"), str(pkg.originator))
        self.literal(node, spdx("filesAnalyzed"), str(pkg.files_analyzed).lower())
        if pkg.verification_code is not None:
            code = SubElement(
                SubElement(node, spdx("packageVerificationCode")),
                spdx("PackageVerificationCode"),
            )
            self.literal(
                code, spdx("packageVerificationCodeValue"), pkg.verification_code.value
            )
            for name in pkg.verification_code.excluded_files:
                self.literal(code, spdx("packageVerificationCodeExcludedFile"), name)
        for ck in pkg.checksums:
            self.checksum(node, ck)
        for ref in pkg.external_refs:
            ref_node = SubElement(SubElement(node, spdx("externalRef")), spdx("ExternalRef"))
            self.resource(
                ref_node,
                spdx("referenceCategory"),
                enum_uri("referenceCategory", ref.category),
            )
            if ref.category != ExternalRefCategory.OTHER and ref.is_known_type:
                ref_type = f"{REFERENCES_URI}{ref.reference_type}"
            else:
                ref_type = ref.reference_type
            self.resource(ref_node, spdx("referenceType"), ref_type)
            self.literal(ref_node, spdx("referenceLocator"), ref.locator)
            if ref.comment:
                self.literal(ref_node, rdfs("comment"), ref.comment)
        if pkg.primary_package_purpose is not None:
            self.resource(
                node,
                spdx("primaryPackagePurpose"),
                enum_uri("purpose", pkg.primary_package_purpose),
            )
        for file_id in package_file_ids(self.doc, pkg.spdx_id):
            self.resource(node, spdx("hasFile"), self.uri(ScopedReference(file_id)))

    def file(self, f: File) -> None:
        node = self.node(spdx("File"), ScopedReference(f.spdx_id))
        self.fields(node, f, FILE_FIELDS, FILE_LISTS)
        for file_type in f.types:
            self.resource(node, spdx("fileType"), enum_uri("fileType", file_type))
        for ck in f.checksums:
            self.checksum(node, ck)

    def pointer(
        self, parent: Element, tag: str, kind: str, from_file: str, name: str, value: int
    ) -> None:
        node = SubElement(SubElement(parent, ptr(tag)), ptr(kind))
        self.resource(node, ptr("reference"), from_file)
        self.literal(node, ptr(name), str(value))

    def snippet(self, snippet: Snippet) -> None:
        node = self.node(spdx("Snippet"), ScopedReference(snippet.spdx_id))
        from_file = self.uri(snippet.from_file)
        self.resource(node, spdx("snippetFromFile"), from_file)
        for kind, name, value in (
            ("ByteOffsetPointer", "offset", snippet.byte_range),
            ("LineCharPointer", "lineNumber", snippet.line_range),
        ):
            if value is None:
                continue
            range_node = SubElement(
                SubElement(node, spdx("range")), ptr("StartEndPointer")
            )
            self.pointer(range_node, "startPointer", kind, from_file, name, value[0])
            self.pointer(range_node, "endPointer", kind, from_file, name, value[1])
        self.fields(node, snippet, SNIPPET_FIELDS, SNIPPET_LISTS)

    def annotation(self, annotation: Annotation) -> None:
        node = SubElement(
            SubElement(self.node_for(annotation.target), spdx("annotation")),
            spdx("Annotation"),
        )
        self.literal(node, spdx("annotator"), str(annotation.annotator))
        self.literal(node, spdx("annotationDate"), annotation.date)
        self.resource(
            node,
            spdx("annotationType"),
            enum_uri("annotationType", annotation.annotation_type),
        )
        if annotation.comment:
            self.literal(node, rdfs("comment"), annotation.comment)

    def relationship(self, rel: Relationship) -> None:
        node = SubElement(
            SubElement(self.node_for(rel.ref_a), spdx("relationship")),
            spdx("Relationship"),
        )
        self.resource(
            node,
            spdx("relationshipType"),
            enum_uri("relationshipType", rel.relationship_type),
        )
        self.resource(node, spdx("relatedSpdxElement"), self.uri(rel.ref_b))
        if rel.comment:
            self.literal(node, rdfs("comment"), rel.comment)

    def render(self) -> bytes:
        doc = self.doc
        node = self.node(spdx("SpdxDocument"), doc.reference)
        self.literal(node, spdx("specVersion"), str(doc.spec_version))
        self.resource(node, spdx("dataLicense"), f"{LICENSES_URI}{doc.data_license}")
        self.literal(node, spdx("name"), doc.name)
        if doc.comment:
            self.literal(node, rdfs("comment"), doc.comment)

        info = SubElement(SubElement(node, spdx("creationInfo")), spdx("CreationInfo"))
        for actor in doc.creation_info.creators:
            self.literal(info, spdx("creator"), str(actor))
        self.literal(info, spdx("created"), doc.creation_info.created)
        if doc.creation_info.license_list_version:
            self.literal(
                info, spdx("licenseListVersion"), doc.creation_info.license_list_version
            )
        if doc.creation_info.comment:
            self.literal(info, rdfs("comment"), doc.creation_info.comment)

        for ext in doc.external_document_refs:
            ext_node = SubElement(
                SubElement(node, spdx("externalDocumentRef")),
                spdx("ExternalDocumentRef"),
            )
            self.literal(ext_node, spdx("externalDocumentId"), render_document_ref_id(ext.id))
            self.resource(ext_node, spdx("spdxDocument"), ext.uri)
            self.checksum(ext_node, ext.checksum)

        for spdx_id in described_packages(doc, include_inverse=False):
            self.resource(node, spdx("describesPackage"), self.uri(ScopedReference(spdx_id)))

        for lic in doc.other_licenses:
            lic_node = SubElement(
                SubElement(node, spdx("hasExtractedLicensingInfo")),
                spdx("ExtractedLicensingInfo"),
            )
            self.literal(lic_node, spdx("licenseId"), lic.license_id)
            self.literal(lic_node, spdx("extractedText"), lic.extracted_text)
            if lic.name:
                self.literal(lic_node, spdx("name"), lic.name)
            for see_also in lic.cross_references:
                self.literal(lic_node, rdfs("seeAlso"), see_also)
            if lic.comment:
                self.literal(lic_node, rdfs("comment"), lic.comment)

        for pkg in doc.packages:
            self.package(pkg)
        for f in doc.files:
            self.file(f)
        for snippet in doc.snippets:
            self.snippet(snippet)
        for annotation in doc.annotations:
            self.annotation(annotation)
        for rel in doc.relationships:
            self.relationship(rel)

        indent(self.root)
        return tostring(self.root, encoding="utf-8", xml_declaration=True)


class _Parser:
    def __init__(self, root: Element, origin: str) -> None:
        self.root = root
        self.origin = origin
        self.namespace = ""
        self.ext_refs: dict[str, str] = {}
        self.derived: list[Relationship] = []

    def error(self, message: str) -> FormatError:
        return FormatError(message, origin=self.origin)

    @staticmethod
    def text(node: Element) -> str:
        return node.text or ""

    def resource(self, node: Element) -> str:
        value = node.get(RESOURCE)
        if value is None:
            raise self.error(f"{node.tag} has no rdf:resource attribute")
        return value

    def child(self, node: Element, tag: str) -> Element:
        """Return the single child *tag* of *node*."""
        result = node.find(tag)
        if result is None:
            raise self.error(f"{node.tag} has no {tag} property")
        return result

    def inner(self, node: Element, tag: str) -> Element:
        """Return the typed node wrapped in a property node."""
        if len(node) != 1 or node[0].tag != tag:
            raise self.error(f"{node.tag} must contain a single {tag}")
        return node[0]

    def enum(self, enum_type: Any, kind: str, uri: str) -> Any:
        prefix = f"{SPDX_NS}{kind}_"
        if not uri.startswith(prefix):
            raise self.error(f"unexpected {kind} {uri!r}")
        try:
            return enum_type(uri[len(prefix) :])
        except ValueError:
            raise self.error(f"invalid {enum_type.__name__} {uri!r}") from None

    def reference(self, uri: str) -> Reference:
        """Resolve the URI of an element node."""
        for sentinel in Sentinel:
            if uri == f"{SPDX_NS}{sentinel.value.lower()}":
                return sentinel
        if "#" not in uri:
            raise self.error(f"{uri!r} is not an element URI")
        base, fragment = uri.rsplit("#", 1)
        element = parse_element_id(fragment)
        if base == self.namespace:
            return ScopedReference(element)
        if base in self.ext_refs:
            return ScopedReference(element, self.ext_refs[base])
        raise self.error(f"{uri!r} is not part of a declared document")

    def local_reference(self, node: Element) -> ScopedReference:
        """Return the reference of an element node of this document."""
        ref = self.reference(node.get(ABOUT, ""))
        if not isinstance(ref, ScopedReference) or not ref.is_local:
            raise self.error(f"{node.get(ABOUT)} is not an element of the document")
        return ref

    def date(self, node: Element) -> str:
        value = self.text(node)
        return check_timestamp(value, origin=self.origin) if value else value

    def checksum(self, node: Element) -> Checksum:
        ck = self.inner(node, spdx("Checksum"))
        return Checksum(
            self.enum(
                ChecksumAlgorithm,
                "checksumAlgorithm",
                self.resource(self.child(ck, spdx("algorithm"))),
            ),
            self.text(self.child(ck, spdx("checksumValue"))),
        )

    def fields(
        self, node: Element, element: Any, table: Any, lists: Any
    ) -> list[Element]:
        """Set the literal properties of *element*.

        :return: the children that are not literal properties
        """
        single = dict(table)
        multiple = dict(lists)
        remaining = []
        for prop in node:
            if prop.tag in single:
                attr = single[prop.tag]
                value = self.text(prop)
                if attr in DATE_FIELDS and value:
                    check_timestamp(value, origin=self.origin)
                setattr(element, attr, value)
            elif prop.tag in multiple:
                getattr(element, multiple[prop.tag]).append(self.text(prop))
            else:
                remaining.append(prop)
        return remaining

    def element_properties(self, doc: Document, ref: Reference, prop: Element) -> None:
        """Handle the relationships and annotations of an element node."""
        if prop.tag == spdx("relationship"):
            rel = self.inner(prop, spdx("Relationship"))
            comment = rel.find(rdfs("comment"))
            doc.add_relationship(
                Relationship(
                    ref,
                    self.enum(
                        RelationshipType,
                        "relationshipType",
                        self.resource(self.child(rel, spdx("relationshipType"))),
                    ),
                    self.reference(
                        self.resource(self.child(rel, spdx("relatedSpdxElement")))
                    ),
                    self.text(comment) if comment is not None else "",
                )
            )
        elif prop.tag == spdx("annotation"):
            ann = self.inner(prop, spdx("Annotation"))
            comment = ann.find(rdfs("comment"))
            doc.add_annotation(
                Annotation(
                    target=ref,
                    annotator=parse_actor(
                        self.text(self.child(ann, spdx("annotator"))),
                        origin=self.origin,
                        allow_noassertion=False,
                    ),  # type: ignore
                    annotation_type=self.enum(
                        AnnotationType,
                        "annotationType",
                        self.resource(self.child(ann, spdx("annotationType"))),
                    ),
                    date=self.date(self.child(ann, spdx("annotationDate"))),
                    comment=self.text(comment) if comment is not None else "",
                )
            )
        else:
            raise self.error(f"unknown property {prop.tag}")

    def package(self, doc: Document, node: Element) -> None:
        ref = self.local_reference(node)
        pkg = Package(spdx_id=ref.element, name="")
        if node.find(spdx("name")) is None:
            raise self.error(f"package {ref} has no name")
        for prop in self.fields(node, pkg, PACKAGE_FIELDS, PACKAGE_LISTS):
            if prop.tag in (spdx("supplier"), spdx("originator")):
                setattr(
                    pkg,
                    prop.tag.split("}")[1],
                    parse_actor(self.text(prop), origin=self.origin),
                )
            elif prop.tag == spdx("filesAnalyzed"):
                if self.text(prop) not in ("true", "false"):
                    raise self.error(f"invalid filesAnalyzed value {self.text(prop)!r}")
                pkg.files_analyzed = self.text(prop) == "true"
            elif prop.tag == spdx("packageVerificationCode"):
                code = self.inner(prop, spdx("PackageVerificationCode"))
                pkg.verification_code = PackageVerificationCode(
                    self.text(self.child(code, spdx("packageVerificationCodeValue"))),
                    [
                        self.text(excluded)
                        for excluded in code.findall(
                            spdx("packageVerificationCodeExcludedFile")
                        )
                    ],
                )
            elif prop.tag == spdx("checksum"):
                pkg.checksums.append(self.checksum(prop))
            elif prop.tag == spdx("externalRef"):
                ext = self.inner(prop, spdx("ExternalRef"))
                ref_type = self.resource(self.child(ext, spdx("referenceType")))
                if ref_type.startswith(REFERENCES_URI):
                    ref_type = ref_type[len(REFERENCES_URI) :]
                comment = ext.find(rdfs("comment"))
                pkg.external_refs.append(
                    ExternalRef(
                        self.enum(
                            ExternalRefCategory,
                            "referenceCategory",
                            self.resource(self.child(ext, spdx("referenceCategory"))),
                        ),
                        ref_type,
                        self.text(self.child(ext, spdx("referenceLocator"))),
                        self.text(comment) if comment is not None else "",
                    )
                )
            elif prop.tag == spdx("primaryPackagePurpose"):
                pkg.primary_package_purpose = self.enum(
                    PrimaryPackagePurpose, "purpose", self.resource(prop)
                )
            elif prop.tag == spdx("hasFile"):
                self.derived.append(
                    Relationship(
                        ref, RelationshipType.CONTAINS, self.reference(self.resource(prop))
                    )
                )
            else:
                self.element_properties(doc, ref, prop)
        doc.add_package(pkg)

    def file(self, doc: Document, node: Element) -> None:
        ref = self.local_reference(node)
        f = File(spdx_id=ref.element, name="")
        if node.find(spdx("fileName")) is None:
            raise self.error(f"file {ref} has no fileName")
        for prop in self.fields(node, f, FILE_FIELDS, FILE_LISTS):
            if prop.tag == spdx("fileType"):
                f.types.append(self.enum(FileType, "fileType", self.resource(prop)))
            elif prop.tag == spdx("checksum"):
                f.checksums.append(self.checksum(prop))
            else:
                self.element_properties(doc, ref, prop)
        doc.add_file(f)

    def pointer(self, node: Element, tag: str) -> tuple[str, int]:
        pointer = self.child(node, ptr(tag))
        if len(pointer) != 1:
            raise self.error(f"{tag} must contain a single pointer")
        kind, name = {
            ptr("ByteOffsetPointer"): ("byte", "offset"),
            ptr("LineCharPointer"): ("line", "lineNumber"),
        }.get(pointer[0].tag, ("", ""))
        if not kind:
            raise self.error(f"unknown pointer {pointer[0].tag}")
        value = self.text(self.child(pointer[0], ptr(name)))
        if not re.match(r"^\d+$", value.strip()):
            raise self.error(f"invalid {name} {value!r}")
        return kind, int(value)

    def snippet(self, doc: Document, node: Element) -> None:
        ref = self.local_reference(node)
        snippet = Snippet(
            spdx_id=ref.element,
            from_file=self.reference(
                self.resource(self.child(node, spdx("snippetFromFile")))
            ),
        )
        for prop in self.fields(node, snippet, SNIPPET_FIELDS, SNIPPET_LISTS):
            if prop.tag == spdx("snippetFromFile"):
                continue
            elif prop.tag == spdx("range"):
                range_node = self.inner(prop, ptr("StartEndPointer"))
                kind, start = self.pointer(range_node, "startPointer")
                end_kind, end = self.pointer(range_node, "endPointer")
                if kind != end_kind:
                    raise self.error(f"snippet {ref} range mixes pointer kinds")
                if kind == "byte":
                    snippet.byte_range = (start, end)
                else:
                    snippet.line_range = (start, end)
            else:
                self.element_properties(doc, ref, prop)
        doc.add_snippet(snippet)

    def document(self, node: Element) -> Document:
        about = node.get(ABOUT, "")
        if "#" not in about:
            raise self.error(f"invalid document URI {about!r}")
        self.namespace, fragment = about.rsplit("#", 1)

        for ext_prop in node.findall(spdx("externalDocumentRef")):
            ext = self.inner(ext_prop, spdx("ExternalDocumentRef"))
            uri = self.resource(self.child(ext, spdx("spdxDocument")))
            ref_id = parse_document_ref_id(
                self.text(self.child(ext, spdx("externalDocumentId")))
            )
            self.ext_refs.setdefault(uri, ref_id)

        data_license = self.resource(self.child(node, spdx("dataLicense")))
        if data_license.startswith(LICENSES_URI):
            data_license = data_license[len(LICENSES_URI) :]
        doc = Document(
            name=self.text(self.child(node, spdx("name"))),
            namespace=self.namespace,
            spec_version=SchemaVersion.from_string(
                self.text(self.child(node, spdx("specVersion")))
            ),
            data_license=data_license,
            spdx_id=parse_element_id(fragment),
        )

        for prop in node:
            if prop.tag in (spdx("specVersion"), spdx("dataLicense"), spdx("name")):
                continue
            elif prop.tag == rdfs("comment"):
                doc.comment = self.text(prop)
            elif prop.tag == spdx("creationInfo"):
                info = self.inner(prop, spdx("CreationInfo"))
                comment = info.find(rdfs("comment"))
                version = info.find(spdx("licenseListVersion"))
                doc.creation_info = CreationInfo(
                    creators=[
                        parse_actor(
                            self.text(creator),
                            origin=self.origin,
                            allow_noassertion=False,
                        )  # type: ignore
                        for creator in info.findall(spdx("creator"))
                    ],
                    created=self.date(self.child(info, spdx("created"))),
                    license_list_version=(
                        self.text(version) if version is not None else ""
                    ),
                    comment=self.text(comment) if comment is not None else "",
                )
            elif prop.tag == spdx("externalDocumentRef"):
                ext = self.inner(prop, spdx("ExternalDocumentRef"))
                doc.add_external_document_ref(
                    ExternalDocumentRef(
                        parse_document_ref_id(
                            self.text(self.child(ext, spdx("externalDocumentId")))
                        ),
                        self.resource(self.child(ext, spdx("spdxDocument"))),
                        self.checksum(self.child(ext, spdx("checksum"))),
                    )
                )
            elif prop.tag == spdx("describesPackage"):
                self.derived.append(
                    Relationship(
                        doc.reference,
                        RelationshipType.DESCRIBES,
                        self.reference(self.resource(prop)),
                    )
                )
            elif prop.tag == spdx("hasExtractedLicensingInfo"):
                lic = self.inner(prop, spdx("ExtractedLicensingInfo"))
                name = lic.find(spdx("name"))
                comment = lic.find(rdfs("comment"))
                doc.add_other_license(
                    OtherLicense(
                        license_id=self.text(self.child(lic, spdx("licenseId"))),
                        extracted_text=self.text(self.child(lic, spdx("extractedText"))),
                        name=self.text(name) if name is not None else "",
                        cross_references=[
                            self.text(see_also) for see_also in lic.findall(rdfs("seeAlso"))
                        ],
                        comment=self.text(comment) if comment is not None else "",
                    )
                )
            else:
                self.element_properties(doc, doc.reference, prop)
        return doc

    def parse(self) -> Document:
        if self.root.tag != rdf("RDF"):
            raise self.error(f"expecting rdf:RDF root element, got {self.root.tag}")
        documents = self.root.findall(spdx("SpdxDocument"))
        if len(documents) != 1:
            raise self.error("expecting exactly one spdx:SpdxDocument")
        doc = self.document(documents[0])

        handlers: dict[str, Callable[[Document, Element], None]] = {
            spdx("Package"): self.package,
            spdx("File"): self.file,
            spdx("Snippet"): self.snippet,
            spdx("SpdxElement"): self.element,
        }
        for node in self.root:
            if node.tag == spdx("SpdxDocument"):
                continue
            handler: Optional[Callable[[Document, Element], None]] = handlers.get(
                node.tag
            )
            if handler is None:
                raise self.error(f"unknown node {node.tag}")
            handler(doc, node)

        add_derived(doc, self.derived)
        return doc

    def element(self, doc: Document, node: Element) -> None:
        ref = self.reference(node.get(ABOUT, ""))
        for prop in node:
            self.element_properties(doc, ref, prop)


class RDFCodec(Codec):
    """Read and write SPDX RDF/XML documents."""

    name = "rdf"
    supported_versions = (
        SchemaVersion.SPDX_2_1,
        SchemaVersion.SPDX_2_2,
        SchemaVersion.SPDX_2_3,
    )

    def parse(self, data: bytes) -> Document:
        try:
            root = fromstring(data)
        except ParseError as err:
            raise FormatError(str(err), origin=self.name, line=err.position[0]) from err
        except DefusedXmlException as err:
            raise FormatError(f"forbidden XML construct: {err}", origin=self.name) from err
        logger.debug("parsing RDF/XML document")
        return _Parser(root, origin=self.name).parse()

    def render(self, doc: Document) -> bytes:
        return _Writer(doc, origin=self.name).render()
