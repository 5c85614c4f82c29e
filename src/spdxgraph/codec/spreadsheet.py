"""SPDX spreadsheet (xlsx) format.

The workbook holds one sheet per section of the document. The first row of
each sheet holds the column headers; columns are located by header when
reading so that their order does not matter. Multi-valued cells are joined
with newlines, except attribution texts which are quoted since they may
span several lines.

In the Document Info sheet the creators and the external document
references are written one per row, the other values being on the first
row.
"""

from __future__ import annotations

import io
import re

from typing import TYPE_CHECKING
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import IllegalCharacterError, InvalidFileException

from spdxgraph.codec import Codec
from spdxgraph.document import (
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
from spdxgraph.relationships import add_derived, file_owners
from spdxgraph.version import SchemaVersion
import spdxgraph.log

if TYPE_CHECKING:
    from typing import Any, Iterator, Optional

    from openpyxl.worksheet.worksheet import Worksheet

logger = spdxgraph.log.getLogger("codec.spreadsheet")

DOCUMENT_INFO = "Document Info"
PACKAGE_INFO = "Package Info"
FILE_INFO = "Per File Info"
SNIPPETS = "Snippets"
RELATIONSHIPS = "Relationships"
ANNOTATIONS = "Annotations"
EXTRACTED_LICENSE_INFO = "Extracted License Info"
EXTERNAL_REFS = "External Refs"

HEADERS = {
    DOCUMENT_INFO: (
        "SPDX Version",
        "Data License",
        "SPDX Identifier",
        "License List Version",
        "Document Name",
        "Document Namespace",
        "External Document References",
        "Document Comment",
        "Creator",
        "Created",
        "Creator Comment",
    ),
    PACKAGE_INFO: (
        "Package Name",
        "SPDX Identifier",
        "Package Version",
        "Package FileName",
        "Package Supplier",
        "Package Originator",
        "Home Page",
        "Package Download Location",
        "Package Checksum",
        "Package Verification Code",
        "Verification Code Excluded Files",
        "Source Info",
        "License Declared",
        "License Concluded",
        "Package Licenses From Files",
        "Package License Comments",
        "Package Copyright Text",
        "Package Summary",
        "Package Description",
        "Package Attribution Text",
        "Files Analyzed",
        "Package Comments",
        "Primary Package Purpose",
        "Release Date",
        "Built Date",
        "Valid Until Date",
    ),
    FILE_INFO: (
        "File Name",
        "SPDX Identifier",
        "Package Identifier",
        "File Type(s)",
        "File Checksum(s)",
        "License Concluded",
        "License Info in File",
        "License Comments",
        "File Copyright Text",
        "Notice Text",
        "Contributors",
        "File Comment",
        "Attribution Text",
    ),
    SNIPPETS: (
        "ID",
        "Name",
        "From File ID",
        "Byte Range",
        "Line Range",
        "License Concluded",
        "License Info in Snippet",
        "License Comments",
        "Snippet Copyright Text",
        "Comment",
        "Attribution Text",
    ),
    RELATIONSHIPS: ("Ref A", "Relationship", "Ref B", "Comment"),
    ANNOTATIONS: ("SPDX Identifier", "Comment", "Date", "Annotator", "Type"),
    EXTRACTED_LICENSE_INFO: (
        "Identifier",
        "Extracted Text",
        "License Name",
        "Cross Reference URLs",
        "Comment",
    ),
    EXTERNAL_REFS: ("Package ID", "Category", "Type", "Locator", "Comment"),
}

QUOTED_R = re.compile(r'"((?:[^"\\]|\\.)*)"', re.DOTALL)
RANGE_R = re.compile(r"^\s*(\d+)\s*:\s*(\d+)\s*$")


def join_values(values: list[str]) -> str:
    return "\n".join(values)


def split_values(value: str) -> list[str]:
    return [v for v in value.split("\n") if v]


def quote_values(values: list[str]) -> str:
    r"""Join texts that may contain newlines.

    >>> quote_values(['a "b"', "c\nd"])
    '"a \\"b\\""\n"c\nd"'
    """
    return "\n".join(
        '"{}"'.format(v.replace("\\", "\\\\").replace('"', '\\"')) for v in values
    )


def unquote_values(value: str) -> list[str]:
    return [
        re.sub(r"\\(.)", r"\1", m.group(1), flags=re.DOTALL)
        for m in QUOTED_R.finditer(value)
    ]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    elif isinstance(value, bool):
        return str(value).lower()
    return str(value)


class _Sheet:
    """Rows of a worksheet as dictionaries indexed by header."""

    def __init__(self, ws: Worksheet, origin: str) -> None:
        self.name = ws.title
        self.origin = origin
        rows = list(ws.iter_rows(values_only=True))
        self.headers = [_cell(h).strip() for h in rows[0]] if rows else []
        self.records: list[tuple[int, dict[str, str]]] = []
        for index, row in enumerate(rows[1:], start=2):
            if all(_cell(v) == "" for v in row):
                continue
            self.records.append((index, self.record(row)))

    def record(self, row: tuple[Any, ...]) -> dict[str, str]:
        """Map headers to cell values, missing trailing cells being empty."""
        return {
            header: _cell(row[index]) if index < len(row) else ""
            for index, header in enumerate(self.headers)
            if header
        }

    def error(self, row: int, message: str) -> FormatError:
        return FormatError(f"{self.name}: {message}", origin=self.origin, line=row)

    def required(self, row: int, record: dict[str, str], header: str) -> str:
        value = record.get(header, "")
        if not value:
            raise self.error(row, f"missing {header}")
        return value


class _Parser:
    def __init__(self, data: bytes, origin: str) -> None:
        self.origin = origin
        try:
            workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        except (BadZipFile, InvalidFileException, KeyError, OSError) as err:
            raise FormatError(f"cannot read workbook: {err}", origin=origin) from err
        self.sheets = {ws.title: _Sheet(ws, origin) for ws in workbook.worksheets}
        workbook.close()
        self.derived: list[Relationship] = []

    def enum(self, sheet: _Sheet, row: int, enum_type: Any, value: str) -> Any:
        try:
            return enum_type(value.strip())
        except ValueError:
            raise sheet.error(row, f"invalid {enum_type.__name__} {value!r}") from None

    def date(self, sheet: _Sheet, row: int, value: str) -> str:
        if not value:
            return value
        try:
            return check_timestamp(value, origin=self.origin)
        except FormatError as err:
            raise sheet.error(row, str(err)) from err

    def range(self, sheet: _Sheet, row: int, value: str) -> Optional[tuple[int, int]]:
        if not value:
            return None
        m = RANGE_R.match(value)
        if m is None:
            raise sheet.error(row, f"invalid range {value!r}")
        return int(m.group(1)), int(m.group(2))

    def records(self, name: str) -> Iterator[tuple[_Sheet, int, dict[str, str]]]:
        """Iterate over the rows of an optional sheet."""
        sheet = self.sheets.get(name)
        if sheet is None:
            return
        for row, record in sheet.records:
            yield sheet, row, record

    def document(self) -> Document:
        sheet = self.sheets.get(DOCUMENT_INFO)
        if sheet is None or not sheet.records:
            raise FormatError(f"missing {DOCUMENT_INFO} sheet", origin=self.origin)
        row, first = sheet.records[0]

        creators = []
        ext_refs = []
        for index, record in sheet.records:
            if record.get("Creator"):
                creators.append(
                    parse_actor(
                        record["Creator"], origin=self.origin, allow_noassertion=False
                    )
                )
            if record.get("External Document References"):
                fields = record["External Document References"].split(None, 2)
                if len(fields) != 3:
                    raise sheet.error(
                        index,
                        "invalid external document reference"
                        f" {record['External Document References']!r}",
                    )
                ext_refs.append(
                    ExternalDocumentRef(
                        parse_document_ref_id(fields[0]),
                        fields[1],
                        Checksum.from_string(fields[2], origin=self.origin),
                    )
                )

        doc = Document(
            name=sheet.required(row, first, "Document Name"),
            namespace=sheet.required(row, first, "Document Namespace"),
            spec_version=SchemaVersion.from_string(
                sheet.required(row, first, "SPDX Version")
            ),
            data_license=sheet.required(row, first, "Data License"),
            spdx_id=parse_element_id(sheet.required(row, first, "SPDX Identifier")),
            comment=first.get("Document Comment", ""),
            creation_info=CreationInfo(
                creators=creators,  # type: ignore
                created=self.date(sheet, row, first.get("Created", "")),
                license_list_version=first.get("License List Version", ""),
                comment=first.get("Creator Comment", ""),
            ),
            external_document_refs=ext_refs,
        )
        return doc

    def packages(self, doc: Document) -> None:
        for sheet, row, record in self.records(PACKAGE_INFO):
            supplier = record.get("Package Supplier", "")
            originator = record.get("Package Originator", "")
            code = record.get("Package Verification Code", "")
            purpose = record.get("Primary Package Purpose", "")
            files_analyzed = record.get("Files Analyzed", "true").lower() or "true"
            if files_analyzed not in ("true", "false"):
                raise sheet.error(row, f"invalid Files Analyzed {files_analyzed!r}")
            doc.add_package(
                Package(
                    spdx_id=parse_element_id(
                        sheet.required(row, record, "SPDX Identifier")
                    ),
                    name=sheet.required(row, record, "Package Name"),
                    download_location=record.get(
                        "Package Download Location", NOASSERTION
                    ),
                    version=record.get("Package Version", ""),
                    file_name=record.get("Package FileName", ""),
                    supplier=(
                        parse_actor(supplier, origin=self.origin) if supplier else None
                    ),
                    originator=(
                        parse_actor(originator, origin=self.origin)
                        if originator
                        else None
                    ),
                    files_analyzed=files_analyzed == "true",
                    verification_code=(
                        PackageVerificationCode(
                            code,
                            split_values(
                                record.get("Verification Code Excluded Files", "")
                            ),
                        )
                        if code
                        else None
                    ),
                    checksums=[
                        Checksum.from_string(ck, origin=self.origin)
                        for ck in split_values(record.get("Package Checksum", ""))
                    ],
                    homepage=record.get("Home Page", ""),
                    source_info=record.get("Source Info", ""),
                    license_concluded=record.get("License Concluded", NOASSERTION),
                    license_info_from_files=split_values(
                        record.get("Package Licenses From Files", "")
                    ),
                    license_declared=record.get("License Declared", NOASSERTION),
                    license_comments=record.get("Package License Comments", ""),
                    copyright_text=record.get("Package Copyright Text", NOASSERTION),
                    summary=record.get("Package Summary", ""),
                    description=record.get("Package Description", ""),
                    comment=record.get("Package Comments", ""),
                    attribution_texts=unquote_values(
                        record.get("Package Attribution Text", "")
                    ),
                    primary_package_purpose=(
                        self.enum(sheet, row, PrimaryPackagePurpose, purpose)
                        if purpose
                        else None
                    ),
                    release_date=self.date(sheet, row, record.get("Release Date", "")),
                    built_date=self.date(sheet, row, record.get("Built Date", "")),
                    valid_until_date=self.date(
                        sheet, row, record.get("Valid Until Date", "")
                    ),
                )
            )

    def external_refs(self, doc: Document) -> None:
        packages = {pkg.spdx_id: pkg for pkg in doc.packages}
        for sheet, row, record in self.records(EXTERNAL_REFS):
            package_id = parse_element_id(sheet.required(row, record, "Package ID"))
            if package_id not in packages:
                raise sheet.error(row, f"unknown package {package_id}")
            packages[package_id].external_refs.append(
                ExternalRef(
                    self.enum(
                        sheet,
                        row,
                        ExternalRefCategory,
                        sheet.required(row, record, "Category"),
                    ),
                    sheet.required(row, record, "Type"),
                    sheet.required(row, record, "Locator"),
                    record.get("Comment", ""),
                )
            )

    def files(self, doc: Document) -> None:
        for sheet, row, record in self.records(FILE_INFO):
            f = File(
                spdx_id=parse_element_id(sheet.required(row, record, "SPDX Identifier")),
                name=sheet.required(row, record, "File Name"),
                types=[
                    self.enum(sheet, row, FileType, t)
                    for t in split_values(record.get("File Type(s)", ""))
                ],
                checksums=[
                    Checksum.from_string(ck, origin=self.origin)
                    for ck in split_values(record.get("File Checksum(s)", ""))
                ],
                license_concluded=record.get("License Concluded", NOASSERTION),
                license_info_in_files=split_values(
                    record.get("License Info in File", "")
                ),
                license_comments=record.get("License Comments", ""),
                copyright_text=record.get("File Copyright Text", NOASSERTION),
                notice=record.get("Notice Text", ""),
                contributors=split_values(record.get("Contributors", "")),
                comment=record.get("File Comment", ""),
                attribution_texts=unquote_values(record.get("Attribution Text", "")),
            )
            doc.add_file(f)
            if record.get("Package Identifier"):
                self.derived.append(
                    Relationship(
                        parse_reference(record["Package Identifier"]),
                        RelationshipType.CONTAINS,
                        ScopedReference(f.spdx_id),
                    )
                )

    def snippets(self, doc: Document) -> None:
        for sheet, row, record in self.records(SNIPPETS):
            doc.add_snippet(
                Snippet(
                    spdx_id=parse_element_id(sheet.required(row, record, "ID")),
                    from_file=parse_reference(
                        sheet.required(row, record, "From File ID")
                    ),
                    byte_range=self.range(sheet, row, record.get("Byte Range", "")),
                    line_range=self.range(sheet, row, record.get("Line Range", "")),
                    license_concluded=record.get("License Concluded", NOASSERTION),
                    license_info_in_snippet=split_values(
                        record.get("License Info in Snippet", "")
                    ),
                    license_comments=record.get("License Comments", ""),
                    copyright_text=record.get("Snippet Copyright Text", NOASSERTION),
                    comment=record.get("Comment", ""),
                    name=record.get("Name", ""),
                    attribution_texts=unquote_values(
                        record.get("Attribution Text", "")
                    ),
                )
            )

    def other_licenses(self, doc: Document) -> None:
        for sheet, row, record in self.records(EXTRACTED_LICENSE_INFO):
            doc.add_other_license(
                OtherLicense(
                    license_id=sheet.required(row, record, "Identifier"),
                    extracted_text=record.get("Extracted Text", ""),
                    name=record.get("License Name", ""),
                    cross_references=split_values(
                        record.get("Cross Reference URLs", "")
                    ),
                    comment=record.get("Comment", ""),
                )
            )

    def relationships(self, doc: Document) -> None:
        for sheet, row, record in self.records(RELATIONSHIPS):
            doc.add_relationship(
                Relationship(
                    parse_reference(sheet.required(row, record, "Ref A")),
                    self.enum(
                        sheet,
                        row,
                        RelationshipType,
                        sheet.required(row, record, "Relationship"),
                    ),
                    parse_reference(sheet.required(row, record, "Ref B")),
                    record.get("Comment", ""),
                )
            )

    def annotations(self, doc: Document) -> None:
        for sheet, row, record in self.records(ANNOTATIONS):
            doc.add_annotation(
                Annotation(
                    target=parse_reference(
                        sheet.required(row, record, "SPDX Identifier")
                    ),
                    annotator=parse_actor(
                        sheet.required(row, record, "Annotator"),
                        origin=self.origin,
                        allow_noassertion=False,
                    ),  # type: ignore
                    annotation_type=self.enum(
                        sheet, row, AnnotationType, sheet.required(row, record, "Type")
                    ),
                    date=self.date(sheet, row, record.get("Date", "")),
                    comment=record.get("Comment", ""),
                )
            )

    def parse(self) -> Document:
        doc = self.document()
        self.packages(doc)
        self.external_refs(doc)
        self.files(doc)
        self.snippets(doc)
        self.other_licenses(doc)
        self.relationships(doc)
        self.annotations(doc)
        add_derived(doc, self.derived)
        return doc


class _Writer:
    def __init__(self, doc: Document, origin: str) -> None:
        self.doc = doc
        self.origin = origin
        self.workbook = Workbook()
        # Reuse the default sheet for the first section
        self.workbook.active.title = DOCUMENT_INFO

    def sheet(self, name: str) -> Worksheet:
        if name in self.workbook.sheetnames:
            ws = self.workbook[name]
        else:
            ws = self.workbook.create_sheet(name)
        ws.append(list(HEADERS[name]))
        return ws

    def append(self, ws: Worksheet, values: dict[str, Any]) -> None:
        row = [values.get(header, "") for header in HEADERS[ws.title]]
        try:
            ws.append(row)
        except IllegalCharacterError as err:
            raise EncodeError(
                f"{ws.title}: value cannot be stored in a cell: {err}",
                origin=self.origin,
            ) from err
        for cell in ws[ws.max_row]:
            # Text starting with = is not a formula
            if isinstance(cell.value, str) and cell.value.startswith("="):
                cell.data_type = "s"

    def document(self) -> None:
        doc = self.doc
        ws = self.sheet(DOCUMENT_INFO)
        creators = [str(actor) for actor in doc.creation_info.creators]
        ext_refs = [
            f"{render_document_ref_id(ext.id)} {ext.uri} {ext.checksum}"
            for ext in doc.external_document_refs
        ]
        self.append(
            ws,
            {
                "SPDX Version": str(doc.spec_version),
                "Data License": doc.data_license,
                "SPDX Identifier": str(doc.spdx_id),
                "License List Version": doc.creation_info.license_list_version,
                "Document Name": doc.name,
                "Document Namespace": doc.namespace,
                "External Document References": ext_refs[0] if ext_refs else "",
                "Document Comment": doc.comment,
                "Creator": creators[0] if creators else "",
                "Created": doc.creation_info.created,
                "Creator Comment": doc.creation_info.comment,
            },
        )
        for index in range(1, max(len(creators), len(ext_refs))):
            self.append(
                ws,
                {
                    "Creator": creators[index] if index < len(creators) else "",
                    "External Document References": (
                        ext_refs[index] if index < len(ext_refs) else ""
                    ),
                },
            )

    def packages(self) -> None:
        ws = self.sheet(PACKAGE_INFO)
        refs_ws = self.sheet(EXTERNAL_REFS)
        for pkg in self.doc.packages:
            code = pkg.verification_code
            self.append(
                ws,
                {
                    "Package Name": pkg.name,
                    "SPDX Identifier": str(pkg.spdx_id),
                    "Package Version": pkg.version,
                    "Package FileName": pkg.file_name,
                    "Package Supplier": str(pkg.supplier) if pkg.supplier else "",
                    "Package Originator": (
                        str(pkg.originator) if pkg.originator else ""
                    ),
                    "Home Page": pkg.homepage,
                    "Package Download Location": pkg.download_location,
                    "Package Checksum": join_values([str(ck) for ck in pkg.checksums]),
                    "Package Verification Code": code.value if code else "",
                    "Verification Code Excluded Files": (
                        join_values(code.excluded_files) if code else ""
                    ),
                    "Source Info": pkg.source_info,
                    "License Declared": pkg.license_declared,
                    "License Concluded": pkg.license_concluded,
                    "Package Licenses From Files": join_values(
                        pkg.license_info_from_files
                    ),
                    "Package License Comments": pkg.license_comments,
                    "Package Copyright Text": pkg.copyright_text,
                    "Package Summary": pkg.summary,
                    "Package Description": pkg.description,
                    "Package Attribution Text": quote_values(pkg.attribution_texts),
                    "Files Analyzed": pkg.files_analyzed,
                    "Package Comments": pkg.comment,
                    "Primary Package Purpose": (
                        pkg.primary_package_purpose.value
                        if pkg.primary_package_purpose is not None
                        else ""
                    ),
                    "Release Date": pkg.release_date,
                    "Built Date": pkg.built_date,
                    "Valid Until Date": pkg.valid_until_date,
                },
            )
            for ref in pkg.external_refs:
                self.append(
                    refs_ws,
                    {
                        "Package ID": str(pkg.spdx_id),
                        "Category": ref.category.value,
                        "Type": ref.reference_type,
                        "Locator": ref.locator,
                        "Comment": ref.comment,
                    },
                )

    def files(self) -> None:
        ws = self.sheet(FILE_INFO)
        owners = file_owners(self.doc)
        for f in self.doc.files:
            owner = owners.get(f.spdx_id)
            self.append(
                ws,
                {
                    "File Name": f.name,
                    "SPDX Identifier": str(f.spdx_id),
                    "Package Identifier": str(owner) if owner is not None else "",
                    "File Type(s)": join_values([t.value for t in f.types]),
                    "File Checksum(s)": join_values([str(ck) for ck in f.checksums]),
                    "License Concluded": f.license_concluded,
                    "License Info in File": join_values(f.license_info_in_files),
                    "License Comments": f.license_comments,
                    "File Copyright Text": f.copyright_text,
                    "Notice Text": f.notice,
                    "Contributors": join_values(f.contributors),
                    "File Comment": f.comment,
                    "Attribution Text": quote_values(f.attribution_texts),
                },
            )

    def snippets(self) -> None:
        ws = self.sheet(SNIPPETS)
        for snippet in self.doc.snippets:
            self.append(
                ws,
                {
                    "ID": str(snippet.spdx_id),
                    "Name": snippet.name,
                    "From File ID": render_reference(snippet.from_file),
                    "Byte Range": (
                        "{}:{}".format(*snippet.byte_range)
                        if snippet.byte_range is not None
                        else ""
                    ),
                    "Line Range": (
                        "{}:{}".format(*snippet.line_range)
                        if snippet.line_range is not None
                        else ""
                    ),
                    "License Concluded": snippet.license_concluded,
                    "License Info in Snippet": join_values(
                        snippet.license_info_in_snippet
                    ),
                    "License Comments": snippet.license_comments,
                    "Snippet Copyright Text": snippet.copyright_text,
                    "Comment": snippet.comment,
                    "Attribution Text": quote_values(snippet.attribution_texts),
                },
            )

    def render(self) -> bytes:
        self.document()
        self.packages()
        self.files()
        self.snippets()

        ws = self.sheet(RELATIONSHIPS)
        for rel in self.doc.relationships:
            self.append(
                ws,
                {
                    "Ref A": render_reference(rel.ref_a),
                    "Relationship": rel.relationship_type.value,
                    "Ref B": render_reference(rel.ref_b),
                    "Comment": rel.comment,
                },
            )

        ws = self.sheet(ANNOTATIONS)
        for annotation in self.doc.annotations:
            self.append(
                ws,
                {
                    "SPDX Identifier": render_reference(annotation.target),
                    "Comment": annotation.comment,
                    "Date": annotation.date,
                    "Annotator": str(annotation.annotator),
                    "Type": annotation.annotation_type.value,
                },
            )

        ws = self.sheet(EXTRACTED_LICENSE_INFO)
        for lic in self.doc.other_licenses:
            self.append(
                ws,
                {
                    "Identifier": lic.license_id,
                    "Extracted Text": lic.extracted_text,
                    "License Name": lic.name,
                    "Cross Reference URLs": join_values(lic.cross_references),
                    "Comment": lic.comment,
                },
            )

        output = io.BytesIO()
        self.workbook.save(output)
        return output.getvalue()


class SpreadsheetCodec(Codec):
    """Read and write SPDX xlsx workbooks."""

    name = "spreadsheet"
    supported_versions = (SchemaVersion.SPDX_2_2, SchemaVersion.SPDX_2_3)

    def parse(self, data: bytes) -> Document:
        logger.debug("parsing xlsx workbook")
        return _Parser(data, origin=self.name).parse()

    def render(self, doc: Document) -> bytes:
        return _Writer(doc, origin=self.name).render()
