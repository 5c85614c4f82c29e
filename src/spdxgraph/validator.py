"""Structural validation of a document.

The checks are run in a fixed order and all the errors are collected:

1. identifiers are unique within the document
2. references to external documents use a declared document ref
3. local references resolve to an element of the document
4. packages whose files were not analyzed have no file information
5. the described elements exist
6. snippets are taken from a file of the document
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from typing import TYPE_CHECKING, TypeVar

from spdxgraph.error import InvalidDocument
from spdxgraph.identifier import ScopedReference, Sentinel, render_reference
from spdxgraph.log import progress_bar
from spdxgraph.relationships import file_ids, package_file_ids
import spdxgraph.log

if TYPE_CHECKING:
    from typing import Iterator

    from spdxgraph.document import Document, File, Snippet
    from spdxgraph.identifier import ElementID, Reference

logger = spdxgraph.log.getLogger("validator")

NestedElement = TypeVar("NestedElement", "File", "Snippet")


class ValidationErrorKind(Enum):
    DUPLICATE_IDENTIFIER = "DuplicateIdentifier"
    UNRESOLVED_REFERENCE = "UnresolvedReference"
    UNDECLARED_EXTERNAL_DOCUMENT = "UndeclaredExternalDocument"
    INCONSISTENT_FILES_ANALYZED = "InconsistentFilesAnalyzed"
    ORPHAN_SNIPPET = "OrphanSnippet"
    INVALID_SNIPPET_RANGE = "InvalidSnippetRange"
    DUPLICATE_EXTERNAL_DOCUMENT_REF = "DuplicateExternalDocumentRef"


@dataclass(frozen=True)
class ValidationError:
    """An invariant violation.

    :ivar kind: the violated invariant
    :ivar element_ref: textual reference of the offending element
    :ivar message: human readable explanation
    """

    kind: ValidationErrorKind
    element_ref: str
    message: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.element_ref}: {self.message}"


class _Collector:
    def __init__(self) -> None:
        self.errors: list[ValidationError] = []

    def add(self, kind: ValidationErrorKind, element_ref: str, message: str) -> None:
        logger.debug(f"{kind.value}: {message}", spdx_id=element_ref)
        self.errors.append(ValidationError(kind, element_ref, message))


def _references(doc: Document) -> Iterator[tuple[str, Reference]]:
    """Yield (context, reference) for every reference of the document."""
    for rel in progress_bar(doc.relationships, desc="relationships", unit="rel"):
        yield f"relationship {rel}", rel.ref_a
        yield f"relationship {rel}", rel.ref_b
    for snippet in doc.iter_snippets():
        yield f"snippet {snippet.spdx_id} from file", snippet.from_file
    for annotation in doc.annotations:
        yield "annotation target", annotation.target


def _unique_elements(
    kind: str,
    nested: list[NestedElement],
    flat: list[NestedElement],
    errors: _Collector,
) -> list[NestedElement]:
    """Return the elements once, reporting duplicated identifiers.

    An element nested in a container (a package for files, a file for
    snippets) may also be listed at the document level with the same
    content: that is the same element seen twice and it is returned once.
    Any other repetition of an identifier is an error.
    """

    def duplicate(spdx_id: ElementID) -> None:
        errors.add(
            ValidationErrorKind.DUPLICATE_IDENTIFIER,
            str(spdx_id),
            f"{kind} identifier {spdx_id} is used more than once",
        )

    result: list[NestedElement] = []
    nested_seen: dict[ElementID, NestedElement] = {}
    for element in nested:
        if element.spdx_id in nested_seen:
            duplicate(element.spdx_id)
        else:
            nested_seen[element.spdx_id] = element
            result.append(element)

    flat_seen: set[ElementID] = set()
    for element in flat:
        if element.spdx_id in flat_seen:
            duplicate(element.spdx_id)
            continue
        flat_seen.add(element.spdx_id)
        previous = nested_seen.get(element.spdx_id)
        if previous is None:
            result.append(element)
        elif previous != element:
            duplicate(element.spdx_id)
    return result


def _check_identifiers(doc: Document, errors: _Collector) -> None:
    ids: set[ElementID] = {doc.spdx_id}

    def record(kind: str, spdx_id: ElementID) -> None:
        if spdx_id in ids:
            errors.add(
                ValidationErrorKind.DUPLICATE_IDENTIFIER,
                str(spdx_id),
                f"{kind} identifier {spdx_id} is already used",
            )
        ids.add(spdx_id)

    for pkg in doc.packages:
        record("package", pkg.spdx_id)

    files = _unique_elements(
        "file", [f for pkg in doc.packages for f in pkg.files], doc.files, errors
    )
    for f in files:
        record("file", f.spdx_id)

    snippets = _unique_elements(
        "snippet", [s for f in files for s in f.snippets], doc.snippets, errors
    )
    for snippet in snippets:
        record("snippet", snippet.spdx_id)


def _check_external_references(doc: Document, errors: _Collector) -> None:
    declared: set[str] = set()
    for ext in doc.external_document_refs:
        if ext.id in declared:
            errors.add(
                ValidationErrorKind.DUPLICATE_EXTERNAL_DOCUMENT_REF,
                f"DocumentRef-{ext.id}",
                f"external document ref DocumentRef-{ext.id} is declared twice",
            )
        declared.add(ext.id)

    for context, ref in _references(doc):
        if (
            isinstance(ref, ScopedReference)
            and not ref.is_local
            and ref.document_ref not in declared
        ):
            errors.add(
                ValidationErrorKind.UNDECLARED_EXTERNAL_DOCUMENT,
                render_reference(ref),
                f"{context}: DocumentRef-{ref.document_ref} is not declared",
            )


def _check_local_references(doc: Document, errors: _Collector) -> None:
    ids = doc.all_identifiers()
    for context, ref in _references(doc):
        if isinstance(ref, ScopedReference) and ref.is_local and ref.element not in ids:
            errors.add(
                ValidationErrorKind.UNRESOLVED_REFERENCE,
                render_reference(ref),
                f"{context}: {ref} does not name an element of the document",
            )


def _check_files_analyzed(doc: Document, errors: _Collector) -> None:
    for pkg in doc.packages:
        if pkg.files_analyzed:
            continue
        if package_file_ids(doc, pkg.spdx_id, include_inverse=True):
            errors.add(
                ValidationErrorKind.INCONSISTENT_FILES_ANALYZED,
                str(pkg.spdx_id),
                f"package {pkg.spdx_id} has files but FilesAnalyzed is false",
            )
        if pkg.license_info_from_files:
            errors.add(
                ValidationErrorKind.INCONSISTENT_FILES_ANALYZED,
                str(pkg.spdx_id),
                f"package {pkg.spdx_id} has license information from files"
                " but FilesAnalyzed is false",
            )
        if pkg.verification_code is not None:
            errors.add(
                ValidationErrorKind.INCONSISTENT_FILES_ANALYZED,
                str(pkg.spdx_id),
                f"package {pkg.spdx_id} has a verification code"
                " but FilesAnalyzed is false",
            )


def _check_described(doc: Document, errors: _Collector) -> None:
    ids = doc.all_identifiers()
    for spdx_id in doc.root_elements:
        if spdx_id not in ids:
            errors.add(
                ValidationErrorKind.UNRESOLVED_REFERENCE,
                str(spdx_id),
                f"described element {spdx_id} does not exist",
            )


def _check_snippets(doc: Document, errors: _Collector) -> None:
    files = file_ids(doc)

    def check_range(snippet: Snippet, name: str, value: tuple[int, int]) -> None:
        start, end = value
        if start < 1 or start > end:
            errors.add(
                ValidationErrorKind.INVALID_SNIPPET_RANGE,
                str(snippet.spdx_id),
                f"snippet {snippet.spdx_id} has an invalid {name} {start}:{end}",
            )

    def check(snippet: Snippet, parent: ElementID | None) -> None:
        ref = snippet.from_file
        if isinstance(ref, Sentinel) or not ref.is_local:
            errors.add(
                ValidationErrorKind.ORPHAN_SNIPPET,
                str(snippet.spdx_id),
                f"snippet {snippet.spdx_id} must be taken from a file of this"
                f" document, not {render_reference(ref)}",
            )
        elif ref.element not in files:
            errors.add(
                ValidationErrorKind.ORPHAN_SNIPPET,
                str(snippet.spdx_id),
                f"snippet {snippet.spdx_id} is taken from {ref} which is not a file",
            )
        elif parent is not None and ref.element != parent:
            errors.add(
                ValidationErrorKind.ORPHAN_SNIPPET,
                str(snippet.spdx_id),
                f"snippet {snippet.spdx_id} is listed under {parent}"
                f" but taken from {ref}",
            )
        if snippet.byte_range is not None:
            check_range(snippet, "byte range", snippet.byte_range)
        if snippet.line_range is not None:
            check_range(snippet, "line range", snippet.line_range)

    for f in doc.iter_files():
        for snippet in f.snippets:
            check(snippet, f.spdx_id)
    for snippet in doc.snippets:
        check(snippet, None)


def validate(doc: Document) -> list[ValidationError]:
    """Check the structural invariants of a document.

    :param doc: the document to check
    :return: the list of violations, empty if the document is valid
    """
    errors = _Collector()
    _check_identifiers(doc, errors)
    _check_external_references(doc, errors)
    _check_local_references(doc, errors)
    _check_files_analyzed(doc, errors)
    _check_described(doc, errors)
    _check_snippets(doc, errors)
    return errors.errors


def check(doc: Document) -> None:
    """Raise if the document is not structurally valid.

    :raise InvalidDocument: with all the violations found
    """
    errors = validate(doc)
    if errors:
        raise InvalidDocument(errors, origin="validator")
