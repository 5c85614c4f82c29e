"""Derivations over the relationships of a document.

Relationships are the only place where the links between elements are
recorded. Codec shorthands (nested files, ``documentDescribes``, ...) are
computed from them when encoding and turned back into relationships when
decoding, using the functions of this module so that all codecs agree.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from spdxgraph.config import codec_config
from spdxgraph.document import Relationship, RelationshipType
from spdxgraph.identifier import ScopedReference
import spdxgraph.log

if TYPE_CHECKING:
    from typing import Iterable, Optional

    from spdxgraph.document import Document
    from spdxgraph.identifier import ElementID, Reference

logger = spdxgraph.log.getLogger("relationships")


def filter_relationships(
    doc: Document,
    relationship_type: Optional[RelationshipType] = None,
    ref_a: Optional[Reference] = None,
    ref_b: Optional[Reference] = None,
) -> list[Relationship]:
    """Return the relationships matching all the given criteria.

    :param doc: the document to search
    :param relationship_type: if not None, only keep this type
    :param ref_a: if not None, only keep relationships starting from it
    :param ref_b: if not None, only keep relationships going to it
    """
    return [
        rel
        for rel in doc.relationships
        if (relationship_type is None or rel.relationship_type == relationship_type)
        and (ref_a is None or rel.ref_a == ref_a)
        and (ref_b is None or rel.ref_b == ref_b)
    ]


def described_packages(doc: Document, include_inverse: bool = True) -> list[ElementID]:
    """Return the elements described by the document.

    These are the local targets of the DESCRIBES relationships starting from
    the document element, plus the elements listed in
    :attr:`Document.root_elements`.

    :param include_inverse: also consider the elements DESCRIBED_BY the
        document. Codecs writing a describes shorthand set it to False, the
        DESCRIBED_BY relationships being written as they are.
    :return: a sorted list without duplicates
    """  # noqa RST304
    result = set(doc.root_elements)
    for rel in filter_relationships(
        doc, RelationshipType.DESCRIBES, ref_a=doc.reference
    ):
        if isinstance(rel.ref_b, ScopedReference) and rel.ref_b.is_local:
            result.add(rel.ref_b.element)
    if include_inverse:
        for rel in filter_relationships(
            doc, RelationshipType.DESCRIBED_BY, ref_b=doc.reference
        ):
            if isinstance(rel.ref_a, ScopedReference) and rel.ref_a.is_local:
                result.add(rel.ref_a.element)
    return sorted(result)


def file_ids(doc: Document) -> set[ElementID]:
    return {f.spdx_id for f in doc.iter_files()}


def package_file_ids(
    doc: Document, package_id: ElementID, include_inverse: bool = False
) -> list[ElementID]:
    """Return the files of a package.

    Files nested under the package come first, followed by the files the
    package CONTAINS. Each identifier appears once.

    :param doc: the document
    :param package_id: the package identifier
    :param include_inverse: also consider CONTAINED_BY relationships
    """
    result: list[ElementID] = []
    for pkg in doc.packages:
        if pkg.spdx_id == package_id:
            result.extend(f.spdx_id for f in pkg.files)

    files = file_ids(doc)
    package_ref = ScopedReference(package_id)
    for rel in doc.relationships:
        target: Optional[Reference] = None
        if rel.relationship_type == RelationshipType.CONTAINS and rel.ref_a == package_ref:
            target = rel.ref_b
        elif (
            include_inverse
            and rel.relationship_type == RelationshipType.CONTAINED_BY
            and rel.ref_b == package_ref
        ):
            target = rel.ref_a
        if (
            isinstance(target, ScopedReference)
            and target.is_local
            and target.element in files
            and target.element not in result
        ):
            result.append(target.element)
    return result


def file_owners(doc: Document) -> dict[ElementID, ElementID]:
    """Map each file to the first package that CONTAINS it."""
    result: dict[ElementID, ElementID] = {}
    package_ids = [pkg.spdx_id for pkg in doc.packages]
    for package_id in package_ids:
        for file_id in package_file_ids(doc, package_id):
            result.setdefault(file_id, package_id)
    return result


def snippet_owners(doc: Document) -> dict[ElementID, ElementID]:
    """Map each local snippet to the file it is taken from."""
    result = {}
    for snippet in doc.iter_snippets():
        if isinstance(snippet.from_file, ScopedReference) and snippet.from_file.is_local:
            result[snippet.spdx_id] = snippet.from_file.element
    return result


def dedupe_derived(
    existing: Iterable[Relationship], derived: Iterable[Relationship]
) -> list[Relationship]:
    """Keep the derived relationships not already present.

    A derived relationship is dropped when a relationship with the same
    (ref_a, type, ref_b) triple exists, comments being ignored. Only
    relationships computed from a codec shorthand go through this filter;
    relationships read explicitly from a document are always kept.

    :param existing: the relationships already in the document
    :param derived: the relationships computed from a shorthand
    :return: the derived relationships to add
    """
    seen = {rel.triple for rel in existing}
    result = []
    for rel in derived:
        if rel.triple in seen:
            logger.debug(f"dropping duplicate derived relationship {rel}")
            continue
        seen.add(rel.triple)
        result.append(rel)
    return result


def add_derived(doc: Document, relationships: Iterable[Relationship]) -> None:
    """Append relationships computed from a shorthand to *doc*.

    Duplicates are dropped unless the dedupe_derived_relationships option
    of the [codec] configuration section is disabled.
    """
    relationships = list(relationships)
    if codec_config().dedupe_derived_relationships:
        relationships = dedupe_derived(doc.relationships, relationships)
    for rel in relationships:
        logger.debug(f"adding derived relationship {rel}", spdx_id=str(rel.ref_a))
        doc.add_relationship(rel)
