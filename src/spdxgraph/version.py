"""SPDX schema versions and conversion between them.

The in-memory document model is the same for all SPDX 2.x versions. Fields
that were introduced by a later revision of the specification are listed in
:data:`FIELD_INTRODUCTIONS`; converting a document to an older version
clears them, converting it to a newer version leaves them unset.

SPDX 3.0 uses a different, element collection based, model. It can only be
exported with :func:`to_element_collection`.
"""

from __future__ import annotations

import copy

from dataclasses import fields, MISSING
from enum import Enum
from functools import total_ordering

from typing import TYPE_CHECKING

from spdxgraph.error import UnsupportedVersion
from spdxgraph.identifier import render_reference, Sentinel
import spdxgraph.log

if TYPE_CHECKING:
    from typing import Any
    from spdxgraph.document import Document

logger = spdxgraph.log.getLogger("version")


@total_ordering
class SchemaVersion(Enum):
    """Version of the SPDX specification a document conforms to."""

    SPDX_2_1 = "SPDX-2.1"
    SPDX_2_2 = "SPDX-2.2"
    SPDX_2_3 = "SPDX-2.3"
    SPDX_3_0 = "SPDX-3.0"

    def __str__(self) -> str:
        return self.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SchemaVersion):
            return NotImplemented
        return self.number < other.number

    @property
    def number(self) -> tuple[int, int]:
        major, minor = self.value.split("-", 1)[1].split(".")
        return int(major), int(minor)

    @classmethod
    def from_string(cls, value: str) -> SchemaVersion:
        """Return the version matching *value*.

        Both ``SPDX-2.3`` and ``2.3`` are accepted.

        :raise UnsupportedVersion: if *value* is not a known version
        """  # noqa RST304
        value = value.strip()
        if not value.startswith("SPDX-"):
            value = f"SPDX-{value}"
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedVersion(
                f"unknown SPDX version {value}", origin="version"
            ) from None


# Version in which each field of the element records was introduced. Fields
# not listed exist since SPDX-2.1.
FIELD_INTRODUCTIONS: dict[str, dict[str, SchemaVersion]] = {
    "package": {
        "attribution_texts": SchemaVersion.SPDX_2_2,
        "primary_package_purpose": SchemaVersion.SPDX_2_3,
        "release_date": SchemaVersion.SPDX_2_3,
        "built_date": SchemaVersion.SPDX_2_3,
        "valid_until_date": SchemaVersion.SPDX_2_3,
    },
    "file": {"attribution_texts": SchemaVersion.SPDX_2_2},
    "snippet": {"attribution_texts": SchemaVersion.SPDX_2_2},
}

# Version in which each checksum algorithm was introduced
ALGORITHM_INTRODUCTIONS: dict[str, SchemaVersion] = {
    "SHA3-256": SchemaVersion.SPDX_2_2,
    "SHA3-384": SchemaVersion.SPDX_2_2,
    "SHA3-512": SchemaVersion.SPDX_2_2,
    "BLAKE2b-256": SchemaVersion.SPDX_2_2,
    "BLAKE2b-384": SchemaVersion.SPDX_2_2,
    "BLAKE2b-512": SchemaVersion.SPDX_2_2,
    "BLAKE3": SchemaVersion.SPDX_2_2,
    "ADLER32": SchemaVersion.SPDX_2_3,
}


def _elements(doc: Document) -> list[tuple[str, Any]]:
    result: list[tuple[str, Any]] = [("package", pkg) for pkg in doc.packages]
    result += [("file", f) for f in doc.iter_files()]
    result += [("snippet", s) for s in doc.iter_snippets()]
    return result


def _is_set(value: Any) -> bool:
    return value is not None and value != "" and value != []


def _later_checksums(element: Any, version: SchemaVersion) -> list[Any]:
    return [
        ck
        for ck in getattr(element, "checksums", [])
        if ALGORITHM_INTRODUCTIONS.get(ck.algorithm.value, SchemaVersion.SPDX_2_1)
        > version
    ]


def undefined_fields(doc: Document, version: SchemaVersion) -> list[str]:
    """List the populated fields that do not exist in *version*.

    :param doc: the document to check
    :param version: the target schema version
    :return: one ``"<kind> <SPDXID>: <field>"`` entry per offending field
    """  # noqa RST304
    result = []
    for kind, element in _elements(doc):
        for name, introduced in FIELD_INTRODUCTIONS[kind].items():
            if introduced > version and _is_set(getattr(element, name)):
                result.append(f"{kind} {element.spdx_id}: {name}")
        for ck in _later_checksums(element, version):
            result.append(
                f"{kind} {element.spdx_id}: checksum {ck.algorithm.value}"
            )
    return result


def _default_value(element: Any, name: str) -> Any:
    for f in fields(element):
        if f.name == name:
            if f.default_factory is not MISSING:
                return f.default_factory()
            return f.default
    raise AttributeError(name)


def adapt(doc: Document, target: SchemaVersion) -> Document:
    """Return a copy of *doc* conforming to the *target* 2.x version.

    Fields not defined in *target* are reset to their default value and
    checksums using an algorithm unknown to *target* are dropped. The input
    document is not modified.

    :param doc: the document to convert
    :param target: the schema version of the returned document
    :raise UnsupportedVersion: if *target* is not an SPDX 2.x version
    """
    if target == SchemaVersion.SPDX_3_0:
        raise UnsupportedVersion(
            "use to_element_collection to export an SPDX-3.0 document",
            origin="version",
        )
    result = copy.deepcopy(doc)
    for kind, element in _elements(result):
        for name, introduced in FIELD_INTRODUCTIONS[kind].items():
            if introduced > target and _is_set(getattr(element, name)):
                logger.debug(
                    f"{target} has no {kind} {name}, clearing it",
                    spdx_id=str(element.spdx_id),
                )
                setattr(element, name, _default_value(element, name))
        later = _later_checksums(element, target)
        if later:
            logger.debug(
                f"{target} does not know checksum algorithm(s)"
                f" {', '.join(ck.algorithm.value for ck in later)}",
                spdx_id=str(element.spdx_id),
            )
            element.checksums = [ck for ck in element.checksums if ck not in later]
    result.spec_version = target
    return result


def to_element_collection(doc: Document) -> dict[str, Any]:
    """Export *doc* to the SPDX 3.0 element collection shape.

    Packages and files become elements, relationships sharing the same source
    and type are merged into a single one-to-many relationship, and the
    elements described by the document become the root elements.

    Relationships involving an element that is not exported (a snippet,
    an external element or a sentinel) are skipped.
    """
    from spdxgraph.relationships import described_packages

    elements: list[dict[str, Any]] = []
    exported: set[str] = set()

    for pkg in doc.packages:
        entry = {
            "type": "software_Package",
            "spdxId": str(pkg.spdx_id),
            "name": pkg.name,
        }
        if pkg.version:
            entry["software_packageVersion"] = pkg.version
        if pkg.primary_package_purpose is not None:
            entry["software_primaryPurpose"] = pkg.primary_package_purpose.name.lower()
        if pkg.copyright_text:
            entry["software_copyrightText"] = pkg.copyright_text
        elements.append(entry)
        exported.add(str(pkg.spdx_id))

    for f in doc.iter_files():
        elements.append(
            {"type": "software_File", "spdxId": str(f.spdx_id), "name": f.name}
        )
        exported.add(str(f.spdx_id))

    grouped: dict[tuple[str, str], list[str]] = {}
    for rel in doc.relationships:
        if isinstance(rel.ref_a, Sentinel) or isinstance(rel.ref_b, Sentinel):
            continue
        src = render_reference(rel.ref_a)
        dst = render_reference(rel.ref_b)
        if src not in exported or dst not in exported:
            continue
        targets = grouped.setdefault((src, rel.relationship_type.name), [])
        if dst not in targets:
            targets.append(dst)

    relationships = [
        {
            "type": "Relationship",
            "from": src,
            "relationshipType": _camel_case(rel_type),
            "to": targets,
        }
        for (src, rel_type), targets in grouped.items()
    ]

    return {
        "type": "SpdxDocument",
        "specVersion": "3.0",
        "spdxId": str(doc.spdx_id),
        "name": doc.name,
        "dataLicense": doc.data_license,
        "creationInfo": {
            "created": doc.creation_info.created,
            "createdBy": [str(actor) for actor in doc.creation_info.creators],
            "comment": doc.creation_info.comment,
        },
        "rootElement": [str(spdx_id) for spdx_id in described_packages(doc)],
        "element": elements + relationships,
    }


def _camel_case(name: str) -> str:
    first, *rest = name.lower().split("_")
    return first + "".join(word.capitalize() for word in rest)
