"""Read and write SPDX documents in their concrete formats.

Each format is implemented by a :class:`Codec` subclass registered in the
``spdxgraph.codec`` entry point namespace::

    from spdxgraph.codec import load_codec

    codec = load_codec("json")
    doc = codec.decode(data)
    data = codec.encode(doc)

All codecs share the same rules: a decoded document is always validated, and
format shorthands (nested files, described packages, ...) are derived from
or turned into relationships with :mod:`spdxgraph.relationships`.
"""

from __future__ import annotations

import copy
import dataclasses

from abc import ABCMeta, abstractmethod
from enum import Enum

from typing import TYPE_CHECKING, ClassVar

import stevedore

from spdxgraph.config import codec_config
from spdxgraph.document import Relationship, RelationshipType
from spdxgraph.error import (
    EncodeError,
    FormatError,
    InvalidDocument,
    UnsupportedVersion,
)
from spdxgraph.identifier import ScopedReference, render_reference
from spdxgraph.relationships import add_derived
from spdxgraph.validator import validate
from spdxgraph.version import SchemaVersion, undefined_fields
import spdxgraph.log

if TYPE_CHECKING:
    from typing import Any, BinaryIO, Optional, Union

    from spdxgraph.document import Document
    from spdxgraph.identifier import Reference

logger = spdxgraph.log.getLogger("codec")

CODEC_NAMESPACE = "spdxgraph.codec"


def load_codec(name: str) -> Codec:
    """Return an instance of the codec registered as *name*.

    :param name: tag-value, json, yaml, rdf or spreadsheet, or the name of a
        codec provided by another distribution
    """
    plugin = stevedore.DriverManager(namespace=CODEC_NAMESPACE, name=name)
    return plugin.driver()


def available_codecs() -> list[str]:
    """Return the names of the registered codecs."""
    ext = stevedore.ExtensionManager(namespace=CODEC_NAMESPACE)
    return sorted(ext.names())


def _same_identity_and_content(elements: list[Any], element: Any) -> bool:
    return any(e.spdx_id == element.spdx_id and e == element for e in elements)


def normalize(doc: Document) -> Document:
    """Return a copy of *doc* in the flat shape.

    Files nested under packages are moved to the document level and
    replaced by CONTAINS relationships, snippets nested under files are
    moved to the document level, and the root elements are replaced by
    DESCRIBES relationships. The input document is not modified.
    """
    result = copy.deepcopy(doc)
    derived: list[Relationship] = []

    for pkg in result.packages:
        for f in pkg.files:
            derived.append(
                Relationship(
                    ScopedReference(pkg.spdx_id),
                    RelationshipType.CONTAINS,
                    ScopedReference(f.spdx_id),
                )
            )
            if not _same_identity_and_content(result.files, f):
                result.files.append(f)
        pkg.files = []

    for f in result.files:
        for snippet in f.snippets:
            if not _same_identity_and_content(result.snippets, snippet):
                result.snippets.append(snippet)
        f.snippets = []

    for spdx_id in result.root_elements:
        derived.append(
            Relationship(
                result.reference, RelationshipType.DESCRIBES, ScopedReference(spdx_id)
            )
        )
    result.root_elements = []

    add_derived(result, derived)
    return result


def _canonical(value: Any) -> Any:
    """Return a hashable form of value where lists are sorted."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return (
            type(value).__name__,
            tuple(
                (f.name, _canonical(getattr(value, f.name)))
                for f in dataclasses.fields(value)
            ),
        )
    elif isinstance(value, list):
        return tuple(sorted((_canonical(v) for v in value), key=repr))
    elif isinstance(value, tuple):
        return tuple(_canonical(v) for v in value)
    elif isinstance(value, Enum):
        return (type(value).__name__, value.value)
    return value


def structurally_equivalent(a: Document, b: Document) -> bool:
    """Compare two documents ignoring cosmetic differences.

    Both documents are normalized, then compared with all their lists
    considered as unordered collections.
    """
    return _canonical(normalize(a)) == _canonical(normalize(b))


def _document_references(doc: Document) -> list[Reference]:
    result: list[Reference] = []
    for rel in doc.relationships:
        result += [rel.ref_a, rel.ref_b]
    result += [snippet.from_file for snippet in doc.iter_snippets()]
    result += [annotation.target for annotation in doc.annotations]
    return result


class Codec(metaclass=ABCMeta):
    """Base class of the concrete formats.

    Subclasses implement :meth:`parse` and :meth:`render`; the public
    :meth:`decode` and :meth:`encode` methods add the version checks and the
    validation shared by all formats.
    """

    name: ClassVar[str]
    supported_versions: ClassVar[tuple[SchemaVersion, ...]]

    def check_version(self, version: SchemaVersion) -> None:
        """Raise UnsupportedVersion if *version* cannot be handled."""
        if version not in self.supported_versions:
            raise UnsupportedVersion(
                f"{version} is not supported, expecting one of"
                f" {', '.join(str(v) for v in self.supported_versions)}",
                origin=self.name,
            )

    @abstractmethod
    def parse(self, data: bytes) -> Document:
        """Build a document out of *data* without validating it.

        :raise FormatError: when *data* does not follow the format grammar
        """
        pass

    @abstractmethod
    def render(self, doc: Document) -> bytes:
        """Serialize a normalized and valid document."""
        pass

    def decode(
        self, data: bytes, schema_version: Optional[Union[SchemaVersion, str]] = None
    ) -> Document:
        """Read a document and validate it.

        :param data: the serialized document
        :param schema_version: the expected SPDX version, None to accept the
            version declared by the document
        :raise UnsupportedVersion: if the version is not handled by the codec
        :raise FormatError: on syntax error, or if the document declares a
            version different from *schema_version*, or uses fields not
            defined in its version
        :raise MalformedReference: if an identifier cannot be parsed
        :raise InvalidDocument: if the document is not structurally valid
        """
        expected: Optional[SchemaVersion] = None
        if schema_version is not None:
            if isinstance(schema_version, str):
                schema_version = SchemaVersion.from_string(schema_version)
            self.check_version(schema_version)
            expected = schema_version

        doc = self.parse(data)
        self.check_version(doc.spec_version)
        if expected is not None and doc.spec_version != expected:
            raise FormatError(
                f"document declares {doc.spec_version}, expecting {expected}",
                origin=self.name,
            )

        undefined = undefined_fields(doc, doc.spec_version)
        if undefined:
            raise FormatError(
                f"{', '.join(undefined)}: not defined in {doc.spec_version}",
                origin=self.name,
            )

        errors = validate(doc)
        if errors:
            raise InvalidDocument(errors, origin=self.name)
        logger.debug(f"decoded {doc.name}", spdx_id=str(doc.spdx_id))
        return doc

    def encode(self, doc: Document) -> bytes:
        """Serialize a document.

        :raise UnsupportedVersion: if the document version is not handled by
            the codec
        :raise EncodeError: if the document cannot be represented in its
            version, refers to an undeclared external document, or is not
            valid while validate_on_encode is set in the configuration
        """
        self.check_version(doc.spec_version)

        undefined = undefined_fields(doc, doc.spec_version)
        if undefined:
            raise EncodeError(
                [f"{field} is not defined in {doc.spec_version}" for field in undefined],
                origin=self.name,
            )

        declared = {ext.id for ext in doc.external_document_refs}
        for ref in _document_references(doc):
            if (
                isinstance(ref, ScopedReference)
                and not ref.is_local
                and ref.document_ref not in declared
            ):
                raise EncodeError(
                    f"cannot render {render_reference(ref)}:"
                    f" DocumentRef-{ref.document_ref} is not declared",
                    origin=self.name,
                )

        if codec_config().validate_on_encode:
            errors = validate(doc)
            if errors:
                raise EncodeError([str(err) for err in errors], origin=self.name)

        return self.render(normalize(doc))

    def write(self, doc: Document, sink: Union[str, BinaryIO]) -> None:
        """Encode *doc* into a file.

        :param doc: the document to write
        :param sink: a path or a binary file object
        """
        data = self.encode(doc)
        if isinstance(sink, str):
            with open(sink, "wb") as f:
                f.write(data)
        else:
            sink.write(data)

    def read(
        self,
        source: Union[str, BinaryIO],
        schema_version: Optional[Union[SchemaVersion, str]] = None,
    ) -> Document:
        """Decode a document from a path or a binary file object."""
        if isinstance(source, str):
            with open(source, "rb") as f:
                return self.decode(f.read(), schema_version)
        return self.decode(source.read(), schema_version)
