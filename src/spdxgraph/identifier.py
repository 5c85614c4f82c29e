"""SPDX element identifiers and scoped references.

An element identifier is written ``SPDXRef-<idstring>`` where ``<idstring>``
contains letters, numbers, ``.`` and ``-``. A reference to an element of
another document is qualified by an external document reference id::

    DocumentRef-<idstring>:SPDXRef-<idstring>

``NONE`` and ``NOASSERTION`` may appear wherever a reference is expected but
never designate an element; they are represented by :class:`Sentinel`.

See `SPDX identifiers
<https://spdx.github.io/spdx-spec/v2.3/snippet-information/#93-snippet-from-file-spdx-identifier-field>`_.
"""

from __future__ import annotations

import re

from dataclasses import dataclass
from enum import Enum

from typing import TYPE_CHECKING

from spdxgraph.error import MalformedReference

if TYPE_CHECKING:
    from typing import Union

    Reference = Union["ScopedReference", "Sentinel"]

ELEMENT_PREFIX = "SPDXRef-"
DOCUMENT_REF_PREFIX = "DocumentRef-"

ID_TOKEN_R = re.compile(r"^[a-zA-Z0-9.-]+$")
SPDXID_R = re.compile("[^a-zA-Z0-9.-]")


class Sentinel(Enum):
    """Reference values that never resolve to an element."""

    NONE = "NONE"
    # The preparer believes there is no value for the property
    NOASSERTION = "NOASSERTION"
    # The preparer makes no assertion regarding the value

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, order=True)
class ElementID:
    """Identify an element within one document.

    :ivar value: the idstring, without the ``SPDXRef-`` prefix
    """

    value: str

    def __post_init__(self) -> None:
        if not ID_TOKEN_R.match(self.value):
            raise MalformedReference(
                self.value, "element id must only contain letters, numbers, . and -"
            )

    def __str__(self) -> str:
        return f"{ELEMENT_PREFIX}{self.value}"

    def __format__(self, format_spec: str) -> str:
        return self.__str__()


DOCUMENT_ID = ElementID("DOCUMENT")


@dataclass(frozen=True, order=True)
class ScopedReference:
    """Reference an element, optionally inside an external document.

    :ivar element: the referenced element identifier
    :ivar document_ref: the external document reference id (without the
        ``DocumentRef-`` prefix), empty for an element of this document
    """

    element: ElementID
    document_ref: str = ""

    def __post_init__(self) -> None:
        if self.document_ref and not ID_TOKEN_R.match(self.document_ref):
            raise MalformedReference(
                self.document_ref,
                "document ref id must only contain letters, numbers, . and -",
            )

    @property
    def is_local(self) -> bool:
        """Return True if the reference targets an element of this document."""
        return not self.document_ref

    def __str__(self) -> str:
        return render_reference(self)


def local(element: ElementID | str) -> ScopedReference:
    """Return a reference to an element of the current document.

    :param element: an ElementID or an idstring (``SPDXRef-`` prefix allowed)
    """
    if isinstance(element, str):
        if element.startswith(ELEMENT_PREFIX):
            element = parse_element_id(element)
        else:
            element = ElementID(element)
    return ScopedReference(element)


def parse_element_id(text: str) -> ElementID:
    """Parse ``SPDXRef-<idstring>``.

    :param text: the identifier as written in a document
    :raise MalformedReference: when the prefix is missing or the idstring is
        empty or contains forbidden characters
    """
    text = text.strip()
    if not text.startswith(ELEMENT_PREFIX):
        raise MalformedReference(text, f"expected {ELEMENT_PREFIX} prefix")
    token = text[len(ELEMENT_PREFIX) :]
    if not token:
        raise MalformedReference(text, "empty element id")
    return ElementID(token)


def parse_document_ref_id(text: str) -> str:
    """Parse ``DocumentRef-<idstring>`` and return the idstring."""
    text = text.strip()
    if not text.startswith(DOCUMENT_REF_PREFIX):
        raise MalformedReference(text, f"expected {DOCUMENT_REF_PREFIX} prefix")
    token = text[len(DOCUMENT_REF_PREFIX) :]
    if not token:
        raise MalformedReference(text, "empty document ref id")
    if not ID_TOKEN_R.match(token):
        raise MalformedReference(
            text, "document ref id must only contain letters, numbers, . and -"
        )
    return token


def render_document_ref_id(document_ref: str) -> str:
    return f"{DOCUMENT_REF_PREFIX}{document_ref}"


def parse_reference(text: str) -> Reference:
    """Parse a reference to an element.

    >>> parse_reference("SPDXRef-Package")
    ScopedReference(element=ElementID(value='Package'), document_ref='')
    >>> parse_reference("DocumentRef-other:SPDXRef-File").document_ref
    'other'
    >>> parse_reference("NOASSERTION")
    <Sentinel.NOASSERTION: 'NOASSERTION'>

    :param text: ``[DocumentRef-<idstring>:]SPDXRef-<idstring>``, ``NONE`` or
        ``NOASSERTION``
    :return: a :class:`ScopedReference` or a :class:`Sentinel`
    :raise MalformedReference: when *text* does not follow the grammar
    """  # noqa RST304
    text = text.strip()
    if text in Sentinel.__members__:
        return Sentinel[text]

    if ":" in text:
        document_part, element_part = text.split(":", 1)
        try:
            document_ref = parse_document_ref_id(document_part)
            element = parse_element_id(element_part)
        except MalformedReference as err:
            raise MalformedReference(text, err.reason) from err
        return ScopedReference(element, document_ref)

    if text.startswith(DOCUMENT_REF_PREFIX):
        raise MalformedReference(text, "document ref without element id")
    return ScopedReference(parse_element_id(text))


def render_reference(ref: Reference) -> str:
    """Render a reference so that parse_reference(render_reference(r)) == r.

    :param ref: a scoped reference or a sentinel
    """
    if isinstance(ref, Sentinel):
        return ref.value
    if ref.document_ref:
        return f"{render_document_ref_id(ref.document_ref)}:{ref.element}"
    return str(ref.element)


def reference_sort_key(ref: Reference) -> str:
    """Return a key allowing to sort references and sentinels together."""
    return render_reference(ref)


def make_element_id(name: str) -> ElementID:
    """Build an ElementID out of an arbitrary name.

    The ``SPDXRef-`` prefix is removed if present and characters not allowed
    in an idstring are dropped.

    >>> str(make_element_id("my package 1.0"))
    'SPDXRef-mypackage1.0'

    :param name: any string
    :raise MalformedReference: if no valid character remains
    """
    if name.startswith(ELEMENT_PREFIX):
        name = name[len(ELEMENT_PREFIX) :]
    value = re.sub(SPDXID_R, "", name)
    if not value:
        raise MalformedReference(name, "no valid character for an element id")
    return ElementID(value)
