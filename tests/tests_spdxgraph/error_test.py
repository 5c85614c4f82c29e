from spdxgraph.error import (
    FormatError,
    InvalidDocument,
    MalformedReference,
    SPDXError,
)
from spdxgraph.validator import ValidationError, ValidationErrorKind


def test_spdx_error():
    err = SPDXError("first error", origin="test")
    err += "second error"
    err += ["third error", "fourth error"]
    err += SPDXError("fifth error")
    assert err.messages == [
        "first error",
        "second error",
        "third error",
        "fourth error",
        "fifth error",
    ]
    assert str(err) == "test: fifth error\n"
    assert str(SPDXError([])) == "SPDXError"


def test_format_error():
    err = FormatError("unknown tag Foo", origin="tag-value", line=12)
    assert err.format == "tag-value"
    assert err.line == 12
    assert str(err) == "tag-value: line 12: unknown tag Foo\n"
    assert FormatError("bad").line is None


def test_malformed_reference():
    err = MalformedReference("SPDXRef-", "empty element id")
    assert err.text == "SPDXRef-"
    assert isinstance(err, SPDXError)
    assert "empty element id" in str(err)


def test_invalid_document():
    errors = [
        ValidationError(ValidationErrorKind.ORPHAN_SNIPPET, "SPDXRef-S", "orphan"),
        ValidationError(
            ValidationErrorKind.UNRESOLVED_REFERENCE, "SPDXRef-X", "unresolved"
        ),
    ]
    err = InvalidDocument(errors, origin="json")
    assert err.errors == errors
    assert str(err) == (
        "json: OrphanSnippet: SPDXRef-S: orphan\n"
        "UnresolvedReference: SPDXRef-X: unresolved\n"
    )
