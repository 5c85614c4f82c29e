import io

from openpyxl import Workbook, load_workbook

from spdxgraph.codec.spreadsheet import (
    HEADERS,
    SNIPPETS,
    SpreadsheetCodec,
    quote_values,
    unquote_values,
)
from spdxgraph.document import PrimaryPackagePurpose
from spdxgraph.error import FormatError
from spdxgraph.identifier import ElementID

import pytest


def save(workbook):
    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue()


def test_quote_values():
    texts = ['say "hello"', "two\nlines", "back\\slash"]
    assert unquote_values(quote_values(texts)) == texts
    assert quote_values([]) == ""
    assert unquote_values("") == []


def test_sheets(full_document):
    workbook = load_workbook(io.BytesIO(SpreadsheetCodec().encode(full_document)))
    assert workbook.sheetnames == [
        "Document Info",
        "Package Info",
        "External Refs",
        "Per File Info",
        "Snippets",
        "Relationships",
        "Annotations",
        "Extracted License Info",
    ]
    ws = workbook["Document Info"]
    assert ws["A1"].value == "SPDX Version"
    assert ws["A2"].value == "SPDX-2.3"
    # One creator per row
    assert ws.max_row == 4


def test_formula_like_text(simple_document):
    simple_document.packages[0].comment = "=SUM(A1:A3)"
    codec = SpreadsheetCodec()
    doc = codec.decode(codec.encode(simple_document))
    assert doc.get_element(ElementID("P")).comment == "=SUM(A1:A3)"


def test_invalid_range(full_document):
    workbook = load_workbook(io.BytesIO(SpreadsheetCodec().encode(full_document)))
    ws = workbook[SNIPPETS]
    ws.cell(row=2, column=HEADERS[SNIPPETS].index("Byte Range") + 1, value="1-20")

    with pytest.raises(FormatError) as err:
        SpreadsheetCodec().decode(save(workbook))
    assert err.value.line == 2
    assert "Snippets: invalid range '1-20'" in str(err.value)


def test_not_a_workbook():
    with pytest.raises(FormatError) as err:
        SpreadsheetCodec().decode(b"SPDXVersion: SPDX-2.3\n")
    assert "cannot read workbook" in str(err.value)


def test_missing_document_info():
    workbook = Workbook()
    workbook.active.title = "Package Info"
    with pytest.raises(FormatError) as err:
        SpreadsheetCodec().decode(save(workbook))
    assert "missing Document Info sheet" in str(err.value)


def test_missing_value():
    workbook = Workbook()
    ws = workbook.active
    ws.title = "Document Info"
    ws.append(["SPDX Version", "Document Name", "Creator"])
    ws.append(["SPDX-2.3", "", "Tool: spdxgraph-0.1.0"])
    with pytest.raises(FormatError) as err:
        SpreadsheetCodec().decode(save(workbook))
    assert err.value.line == 2
    assert "missing Document Name" in str(err.value)


def test_field_newer_than_version(simple_document):
    simple_document.packages[0].primary_package_purpose = PrimaryPackagePurpose.LIBRARY
    workbook = load_workbook(io.BytesIO(SpreadsheetCodec().encode(simple_document)))
    workbook["Document Info"]["A2"].value = "SPDX-2.2"
    with pytest.raises(FormatError) as err:
        SpreadsheetCodec().decode(save(workbook))
    assert "package SPDXRef-P: primary_package_purpose" in str(err.value)
