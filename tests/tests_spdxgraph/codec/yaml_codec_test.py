from spdxgraph.codec.yaml import YAMLCodec
from spdxgraph.error import FormatError
from spdxgraph.identifier import ElementID
from spdxgraph.relationships import described_packages

import pytest

DOCUMENT = """\
spdxVersion: SPDX-2.3
dataLicense: CC0-1.0
SPDXID: SPDXRef-DOCUMENT
name: hello
documentNamespace: https://example.org/spdx/hello-1
creationInfo:
  creators:
  - "Tool: spdxgraph-0.1.0"
  created: 2023-01-01T00:00:00Z
packages:
- SPDXID: SPDXRef-P
  name: p
  filesAnalyzed: false
  releaseDate: 2022-12-01T00:00:00Z
documentDescribes:
- SPDXRef-P
"""


def test_decode():
    doc = YAMLCodec().decode(DOCUMENT.encode("utf-8"))
    # Unquoted timestamps are kept verbatim
    assert doc.creation_info.created == "2023-01-01T00:00:00Z"
    assert doc.packages[0].release_date == "2022-12-01T00:00:00Z"
    assert described_packages(doc) == [ElementID("P")]


def test_render(simple_document):
    text = YAMLCodec().encode(simple_document).decode("utf-8")
    assert text.startswith("spdxVersion: SPDX-2.3\n")
    assert "documentDescribes:\n- SPDXRef-P\n" in text


def test_syntax_error():
    with pytest.raises(FormatError) as err:
        YAMLCodec().decode(b"spdxVersion: SPDX-2.3\nname: [hello\n")
    assert err.value.format == "yaml"
    assert err.value.line == 3


def test_not_a_mapping():
    with pytest.raises(FormatError) as err:
        YAMLCodec().decode(b"- SPDX-2.3\n")
    assert "must be an object" in str(err.value)


def test_field_newer_than_version():
    data = DOCUMENT.replace("SPDX-2.3", "SPDX-2.2").encode("utf-8")
    with pytest.raises(FormatError) as err:
        YAMLCodec().decode(data)
    assert "package SPDXRef-P: release_date" in str(err.value)
