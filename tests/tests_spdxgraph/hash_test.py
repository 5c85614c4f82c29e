import hashlib

from spdxgraph.document import Checksum, ChecksumAlgorithm, File
from spdxgraph.hash import (
    HashError,
    compute_verification_code,
    file_checksums,
    sha1,
    sha256,
    verification_code,
)
from spdxgraph.identifier import ElementID

import pytest

CONTENT_SHA1 = "7fe70820e08a1aac0ef224d9c66ab66831cc4ab1"
CONTENT_SHA256 = "434728a410a78f56fc1b5899c3593436e61ab0c731e9072d95e96db290205e53"


def test_hash():
    with open("to-hash.txt", "wb") as f:
        f.write(b"content\n")
    assert sha1(f.name) == CONTENT_SHA1
    assert sha256(f.name) == CONTENT_SHA256
    assert file_checksums(
        f.name, [ChecksumAlgorithm.SHA1, ChecksumAlgorithm.SHA256]
    ) == [
        Checksum(ChecksumAlgorithm.SHA1, CONTENT_SHA1),
        Checksum(ChecksumAlgorithm.SHA256, CONTENT_SHA256),
    ]
    with pytest.raises(HashError):
        sha1("doesnotexist")
    with pytest.raises(HashError):
        file_checksums(f.name, [ChecksumAlgorithm.BLAKE3])


def expected_code(*shas):
    return hashlib.sha1("".join(sorted(shas)).encode("utf-8")).hexdigest()


def test_compute_verification_code():
    files = [
        File(ElementID("A"), "./a", checksums=[Checksum(ChecksumAlgorithm.SHA1, "bb")]),
        File(ElementID("B"), "./b", checksums=[Checksum(ChecksumAlgorithm.SHA1, "AA")]),
        File(ElementID("C"), "./c.spdx", checksums=[]),
    ]
    code = compute_verification_code(files, excluded_files=["./c.spdx"])
    assert code.value == expected_code("aa", "bb")
    assert code.excluded_files == ["./c.spdx"]

    with pytest.raises(HashError):
        compute_verification_code(files)


def test_verification_code(simple_document):
    doc = simple_document
    f_sha1 = doc.files[0].checksum(ChecksumAlgorithm.SHA1)
    assert verification_code(doc, ElementID("P")).value == expected_code(f_sha1)

    # Only the nested files are considered with kind="nested"
    assert verification_code(doc, ElementID("P"), kind="nested").value == (
        expected_code()
    )
    doc.packages[0].files.append(doc.files[0])
    assert verification_code(doc, ElementID("P"), kind="nested").value == (
        expected_code(f_sha1)
    )
    # A file both nested and contained is counted once
    assert verification_code(doc, ElementID("P")).value == expected_code(f_sha1)
