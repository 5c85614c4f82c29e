from __future__ import annotations

from typing import TYPE_CHECKING

import hashlib
import os

from spdxgraph.document import (
    Checksum,
    ChecksumAlgorithm,
    PackageVerificationCode,
)
from spdxgraph.error import SPDXError
from spdxgraph.relationships import package_file_ids

if TYPE_CHECKING:
    from typing import Iterable, Literal

    from spdxgraph.document import Document, File
    from spdxgraph.identifier import ElementID


class HashError(SPDXError):
    pass


# hashlib name of the algorithms that can be computed locally
HASHLIB_NAMES = {
    ChecksumAlgorithm.SHA1: "sha1",
    ChecksumAlgorithm.SHA224: "sha224",
    ChecksumAlgorithm.SHA256: "sha256",
    ChecksumAlgorithm.SHA384: "sha384",
    ChecksumAlgorithm.SHA512: "sha512",
    ChecksumAlgorithm.SHA3_256: "sha3_256",
    ChecksumAlgorithm.SHA3_384: "sha3_384",
    ChecksumAlgorithm.SHA3_512: "sha3_512",
    ChecksumAlgorithm.MD5: "md5",
}


def __compute_hash(path: str, kind: str) -> str:
    if not os.path.isfile(path):
        raise HashError(f"cannot find {path}", origin=kind)

    with open(path, "rb") as f:
        result = hashlib.new(kind)
        while True:
            data = f.read(1024 * 1024)
            if not data:
                break
            result.update(data)
    return result.hexdigest()


def sha1(path: str) -> str:
    """Compute sha1 hexadecimal digest of a file.

    :param str path: path to a file

    :return: the hash of the file content
    :raise HashError: in case of error
    """
    return __compute_hash(path, "sha1")


def sha256(path: str) -> str:
    """Compute sha256 hexadecimal digest of a file.

    :param str path: path to a file

    :return: the hash of the file content
    :raise HashError: in case of error
    """
    return __compute_hash(path, "sha256")


def file_checksums(
    path: str,
    algorithms: Iterable[ChecksumAlgorithm] = (ChecksumAlgorithm.SHA1,),
) -> list[Checksum]:
    """Compute the checksums of a file.

    :param path: path to a file
    :param algorithms: the algorithms to use, SHA1 by default
    :raise HashError: if the file does not exist or an algorithm is not
        available
    """
    result = []
    for algorithm in algorithms:
        if algorithm not in HASHLIB_NAMES:
            raise HashError(f"cannot compute {algorithm.value} checksums")
        result.append(Checksum(algorithm, __compute_hash(path, HASHLIB_NAMES[algorithm])))
    return result


def compute_verification_code(
    files: Iterable[File], excluded_files: Iterable[str] = ()
) -> PackageVerificationCode:
    """Compute a package verification code.

    The SHA1 of each file not excluded is collected, the list is sorted and
    concatenated without separator, and the SHA1 of the resulting string is
    the verification code.

    :param files: the files of the package
    :param excluded_files: names of the files to leave out (usually the
        SPDX document itself when it is part of the package)
    :raise HashError: if a file has no SHA1 checksum
    """
    excluded = list(excluded_files)
    shas: list[str] = []
    for f in files:
        if f.name in excluded:
            continue
        value = f.checksum(ChecksumAlgorithm.SHA1)
        if value is None:
            raise HashError(f"file {f.spdx_id} has no SHA1 checksum")
        shas.append(value.lower())

    code = hashlib.sha1("".join(sorted(shas)).encode("utf-8")).hexdigest()
    return PackageVerificationCode(code, excluded)


def verification_code(
    doc: Document,
    package_id: ElementID,
    excluded_files: Iterable[str] = (),
    kind: Literal["nested", "all"] = "all",
) -> PackageVerificationCode:
    """Compute the verification code of a package of *doc*.

    :param doc: the document
    :param package_id: the package identifier
    :param excluded_files: names of the files to leave out
    :param kind: "nested" to only consider the files nested under the
        package, "all" to also consider the files it CONTAINS
    """
    if kind == "nested":
        files = [f for pkg in doc.packages if pkg.spdx_id == package_id for f in pkg.files]
    else:
        wanted = set(package_file_ids(doc, package_id))
        files_by_id = {}
        for f in doc.iter_files():
            if f.spdx_id in wanted:
                files_by_id.setdefault(f.spdx_id, f)
        files = list(files_by_id.values())
    return compute_verification_code(files, excluded_files)
