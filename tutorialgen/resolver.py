"""Resolution of artifacts through resolvers, with checksum verification."""

from __future__ import annotations

import gzip
import hashlib
import io
import os
import shutil
import tarfile
import zlib
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import BinaryIO, TextIO

from tutorialgen.locator import LocatorParam, LocatorWithResolverParam, OSArch

_ERR_INDENT = " " * 4
_CHUNK_SIZE = 64 * 1024

PathChecksummer = Callable[[str], str]


class ResolveError(Exception):
    """Raised when an artifact cannot be resolved or verified."""


class Resolver(ABC):
    """Retrieves an artifact and writes it to a destination path."""

    @abstractmethod
    def resolve(
        self, locator: LocatorParam, os_arch: OSArch, dst: str, stdout: TextIO
    ) -> None:
        """Write the artifact for locator and os_arch to dst, raising on failure."""


def resolve_artifact(
    locator_with_resolver: LocatorWithResolverParam,
    default_resolvers: Sequence[Resolver],
    os_arch: OSArch,
    dst: str,
    checksummer: PathChecksummer,
    stdout: TextIO,
) -> None:
    """Resolve an artifact to dst and verify its checksum if one is known.

    The locator's own resolver is used if it has one; otherwise the default
    resolvers are tried in order until one succeeds. A resolved artifact is left
    at dst even when verification fails.
    """
    locator = locator_with_resolver.locator_with_checksums
    if locator_with_resolver.resolver is not None:
        resolvers: Sequence[Resolver] = [locator_with_resolver.resolver]
    else:
        resolvers = default_resolvers

    errors: list[str] = []
    for resolver in resolvers:
        try:
            resolver.resolve(locator, os_arch, dst, stdout)
        except Exception as err:  # each resolver may fail in its own way
            errors.append(str(err))
            continue
        break
    else:
        parts = [f"failed to resolve artifact {locator!r} using resolvers:", *errors]
        raise ResolveError(("\n" + _ERR_INDENT).join(parts))

    try:
        got = checksummer(dst)
    except Exception as err:
        raise ResolveError(f"failed to compute checksum for artifact at {dst}: {err}") from err

    want = locator.checksums.get(os_arch)
    if want is None:
        return
    if want != got:
        raise ResolveError(
            f"checksum for artifact {dst} did not match: want {want}, got {got}"
        )


def resolve_artifact_tgz(
    locator_with_resolver: LocatorWithResolverParam,
    default_resolvers: Sequence[Resolver],
    os_arch: OSArch,
    dst: str,
    stdout: TextIO,
) -> None:
    """Resolve a TGZ holding a single file, checksumming the file inside it."""
    resolve_artifact(
        locator_with_resolver, default_resolvers, os_arch, dst, tgz_file_content_hash, stdout
    )


class _HashWriter:
    def __init__(self) -> None:
        self._hasher = hashlib.sha256()

    def write(self, data: bytes) -> int:
        self._hasher.update(data)
        return len(data)

    def hexdigest(self) -> str:
        return self._hasher.hexdigest()


def tgz_file_content_hash(tgz_path: str | os.PathLike[str]) -> str:
    """Return the SHA-256 of the single file inside the TGZ at tgz_path."""
    try:
        handle = open(tgz_path, "rb")
    except OSError as err:
        raise ResolveError(f"failed to open {os.fspath(tgz_path)}: {err}") from err
    writer = _HashWriter()
    with handle:
        copy_single_file_tgz_content(writer, handle)
    return writer.hexdigest()


def copy_single_file_tgz_content(dst: BinaryIO, tgz_content: BinaryIO) -> None:
    """Write the content of the single regular file in a TGZ stream to dst.

    Raises ResolveError unless the archive holds exactly one entry.
    """
    raw = tgz_content.read()
    if not raw:
        raise ResolveError("failed to create reader: unexpected EOF")
    try:
        data = gzip.decompress(raw)
    except (OSError, EOFError, zlib.error) as err:
        raise ResolveError(f"failed to create reader: {err}") from err

    num_files = 0
    if data.strip(b"\0"):
        try:
            with tarfile.open(fileobj=io.BytesIO(data), mode="r:") as archive:
                for member in archive:
                    num_files += 1
                    if not member.isreg() or num_files != 1:
                        continue
                    extracted = archive.extractfile(member)
                    if extracted is None:
                        continue
                    with extracted:
                        shutil.copyfileobj(extracted, dst)
        except (tarfile.TarError, EOFError) as err:
            raise ResolveError(f"failed to read tar entry: {err}") from err

    if num_files != 1:
        raise ResolveError(f"archive must contain exactly 1 file, but contained {num_files}")


def sha256_checksum_file(path: str | os.PathLike[str]) -> str:
    """Return the hex SHA-256 digest of the file at path."""
    try:
        handle = open(path, "rb")
    except OSError as err:
        raise ResolveError(f"failed to open {os.fspath(path)} for reading: {err}") from err
    hasher = hashlib.sha256()
    with handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()