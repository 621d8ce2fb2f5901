import gzip
import hashlib
import io
import tarfile

import pytest

from tutorialgen.locator import LocatorParam, LocatorWithResolverParam, OSArch
from tutorialgen.resolver import (
    ResolveError,
    Resolver,
    copy_single_file_tgz_content,
    resolve_artifact,
    resolve_artifact_tgz,
    sha256_checksum_file,
    tgz_file_content_hash,
)

LINUX = OSArch(os="linux", arch="amd64")
DARWIN = OSArch(os="darwin", arch="amd64")


def _make_tgz(entries):
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as archive:
        for name, content in entries:
            info = tarfile.TarInfo(name)
            if content is None:
                info.type = tarfile.DIRTYPE
                archive.addfile(info)
            else:
                info.size = len(content)
                archive.addfile(info, io.BytesIO(content))
    return gzip.compress(buf.getvalue())


class WritingResolver(Resolver):
    def __init__(self, content, calls):
        self.content = content
        self.calls = calls

    def resolve(self, locator, os_arch, dst, stdout):
        self.calls.append(("ok", str(locator), os_arch))
        with open(dst, "wb") as handle:
            handle.write(self.content)


class FailingResolver(Resolver):
    def __init__(self, message, calls):
        self.message = message
        self.calls = calls

    def resolve(self, locator, os_arch, dst, stdout):
        self.calls.append(("fail", self.message))
        raise RuntimeError(self.message)


def _locator(checksums=None):
    return LocatorParam(group="g", product="p", version="v", checksums=checksums or {})


def test_resolver_is_abstract():
    with pytest.raises(TypeError):
        Resolver()


def test_copy_single_file_tgz_content():
    content = b"plugin binary content"
    out = io.BytesIO()
    copy_single_file_tgz_content(out, io.BytesIO(_make_tgz([("plugin", content)])))
    assert out.getvalue() == content


def test_copy_rejects_multiple_files():
    data = _make_tgz([("a", b"1"), ("b", b"2")])
    with pytest.raises(ResolveError, match="archive must contain exactly 1 file, but contained 2"):
        copy_single_file_tgz_content(io.BytesIO(), io.BytesIO(data))


def test_copy_rejects_empty_archive():
    data = _make_tgz([])
    with pytest.raises(ResolveError, match="but contained 0"):
        copy_single_file_tgz_content(io.BytesIO(), io.BytesIO(data))


def test_copy_single_directory_entry_writes_nothing():
    out = io.BytesIO()
    copy_single_file_tgz_content(out, io.BytesIO(_make_tgz([("dir", None)])))
    assert out.getvalue() == b""


def test_copy_rejects_non_gzip():
    with pytest.raises(ResolveError, match="failed to create reader"):
        copy_single_file_tgz_content(io.BytesIO(), io.BytesIO(b"not a gzip stream"))


def test_tgz_file_content_hash_matches_plain_file_hash(tmp_path):
    content = b"hello plugin\n"
    tgz = tmp_path / "plugin.tgz"
    tgz.write_bytes(_make_tgz([("plugin", content)]))
    plain = tmp_path / "plugin"
    plain.write_bytes(content)
    assert tgz_file_content_hash(tgz) == sha256_checksum_file(plain)
    assert tgz_file_content_hash(tgz) == hashlib.sha256(content).hexdigest()


def test_sha256_of_empty_file(tmp_path):
    path = tmp_path / "empty"
    path.write_bytes(b"")
    assert (
        sha256_checksum_file(path)
        == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    )


def test_sha256_missing_file(tmp_path):
    with pytest.raises(ResolveError, match="for reading"):
        sha256_checksum_file(tmp_path / "missing")


def test_tgz_hash_missing_file(tmp_path):
    with pytest.raises(ResolveError, match="failed to open"):
        tgz_file_content_hash(tmp_path / "missing.tgz")


def test_default_resolvers_tried_in_order(tmp_path):
    calls = []
    dst = str(tmp_path / "out")
    resolvers = [
        FailingResolver("first", calls),
        WritingResolver(b"data", calls),
        FailingResolver("never", calls),
    ]
    resolve_artifact(
        LocatorWithResolverParam(_locator()), resolvers, LINUX, dst, sha256_checksum_file, io.StringIO()
    )
    assert [c[0] for c in calls] == ["fail", "ok"]
    assert calls[1][2] == LINUX
    assert (tmp_path / "out").read_bytes() == b"data"


def test_locator_resolver_overrides_defaults(tmp_path):
    calls = []
    dst = str(tmp_path / "out")
    own = WritingResolver(b"own", calls)
    resolve_artifact(
        LocatorWithResolverParam(_locator(), resolver=own),
        [FailingResolver("default", calls)],
        LINUX,
        dst,
        sha256_checksum_file,
        io.StringIO(),
    )
    assert calls == [("ok", "g:p:v", LINUX)]
    assert (tmp_path / "out").read_bytes() == b"own"


def test_all_resolvers_fail(tmp_path):
    calls = []
    resolvers = [FailingResolver("boom1", calls), FailingResolver("boom2", calls)]
    with pytest.raises(ResolveError) as excinfo:
        resolve_artifact(
            LocatorWithResolverParam(_locator()),
            resolvers,
            LINUX,
            str(tmp_path / "out"),
            sha256_checksum_file,
            io.StringIO(),
        )
    message = str(excinfo.value)
    assert message.startswith("failed to resolve artifact ")
    assert message.endswith("using resolvers:\n    boom1\n    boom2")


def test_checksum_match(tmp_path):
    content = b"artifact"
    want = hashlib.sha256(content).hexdigest()
    dst = str(tmp_path / "out")
    resolve_artifact(
        LocatorWithResolverParam(_locator({LINUX: want})),
        [WritingResolver(content, [])],
        LINUX,
        dst,
        sha256_checksum_file,
        io.StringIO(),
    )
    assert sha256_checksum_file(dst) == want


def test_checksum_mismatch_leaves_artifact(tmp_path):
    dst = str(tmp_path / "out")
    with pytest.raises(ResolveError, match="did not match: want wrong, got "):
        resolve_artifact(
            LocatorWithResolverParam(_locator({LINUX: "wrong"})),
            [WritingResolver(b"artifact", [])],
            LINUX,
            dst,
            sha256_checksum_file,
            io.StringIO(),
        )
    assert (tmp_path / "out").read_bytes() == b"artifact"


def test_checksum_for_other_platform_is_ignored(tmp_path):
    calls = []
    dst = str(tmp_path / "out")
    resolve_artifact(
        LocatorWithResolverParam(_locator({DARWIN: "wrong"})),
        [WritingResolver(b"artifact", calls)],
        LINUX,
        dst,
        sha256_checksum_file,
        io.StringIO(),
    )
    assert calls == [("ok", "g:p:v", LINUX)]
    assert sha256_checksum_file(dst) == hashlib.sha256(b"artifact").hexdigest()


def test_checksummer_failure_is_wrapped(tmp_path):
    def broken(path):
        raise OSError("cannot hash")

    with pytest.raises(ResolveError, match="failed to compute checksum for artifact at .*cannot hash"):
        resolve_artifact(
            LocatorWithResolverParam(_locator()),
            [WritingResolver(b"x", [])],
            LINUX,
            str(tmp_path / "out"),
            broken,
            io.StringIO(),
        )


def test_resolve_artifact_tgz_verifies_inner_file(tmp_path):
    content = b"inner file"
    tgz = _make_tgz([("plugin", content)])
    want = hashlib.sha256(content).hexdigest()
    dst = str(tmp_path / "plugin.tgz")
    resolve_artifact_tgz(
        LocatorWithResolverParam(_locator({LINUX: want})),
        [WritingResolver(tgz, [])],
        LINUX,
        dst,
        io.StringIO(),
    )
    assert (tmp_path / "plugin.tgz").read_bytes() == tgz


def test_resolve_artifact_tgz_rejects_bad_archive(tmp_path):
    tgz = _make_tgz([("a", b"1"), ("b", b"2")])
    with pytest.raises(ResolveError, match="failed to compute checksum"):
        resolve_artifact_tgz(
            LocatorWithResolverParam(_locator()),
            [WritingResolver(tgz, [])],
            LINUX,
            str(tmp_path / "plugin.tgz"),
            io.StringIO(),
        )