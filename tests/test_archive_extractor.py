"""
Tests for streaming tarball extraction.
"""

import io
import tarfile

import pytest

from unpakit.core.archive_extractor import ArchiveExtractor, normalize_member_path
from unpakit.core.errors import BadArchiveError

from conftest import (
    build_tarball,
    dir_member,
    file_member,
    incompressible_bytes,
    symlink_member,
)


@pytest.fixture
def extractor():
    return ArchiveExtractor()


@pytest.fixture
def dest_dir(temp_storage_dir):
    path = temp_storage_dir / "extracted"
    path.mkdir()
    return path


@pytest.mark.unit
class TestNormalizeMemberPath:

    @pytest.mark.parametrize("name, expected", [
        ("package/index.js", "/index.js"),
        ("package/dir/sub/file.js", "/dir/sub/file.js"),
        ("lodash-es/lodash.js", "/lodash.js"),
        ("package/./hidden.js", None),
        ("package/lib/./x.js", None),
        ("package/../escape.js", None),
        ("package/", None),
        ("package//abs/x.js", "/abs/x.js"),
        ("package/a//b.js", "/a/b.js"),
        ("package///", None),
        ("toplevel.js", None),
    ])
    def test_normalize(self, name, expected):
        assert normalize_member_path(name) == expected

    def test_strip_zero_components(self):
        assert normalize_member_path("index.js", strip_components=0) == "/index.js"


@pytest.mark.unit
class TestArchiveExtractor:

    def test_extracts_files_and_strips_first_segment(self, extractor, temp_storage_dir, dest_dir):
        tarball = build_tarball(temp_storage_dir / "t.tgz", [
            dir_member("package"),
            file_member("package/index.js", b"console.log(1)"),
            dir_member("package/dir/sub"),
            file_member("package/dir/sub/file.js", b"sub"),
        ])

        result = extractor.extract(tarball, dest_dir)

        assert result.paths == ["/index.js", "/dir/sub/file.js"]
        assert (dest_dir / "index.js").read_bytes() == b"console.log(1)"
        assert (dest_dir / "dir" / "sub" / "file.js").read_bytes() == b"sub"
        assert result.readme_filename is None

    def test_skips_symlinks_and_hidden_dirs(self, extractor, temp_storage_dir, dest_dir):
        tarball = build_tarball(temp_storage_dir / "t.tgz", [
            file_member("package/a.js", b"a"),
            symlink_member("package/link.js", "a.js"),
            file_member("package/./secret.js", b"hidden"),
            file_member("package/../evil.js", b"evil"),
        ])

        result = extractor.extract(tarball, dest_dir)

        assert result.paths == ["/a.js"]
        assert not (dest_dir / "link.js").exists()
        assert not (dest_dir / "secret.js").exists()
        assert not (temp_storage_dir / "evil.js").exists()

    def test_keeps_archive_order(self, extractor, temp_storage_dir, dest_dir):
        names = ["z.js", "a.js", "m/b.js", "c.js"]
        tarball = build_tarball(
            temp_storage_dir / "t.tgz",
            [file_member(f"package/{name}", name.encode()) for name in names],
        )

        assert extractor.extract(tarball, dest_dir).paths == [f"/{name}" for name in names]

    def test_readme_first_match_wins(self, extractor, temp_storage_dir, dest_dir):
        tarball = build_tarball(temp_storage_dir / "t.tgz", [
            file_member("package/docs/README.md", b"nested"),
            file_member("package/readme.md", b"lower"),
            file_member("package/README.md", b"upper"),
        ])

        result = extractor.extract(tarball, dest_dir)

        assert result.readme_filename == "readme.md"
        assert result.file_count == 3

    def test_uncompressed_tarball(self, extractor, temp_storage_dir, dest_dir):
        tarball = build_tarball(temp_storage_dir / "t.tar", [
            file_member("package/Readme.md", b"# hi"),
        ], mode="w")

        result = extractor.extract(tarball, dest_dir)

        assert result.paths == ["/Readme.md"]
        assert result.readme_filename == "Readme.md"

    def test_non_ascii_member(self, extractor, temp_storage_dir, dest_dir):
        tarball = build_tarball(temp_storage_dir / "t.tgz", [
            file_member("package/resource/ToOneFromχ.js", b"x"),
        ])

        result = extractor.extract(tarball, dest_dir)

        assert result.paths == ["/resource/ToOneFromχ.js"]
        assert (dest_dir / "resource" / "ToOneFromχ.js").exists()

    def test_empty_segments_stay_inside_dest_dir(self, extractor, temp_storage_dir, dest_dir):
        tarball = build_tarball(temp_storage_dir / "t.tgz", [
            file_member("package//abs/x.js", b"abs"),
            file_member("package/a//b.js", b"b"),
        ])

        result = extractor.extract(tarball, dest_dir)

        assert result.paths == ["/abs/x.js", "/a/b.js"]
        assert (dest_dir / "abs" / "x.js").read_bytes() == b"abs"
        assert (dest_dir / "a" / "b.js").read_bytes() == b"b"

    def test_relative_dest_dir(self, extractor, temp_storage_dir, dest_dir, monkeypatch):
        tarball = build_tarball(temp_storage_dir / "t.tgz", [file_member("package/lib/a.js", b"a")])
        monkeypatch.chdir(temp_storage_dir)

        result = extractor.extract(tarball, "extracted")

        assert result.paths == ["/lib/a.js"]
        assert (dest_dir / "lib" / "a.js").read_bytes() == b"a"

    def test_undecodable_member_name_is_replaced(self, extractor, temp_storage_dir, dest_dir):
        tarball = temp_storage_dir / "latin1.tgz"
        with tarfile.open(tarball, "w:gz", format=tarfile.USTAR_FORMAT, encoding="latin-1") as tar:
            info = tarfile.TarInfo("package/café.txt")
            info.size = 4
            tar.addfile(info, io.BytesIO(b"cafe"))

        result = extractor.extract(tarball, dest_dir)

        assert result.paths == ["/caf\ufffd.txt"]
        assert (dest_dir / "caf\ufffd.txt").read_bytes() == b"cafe"

    def test_garbage_raises_bad_archive(self, extractor, temp_storage_dir, dest_dir):
        garbage = temp_storage_dir / "garbage.tgz"
        garbage.write_bytes(b"this is not a tarball " * 100)

        with pytest.raises(BadArchiveError) as exc_info:
            extractor.extract(garbage, dest_dir)
        assert exc_info.value.archive_path == str(garbage)

    def test_truncated_raises_bad_archive(self, extractor, temp_storage_dir, dest_dir):
        tarball = build_tarball(temp_storage_dir / "t.tgz", [
            file_member("package/big.bin", incompressible_bytes(128 * 1024)),
        ])
        data = tarball.read_bytes()
        tarball.write_bytes(data[: len(data) // 3])

        with pytest.raises(BadArchiveError):
            extractor.extract(tarball, dest_dir)

    def test_empty_file_raises_bad_archive(self, extractor, temp_storage_dir, dest_dir):
        empty = temp_storage_dir / "empty.tgz"
        empty.write_bytes(b"")

        with pytest.raises(BadArchiveError):
            extractor.extract(empty, dest_dir)

    def test_missing_file_is_not_bad_archive(self, extractor, temp_storage_dir, dest_dir):
        with pytest.raises(FileNotFoundError):
            extractor.extract(temp_storage_dir / "missing.tgz", dest_dir)

    @pytest.mark.asyncio
    async def test_extract_async(self, extractor, temp_storage_dir, dest_dir):
        tarball = build_tarball(temp_storage_dir / "t.tgz", [file_member("package/a.js", b"a")])

        result = await extractor.extract_async(tarball, dest_dir)

        assert result.paths == ["/a.js"]
