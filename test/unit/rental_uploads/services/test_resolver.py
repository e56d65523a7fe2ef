"""Tests for upload path resolution and file serving."""

import os
from pathlib import Path

import pytest

from rental_uploads.core.errors import AccessDenied, InternalError, InvalidRequest, NotFound
from rental_uploads.models.uploads import FileResult
from rental_uploads.services.resolver import (
    DEFAULT_CONTENT_TYPE,
    UploadResolver,
    guess_content_type,
    sanitize_segment,
)


# -----------------------------------------------------------------------------
# sanitize_segment Tests
# -----------------------------------------------------------------------------


class TestSanitizeSegment:
    """Tests for per-segment cleanup."""

    @pytest.mark.parametrize(
        ("segment", "expected"),
        [
            ("photo.png", "photo.png"),
            ("../../etc/passwd", "etc/passwd"),
            ("a/../b.png", "b.png"),
            ("./c.png", "c.png"),
            ("..secret.txt", "..secret.txt"),
            ("..", ".."),
        ],
    )
    def test_sanitize(self, segment: str, expected: str) -> None:
        """Verify normalization and leading parent-reference stripping."""
        assert sanitize_segment(segment) == expected.replace("/", os.sep)

    def test_backslash_parent_refs_stripped(self) -> None:
        """Verify leading ..\\ runs are removed as well."""
        assert sanitize_segment("..\\..\\x.png") == "x.png"


# -----------------------------------------------------------------------------
# resolve Tests
# -----------------------------------------------------------------------------


class TestResolve:
    """Tests for UploadResolver.resolve."""

    def test_relative_root_rejected(self) -> None:
        """Verify the root must be absolute."""
        with pytest.raises(ValueError):
            UploadResolver("relative/uploads")

    def test_resolves_beneath_root(self, resolver: UploadResolver, upload_root: Path) -> None:
        """Verify plain segments are joined beneath the root."""
        assert resolver.resolve(["customers", "a.webp"]) == str(upload_root / "customers" / "a.webp")

    @pytest.mark.parametrize("segments", [[], (), "a.png", None, 42, ["a", 3]])
    def test_invalid_shapes(self, resolver: UploadResolver, segments) -> None:
        """Verify malformed segment lists are InvalidRequest."""
        with pytest.raises(InvalidRequest):
            resolver.resolve(segments)

    @pytest.mark.parametrize(
        "segments",
        [
            ["..", "..", "etc", "passwd"],
            ["..", "outside.txt"],
            ["customers", "..", "..", "outside.txt"],
        ],
    )
    def test_escape_is_access_denied(self, resolver: UploadResolver, segments: list[str]) -> None:
        """Verify paths leaving the root after the join are denied."""
        with pytest.raises(AccessDenied):
            resolver.resolve(segments)

    def test_absolute_segment_stays_inside(self, resolver: UploadResolver, upload_root: Path) -> None:
        """Verify absolute-looking segments are joined, not substituted."""
        assert resolver.resolve(["/etc/passwd"]) == str(upload_root / "etc" / "passwd")

    def test_sibling_with_shared_prefix_denied(self, upload_root: Path) -> None:
        """Verify a sibling directory sharing the root's name prefix is outside."""
        resolver = UploadResolver(upload_root)
        with pytest.raises(AccessDenied):
            resolver.resolve(["..", "uploads-evil", "x.png"])

    def test_contains(self, resolver: UploadResolver, upload_root: Path) -> None:
        """Verify containment is a path prefix, not a string prefix."""
        assert resolver.contains(str(upload_root))
        assert resolver.contains(str(upload_root / "a"))
        assert not resolver.contains(str(upload_root) + "-evil")


# -----------------------------------------------------------------------------
# serve Tests
# -----------------------------------------------------------------------------


class TestServe:
    """Tests for UploadResolver.serve."""

    async def test_serves_existing_file(self, resolver: UploadResolver, upload_root: Path) -> None:
        """Verify bytes, content type and length of an existing file."""
        (upload_root / "equipment").mkdir()
        content = b"\x89PNG\r\n\x1a\n fake"
        (upload_root / "equipment" / "drill.png").write_bytes(content)

        result = await resolver.serve(["equipment", "drill.png"])

        assert isinstance(result, FileResult)
        assert result.content == content
        assert result.content_type == "image/png"
        assert result.length == len(content)

    async def test_webp_content_type(self, resolver: UploadResolver, upload_root: Path) -> None:
        """Verify stored WebP files are served as image/webp."""
        (upload_root / "a.webp").write_bytes(b"RIFF")
        result = await resolver.serve(["a.webp"])
        assert result.content_type == "image/webp"

    async def test_unknown_extension_falls_back(self, resolver: UploadResolver, upload_root: Path) -> None:
        """Verify unknown extensions are application/octet-stream."""
        (upload_root / "file.unknownext").write_bytes(b"data")
        result = await resolver.serve(["file.unknownext"])
        assert result.content_type == DEFAULT_CONTENT_TYPE

    async def test_repeated_reads_identical(self, resolver: UploadResolver, upload_root: Path) -> None:
        """Verify serving is idempotent."""
        (upload_root / "same.jpg").write_bytes(b"jpeg bytes")
        first = await resolver.serve(["same.jpg"])
        second = await resolver.serve(["same.jpg"])
        assert first == second

    async def test_missing_file_not_found(self, resolver: UploadResolver) -> None:
        """Verify a valid but missing path is NotFound."""
        with pytest.raises(NotFound):
            await resolver.serve(["missing.png"])

    async def test_directory_not_found(self, resolver: UploadResolver, upload_root: Path) -> None:
        """Verify a directory target is NotFound."""
        (upload_root / "customers").mkdir()
        with pytest.raises(NotFound):
            await resolver.serve(["customers"])

    async def test_traversal_denied(self, resolver: UploadResolver, tmp_path: Path) -> None:
        """Verify a file outside the root is never read."""
        (tmp_path / "secret.txt").write_text("top secret")
        with pytest.raises(AccessDenied):
            await resolver.serve(["..", "secret.txt"])

    async def test_dotdot_prefixed_name_stays_inside(self, resolver: UploadResolver, tmp_path: Path) -> None:
        """Verify '..secret.txt' never reaches the sibling 'secret.txt'."""
        (tmp_path / "secret.txt").write_text("top secret")
        with pytest.raises(NotFound):
            await resolver.serve(["..secret.txt"])

    async def test_leading_parent_refs_stripped_inside_segment(
        self, resolver: UploadResolver, upload_root: Path, tmp_path: Path
    ) -> None:
        """Verify '../x' inside one segment reads root/x, not the parent's x."""
        (tmp_path / "x.txt").write_text("outside")
        (upload_root / "x.txt").write_text("inside")
        result = await resolver.serve(["../x.txt"])
        assert result.content == b"inside"

    async def test_other_io_error_is_internal(
        self, resolver: UploadResolver, upload_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Verify unexpected OSErrors surface as InternalError."""
        (upload_root / "locked.png").write_bytes(b"x")

        def _raise(path: str) -> bytes:
            raise PermissionError(13, "Permission denied", path)

        monkeypatch.setattr("rental_uploads.services.resolver._read_file", _raise)

        with pytest.raises(InternalError) as exc_info:
            await resolver.serve(["locked.png"])

        assert str(upload_root) not in exc_info.value.message


def test_guess_content_type() -> None:
    """Verify extension lookups."""
    assert guess_content_type("/x/a.jpg") == "image/jpeg"
    assert guess_content_type("/x/noext") == DEFAULT_CONTENT_TYPE
