"""Tests for upload request models."""

import pytest
from pydantic import ValidationError

from rental_uploads.core.errors import InvalidRequest
from rental_uploads.models.uploads import InvalidUploadTarget, UploadPath, UploadTarget


class TestUploadPath:
    """Tests for UploadPath."""

    def test_splits_catch_all(self) -> None:
        """Verify the catch-all parameter becomes ordered segments."""
        assert UploadPath.model_validate({"path": "customers/a.webp"}).segments == ("customers", "a.webp")

    def test_drops_empty_segments(self) -> None:
        """Verify repeated and trailing slashes do not produce segments."""
        assert UploadPath.model_validate({"path": "/customers//a.webp/"}).segments == ("customers", "a.webp")

    def test_percent_decoding(self) -> None:
        """Verify segments are percent-decoded."""
        assert UploadPath.model_validate({"path": "rentals/my%20photo.webp"}).segments == ("rentals", "my photo.webp")

    def test_accepts_sequences(self) -> None:
        """Verify already split segments are kept in order."""
        assert UploadPath(path=["b", "a"]).segments == ("b", "a")

    @pytest.mark.parametrize("params", [{}, {"path": ""}, {"path": "///"}, {"path": []}])
    def test_empty_rejected(self, params: dict) -> None:
        """Verify missing or empty paths fail validation."""
        with pytest.raises(ValidationError):
            UploadPath.model_validate(params)

    def test_invalid_error(self) -> None:
        """Verify the error answered on validation failure."""
        assert UploadPath.invalid_error is InvalidRequest


class TestUploadTarget:
    """Tests for UploadTarget."""

    @pytest.mark.parametrize("subdirectory", ["customers", "equipment_photos", "rental-42"])
    def test_valid(self, subdirectory: str) -> None:
        """Verify simple names are accepted."""
        assert UploadTarget(subdirectory=subdirectory).subdirectory == subdirectory

    @pytest.mark.parametrize("subdirectory", ["", "..", "a/b", "a b", "x" * 65])
    def test_invalid(self, subdirectory: str) -> None:
        """Verify anything but a simple name is rejected."""
        with pytest.raises(ValidationError):
            UploadTarget(subdirectory=subdirectory)

    def test_invalid_error(self) -> None:
        """Verify the error answered on validation failure."""
        assert UploadTarget.invalid_error is InvalidUploadTarget
