"""Test fixtures for rental-uploads unit tests."""

import io
import json
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from PIL import Image

from rental_uploads.core.lifespan import State
from rental_uploads.events.storage import Uploads
from rental_uploads.services.resolver import UploadResolver
from rental_uploads.services.storage import UploadStorage


# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request."""

    _data: dict = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __setitem__(self, key: str, value: str) -> None:
        self._data[key] = value


@dataclass
class MockRequest:
    """Mock Request object for Robyn."""

    _body: dict | str = field(default_factory=dict)
    headers: MockHeaders = field(default_factory=MockHeaders)
    method: str = "GET"
    path: str = "/"
    path_params: dict = field(default_factory=dict)
    files: dict = field(default_factory=dict)

    def json(self) -> dict:
        if isinstance(self._body, str):
            return json.loads(self._body)
        return self._body


# -----------------------------------------------------------------------------
# Images
# -----------------------------------------------------------------------------


def make_image_bytes(size: tuple[int, int] = (64, 32), fmt: str = "PNG", mode: str = "RGB") -> bytes:
    """Encode a blank image of ``size`` in ``fmt``."""
    img = Image.new(mode, size)
    out = io.BytesIO()
    img.save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def make_image():
    """Factory fixture to encode test images."""
    return make_image_bytes


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes()


# -----------------------------------------------------------------------------
# Upload root and services
# -----------------------------------------------------------------------------


@pytest.fixture
def upload_root(tmp_path: Path) -> Path:
    """Upload root nested one level down so its parent can hold files outside it."""
    root = tmp_path / "uploads"
    root.mkdir()
    return root


@pytest.fixture
def resolver(upload_root: Path) -> UploadResolver:
    return UploadResolver(upload_root)


@pytest.fixture
def storage(resolver: UploadResolver) -> UploadStorage:
    return UploadStorage(resolver)


# -----------------------------------------------------------------------------
# State fixture
# -----------------------------------------------------------------------------


@pytest.fixture(scope="session")
def test_state() -> State:
    """Create a test state container."""
    return State()


@pytest.fixture
def global_dependencies(test_state: State, resolver: UploadResolver, storage: UploadStorage) -> dict:
    """Setup global dependencies for tests."""
    test_state.uploads = Uploads(resolver=resolver, storage=storage)
    yield {"state": test_state}
    test_state.clear()


@pytest.fixture
def make_mock_request(global_dependencies):
    """Factory fixture to create mock requests."""

    def _make(
        body: dict | None = None,
        path_params: dict | None = None,
        files: dict | None = None,
    ) -> MockRequest:
        return MockRequest(_body=body or {}, path_params=path_params or {}, files=files or {})

    return _make
