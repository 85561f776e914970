"""Shared fixtures: synthetic eyelid images, a scriptable classifier and an API client."""

from __future__ import annotations

import io
import time
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from anemia_screening.ai import ModelManager
from anemia_screening.config import settings


def make_image_bytes(
    color=(128, 128, 128),
    size=(300, 200),
    mode: str = "RGB",
    fmt: str = "PNG",
) -> bytes:
    image = Image.new(mode, size, color=color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def make_upload_bytes(color=(190, 80, 90)) -> bytes:
    """PNG with per-pixel noise so the encoded file is comfortably above 1KB."""
    image = Image.new("RGB", (128, 128), color=color)
    pixels = image.load()
    for x in range(128):
        for y in range(128):
            pixels[x, y] = ((x * 7) % 256, (y * 5) % 256, (x * y) % 256)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class FakeClassifier:
    """Stands in for the ONNX session; records every tensor it receives."""

    def __init__(
        self,
        output: float = 0.73,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        shape=(1, 1),
    ):
        self.output = output
        self.error = error
        self.delay = delay
        self.shape = list(shape)
        self.calls = []

    def run(self, tensor):
        return self.run_with_shape(tensor)[0]

    def run_with_shape(self, tensor):
        self.calls.append(tensor)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.output, self.shape


@pytest.fixture
def gray_png() -> bytes:
    return make_image_bytes()


@pytest.fixture
def upload_png() -> bytes:
    return make_upload_bytes()


@pytest.fixture
def fake_classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def manager(fake_classifier: FakeClassifier, tmp_path) -> ModelManager:
    return ModelManager(
        str(tmp_path / "model.onnx"),
        inference_timeout=5.0,
        classifier=fake_classifier,
    )


@pytest.fixture
def upload_dir(tmp_path, monkeypatch: pytest.MonkeyPatch):
    folder = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_folder", str(folder))
    monkeypatch.setattr(settings, "save_uploads", True)
    return folder


@pytest.fixture
def client(manager: ModelManager, upload_dir):
    from anemia_screening.main import app

    app.state.model_manager = manager
    yield TestClient(app)
    app.state.model_manager = None
