"""Pytest configuration and shared fixtures."""

import io
from typing import List, Optional

import pytest
from fastapi import UploadFile
from fastapi.testclient import TestClient

from policy_compare.config import get_settings
from policy_compare.deps import get_model_invoker, get_text_extractor
from policy_compare.main import app
from policy_compare.pipeline.normalization import NormalizedFragment


def policy_text(insurer: str, extra: str = "", length: int = 600) -> str:
    """Build a realistic policy body longer than the minimum text length."""
    body = (
        f"{insurer} Kasko Sigorta Policesi\n"
        "IMM limiti: 1.000.000 TL\n"
        "Ikame arac: yilda 2 kez, 7 gun\n"
        "Anahtar kaybi: 5.000 TL\n"
        f"{extra}\n"
    )
    while len(body) < length:
        body += "Genel sartlar ve istisnalar bu police icin gecerlidir. "
    return body


class FakeExtractor:
    """Stands in for the PDF extractor: the upload bytes are the text itself."""

    def __init__(self) -> None:
        self.calls: List[str] = []

    def extract(self, data: bytes, filename: str = "") -> str:
        self.calls.append(filename)
        if data.startswith(b"%BROKEN"):
            raise ValueError("Invalid or unreadable PDF")
        return data.decode("utf-8")


class FakeInvoker:
    """Records prompts and returns a canned model response (or raises)."""

    model = "gemini-fake"

    def __init__(self, response: str = "", error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Settings are cached per process; tests that patch env need a fresh copy."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture
def fake_extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def fake_invoker() -> FakeInvoker:
    return FakeInvoker()


@pytest.fixture
def test_client(fake_extractor: FakeExtractor, fake_invoker: FakeInvoker) -> TestClient:
    """FastAPI test client with the extractor and the model replaced by fakes."""
    app.dependency_overrides[get_text_extractor] = lambda: fake_extractor
    app.dependency_overrides[get_model_invoker] = lambda: fake_invoker
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_upload():
    """Factory for in-memory UploadFile objects."""

    def _make(data: bytes, filename: Optional[str] = "policy.pdf") -> UploadFile:
        return UploadFile(file=io.BytesIO(data), filename=filename)

    return _make


@pytest.fixture
def fragments() -> List[NormalizedFragment]:
    return [
        NormalizedFragment(text=policy_text("Anadolu"), label="anadolu.pdf"),
        NormalizedFragment(text=policy_text("Axa"), label="axa.pdf"),
    ]
