# tests/conftest.py
import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so `import mdstore` works
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mdstore.config import StoreConfig  # noqa: E402
from mdstore.crypto import DocumentCodec, StaticKeyProvider  # noqa: E402
from mdstore.document import LineEnding  # noqa: E402
from mdstore.store import DocumentStore  # noqa: E402

TEST_KEY = bytes.fromhex("00112233445566778899aabbccddeeff")


@pytest.fixture
def key() -> bytes:
    return TEST_KEY


@pytest.fixture
def codec(key) -> DocumentCodec:
    return DocumentCodec(StaticKeyProvider(key))


@pytest.fixture
def store(codec) -> DocumentStore:
    cfg = StoreConfig(preferred_line_ending=LineEnding.LF, auto_guess_encoding=True)
    return DocumentStore(config=cfg, codec=codec)


@pytest.fixture(autouse=True)
def _no_pushgateway(monkeypatch):
    monkeypatch.delenv("PUSHGATEWAY_URL", raising=False)
