import pytest

from nestris_ocr.session import MemoryStore

from synth import make_templates


@pytest.fixture
def templates():
    return make_templates()


@pytest.fixture
def store():
    return MemoryStore({"gameid": 100})
