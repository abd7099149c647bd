import pytest

from fakes import FakeTokenizer, RecordingReporter


@pytest.fixture
def tokenizer():
    return FakeTokenizer()


@pytest.fixture
def reporter():
    return RecordingReporter()
