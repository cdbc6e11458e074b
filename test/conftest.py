import sys
from pathlib import Path
from typing import List, Optional

import pytest


ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from plankernel.interfaces import TextCompletion, TextResult  # noqa: E402


class StubTextResult(TextResult):
    def __init__(self, text: str) -> None:
        self.text = text

    async def get_completion(self, cancellation_token=None) -> str:
        return self.text

    @property
    def model_result(self):
        return {"text": self.text}


class RecordingCompletionStub(TextCompletion):
    """Completion backend returning canned answers and recording prompts."""

    def __init__(self, answers: Optional[List[str]] = None, error: Optional[Exception] = None) -> None:
        self.answers = list(answers) if answers is not None else ["stub completion"]
        self.error = error
        self.calls = []

    async def get_completions(self, text, request_settings, cancellation_token=None):
        self.calls.append({"prompt": text, "settings": request_settings})
        if self.error is not None:
            raise self.error
        return [StubTextResult(answer) for answer in self.answers]


@pytest.fixture()
def completion_stub():
    return RecordingCompletionStub()


@pytest.fixture(autouse=True)
def clear_cached_settings():
    from plankernel.config import planning_config
    from plankernel.services.foundation import settings

    settings.get_settings.cache_clear()
    planning_config.get_planning_settings.cache_clear()
    yield
    settings.get_settings.cache_clear()
    planning_config.get_planning_settings.cache_clear()
