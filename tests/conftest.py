"""
Shared fixtures: isolated data/firmware directories and scripted text-generation fakes.
"""

import pytest

from modeforge.errors import GenerationError
from modeforge.settings import Settings


class ScriptedLlm:
    """
    Stand-in for LlmClient: returns (or raises) the queued responses in order,
    then keeps repeating the last one. Every prompt is recorded.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if not self.responses:
            raise GenerationError("no scripted response")
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class UnreachableLlm:
    """Every call fails the way an exhausted client does."""

    def __init__(self, message="503 UNAVAILABLE: model overloaded"):
        self.message = message
        self.calls = 0

    def generate(self, prompt):
        self.calls += 1
        raise GenerationError(self.message)


@pytest.fixture
def make_settings(tmp_path, monkeypatch):
    """
    Build a Settings whose data dir and firmware project live under tmp_path.
    Extra keyword arguments become environment variables.
    """

    def _make(**env):
        data_dir = tmp_path / "data"
        firmware = tmp_path / "firmware"
        (firmware / "src").mkdir(parents=True, exist_ok=True)
        data_dir.mkdir(parents=True, exist_ok=True)
        defaults = {
            "DATA_DIR": str(data_dir),
            "FIRMWARE_PROJECT_ROOT": str(firmware),
            "BUILD_COMMAND": "true",
            "SIMULATED_BUILD_DELAY": "0",
            "JOB_BUILD_MODE": "simulated",
            "JOB_WORKERS": "2",
        }
        defaults.update({k: str(v) for k, v in env.items()})
        for key, value in defaults.items():
            monkeypatch.setenv(key, value)
        return Settings()

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()
