"""
Tests for the best-effort verification pass.
"""

import pytest

from conftest import ScriptedLlm, UnreachableLlm
from modeforge.errors import VerificationSkipped
from modeforge.verifier import CodeVerifier

SOURCE = "class TunerModule { public: TelemetryData getTelemetry(); };\n"


class TestVerify:
    def test_returns_reviewed_code(self):
        llm = ScriptedLlm("```cpp\nclass TunerModule { /* fixed */ };\n```")
        result = CodeVerifier(llm).verify(SOURCE, "TunerModule")
        assert result.strip() == "class TunerModule { /* fixed */ };"

    def test_prompt_names_required_class(self):
        llm = ScriptedLlm(SOURCE)
        CodeVerifier(llm).verify(SOURCE, "TunerModule")
        assert "TunerModule" in llm.prompts[0]
        assert SOURCE.strip() in llm.prompts[0]

    def test_failure_returns_original(self):
        llm = UnreachableLlm()
        assert CodeVerifier(llm).verify(SOURCE, "TunerModule") == SOURCE
        assert llm.calls == 1

    def test_empty_review_returns_original(self):
        assert CodeVerifier(ScriptedLlm("```cpp\n```")).verify(SOURCE, "TunerModule") == SOURCE

    def test_no_client_returns_original(self):
        assert CodeVerifier(None).verify(SOURCE, "TunerModule") == SOURCE


class TestReview:
    def test_strict_variant_raises(self):
        with pytest.raises(VerificationSkipped):
            CodeVerifier(UnreachableLlm()).review(SOURCE, "TunerModule")
