"""
Tests for the module and widget generators: file output, fallback templates,
forbidden-import rewriting.
"""

from conftest import ScriptedLlm, UnreachableLlm
from modeforge.errors import GenerationError
from modeforge.generators import ModuleGenerator, WidgetGenerator
from modeforge.parameter_tuner import extract_parameters
from modeforge.verifier import CodeVerifier

MODULE_CODE = "#define SENSITIVITY 0.7\nclass TunerModule {};\n"


def _module_generator(llm, settings):
    return ModuleGenerator(llm, settings, CodeVerifier(llm))


class TestModuleGenerator:
    def test_writes_verified_module(self, settings):
        llm = ScriptedLlm("```cpp\n" + MODULE_CODE + "```", "```cpp\n" + MODULE_CODE + "```")
        artifact = _module_generator(llm, settings).generate("guitar helper", "tuner", ["pitch"])

        assert artifact.path == settings.GENERATED_MODULES_DIR / "tuner_module.h"
        assert artifact.path.read_text(encoding="utf-8") == MODULE_CODE
        assert artifact.fallback is False
        # generation + verification
        assert len(llm.prompts) == 2
        assert "TunerModule" in llm.prompts[0]
        assert '["pitch"]' in llm.prompts[0]

    def test_verification_failure_keeps_generated_code(self, settings):
        llm = ScriptedLlm(MODULE_CODE, GenerationError("503 overloaded"))
        artifact = _module_generator(llm, settings).generate("guitar helper", "tuner")
        assert artifact.code == MODULE_CODE
        assert artifact.fallback is False

    def test_fallback_template_when_unreachable(self, settings):
        artifact = _module_generator(UnreachableLlm(), settings).generate("garage opener", "opener", ["door"])

        assert artifact.fallback is True
        code = artifact.path.read_text(encoding="utf-8")
        assert "class OpenerModule" in code
        assert "#ifndef OPENER_MODULE_H" in code
        params = {p["name"]: p["value"] for p in extract_parameters(code)}
        assert params["SENSITIVITY"] == "0.5"
        assert params["FILTER_ALPHA"] == "0.2f"

    def test_fallback_without_client(self, settings):
        artifact = _module_generator(None, settings).generate("guitar helper", "tuner")
        assert artifact.fallback is True
        assert artifact.path.is_file()


class TestWidgetGenerator:
    def test_strips_forbidden_imports(self, settings):
        jsx = (
            "```jsx\n"
            "import React from 'react';\n"
            "import { Music } from 'lucide-react';\n"
            "export default function TunerView() { return <div/>; }\n"
            "```"
        )
        artifact = WidgetGenerator(ScriptedLlm(jsx), settings).generate("guitar helper", "tuner", "Tuner", ["pitch"])

        assert artifact.path == settings.GENERATED_WIDGETS_DIR / "tuner_view.jsx"
        assert artifact.rewritten is True
        assert artifact.removed_imports == ["lucide-react"]
        written = artifact.path.read_text(encoding="utf-8")
        assert "from 'lucide-react'" not in written
        assert "// REMOVED: import from 'lucide-react'" in written

    def test_clean_widget_not_rewritten(self, settings):
        jsx = "export default function TunerView() { return null; }\n"
        artifact = WidgetGenerator(ScriptedLlm(jsx), settings).generate("guitar helper", "tuner")
        assert artifact.rewritten is False
        assert artifact.code == jsx

    def test_tailwind_config_embedded(self, make_settings, tmp_path):
        cfg = tmp_path / "tailwind.config.js"
        cfg.write_text("module.exports = { theme: { colors: { neon: '#0ff' } } }", encoding="utf-8")
        settings = make_settings(TAILWIND_CONFIG_PATH=cfg)
        llm = ScriptedLlm("export default function X() { return null; }")
        WidgetGenerator(llm, settings).generate("guitar helper", "tuner")
        assert "neon" in llm.prompts[0]

    def test_fallback_widget(self, settings):
        artifact = WidgetGenerator(UnreachableLlm(), settings).generate("guitar helper", "tuner", None, ["pitch"])
        assert artifact.fallback is True
        assert "export default TunerView;" in artifact.code

    def test_auto_generate_path(self, settings):
        llm = ScriptedLlm("export default function HeartRateWidget() { return null; }")
        artifact = WidgetGenerator(llm, settings).auto_generate("heart_rate", "gauge", "bpm", "Pulse")
        assert artifact.path == settings.GENERATED_WIDGETS_DIR / "heart_rate_widget.jsx"
        assert "HeartRateWidget" in llm.prompts[0]

    def test_auto_generate_fallback(self, settings):
        artifact = WidgetGenerator(UnreachableLlm(), settings).auto_generate("heart_rate", data_field="bpm")
        assert artifact.fallback is True
        assert "HeartRateWidget" in artifact.code
        assert "Heart Rate" in artifact.code
