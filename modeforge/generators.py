# modeforge/generators.py

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from modeforge.base_utils import BaseUtils
from modeforge.code_normalizer import CPP_FENCE_LANGUAGES, JSX_FENCE_LANGUAGES, comment_out_forbidden_imports
from modeforge.errors import GenerationError
from modeforge.fallback_templates import MODULE_TEMPLATE, WIDGET_TEMPLATE
from modeforge.prompts import AUTO_WIDGET_PROMPT, MODULE_PROMPT, WIDGET_PROMPT
from modeforge.smart_namer import capitalize, class_name_for

logger = logging.getLogger("modeforge")


@dataclass
class GeneratedArtifact:
    path: Path
    code: str
    fallback: bool = False
    removed_imports: List[str] = field(default_factory=list)

    @property
    def rewritten(self) -> bool:
        return bool(self.removed_imports)


def _json_block(value) -> str:
    if value is None or value == "" or value == [] or value == {}:
        return "Not specified."
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2)


def _jsx_text(value: str) -> str:
    # values land inside JSX text/attributes of the fallback template
    return "".join(ch for ch in (value or "") if ch not in '{}<>"`').strip()


class _ArtifactGenerator(BaseUtils):

    def __init__(self, llm, settings):
        self.llm = llm
        self.settings = settings

    def _ask(self, prompt: str, languages) -> str:
        if self.llm is None:
            raise GenerationError("No text-generation client configured")
        code = self.clean_triple_backticks(self.llm.generate(prompt), languages)
        if not code.strip():
            raise GenerationError("Model returned an empty response")
        return code

    @staticmethod
    def _write(path: Path, code: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(code, encoding="utf-8")
        return path


class ModuleGenerator(_ArtifactGenerator):
    """
    Firmware module: prompt -> model -> strip fences -> verification pass -> file.
    Falls back to a deterministic template when the model cannot be reached.
    """

    def __init__(self, llm, settings, verifier):
        super().__init__(llm, settings)
        self.verifier = verifier

    def build_prompt(self, device_type, smart_name, features=None, hardware_profile=None, user_profile=None) -> str:
        return self.unsafe_string_format(
            MODULE_PROMPT,
            print_unused_keys_report=False,
            device_type=device_type,
            class_name=class_name_for(smart_name),
            guard=smart_name.upper(),
            features=json.dumps(features or []),
            hardware_profile=_json_block(hardware_profile),
            user_profile=_json_block(user_profile),
        )

    def render_fallback(self, device_type, smart_name, features=None) -> str:
        return self.unsafe_string_format(
            MODULE_TEMPLATE,
            print_unused_keys_report=False,
            class_name=class_name_for(smart_name),
            guard=smart_name.upper(),
            device_type=_jsx_text(device_type),
            device_type_upper=_jsx_text(device_type).upper(),
            features=", ".join(str(f) for f in (features or [])) or "none",
        )

    def generate(self, device_type, smart_name, features=None, hardware_profile=None, user_profile=None,
                 log_prefix="[MODULE]") -> GeneratedArtifact:
        class_name = class_name_for(smart_name)
        prompt = self.build_prompt(device_type, smart_name, features, hardware_profile, user_profile)
        fallback = False
        try:
            logger.info(f"{log_prefix} Requesting firmware generation for {class_name}...")
            code = self._ask(prompt, CPP_FENCE_LANGUAGES)
            logger.info(f"{log_prefix} Verifying C++ code...")
            code = self.verifier.verify(code, class_name)
        except GenerationError as e:
            self.color_print(f"{log_prefix} AI generation failed ({e}), falling back to template", color="yellow",
                             level=logging.WARNING)
            code = self.render_fallback(device_type, smart_name, features)
            fallback = True

        path = self._write(self.settings.module_path(smart_name), code)
        logger.info(f"{log_prefix} Wrote {len(code)} bytes to {path}")
        return GeneratedArtifact(path=path, code=code, fallback=fallback)


class WidgetGenerator(_ArtifactGenerator):
    """
    Dashboard widget (JSX). Output is scanned for UI libraries the dashboard does not
    provide; their imports are commented out before the file is written.
    """

    def _read_tailwind_config(self) -> str:
        cfg = self.settings.TAILWIND_CONFIG_PATH
        if cfg and Path(cfg).is_file():
            try:
                return Path(cfg).read_text(encoding="utf-8")
            except OSError as e:
                logger.warning(f"[WIDGET] Could not read tailwind config: {e}")
        return "No custom config found."

    def build_prompt(self, device_type, smart_name, description=None, data_fields=None) -> str:
        return self.unsafe_string_format(
            WIDGET_PROMPT,
            print_unused_keys_report=False,
            device_type=device_type,
            description=description or "Standard Dashboard",
            data_fields=", ".join(str(f) for f in (data_fields or [])) or "sensorValue",
            component_name=class_name_for(smart_name, "View"),
            tailwind_config=self._read_tailwind_config(),
        )

    def render_fallback(self, component_name, title, description=None, primary_field=None) -> str:
        return self.unsafe_string_format(
            WIDGET_TEMPLATE,
            print_unused_keys_report=False,
            component_name=component_name,
            title=_jsx_text(title),
            description=_jsx_text(description or "Generated widget"),
            primary_field=_jsx_text(primary_field or "Metric"),
        )

    def _sanitize(self, code: str) -> tuple[str, List[str]]:
        code, removed = comment_out_forbidden_imports(code)
        for lib in removed:
            logger.warning(f"[WIDGET] Stripped forbidden import: {lib}")
        if removed:
            logger.info("[WIDGET] Auto-fixed generated code by removing forbidden imports")
        return code, removed

    def generate(self, device_type, smart_name, description=None, data_fields=None) -> GeneratedArtifact:
        component_name = class_name_for(smart_name, "View")
        fallback = False
        removed: List[str] = []
        try:
            code = self._ask(self.build_prompt(device_type, smart_name, description, data_fields),
                             JSX_FENCE_LANGUAGES)
            code, removed = self._sanitize(code)
        except GenerationError as e:
            self.color_print(f"[WIDGET] AI generation failed ({e}), falling back to template", color="yellow",
                             level=logging.WARNING)
            primary = (data_fields or [None])[0]
            code = self.render_fallback(component_name, capitalize(smart_name), description, primary)
            fallback = True

        path = self._write(self.settings.widget_path(smart_name), code)
        return GeneratedArtifact(path=path, code=code, fallback=fallback, removed_imports=removed)

    def auto_generate(self, feature_name, widget_type=None, data_field=None, description=None) -> GeneratedArtifact:
        """
        Widget for a feature the device discovered on its own; saved as <feature>_widget.jsx.
        """
        component_name = "".join(capitalize(part) for part in feature_name.split("_")) + "Widget"
        prompt = self.unsafe_string_format(
            AUTO_WIDGET_PROMPT,
            print_unused_keys_report=False,
            feature_name=feature_name,
            widget_type=widget_type or "gauge",
            data_field=data_field or "sensorValue",
            description=description or "",
            component_name=component_name,
        )
        fallback = False
        removed: List[str] = []
        try:
            logger.info(f"[AUTO-WIDGET] Generating for discovered feature: {feature_name}")
            code = self._ask(prompt, JSX_FENCE_LANGUAGES)
            code, removed = self._sanitize(code)
        except GenerationError as e:
            logger.warning(f"[AUTO-WIDGET] AI generation failed ({e}), falling back to template")
            title = feature_name.replace("_", " ").title()
            code = self.render_fallback(component_name, title, description, (data_field or "Metric").replace("_", " "))
            fallback = True

        path = self._write(self.settings.GENERATED_WIDGETS_DIR / f"{feature_name}_widget.jsx", code)
        return GeneratedArtifact(path=path, code=code, fallback=fallback, removed_imports=removed)
