# modeforge/settings.py

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name, "")
    return Path(raw) if raw else default


class Settings:
    """
    Env-driven configuration, read once at construction time.

    Every path defaults to a location under DATA_DIR (runtime artifacts) or
    FIRMWARE_PROJECT_ROOT (the embedded project the toolchain compiles).
    """

    def __init__(self) -> None:
        # ---- storage layout ----
        self.DATA_DIR = _env_path("DATA_DIR", Path.cwd())
        self.MODES_CATALOG_PATH = _env_path("MODES_CATALOG_PATH", self.DATA_DIR / "modes.json")
        self.MY_MODES_PATH = _env_path("MY_MODES_PATH", self.DATA_DIR / "my_modes.json")
        self.GENERATED_MODULES_DIR = _env_path("GENERATED_MODULES_DIR", self.DATA_DIR / "generated_modules")
        self.GENERATED_WIDGETS_DIR = _env_path("GENERATED_WIDGETS_DIR", self.DATA_DIR / "generated_widgets")
        self.COMPILED_MODULES_DIR = _env_path("COMPILED_MODULES_DIR", self.DATA_DIR / "compiled_modules")

        # ---- firmware project / toolchain ----
        self.FIRMWARE_PROJECT_ROOT = _env_path("FIRMWARE_PROJECT_ROOT", self.DATA_DIR.parent)
        self.ACTIVE_MODULE_PATH = _env_path(
            "ACTIVE_MODULE_PATH", self.FIRMWARE_PROJECT_ROOT / "src" / "current_module.h"
        )
        self.DEFAULT_BUNDLE_PATH = _env_path(
            "DEFAULT_BUNDLE_PATH", self.FIRMWARE_PROJECT_ROOT / "src" / "modules" / "default_bundle.h"
        )
        self.BUILD_COMMAND = os.getenv("BUILD_COMMAND", "platformio run -e uad_main")
        self.BUILD_OUTPUT_BIN = os.getenv("BUILD_OUTPUT_BIN", ".pio/build/uad_main/firmware.bin")
        self.BUILD_TIMEOUT_SECONDS = float(os.getenv("BUILD_TIMEOUT_SECONDS", "600"))
        self.BUILD_OUTPUT_TAIL = int(os.getenv("BUILD_OUTPUT_TAIL", "500"))

        # ---- jobs ----
        self.JOB_BUILD_MODE = os.getenv("JOB_BUILD_MODE", "simulated").strip().lower()
        self.SIMULATED_BUILD_DELAY = float(os.getenv("SIMULATED_BUILD_DELAY", "2.0"))
        self.JOB_WORKERS = int(os.getenv("JOB_WORKERS", "4"))

        # ---- text generation ----
        self.LLM_MODEL = os.getenv("LLM_MODEL", "gemini-2.5-pro")
        self.LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "300"))
        self.LLM_MAX_ATTEMPTS = int(os.getenv("LLM_MAX_ATTEMPTS", "3"))
        self.LLM_OVERLOAD_BACKOFF = float(os.getenv("LLM_OVERLOAD_BACKOFF", "2.0"))
        self.LLM_RETRY_DELAY = float(os.getenv("LLM_RETRY_DELAY", "1.0"))
        self.PROJECT_ID = os.getenv("GOOGLE_CLOUD_PROJECT", "your-project-id")
        self.REGION = os.getenv("GOOGLE_CLOUD_REGION", "us-central1")
        self.TAILWIND_CONFIG_PATH = os.getenv("TAILWIND_CONFIG_PATH", "")

        # ---- http ----
        self.API_PREFIX = os.getenv("API_PREFIX", "/api")

    def module_path(self, smart_name: str) -> Path:
        return self.GENERATED_MODULES_DIR / f"{smart_name}_module.h"

    def widget_path(self, smart_name: str) -> Path:
        return self.GENERATED_WIDGETS_DIR / f"{smart_name}_view.jsx"

    def firmware_bin_path(self, smart_name: str) -> Path:
        return self.COMPILED_MODULES_DIR / f"{smart_name}_firmware.bin"

    def module_bin_path(self, smart_name: str) -> Path:
        return self.COMPILED_MODULES_DIR / f"{smart_name}_module.bin"

    @property
    def backup_module_path(self) -> Path:
        return self.ACTIVE_MODULE_PATH.with_name(self.ACTIVE_MODULE_PATH.name + ".bak")

    @property
    def built_bin_path(self) -> Path:
        return self.FIRMWARE_PROJECT_ROOT / self.BUILD_OUTPUT_BIN
