# modeforge/parameter_tuner.py

import re
import threading
from pathlib import Path
from typing import Dict, List, Mapping

from modeforge.errors import NotFoundError, ParseError
from modeforge.smart_namer import is_valid_smart_name

NUMBER = r"[-+]?[0-9]*\.?[0-9]+f?"
NUMERIC_TYPES = r"(?:float|int|uint32_t|double)"
# a literal ends where the token ends: 0x68, 1e-3, 5000UL are not tunables
END_OF_LITERAL = r"(?![\w.])"

# #define SENSITIVITY 0.5
DEFINE_RE = re.compile(rf"#define\s+([A-Z_][A-Z0-9_]*)\s+({NUMBER}){END_OF_LITERAL}")
# static constexpr uint32_t INTERVAL = 1000;
CONST_RE = re.compile(
    rf"(?:static\s+)?(?:constexpr|const)\s+{NUMERIC_TYPES}\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*=\s*({NUMBER});"
)
LITERAL_RE = re.compile(rf"^{NUMBER}$")


def extract_parameters(source: str) -> List[Dict[str, str]]:
    """
    Tunable numeric constants of a generated module, defines first then consts.
    Each entry: {kind: define|const, name, value, rawMatch}.
    """
    params: List[Dict[str, str]] = []
    for kind, regex in (("define", DEFINE_RE), ("const", CONST_RE)):
        for match in regex.finditer(source):
            params.append({
                "kind": kind,
                "name": match.group(1),
                "value": match.group(2),
                "rawMatch": match.group(0),
            })
    return params


def apply_parameter_updates(source: str, updates: Mapping[str, object]) -> tuple[str, List[str]]:
    """
    Rewrite the value literal of every declaration whose name is in `updates`.

    Only the literal changes; every other byte of `source` is preserved. Names
    that match nothing are ignored. Returns (new_source, names_applied).
    """
    applied: List[str] = []
    for name, new_value in updates.items():
        value = str(new_value).strip()
        if not LITERAL_RE.match(value):
            raise ParseError(f"Value for {name} is not a numeric literal: {new_value!r}")

        escaped = re.escape(str(name))
        define_re = re.compile(rf"(#define\s+{escaped}\s+)({NUMBER}){END_OF_LITERAL}")
        const_re = re.compile(rf"((?:constexpr|const)\s+{NUMERIC_TYPES}\s+{escaped}\s*=\s*)({NUMBER})(?=\s*;)")

        hit = False
        for regex in (define_re, const_re):
            source, count = regex.subn(lambda m: m.group(1) + value, source)
            hit = hit or count > 0
        if hit:
            applied.append(str(name))
    return source, applied


class ParameterTuner:
    """
    Read/write view over the tunables of `generated_modules/<smart>_module.h`.
    """

    def __init__(self, settings):
        self.settings = settings
        # serializes read-modify-write of module files
        self._lock = threading.Lock()

    def _module_file(self, smart_name: str) -> Path:
        if not is_valid_smart_name(smart_name):
            raise NotFoundError(f"Module file not found for '{smart_name}'")
        path = self.settings.module_path(smart_name)
        if not path.is_file():
            raise NotFoundError(f"Module file not found for '{smart_name}'")
        return path

    @staticmethod
    def _read_source(path: Path) -> str:
        # newline="" keeps CRLF sources byte-identical on rewrite
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()

    def read(self, smart_name: str) -> List[Dict[str, str]]:
        content = self._read_source(self._module_file(smart_name))
        params = extract_parameters(content)
        if not params:
            raise ParseError(f"No tunable parameters found in {smart_name}_module.h")
        return params

    def write(self, smart_name: str, updates: Mapping[str, object]) -> List[str]:
        path = self._module_file(smart_name)
        with self._lock:
            content = self._read_source(path)
            new_content, applied = apply_parameter_updates(content, updates or {})
            if new_content != content:
                with open(path, "w", encoding="utf-8", newline="") as f:
                    f.write(new_content)
        return applied
