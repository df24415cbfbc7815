# modeforge/model_props.py
from __future__ import annotations

from typing import Any, Dict, Tuple

OPENAI_PREFIXES = ("gpt-", "gpt4", "o3", "o4")

# suffix slot -> accepted tokens, in the order slots are filled
SUFFIX_SLOTS: Tuple[Tuple[str, frozenset], ...] = (
    ("verbosity", frozenset({"low", "medium", "high"})),
    ("reasoning", frozenset({"none", "minimal", "low", "medium", "high", "xhigh"})),
    ("service_tier", frozenset({"auto", "default", "flex", "priority"})),
)

# named presets fill verbosity and reasoning at once
PRESETS: Dict[str, Dict[str, str]] = {
    "standard": {"verbosity": "low", "reasoning": "low"},
    "fast": {"verbosity": "low", "reasoning": "none"},
    # firmware sources are long and must compile
    "codegen": {"verbosity": "medium", "reasoning": "high"},
    "review": {"verbosity": "low", "reasoning": "medium"},
}


def is_openai_model(model_name) -> bool:
    return (model_name or "").startswith(OPENAI_PREFIXES)


def parse_model_name(raw: str) -> Tuple[str, Dict[str, Any]]:
    """
    'gpt-5.1_codegen'   -> ('gpt-5.1', {text: {verbosity: medium}, reasoning: {effort: high}, ...})
    'gpt-5.1_low_flex'  -> verbosity low, service tier flex
    'gemini-2.5-pro'    -> ('gemini-2.5-pro', {})

    The first token that fits a still-empty slot fills it; presets never override.
    """
    raw = (raw or "").strip()
    if not raw:
        raise ValueError("parse_model_name: No Model Name passed.")

    base, *suffixes = raw.split("_")
    if not suffixes or not is_openai_model(base):
        return base, {}

    chosen: Dict[str, str] = {}
    for token in (s.strip().lower() for s in suffixes):
        if not token:
            continue
        if token in PRESETS:
            for slot, value in PRESETS[token].items():
                chosen.setdefault(slot, value)
            continue
        slot = next((name for name, allowed in SUFFIX_SLOTS if name not in chosen and token in allowed), None)
        if slot is None:
            raise ValueError(f"parse_model_name: Unknown model suffix token '{token}' in '{raw}'.")
        chosen[slot] = token

    params: Dict[str, Any] = {"service_tier": chosen.get("service_tier", "default")}
    if "verbosity" in chosen:
        params["text"] = {"verbosity": chosen["verbosity"]}
    if "reasoning" in chosen:
        params["reasoning"] = {"effort": chosen["reasoning"]}
    return base, params
