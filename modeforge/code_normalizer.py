# modeforge/code_normalizer.py

import re
from typing import Iterable, List, Tuple

CPP_FENCE_LANGUAGES = ("cpp", "c++", "c", "h", "arduino", "ino")
JSX_FENCE_LANGUAGES = ("jsx", "javascript", "js", "tsx", "react")
JSON_FENCE_LANGUAGES = ("json",)

# Libraries the dashboard runtime does not inject; importing them blanks the widget.
FORBIDDEN_WIDGET_IMPORTS = (
    "lucide-react",
    "framer-motion",
    "react-icons",
    "@heroicons/react",
    "phosphor-react",
    "react-feather",
)


def strip_code_fences(text: str, languages: Iterable[str] | None = None) -> str:
    """
    Remove markdown fence delimiters (```lang / ```) from generated text.

    With `languages` only those info strings are recognised on opening fences,
    bare ``` fences are always removed. Text without fences comes back unchanged.
    """
    if not text:
        return ""
    if languages is None:
        pattern = r"```[a-zA-Z0-9+#-]*[ \t]*\n?"
    else:
        langs = "|".join(re.escape(lang) for lang in sorted(set(languages), key=len, reverse=True))
        pattern = rf"```(?:{langs})?[ \t]*\n?"
    return re.sub(pattern, "", text, flags=re.IGNORECASE)


def comment_out_forbidden_imports(
    code: str, forbidden: Iterable[str] = FORBIDDEN_WIDGET_IMPORTS
) -> Tuple[str, List[str]]:
    """
    Replace each `import ... from '<lib>'` of a denylisted library with a comment.
    Returns (rewritten_code, libraries_removed).
    """
    removed: List[str] = []
    for lib in forbidden:
        import_re = re.compile(rf"import\s+[^;]*?from\s+['\"]{re.escape(lib)}['\"];?")
        if import_re.search(code):
            code = import_re.sub(
                lambda _m, lib=lib: f"// REMOVED: import from '{lib}' (not available at runtime)",
                code,
            )
            removed.append(lib)
    return code, removed
