"""
Tests for fence stripping and the widget import denylist.
"""

from modeforge.code_normalizer import (
    CPP_FENCE_LANGUAGES,
    JSX_FENCE_LANGUAGES,
    comment_out_forbidden_imports,
    strip_code_fences,
)


class TestStripCodeFences:
    def test_cpp_fence(self):
        text = "```cpp\nint x = 1;\n```"
        assert strip_code_fences(text, CPP_FENCE_LANGUAGES).strip() == "int x = 1;"

    def test_jsx_fence(self):
        text = "```jsx\nconst A = () => null;\n```\n"
        assert strip_code_fences(text, JSX_FENCE_LANGUAGES).strip() == "const A = () => null;"

    def test_bare_fence(self):
        assert strip_code_fences("```\nabc\n```").strip() == "abc"

    def test_no_fences_is_noop(self):
        text = "#define SENSITIVITY 0.5\n"
        assert strip_code_fences(text, CPP_FENCE_LANGUAGES) == text

    def test_empty(self):
        assert strip_code_fences("") == ""
        assert strip_code_fences(None) == ""


class TestForbiddenImports:
    def test_rewrites_denylisted_import(self):
        code = (
            "import React from 'react';\n"
            "import { Heart, Bell } from 'lucide-react';\n"
            "export default function A() { return null; }\n"
        )
        rewritten, removed = comment_out_forbidden_imports(code)
        assert removed == ["lucide-react"]
        assert "from 'lucide-react'" not in rewritten
        assert "// REMOVED: import from 'lucide-react' (not available at runtime)" in rewritten
        assert "import React from 'react';" in rewritten

    def test_multiple_libraries(self):
        code = 'import { motion } from "framer-motion";\nimport { FaBeer } from "react-icons/fa";\n'
        rewritten, removed = comment_out_forbidden_imports(code)
        assert "framer-motion" in removed
        assert 'from "framer-motion"' not in rewritten

    def test_clean_code_untouched(self):
        code = "import { AreaChart } from 'recharts';\n"
        rewritten, removed = comment_out_forbidden_imports(code)
        assert rewritten == code
        assert removed == []
