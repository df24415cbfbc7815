"""
Tests for the shared helpers: prompt templating and fault-tolerant JSON loading.
"""

import pytest

from modeforge.base_utils import BaseUtils


@pytest.fixture
def utils():
    return BaseUtils()


class TestUnsafeStringFormat:
    def test_only_known_keys_replaced(self, utils):
        template = "class {class_name} { int x; }; // {unknown}"
        result = utils.unsafe_string_format(template, class_name="TunerModule")
        assert result == "class TunerModule { int x; }; // {unknown}"

    def test_non_string_values(self, utils):
        assert utils.unsafe_string_format("{n} items", n=3) == "3 items"


class TestLoadFaultTolerantJson:
    def test_fenced_json(self, utils):
        assert utils.load_fault_tolerant_json('```json\n{"possible": true}\n```') == {"possible": True}

    def test_comments_allowed(self, utils):
        assert utils.load_fault_tolerant_json('{"a": 1 // note\n}') == {"a": 1}

    def test_trailing_comma_repaired(self, utils):
        assert utils.load_fault_tolerant_json('{"use_cases": [{"title": "x"},]}') == {"use_cases": [{"title": "x"}]}

    def test_garbage_raises(self, utils):
        with pytest.raises(ValueError):
            utils.load_fault_tolerant_json("")
