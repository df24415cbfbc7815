# modeforge/base_utils.py

import logging
import re
from collections import OrderedDict

import commentjson
import yaml
from json_repair import repair_json

from modeforge.code_normalizer import strip_code_fences


logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s | %(levelname)s | %(name)s\n%(message)s\n"
)

logger = logging.getLogger("modeforge")


class BaseUtils():

    # -----------------------
    # General Utils
    # -----------------------

    def color_print(self, text, color=None, level=logging.INFO):
        COLOR_CODES = {'red': '31', 'green': '32', 'yellow': '33', 'blue': '34', 'cyan': '36'}
        if color and color.lower() in COLOR_CODES:
            color_code = COLOR_CODES[color.lower()]
            start = f"\033[{color_code}m"
            end = "\033[0m"
            text = f"{start}{text}{end}"
        logger.log(level, str(text))
        return False

    def clean_triple_backticks(self, code, languages=None) -> str:
        return strip_code_fences(code, languages)

    def unsafe_string_format(self, dest_string, print_unused_keys_report=True, **kwargs):
        """
        Formats a destination string by replacing placeholders with corresponding values from kwargs.

        It works differently from the standard "format" method as instead of looking for all the
        potential keys, looks only for the keys as passed in kwargs. Unknown placeholders (and the
        braces of code samples inside prompts) are left untouched.
        """
        missing_keys = []

        def replacer(match):
            key = match.group(1)
            if key in kwargs:
                return str(kwargs[key])
            missing_keys.append(key)
            return match.group(0)

        pattern = re.compile(r'\{(\w+)\}')
        result = pattern.sub(replacer, dest_string)
        if missing_keys and print_unused_keys_report:
            logger.debug(f"Missing keys within string-to-format in unsafe_string_format: {', '.join(missing_keys)}")
        return result

    def load_fault_tolerant_json(self, json_str, ensure_ordered=False):
        """
        Attempts to load a JSON-like string produced by a model.
        Tries commentjson, then yaml, then the same two again on a json_repair'd copy.
        Raises ValueError when nothing yields a dict/list.
        """
        def load_json(raw):
            err, data = "", None
            cleaned = self.clean_triple_backticks(raw or "")
            try:
                if ensure_ordered:
                    data = commentjson.loads(cleaned, object_pairs_hook=OrderedDict)
                else:
                    data = commentjson.loads(cleaned)
                return data, ""
            except Exception as e:
                err = str(e)
            try:
                data = yaml.safe_load(cleaned)
                if not isinstance(data, (dict, list)):
                    raise ValueError("load_fault_tolerant_json: YAML parsing produced a scalar.")
                return data, ""
            except Exception as e:
                err += "\n--\n" + str(e)
            return None, err

        data, err = load_json(json_str)
        if data:
            return data
        r_data, r_err = load_json(repair_json(self.clean_triple_backticks(json_str or "")))
        if r_data:
            return r_data
        raise ValueError(f"load_fault_tolerant_json: JSON parsing failed: {err or r_err}")
