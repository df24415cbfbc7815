"""
Tests for tunable-parameter extraction and in-place rewriting.
"""

import threading

import pytest

from modeforge.errors import NotFoundError, ParseError
from modeforge.parameter_tuner import ParameterTuner, apply_parameter_updates, extract_parameters

SOURCE = (
    "#ifndef TUNER_MODULE_H\n"
    "#define TUNER_MODULE_H\n"
    "#define SENSITIVITY 0.5\n"
    "#define ALARM_TIMEOUT 5000\n"
    "class TunerModule {\n"
    "    static constexpr uint32_t SAMPLE_INTERVAL = 100;\n"
    "    const float FILTER_ALPHA = 0.2f;\n"
    "    int counter = 0;\n"
    "};\n"
    "#endif\n"
)


class TestExtract:
    def test_defines_then_consts(self):
        params = extract_parameters(SOURCE)
        assert [(p["kind"], p["name"], p["value"]) for p in params] == [
            ("define", "SENSITIVITY", "0.5"),
            ("define", "ALARM_TIMEOUT", "5000"),
            ("const", "SAMPLE_INTERVAL", "100"),
            ("const", "FILTER_ALPHA", "0.2f"),
        ]

    def test_raw_match(self):
        params = extract_parameters(SOURCE)
        assert params[0]["rawMatch"] == "#define SENSITIVITY 0.5"

    def test_non_const_ignored(self):
        assert "counter" not in {p["name"] for p in extract_parameters(SOURCE)}

    def test_nothing_found(self):
        assert extract_parameters("int main() { return 0; }") == []


class TestApply:
    def test_only_the_literal_changes(self):
        updated, applied = apply_parameter_updates(SOURCE, {"SENSITIVITY": "0.8"})
        assert applied == ["SENSITIVITY"]
        assert updated == SOURCE.replace("#define SENSITIVITY 0.5", "#define SENSITIVITY 0.8")

    def test_const_update(self):
        updated, _ = apply_parameter_updates(SOURCE, {"SAMPLE_INTERVAL": 250, "FILTER_ALPHA": "0.35f"})
        assert "static constexpr uint32_t SAMPLE_INTERVAL = 250;" in updated
        assert "const float FILTER_ALPHA = 0.35f;" in updated

    def test_round_trip_value(self):
        updated, _ = apply_parameter_updates(SOURCE, {"ALARM_TIMEOUT": "7000"})
        values = {p["name"]: p["value"] for p in extract_parameters(updated)}
        assert values["ALARM_TIMEOUT"] == "7000"

    def test_unknown_name_ignored(self):
        updated, applied = apply_parameter_updates(SOURCE, {"NOPE": "1"})
        assert updated == SOURCE
        assert applied == []

    @pytest.mark.parametrize("value", ["abc", "1; system()", "", "0.5 // x"])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(ParseError):
            apply_parameter_updates(SOURCE, {"SENSITIVITY": value})

    def test_crlf_preserved(self):
        crlf = SOURCE.replace("\n", "\r\n")
        updated, _ = apply_parameter_updates(crlf, {"SENSITIVITY": "0.9"})
        assert updated == crlf.replace("SENSITIVITY 0.5", "SENSITIVITY 0.9")

    def test_hex_and_exponent_literals_untouched(self):
        source = "#define MPU_ADDR 0x68\n#define DECAY 1e-3\n#define BAUD 115200UL\n#define SENSITIVITY 0.5\n"
        names = [p["name"] for p in extract_parameters(source)]
        assert names == ["SENSITIVITY"]

        updated, applied = apply_parameter_updates(source, {"MPU_ADDR": "5", "DECAY": "2", "BAUD": "9600"})
        assert updated == source
        assert applied == []

    def test_unchanged_values_round_trip(self):
        params = extract_parameters(SOURCE)
        updated, applied = apply_parameter_updates(SOURCE, {p["name"]: p["value"] for p in params})
        assert updated == SOURCE
        assert sorted(applied) == sorted(p["name"] for p in params)
        assert extract_parameters(updated) == params


class TestParameterTuner:
    @pytest.fixture
    def module(self, settings):
        path = settings.module_path("tuner")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(SOURCE, encoding="utf-8")
        return path

    def test_read(self, settings, module):
        params = ParameterTuner(settings).read("tuner")
        assert {"kind": "define", "name": "SENSITIVITY", "value": "0.5",
                "rawMatch": "#define SENSITIVITY 0.5"} in params

    def test_write_persists(self, settings, module):
        applied = ParameterTuner(settings).write("tuner", {"SENSITIVITY": "0.8"})
        assert applied == ["SENSITIVITY"]
        assert "#define SENSITIVITY 0.8" in module.read_text(encoding="utf-8")

    def test_missing_module(self, settings):
        with pytest.raises(NotFoundError):
            ParameterTuner(settings).read("ghost")

    def test_path_escape_rejected(self, settings, module):
        with pytest.raises(NotFoundError):
            ParameterTuner(settings).read("../generated_modules/tuner")

    def test_no_parameters(self, settings):
        path = settings.module_path("bare")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("class BareModule {};\n", encoding="utf-8")
        with pytest.raises(ParseError):
            ParameterTuner(settings).read("bare")

    def test_write_back_unchanged_is_byte_identical(self, settings, module):
        tuner = ParameterTuner(settings)
        before = module.read_bytes()
        params = tuner.read("tuner")

        tuner.write("tuner", {p["name"]: p["value"] for p in params})

        assert module.read_bytes() == before
        assert tuner.read("tuner") == params

    def test_concurrent_writes_keep_every_update(self, settings, module):
        tuner = ParameterTuner(settings)
        updates = [{"SENSITIVITY": "0.9"}, {"ALARM_TIMEOUT": "7000"},
                   {"SAMPLE_INTERVAL": "250"}, {"FILTER_ALPHA": "0.4f"}]
        threads = [threading.Thread(target=tuner.write, args=("tuner", u)) for u in updates]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        values = {p["name"]: p["value"] for p in tuner.read("tuner")}
        assert values == {"SENSITIVITY": "0.9", "ALARM_TIMEOUT": "7000",
                          "SAMPLE_INTERVAL": "250", "FILTER_ALPHA": "0.4f"}
