# modeforge/backend.py

import json
import logging
import time
import traceback
from pathlib import Path

from modeforge.base_utils import BaseUtils
from modeforge.build_pipeline import BuildPipeline
from modeforge.entities import JobMessage
from modeforge.errors import GenerationError, NotFoundError
from modeforge.generators import ModuleGenerator, WidgetGenerator
from modeforge.job_store import JobStore
from modeforge.llm_client import LlmClient
from modeforge.parameter_tuner import ParameterTuner
from modeforge.prompts import FEASIBILITY_PROMPT, USE_CASES_PROMPT
from modeforge.registries import ModeCatalog, MyModesLibrary
from modeforge.settings import Settings
from modeforge.smart_namer import generate_smart_name, is_valid_smart_name
from modeforge.verifier import CodeVerifier

logger = logging.getLogger("modeforge")

RESET_MODE_IDS = ("default", "reset")
DEFAULT_SMART_NAME = "default"
SIMULATED_BINARY = b"BINARY_DATA_PLACEHOLDER"


def _payload_get(payload: dict, *keys, default=None):
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return default


class Backend(BaseUtils):
    """
    Generation & build orchestrator: every HTTP operation lands on a handle_* method,
    every queued job lands on run_job().
    """

    def __init__(self, settings: Settings | None = None, llm=None):
        self.settings = settings or Settings()

        if llm is None:
            llm = self._build_llm_for_model(self.settings.LLM_MODEL)
        self.llm = llm

        self.job_store = JobStore()
        self.catalog = ModeCatalog(self.settings.MODES_CATALOG_PATH)
        self.library = MyModesLibrary(self.settings.MY_MODES_PATH)
        self.build_pipeline = BuildPipeline(self.settings)
        self.tuner = ParameterTuner(self.settings)
        self.verifier = CodeVerifier(self.llm)
        self.module_generator = ModuleGenerator(self.llm, self.settings, self.verifier)
        self.widget_generator = WidgetGenerator(self.llm, self.settings)

    def _build_llm_for_model(self, model_name: str):
        """
        Falls back to None if creation fails; generation then takes the template path.
        """
        try:
            return LlmClient(
                model_name=model_name,
                vertex_project=self.settings.PROJECT_ID,
                vertex_region=self.settings.REGION,
                timeout=self.settings.LLM_TIMEOUT,
                max_attempts=self.settings.LLM_MAX_ATTEMPTS,
                overload_backoff=self.settings.LLM_OVERLOAD_BACKOFF,
                retry_delay=self.settings.LLM_RETRY_DELAY,
            )
        except Exception as e:
            logger.warning(f"Warning: Could not initialize text-generation client for {model_name}: {e}")
            return None

    def _relative_ref(self, path: Path) -> str:
        return f"{path.parent.name}/{path.name}"

    # -----------------------
    # Job submission / execution
    # -----------------------

    def create_generation_job(self, payload: dict) -> JobMessage:
        device_type = (_payload_get(payload, "device_type", "deviceType", default="") or "").strip()
        if not device_type:
            raise ValueError("device_type is required")
        job_id = self.job_store.create(device_type, kind="generate")
        logger.info(f"[JOB {job_id}] Accepted generation request for '{device_type}'")
        return JobMessage(job_id=job_id, kind="generate", payload=dict(payload, device_type=device_type))

    def create_rebuild_job(self, smart_name: str) -> JobMessage:
        job_id = self.job_store.create(smart_name, kind="rebuild", smart_name=smart_name)
        return JobMessage(job_id=job_id, kind="rebuild", payload={"smart_name": smart_name})

    def run_job(self, message: JobMessage) -> None:
        if message.kind == "generate":
            self.run_generation_job(message.job_id, message.payload)
        elif message.kind == "rebuild":
            self.run_rebuild_job(message.job_id, message.payload.get("smart_name"))
        else:
            self.job_store.transition(message.job_id, "failed", error=f"Unknown job kind: {message.kind}")

    def run_generation_job(self, job_id: str, payload: dict) -> None:
        device_type = payload.get("device_type") or ""
        features = _payload_get(payload, "features", default=[]) or []
        hardware_profile = _payload_get(payload, "hardware_profile", "hardwareProfile")
        user_profile = _payload_get(payload, "user_profile", "userProfile")
        description = _payload_get(payload, "description")
        data_fields = _payload_get(payload, "data_fields", "dataFields", default=None) or features

        try:
            logger.info(f"[JOB {job_id}] Generating {device_type} module...")
            smart_name = generate_smart_name(device_type)
            if not smart_name:
                raise ValueError(f"Could not derive a name from device_type '{device_type}'")
            self.job_store.annotate(job_id, smart_name=smart_name)

            module = self.module_generator.generate(
                device_type, smart_name, features, hardware_profile, user_profile,
                log_prefix=f"[JOB {job_id}]",
            )
            widget = self.widget_generator.generate(device_type, smart_name, description, data_fields)

            saved = self.library.upsert_generated(
                name=device_type,
                smart_name=smart_name,
                original_prompt=description or device_type,
                cpp_file=self._relative_ref(module.path),
                widget_file=self._relative_ref(widget.path),
            )
            logger.info(f"[MY MODES] Auto-saved mode {saved.smart_name} v{saved.version}")

            self.job_store.transition(job_id, "compiling", widget_path=str(widget.path))
            bin_path = self._build_step(smart_name, module.path)
            self.job_store.transition(job_id, "completed", artifact_path=str(bin_path))
            self.color_print(f"[JOB {job_id}] Finished: {bin_path}", color="green")
        except Exception as e:
            self._fail_job(job_id, e)

    def run_rebuild_job(self, job_id: str, smart_name: str) -> None:
        try:
            self.job_store.transition(job_id, "compiling")
            bin_path = self._build_step(smart_name, self.settings.module_path(smart_name))
            self.job_store.transition(job_id, "completed", artifact_path=str(bin_path))
            self.color_print(f"[JOB {job_id}] Rebuilt {smart_name}: {bin_path}", color="green")
        except Exception as e:
            self._fail_job(job_id, e)

    def _fail_job(self, job_id: str, e: Exception) -> None:
        self.color_print(f"[JOB {job_id}] Error: {e}", color="red", level=logging.ERROR)
        logger.debug(traceback.format_exc())
        self.job_store.transition(job_id, "failed", error=str(e) or e.__class__.__name__)

    def _build_step(self, smart_name: str, source_path: Path) -> Path:
        if self.settings.JOB_BUILD_MODE == "toolchain":
            return self.build_pipeline.compile_and_flash(source_path, smart_name)

        if not Path(source_path).is_file():
            raise NotFoundError(f"Module file not found for '{smart_name}'")
        time.sleep(self.settings.SIMULATED_BUILD_DELAY)
        bin_path = self.settings.module_bin_path(smart_name)
        bin_path.parent.mkdir(parents=True, exist_ok=True)
        bin_path.write_bytes(SIMULATED_BINARY)
        return bin_path

    def job_status(self, job_id: str) -> dict:
        return self.job_store.get(job_id).to_json_dict()

    # -----------------------
    # Widgets
    # -----------------------

    def handle_generate_widget(self, payload: dict) -> dict:
        device_type = (_payload_get(payload, "device_type", "deviceType", default="") or "").strip()
        if not device_type:
            raise ValueError("device_type is required")
        description = _payload_get(payload, "description")
        data_fields = _payload_get(payload, "data_fields", "dataFields", default=[]) or []

        smart_name = generate_smart_name(device_type)
        widget = self.widget_generator.generate(device_type, smart_name, description, data_fields)

        saved = self.library.upsert_generated(
            name=device_type,
            smart_name=smart_name,
            original_prompt=description or "Custom mode generated by AI",
            cpp_file=self._relative_ref(self.settings.module_path(smart_name)),
            widget_file=self._relative_ref(widget.path),
        )
        logger.info(f"[MY MODES] Auto-saved new mode: {smart_name}")

        return {
            "success": True,
            "smartName": smart_name,
            "widgetPath": str(widget.path),
            "savedMode": saved.to_json_dict(),
            "rewritten": widget.rewritten,
            "removedImports": widget.removed_imports,
            "fallback": widget.fallback,
        }

    def handle_auto_widget(self, payload: dict) -> dict:
        feature_name = (_payload_get(payload, "feature_name", "featureName", default="") or "").strip()
        if not is_valid_smart_name(feature_name):
            raise ValueError("feature_name must be a non-empty identifier ([A-Za-z0-9_-])")
        widget = self.widget_generator.auto_generate(
            feature_name,
            widget_type=_payload_get(payload, "widget_type", "widgetType"),
            data_field=_payload_get(payload, "data_field", "dataField"),
            description=_payload_get(payload, "description"),
        )
        response = {
            "success": True,
            "code": widget.code,
            "path": str(widget.path),
            "feature_name": feature_name,
        }
        if widget.fallback:
            response["fallback"] = True
        return response

    # -----------------------
    # Wizard (feasibility / use cases)
    # -----------------------

    def _ask_json(self, prompt: str) -> dict:
        if self.llm is None:
            raise GenerationError("No text-generation client configured")
        data = self.load_fault_tolerant_json(self.llm.generate(prompt))
        if not isinstance(data, dict):
            raise ValueError("Model did not return a JSON object")
        return data

    def handle_feasibility(self, payload: dict) -> dict:
        device_name = _payload_get(payload, "deviceName", "device_name", default="")
        logger.info(f"[WIZARD] Analyzing feasibility for: {device_name}")
        refinements = _payload_get(payload, "refinements")
        prompt = self.unsafe_string_format(
            FEASIBILITY_PROMPT,
            print_unused_keys_report=False,
            device_name=device_name,
            purpose=_payload_get(payload, "purpose", default=""),
            refinements=f"REFINEMENTS: {refinements}" if refinements else "",
            hardware=json.dumps(_payload_get(payload, "hardware", default={}), indent=2),
        )
        return self._ask_json(prompt)

    def handle_use_cases(self, payload: dict) -> dict:
        prompt = self.unsafe_string_format(
            USE_CASES_PROMPT,
            print_unused_keys_report=False,
            device_name=_payload_get(payload, "deviceName", "device_name", default=""),
            purpose=_payload_get(payload, "purpose", default=""),
        )
        data = self._ask_json(prompt)
        return {"use_cases": data.get("use_cases") or []}

    # -----------------------
    # Catalog
    # -----------------------

    def list_catalog(self, category=None, featured=None, search=None) -> dict:
        modes = self.catalog.filter(category=category, featured=featured, search=search)
        return {
            "modes": [m.to_json_dict() for m in modes],
            "total": len(modes),
            "categories": self.catalog.categories(),
        }

    def get_catalog_mode(self, mode_id: str) -> dict:
        return self.catalog.get(mode_id).to_json_dict()

    def check_module(self, device_type: str) -> dict:
        path = self.settings.module_bin_path(device_type) if is_valid_smart_name(device_type or "") else None
        exists = path is not None and path.is_file()
        return {
            "update_available": exists,
            "version": "1.0.0",
            "device_type": device_type,
            "size": path.stat().st_size if exists else 0,
        }

    # -----------------------
    # Activation
    # -----------------------

    def handle_activate(self, mode_id: str) -> dict:
        """
        Compile the mode's generated module into the active firmware slot.
        'default'/'reset' always targets the bundled default module.
        """
        mode_id = (mode_id or "").strip()
        if mode_id in RESET_MODE_IDS:
            bundle = self.settings.DEFAULT_BUNDLE_PATH
            if not bundle.is_file():
                raise FileNotFoundError("Default bundle file missing")
            bin_path = self.build_pipeline.compile_and_flash(bundle, DEFAULT_SMART_NAME)
            return {
                "success": True,
                "smartName": DEFAULT_SMART_NAME,
                "binPath": str(bin_path),
                "message": "Reset to Default Bundle",
            }

        # a catalog id, a library id, or a bare smart name
        catalog_mode = self.catalog.find(lambda m: m.id == mode_id)
        saved = self.library.find(lambda m: m.id == mode_id)
        if catalog_mode is not None:
            smart_name = catalog_mode.smart_name
        elif saved is not None:
            smart_name = saved.smart_name
        else:
            smart_name = mode_id
        if saved is None:
            saved = self.library.find_by_smart_name(smart_name)

        if not is_valid_smart_name(smart_name):
            raise NotFoundError(f"Mode not found: {mode_id}")
        header = self.settings.module_path(smart_name)
        if not header.is_file():
            raise NotFoundError(f"Source code not found for '{smart_name}'. This mode has not been generated yet.")

        bin_path = self.build_pipeline.compile_and_flash(header, smart_name)

        if catalog_mode is not None:
            self.catalog.record_activation(catalog_mode.id)
        if saved is not None:
            self.library.activate(saved.id)

        return {
            "success": True,
            "smartName": smart_name,
            "binPath": str(bin_path),
            "message": f"Successfully compiled {smart_name}. Ready to flash.",
        }

    # -----------------------
    # My Modes
    # -----------------------

    def list_my_modes(self, status=None, search=None, tag=None) -> dict:
        modes = self.library.list_modes(status=status, search=search, tag=tag)
        return {
            "modes": [m.to_json_dict() for m in modes],
            "total": len(modes),
            "counts": self.library.counts(),
        }

    def get_my_mode(self, mode_id: str) -> dict:
        return self.library.get(mode_id).to_json_dict()

    def update_my_mode(self, mode_id: str, payload: dict) -> dict:
        return self.library.update(
            mode_id,
            status=payload.get("status"),
            tags=payload.get("tags"),
            name=payload.get("name"),
        ).to_json_dict()

    def delete_my_mode(self, mode_id: str, permanent: bool = False) -> dict:
        mode = self.library.remove(mode_id, permanent=permanent)
        if permanent:
            return {"success": True, "message": f"Permanently deleted {mode.name}"}
        return {"success": True, "message": f"Moved {mode.name} to trash"}

    def activate_my_mode(self, mode_id: str) -> dict:
        return self.library.activate(mode_id).to_json_dict()

    # -----------------------
    # Parameter tuning
    # -----------------------

    def get_parameters(self, smart_name: str) -> list:
        return self.tuner.read(smart_name)

    def update_parameters(self, smart_name: str, updates: dict) -> tuple[dict, JobMessage]:
        """
        Rewrite the tunables in place, then hand back a rebuild job for the caller to enqueue.
        """
        applied = self.tuner.write(smart_name, updates or {})
        logger.info(f"[TUNER] Updated parameters for {smart_name}: {applied}")
        message = self.create_rebuild_job(smart_name)
        response = {
            "success": True,
            "message": "Parameters updated & compiling",
            "jobId": message.job_id,
            "job_id": message.job_id,
            "applied": applied,
        }
        return response, message
