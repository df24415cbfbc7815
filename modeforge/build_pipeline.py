# modeforge/build_pipeline.py

import logging
import shlex
import shutil
import subprocess
import threading
from pathlib import Path

from modeforge.base_utils import BaseUtils
from modeforge.errors import BuildError

logger = logging.getLogger("modeforge")


class BuildPipeline(BaseUtils):
    """
    Owns the single "active firmware" slot (src/current_module.h) and its backup.

    compile_and_flash() is serialized by one process-wide mutex: the slot either
    keeps the previous good source (restored after a failed build) or the new one
    (left in place after a successful build).
    """

    def __init__(self, settings):
        self.settings = settings
        self._build_lock = threading.Lock()

    def _run_toolchain(self) -> str:
        cmd = shlex.split(self.settings.BUILD_COMMAND)
        root = self.settings.FIRMWARE_PROJECT_ROOT
        logger.info(f"[BUILD] Running `{self.settings.BUILD_COMMAND}` in {root}...")
        try:
            proc = subprocess.run(
                cmd,
                cwd=str(root),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.settings.BUILD_TIMEOUT_SECONDS,
            )
        except subprocess.TimeoutExpired as e:
            output = e.output or ""
            if isinstance(output, bytes):
                output = output.decode("utf-8", errors="replace")
            raise BuildError(
                self._tail(output + f"\nBuild timed out after {self.settings.BUILD_TIMEOUT_SECONDS:.0f}s")
            ) from e
        except OSError as e:
            raise BuildError(self._tail(f"Could not start build toolchain: {e}")) from e

        output = proc.stdout or ""
        if proc.returncode != 0:
            raise BuildError(self._tail(output or f"toolchain exited with code {proc.returncode}"))
        logger.debug(f"[BUILD] Output: {output[-200:]}")
        return output

    def _tail(self, output: str) -> str:
        return output[-self.settings.BUILD_OUTPUT_TAIL:]

    def compile_and_flash(self, source_path, smart_name: str) -> Path:
        source_path = Path(source_path)
        target = self.settings.ACTIVE_MODULE_PATH
        backup = self.settings.backup_module_path

        with self._build_lock:
            self.color_print(f"[BUILD] Starting Build Pipeline for: {smart_name} (source: {source_path})", color="cyan")

            # 1. Backup existing module
            backup_created = False
            if target.exists():
                shutil.copyfile(target, backup)
                backup_created = True

            try:
                # 2. Inject candidate
                candidate = source_path.read_bytes()
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(candidate)

                # 3. Compile
                self._run_toolchain()
            except Exception as e:
                self.color_print("[BUILD] Compilation Failed!", color="red", level=logging.ERROR)
                # 4. Restore previous good source
                if backup_created:
                    logger.info("[BUILD] Restoring previous module...")
                    shutil.copyfile(backup, target)
                if isinstance(e, BuildError):
                    raise
                raise BuildError(self._tail(str(e))) from e

            self.color_print("[BUILD] Compilation Successful!", color="green")

            # 5. Collect the binary
            dest = self.settings.firmware_bin_path(smart_name)
            built = self.settings.built_bin_path
            if built.is_file():
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(built, dest)
            else:
                logger.warning(f"[BUILD] Toolchain reported success but {built} is missing")
            return dest
