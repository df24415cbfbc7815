# modeforge/llm_client.py

import logging
import time
import traceback
from typing import Any, Callable, Dict, TypeVar

from langchain_google_vertexai import VertexAI
from openai import OpenAI

from modeforge.errors import GenerationError
from modeforge.model_props import is_openai_model, parse_model_name

T = TypeVar("T")

logger = logging.getLogger("modeforge")


def is_overloaded_error(e: Exception) -> bool:
    """
    "Service overloaded" responses: HTTP 503 from either provider.
    OpenAI raises APIStatusError(status_code=503), Vertex surfaces
    google.api_core ServiceUnavailable / "UNAVAILABLE" in the message.
    """
    if getattr(e, "status_code", None) == 503 or getattr(e, "code", None) == 503:
        return True
    msg = str(e)
    return "503" in msg or "UNAVAILABLE" in msg or "overloaded" in msg.lower()


def call_with_retries_sync(
    fn: Callable[[], T],
    *,
    max_attempts: int = 3,
    overload_backoff: float = 2.0,
    retry_delay: float = 1.0,
    log: Callable[[str], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run a sync text-generation call.

    - overloaded: retry up to `max_attempts` total, sleeping overload_backoff * attempt
    - any other failure: retry once after `retry_delay`
    - afterwards raise GenerationError carrying the last provider message verbatim
    """
    last_exception: Exception | None = None
    other_failures = 0

    for attempt in range(1, max_attempts + 1):
        start_time = time.time()
        try:
            return fn()
        except Exception as e:
            elapsed = time.time() - start_time
            last_exception = e

            if is_overloaded_error(e):
                delay = overload_backoff * attempt
                msg = f"Attempt {attempt}/{max_attempts} got 503 (model overloaded)"
            else:
                other_failures += 1
                delay = retry_delay
                msg = f"Attempt {attempt}/{max_attempts} failed"

            give_up = attempt >= max_attempts or other_failures > 1
            if log:
                suffix = "giving up." if give_up else f"retrying in {delay:.1f}s."
                log(f"{msg}, {suffix} (elapsed={elapsed:.2f}s): {e}\n{traceback.format_exc()}")
            if give_up:
                break
            sleep(delay)

    raise GenerationError(str(last_exception)) from last_exception


class LlmClient:
    """
    Minimal wrapper for "completion-style" use:

        text = llm.generate("some prompt")

    Under the hood:
    - Vertex (Gemini): VertexAI.invoke(prompt)
    - OpenAI: Responses API (client.responses.create)

    Holds no per-call state, so one instance is shared by every job.
    """

    def __init__(
        self,
        model_name: str,
        *,
        vertex_project: str,
        vertex_region: str,
        timeout: float | None = None,
        max_attempts: int = 3,
        overload_backoff: float = 2.0,
        retry_delay: float = 1.0,
    ):
        self.provider = "openai" if is_openai_model(model_name) else "vertex"
        self.model_name = model_name
        self.max_attempts = max_attempts
        self.overload_backoff = overload_backoff
        self.retry_delay = retry_delay
        self._openai_params: Dict[str, Any] = {}

        if self.provider == "vertex":
            self._vertex = VertexAI(
                project=vertex_project,
                location=vertex_region,
                model_name=model_name,
                timeout=timeout,
                max_retries=0,
            )
            self._client = None
        else:
            self._vertex = None
            self.model_name, self._openai_params = parse_model_name(self.model_name)
            client_kwargs: Dict[str, Any] = {"max_retries": 0}
            if timeout is not None:
                client_kwargs["timeout"] = timeout
            self._client = OpenAI(**client_kwargs)

    def _invoke_once(self, prompt: str) -> str:
        """
        Single HTTP call without retries/backoff.
        """
        if self.provider == "vertex":
            resp = self._vertex.invoke(prompt)
            if isinstance(resp, str):
                return resp
            return getattr(resp, "content", str(resp))

        resp = self._client.responses.create(
            model=self.model_name,
            input=prompt,
            **self._openai_params,
        )
        text = getattr(resp, "output_text", "") or ""
        return text.strip()

    def generate(self, prompt: str) -> str:
        """
        Synchronous call with overload backoff + retries. Raises GenerationError.
        """
        logger.info(f"[AI] Requesting {self.model_name} ({self.provider})...")
        return call_with_retries_sync(
            lambda: self._invoke_once(prompt),
            max_attempts=self.max_attempts,
            overload_backoff=self.overload_backoff,
            retry_delay=self.retry_delay,
            log=lambda msg: logger.warning(f"[LLM-RETRY] {msg}"),
        )
