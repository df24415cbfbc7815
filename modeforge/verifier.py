# modeforge/verifier.py

import logging

from modeforge.base_utils import BaseUtils
from modeforge.code_normalizer import CPP_FENCE_LANGUAGES
from modeforge.errors import GenerationError, VerificationSkipped
from modeforge.prompts import VERIFY_PROMPT

logger = logging.getLogger("modeforge")

# Review prompt carries at most this much source; longer files are truncated.
MAX_REVIEW_CHARS = 15000


class CodeVerifier(BaseUtils):
    """
    Second pipeline stage: ask the model to review/repair a generated firmware module.

    Best-effort by contract: when the review call fails the original source is returned
    unchanged, so verification never blocks artifact production.
    """

    def __init__(self, llm):
        self.llm = llm

    def build_prompt(self, source: str, class_name: str) -> str:
        return self.unsafe_string_format(
            VERIFY_PROMPT,
            print_unused_keys_report=False,
            code=source[:MAX_REVIEW_CHARS],
            class_name=class_name,
        )

    def review(self, source: str, class_name: str) -> str:
        """
        Strict variant: raises VerificationSkipped instead of falling back.
        """
        if self.llm is None:
            raise VerificationSkipped("no text-generation client configured")
        try:
            reviewed = self.llm.generate(self.build_prompt(source, class_name))
        except GenerationError as e:
            raise VerificationSkipped(str(e)) from e
        reviewed = self.clean_triple_backticks(reviewed, CPP_FENCE_LANGUAGES)
        if not reviewed.strip():
            raise VerificationSkipped("review returned an empty response")
        return reviewed

    def verify(self, source: str, class_name: str) -> str:
        try:
            return self.review(source, class_name)
        except VerificationSkipped as e:
            self.color_print(f"[VERIFY] C++ verification skipped, keeping original: {e}", color="yellow",
                             level=logging.WARNING)
            return source
