# modeforge/errors.py


class GenerationError(Exception):
    """
    Text-generation collaborator unreachable, or all retry attempts exhausted.
    The message carries the last provider diagnostic verbatim.
    """
    pass


class VerificationSkipped(Exception):
    pass


class BuildError(Exception):
    """
    Toolchain exited non-zero (or could not run at all).

    `output` is the tail of the captured compiler output, already truncated.
    """

    def __init__(self, output: str, message: str = "Compilation Failed"):
        super().__init__(f"{message}: {output}" if output else message)
        self.output = output


class NotFoundError(Exception):
    pass


class ParseError(Exception):
    pass


class InvalidTransition(ValueError):
    pass
