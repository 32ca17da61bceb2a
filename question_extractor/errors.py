class ExtractionAttemptError(Exception):
    """A single extraction attempt failed; the next key may still succeed."""


class MalformedResponseError(ExtractionAttemptError):
    """The completion was not a JSON array of question objects."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class ExtractionError(Exception):
    """Every key in the pool was tried without a usable response."""

    def __init__(self, attempts: int, last_error: Exception):
        super().__init__(f"All {attempts} extraction attempts failed. Last error: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
