"""Base exceptions shared across LearnLoop."""


class LearnLoopError(Exception):
    """Base class for all LearnLoop errors."""


class ContentNotFoundError(LearnLoopError):
    """A template, variation or question does not exist."""

    def __init__(self, kind: str, content_id: str):
        self.kind = kind
        self.content_id = content_id
        super().__init__(f"{kind.capitalize()} not found: {content_id}")


class FormulaError(LearnLoopError):
    """An answer formula is malformed or uses a disallowed construct."""
