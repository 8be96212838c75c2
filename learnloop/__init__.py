"""LearnLoop: AI-assisted question authoring, review and practice."""

__version__ = "0.1.0"
