"""Exception hierarchy for graphcalc."""


class GraphCalcError(Exception):
    """Base class for every error raised by graphcalc."""


class ExpressionError(GraphCalcError):
    """An expression could not be parsed, compiled, evaluated or differentiated."""

    def __init__(self, message: str, text: str = ""):
        super().__init__(message)
        self.text = text


class AnalysisError(GraphCalcError):
    """An analysis tool could not run at all (as opposed to finding nothing)."""


class SceneError(GraphCalcError):
    """Bad scene operation: unknown id, wrong object kind, exhausted slider names."""
