"""Error taxonomy shared by the validator, the oracle adapter, the stages and the workflow."""

# OracleError kinds
MALFORMED_OUTPUT = "malformed_output"
TIMEOUT = "timeout"
TRANSPORT_FAILURE = "transport_failure"

# StageError kinds
EMPTY_RESULT = "empty_result"
INCONSISTENT_SELECTION = "inconsistent_selection"
INVALID_DIAGRAM = "invalid_diagram"
BUSY = "busy"
ILLEGAL_TRANSITION = "illegal_transition"
SCHEMA_VIOLATION = "schema_violation"
ORACLE_FAILURE = "oracle_failure"
DUPLICATE_CANDIDATE = "duplicate_candidate"
INVALID_INTAKE = "invalid_intake"
INVALID_MESSAGE = "invalid_message"


class ValidationError(ValueError):
    """A JSON value does not conform to its expected shape.

    ``path`` locates the first offending field (``$.evaluations[0].speed``),
    ``expected_kind`` describes what the shape demanded and ``actual_kind``
    what was found instead.
    """

    def __init__(self, path: str, expected_kind: str, actual_kind: str):
        self.path = path
        self.expected_kind = expected_kind
        self.actual_kind = actual_kind
        super().__init__(f"{path}: expected {expected_kind}, got {actual_kind}")


class OracleError(RuntimeError):
    """A call to the reasoning oracle failed."""

    def __init__(self, kind: str, message: str):
        self.kind = kind
        super().__init__(message)


class StageError(RuntimeError):
    """A stage executor or workflow transition could not complete."""

    def __init__(self, kind: str, message: str, issues: list[str] | None = None):
        self.kind = kind
        self.issues = issues or []
        super().__init__(message)
