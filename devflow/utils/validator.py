"""Input validation — checks the intake before any oracle call is made."""

from devflow.state import Intake

INTAKE_FIELDS = ("problem", "target_user", "output_format", "constraints")
MIN_PROBLEM_CHARS = 6
MIN_TARGET_USER_CHARS = 3


def validate_intake(intake: dict) -> Intake:
    """Validate the four intake fields.

    Returns a new intake with every field stripped.
    Raises ValueError if a field is missing or not a string, if the problem
    statement is 5 characters or shorter, or if the target user is 2
    characters or shorter.
    """
    if not isinstance(intake, dict):
        raise ValueError("Intake must be a mapping of problem, target_user, output_format, constraints.")

    cleaned = {}
    for field in INTAKE_FIELDS:
        value = intake.get(field)
        if not isinstance(value, str):
            raise ValueError(f"Intake field '{field}' must be a string.")
        cleaned[field] = value.strip()

    if len(cleaned["problem"]) < MIN_PROBLEM_CHARS:
        raise ValueError("Describe the problem in more than 5 characters.")
    if len(cleaned["target_user"]) < MIN_TARGET_USER_CHARS:
        raise ValueError("Describe the target user in more than 2 characters.")

    return cleaned
