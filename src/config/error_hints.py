"""Error hints for policy validation errors.

Provides user-friendly hints with actionable remediation steps
for common validation errors.
"""

from typing import Final


ERROR_HINTS: Final[dict[str, str]] = {
    "missing": "This field is required. Please add it to your policy file.",
    "int_type": "This field must be an integer (whole number).",
    "float_type": "This field must be a number.",
    "string_type": "This field must be a text string.",
    "bool_type": "This field must be true or false.",
    "list_type": "This field must be a list/array.",
    "dict_type": "This field must be an object/mapping.",
    "extra_forbidden": "Unknown key. Check the spelling against the policy schema.",
    "greater_than": "The value is too small. It must be above the minimum.",
    "greater_than_equal": "The value is too small. Check the minimum allowed.",
    "less_than_equal": "The value is too large. Check the maximum allowed.",
    "too_short": "The list is empty. Add at least one entry.",
    "string_pattern_mismatch": "The format is invalid. Versions look like '1.0'.",
    "value_error": "Check the value against the documented constraints.",
    "file_not_found": "The file does not exist. Check MODERATION_POLICY_PATH.",
    "yaml_parse_error": "Invalid YAML syntax. Check for proper indentation and formatting.",
}

FIELD_HINTS: Final[dict[str, str]] = {
    "window_seconds": "Window length in seconds, e.g. 60 for per-minute limits.",
    "limits": "Map of integration class to max requests, must include 'default'.",
    "community_alignment_threshold": "A score between 0.0 and 1.0 (strict >).",
    "relevance_threshold": "A score between 0.0 and 1.0 (strict >).",
    "title_prefix_length": "Number of title characters compared, between 5 and 200.",
    "weights": "Six weights between 0.0 and 1.0, normally summing to 1.0.",
}


def get_error_hint(error_type: str, field_name: str | None = None) -> str:
    """Get a user-friendly hint for a validation error.

    Args:
        error_type: The Pydantic error type (e.g., 'missing', 'extra_forbidden').
        field_name: Optional dotted field path for field-specific hints.

    Returns:
        A user-friendly hint string.
    """
    if field_name:
        simple_field = field_name.split(".")[-1]
        if simple_field in FIELD_HINTS:
            return FIELD_HINTS[simple_field]

    return ERROR_HINTS.get(
        error_type, "Check the policy documentation for valid values."
    )
