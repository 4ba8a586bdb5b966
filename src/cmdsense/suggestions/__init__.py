"""Command classification and suggestion parsing/validation."""

from cmdsense.suggestions.classifier import (
    PROJECT_COMMANDS,
    UNIVERSAL_COMMANDS,
    classify,
    filter_for_current_context,
    is_relevant_in_directory,
)
from cmdsense.suggestions.models import (
    AMBIGUOUS,
    PATH_DEPENDENT,
    REASON_MAX_LENGTH,
    UNIVERSAL,
    Ambiguous,
    CommandContextType,
    CommandSuggestion,
    PathDependent,
    ProjectSpecific,
    SuggestionSource,
    Universal,
    VersionControl,
    truncate_reason,
)
from cmdsense.suggestions.parsing import (
    MAX_SUGGESTIONS,
    decode_suggestions,
    find_json_array,
    parse_suggestions,
)
from cmdsense.suggestions.validation import default_path_exists, validate_suggestions_for_cwd

__all__ = [
    "AMBIGUOUS",
    "MAX_SUGGESTIONS",
    "PATH_DEPENDENT",
    "PROJECT_COMMANDS",
    "REASON_MAX_LENGTH",
    "UNIVERSAL",
    "UNIVERSAL_COMMANDS",
    "Ambiguous",
    "CommandContextType",
    "CommandSuggestion",
    "PathDependent",
    "ProjectSpecific",
    "SuggestionSource",
    "Universal",
    "VersionControl",
    "classify",
    "decode_suggestions",
    "default_path_exists",
    "filter_for_current_context",
    "find_json_array",
    "is_relevant_in_directory",
    "parse_suggestions",
    "truncate_reason",
    "validate_suggestions_for_cwd",
]
