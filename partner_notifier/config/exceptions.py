"""Custom exceptions for configuration management."""

from typing import List, Optional

from pydantic import ValidationError


class ConfigurationError(Exception):
    """
    Startup configuration is missing or invalid.

    Collects every problem found while loading settings so that a single
    startup attempt reports all of them, together with hints for fixing them.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Args:
            message: Primary error message
            errors: Individual problems, reported as a numbered list
            suggestions: Hints to fix the errors
        """
        self.message = message
        self.errors = list(errors or [])
        self.suggestions = list(suggestions or [])
        super().__init__(self.render())

    @classmethod
    def from_validation_error(
        cls, error: ValidationError, suggestions: Optional[List[str]] = None
    ) -> "ConfigurationError":
        """Translate a pydantic ValidationError into one line per failing field."""
        lines = []
        for detail in error.errors():
            field_path = " -> ".join(str(loc) for loc in detail["loc"])
            if detail["type"] == "missing":
                lines.append(f"Missing required field: {field_path}")
            elif "enum" in detail["type"]:
                lines.append(f"Invalid value for '{field_path}': {detail['msg']}")
            else:
                lines.append(f"{field_path}: {detail['msg']}")
        return cls("Configuration validation failed", errors=lines, suggestions=suggestions)

    def render(self) -> str:
        lines = [self.message]
        if self.errors:
            lines.append("\nValidation Errors:")
            lines.extend(f"  {number}. {error}" for number, error in enumerate(self.errors, 1))
        if self.suggestions:
            lines.append("\nSuggestions:")
            lines.extend(f"  - {suggestion}" for suggestion in self.suggestions)
        return "\n".join(lines)
