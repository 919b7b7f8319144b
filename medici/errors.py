# errors.py
"""
Custom exception classes with improved error messages for Medici

All exceptions include:
- Clear error description
- Actionable suggestions
- Relevant context

Every failure aborts the current run; there is no partial-success mode.
"""
from pathlib import Path
from typing import Optional, Dict, Any, List


class MediciError(Exception):
    """Base exception for all Medici errors"""

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        self.cause = cause
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error with all details"""
        lines = [
            "",
            "=" * 70,
            f"❌ {self.__class__.__name__}",
            "=" * 70,
            "",
            self.message,
        ]

        if self.context:
            lines.append("")
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestion:
            lines.append("")
            lines.append("💡 Suggestion:")
            lines.append(f"  {self.suggestion}")

        if self.cause:
            lines.append("")
            lines.append(f"Caused by: {type(self.cause).__name__}: {self.cause}")

        lines.append("")
        lines.append("=" * 70)
        lines.append("")

        return "\n".join(lines)


class ConfigurationError(MediciError):
    """Configuration is missing or invalid"""
    pass


class ValidationError(MediciError):
    """A question violates a structural rule"""

    def __init__(self, message: str, question_id: Any = None, rule: Optional[str] = None, **kwargs):
        self.question_id = question_id
        self.rule = rule
        super().__init__(message, **kwargs)


class LoadError(MediciError):
    """A course file could not be read or parsed"""
    pass


class SnapshotError(MediciError):
    """Remote sync metadata is unreadable or malformed"""
    pass


class TransportError(MediciError):
    """Pushing the changeset to the remote store failed"""
    pass


# Validation rule names

RULE_OPTION_COUNT = "option count out of [2,5]"
RULE_CORRECT_COUNT = "correct option count != 1"


# Specific error factory functions

def _question_context(question_id: Any, rule: str, course_key: Optional[str]) -> Dict[str, Any]:
    context: Dict[str, Any] = {}
    if course_key:
        context["course"] = course_key
    context["question_id"] = str(question_id)
    context["rule"] = rule
    return context


def option_count_error(question_id: Any, count: int, course_key: Optional[str] = None) -> ValidationError:
    """Create error for a question with too few or too many options"""
    context = _question_context(question_id, RULE_OPTION_COUNT, course_key)
    context["option_count"] = count
    return ValidationError(
        message=f"Question {question_id} has {count} option(s)",
        question_id=question_id,
        rule=RULE_OPTION_COUNT,
        suggestion=(
            "Every question needs between 2 and 5 options.\n"
            "  Add or remove options in the course file, then run: medici format"
        ),
        context=context
    )


def correct_count_error(question_id: Any, count: int, course_key: Optional[str] = None) -> ValidationError:
    """Create error for a question without exactly one correct option"""
    context = _question_context(question_id, RULE_CORRECT_COUNT, course_key)
    context["correct_count"] = count
    return ValidationError(
        message=f"Question {question_id} has {count} correct options",
        question_id=question_id,
        rule=RULE_CORRECT_COUNT,
        suggestion=(
            "Mark exactly one option as correct:\n"
            '  {"text": "...", "correct": true}'
        ),
        context=context
    )


def course_file_error(
    file_path: Path,
    problem: str,
    field: Optional[str] = None,
    cause: Optional[Exception] = None
) -> LoadError:
    """Create error for a course file that cannot be parsed"""
    context: Dict[str, Any] = {"file": str(file_path)}
    if field:
        context["field"] = field
    return LoadError(
        message=f"Invalid course file {file_path.name}: {problem}",
        suggestion=(
            "Fix the course file and run again. Expected layout:\n"
            '  {"name": "...", "short_name": "...", "questions": [...]}'
        ),
        context=context,
        cause=cause
    )


def duplicate_id_error(kind: str, entity_id: Any, paths: List[Path]) -> LoadError:
    """Create error for an id used by two different questions or options"""
    files = sorted({Path(p).name for p in paths})
    return LoadError(
        message=f"Duplicate {kind} id {entity_id} in {', '.join(files)}",
        suggestion=(
            f"Every {kind} needs its own id. Remove the \"id\" from the copy\n"
            "  and run: medici format"
        ),
        context={"id": str(entity_id), "kind": kind, "files": files},
    )


def data_dir_error(data_path: Path, problem: str, cause: Optional[Exception] = None) -> LoadError:
    """Create error when the data directory cannot be walked"""
    return LoadError(
        message=f"Cannot read data directory: {problem}",
        suggestion=(
            "Point --data-path at a directory holding one <course>.json per course,\n"
            "or set data_path in medici.yaml"
        ),
        context={"data_path": str(data_path)},
        cause=cause
    )


def malformed_snapshot_error(problem: str, cause: Optional[Exception] = None) -> SnapshotError:
    """Create error for sync metadata that cannot be used as a diff baseline"""
    return SnapshotError(
        message=f"Remote sync metadata is malformed: {problem}",
        suggestion=(
            "The diff needs a complete snapshot. Check that the remote store\n"
            "  is reachable and serves courses/questions/options/evaluations metadata"
        ),
        context={"problem": problem},
        cause=cause
    )


def remote_request_error(
    error_cls: type,
    action: str,
    url: str,
    status_code: Optional[int] = None,
    cause: Optional[Exception] = None
) -> MediciError:
    """Create error for a failed request to the remote store"""
    context: Dict[str, Any] = {"url": url}
    if status_code is not None:
        context["status_code"] = status_code
    return error_cls(
        message=f"Remote store request failed while trying to {action}",
        suggestion=(
            "Nothing is retried. Check api_url and api_key, then run the\n"
            "  whole command again: medici sync"
        ),
        context=context,
        cause=cause
    )


def missing_credentials_error(expected_path: Path, missing: List[str]) -> ConfigurationError:
    """Create error for missing remote store credentials"""
    return ConfigurationError(
        message="Remote store credentials not found",
        suggestion=(
            "Set MEDICI_API_URL and MEDICI_API_KEY, or create a credentials file at:\n"
            f"  {expected_path}\n\n"
            "Contents:\n"
            '  API_KEY = "your_token_here"\n'
            '  API_URL = "https://medici.example.com/api"'
        ),
        context={
            "expected_path": str(expected_path),
            "missing": missing,
            "env_var": "MEDICI_CREDENTIAL_FILE"
        }
    )
