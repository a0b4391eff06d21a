"""
Datumflow Core: Error taxonomy.

Every error raised by the engine derives from DatumflowError and carries a
stable ErrorCode plus structured details (offending alias, repo, kind...) so a
transport layer can build an actionable message without parsing strings.

Hierarchy:
    DatumflowError
    ├── ValidationError          bad spec shape, raised before any resolution
    ├── ResolutionError          naming / file-listing failures for one atom
    ├── EmptyEnumeration         the combined enumeration has no datums
    ├── OutOfRange               cursor moved past either end
    └── NotMounted               session operation without a mounted spec
"""
from typing import Any, Dict, Optional

from datumflow.core.constants import ErrorCode


class DatumflowError(Exception):
    """Base exception for datumflow errors."""

    error_code = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        **details: Any,
    ):
        """Initialize error.

        Args:
            message: Human readable message
            error_code: Overrides the class error code
            **details: Structured details for the calling layer
        """
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        """Serializable representation of the error."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "error_code": int(self.error_code),
            "details": dict(self.details),
        }


# =============================================================================
# Validation
# =============================================================================


class ValidationError(DatumflowError):
    """Input spec is structurally invalid."""

    error_code = ErrorCode.INVALID_INPUT


class MissingRepo(ValidationError):
    def __init__(self, glob: str = ""):
        super().__init__("repo must be specified", glob=glob)


class MissingGlob(ValidationError):
    def __init__(self, repo: str):
        super().__init__(f"glob must be specified for repo '{repo}'", repo=repo)


class CommitNotAllowed(ValidationError):
    def __init__(self, repo: str, commit: str):
        super().__init__(
            f"commit cannot be specified for repo '{repo}'; inputs always use the branch head",
            repo=repo,
            commit=commit,
        )


class DuplicateAlias(ValidationError):
    def __init__(self, alias: str):
        super().__init__(
            f"name '{alias}' used more than once; set a unique 'name' on each input",
            alias=alias,
        )
        self.alias = alias


class UnsupportedInputKind(ValidationError):
    def __init__(self, kind: str):
        super().__init__(f"unsupported input kind '{kind}'", kind=kind)
        self.kind = kind


class OutputRepoNeedsAlias(ValidationError):
    def __init__(self, repo: str):
        super().__init__(f"name must be specified for repo '{repo}'", repo=repo)
        self.repo = repo


class UnknownField(ValidationError):
    def __init__(self, field: str, kind: str = "pfs"):
        super().__init__(f"unknown field '{field}' in '{kind}' input", field=field, kind=kind)


class EmptyCombinator(ValidationError):
    def __init__(self, kind: str):
        super().__init__(f"'{kind}' input must have at least one child", kind=kind)


class InvalidGlob(ValidationError):
    def __init__(self, glob: str, reason: str):
        super().__init__(f"invalid glob '{glob}': {reason}", glob=glob, reason=reason)


class MissingJoinOn(ValidationError):
    def __init__(self, alias: str):
        super().__init__(f"join input '{alias}' must specify join_on", alias=alias)


class MissingGroupBy(ValidationError):
    def __init__(self, alias: str):
        super().__init__(f"group input '{alias}' must specify group_by", alias=alias)


class InvalidKeyTemplate(ValidationError):
    def __init__(self, alias: str, template: str, group_count: int):
        super().__init__(
            f"key template '{template}' for '{alias}' references a capture group "
            f"that its glob does not define ({group_count} group(s))",
            alias=alias,
            template=template,
            group_count=group_count,
        )


# =============================================================================
# Resolution
# =============================================================================


class ResolutionError(DatumflowError):
    """An atom could not be resolved against the repository services."""

    error_code = ErrorCode.DEPENDENCY_ERROR

    def __init__(self, message: str, alias: str, error_code: Optional[ErrorCode] = None, **details: Any):
        super().__init__(message, error_code, alias=alias, **details)
        self.alias = alias


class RepoNotFound(ResolutionError):
    error_code = ErrorCode.NOT_FOUND

    def __init__(self, project: str, repo: str, alias: Optional[str] = None):
        super().__init__(
            f"repo '{project}/{repo}' not found",
            alias=alias or repo,
            project=project,
            repo=repo,
        )


class BranchNotFound(ResolutionError):
    error_code = ErrorCode.NOT_FOUND

    def __init__(self, project: str, repo: str, branch: str, alias: Optional[str] = None):
        super().__init__(
            f"branch '{branch}' not found in repo '{project}/{repo}'",
            alias=alias or repo,
            project=project,
            repo=repo,
            branch=branch,
        )


class ServiceError(ResolutionError):
    """A collaborator service failed while resolving an atom."""

    def __init__(self, alias: str, cause: BaseException):
        super().__init__(
            f"resolving input '{alias}' failed: {cause}",
            alias=alias,
            cause=type(cause).__name__,
        )
        self.cause = cause


# =============================================================================
# Enumeration / session
# =============================================================================


class EmptyEnumeration(DatumflowError):
    error_code = ErrorCode.EMPTY

    def __init__(self):
        super().__init__("spec produces zero datums; nothing to mount")


class OutOfRange(DatumflowError):
    error_code = ErrorCode.OUT_OF_RANGE

    def __init__(self, index: int, known_count: int, count_is_final: bool = True):
        super().__init__(
            f"datum index {index} is out of range ({known_count} datum(s) known)",
            index=index,
            known_count=known_count,
            count_is_final=count_is_final,
        )


class NotMounted(DatumflowError):
    error_code = ErrorCode.CONFLICT

    def __init__(self, operation: str):
        super().__init__(f"cannot {operation}: no datums are mounted", operation=operation)


class ConfigError(DatumflowError):
    """Configuration error."""

    error_code = ErrorCode.INVALID_INPUT
