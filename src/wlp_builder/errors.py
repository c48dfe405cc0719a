"""
Exceptions raised while building project manifests.

Two families:
- BoundaryError: bad input, bad template, bad configuration, failed packaging.
  Callers catch these at the edge and report them; the in-progress manifest
  is never touched when one is raised.
- InternalConsistencyError: a precondition of the transform itself was
  violated. These are defects and are never caught inside the package.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .validator import ValidationReport


class WLPBuilderError(Exception):
    """Base class for every error raised by wlp_builder"""


class BoundaryError(WLPBuilderError):
    """Recoverable error caused by something handed to the builder"""


class ConfigError(BoundaryError):
    """Invalid build settings or environment override"""


class InputDocumentError(BoundaryError):
    """The normalized scene document is malformed"""

    def __init__(self, message: str, source_file: Optional[str] = None,
                 report: Optional["ValidationReport"] = None):
        self.source_file = source_file
        self.report = report
        if source_file:
            message = f"{message} (asset: {source_file})"
        super().__init__(message)


class TemplateProjectError(BoundaryError):
    """A template project could not be read or parsed"""

    def __init__(self, message: str, template_path: Optional[str] = None):
        self.template_path = template_path
        if template_path:
            message = f"{message} (template: {template_path})"
        super().__init__(message)


class PackagingError(BoundaryError):
    """The packaging tool reported a failure"""

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.returncode = returncode
        super().__init__(message)


class InternalConsistencyError(WLPBuilderError):
    """A tree or allocator invariant was broken. Indicates a bug."""
