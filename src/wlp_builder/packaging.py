"""
Packaging hand-off.

A finished manifest is packaged by the target engine's editor running
headless. This module only builds the command line; running it is up to the
caller, who passes a run_command callable:

    def run(argv, cwd):
        return subprocess.run(argv, cwd=cwd).returncode

    package_project(PackagingRequest("build/output.wlp", working_dir="build"), run)

The editor comes from BuildSettings.editor_path (WLP_EDITOR_PATH) when the
request is made with PackagingRequest.from_settings().
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .config import BuildSettings
from .errors import PackagingError


logger = logging.getLogger(__name__)

DEFAULT_EDITOR_BIN = "WonderlandEditor"
DEFAULT_WINDOWS_EDITOR_PATH = f"C:\\Program Files\\Wonderland\\WonderlandEngine\\bin\\{DEFAULT_EDITOR_BIN}.exe"

# (argv, working directory) -> exit code
RunCommand = Callable[[List[str], Optional[str]], int]


def default_editor_path(platform: Optional[str] = None) -> str:
    if platform is None:
        platform = sys.platform
    return DEFAULT_WINDOWS_EDITOR_PATH if platform == "win32" else DEFAULT_EDITOR_BIN


@dataclass
class PackagingRequest:
    """Everything needed to package one project file"""
    project_path: str
    working_dir: Optional[str] = None
    editor_path: Optional[str] = None
    extra_args: List[str] = field(default_factory=list)

    @classmethod
    def from_settings(
        cls,
        project_path: str,
        settings: BuildSettings,
        working_dir: Optional[str] = None,
        extra_args: Optional[List[str]] = None,
    ) -> "PackagingRequest":
        """Request using the editor configured in the build settings"""
        return cls(
            project_path=project_path,
            working_dir=working_dir,
            editor_path=settings.editor_path,
            extra_args=list(extra_args or []),
        )

    def command(self) -> List[str]:
        editor = self.editor_path or default_editor_path()
        return [editor, "--project", self.project_path, "--package", "--windowless", *self.extra_args]

    def deploy_path(self, project_name: str) -> str:
        """Where the editor writes the packaged bin"""
        return os.path.join(self.working_dir or ".", "deploy", f"{project_name}.bin")


def package_project(request: PackagingRequest, run_command: RunCommand) -> List[str]:
    """
    Package a project with the injected runner.

    Returns:
        The command that was run

    Raises:
        PackagingError: The runner reported a non-zero exit code
    """
    argv = request.command()
    logger.info(f"Packaging project \"{request.project_path}\": {' '.join(argv)}")

    returncode = run_command(argv, request.working_dir)
    if returncode != 0:
        logger.error(f"Packaging failed with exit code {returncode}")
        raise PackagingError(
            f"Packaging \"{request.project_path}\" failed with exit code {returncode}",
            returncode,
        )

    logger.info("Done packaging")
    return argv
