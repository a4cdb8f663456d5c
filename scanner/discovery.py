"""Source discovery and path-convention classification."""

import logging
from pathlib import Path, PurePosixPath
from typing import Iterator, List, Optional, Set


logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = {".py"}
DEFAULT_EXCLUDE_DIRS = {
    ".git", ".hg", ".svn",
    "node_modules", "__pycache__", ".tox", ".nox",
    "venv", ".venv", "env", ".env",
    ".idea", ".vscode",
    "build", "dist", ".eggs", "*.egg-info",
}
# Module directories may carry any name, so only cache directories are
# skipped below the module root.
COMMAND_EXCLUDE_DIRS = {"__pycache__"}


def iter_files(
    root: Path,
    include_ext: Optional[Set[str]] = None,
    exclude_dirs: Optional[Set[str]] = None,
    max_depth: Optional[int] = None,
) -> Iterator[Path]:
    """
    Iterate over files in a directory tree, in sorted order.

    Args:
        root: Root directory to scan.
        include_ext: Set of file extensions to include. Defaults to ``.py``.
        exclude_dirs: Set of directory names to skip.
                     If None, uses DEFAULT_EXCLUDE_DIRS.
        max_depth: Maximum depth to descend. None means unlimited.

    Yields:
        Path objects for matching files.
    """
    if include_ext is None:
        include_ext = DEFAULT_EXTENSIONS
    if exclude_dirs is None:
        exclude_dirs = DEFAULT_EXCLUDE_DIRS

    root = root.resolve()

    def _walk(current: Path, depth: int) -> Iterator[Path]:
        if max_depth is not None and depth > max_depth:
            return

        try:
            entries = sorted(current.iterdir())
        except PermissionError:
            return

        for entry in entries:
            if entry.is_dir():
                if entry.name in exclude_dirs:
                    continue
                if any(entry.name.endswith(pat.lstrip("*")) for pat in exclude_dirs if pat.startswith("*")):
                    continue
                yield from _walk(entry, depth + 1)
            elif entry.is_file():
                if entry.suffix.lower() in include_ext:
                    yield entry

    yield from _walk(root, 0)


def get_relative_path(file_path: Path, root: Path) -> Path:
    """Get the path relative to root, handling edge cases."""
    try:
        return file_path.resolve().relative_to(root.resolve())
    except ValueError:
        return file_path


class SourceLayout:
    """
    Path conventions of a service project.

    ``<module_root>/<module>/...`` marks module membership and
    ``<module_root>/<module>/<commands_dir>/<command>.py`` marks a command
    endpoint file.
    """

    def __init__(self, root: Path, module_root: str = "modules", commands_dir: str = "commands"):
        self.root = root.resolve()
        self.module_root = PurePosixPath(module_root.replace("\\", "/").strip("/"))
        self.commands_dir = commands_dir

    @property
    def module_root_path(self) -> Path:
        return self.root.joinpath(*self.module_root.parts)

    def tokens(self, file_path: Path) -> List[str]:
        """Split the project-relative path of a file into segments."""
        return list(get_relative_path(file_path, self.root).parts)

    def is_module_file(self, file_path: Path) -> bool:
        """Check if a file lies inside some module directory."""
        prefix = list(self.module_root.parts)
        tokens = self.tokens(file_path)
        return len(tokens) > len(prefix) + 1 and tokens[:len(prefix)] == prefix

    def module_name(self, file_path: Path) -> str:
        """Module name of a module file: the segment right below the module root."""
        return self.tokens(file_path)[len(self.module_root.parts)]

    def is_command_file(self, file_path: Path) -> bool:
        depth = len(self.module_root.parts)
        tokens = self.tokens(file_path)
        return (
            self.is_module_file(file_path)
            and len(tokens) == depth + 3
            and tokens[depth + 1] == self.commands_dir
            and file_path.suffix == ".py"
            and file_path.name != "__init__.py"
        )

    def command_name(self, file_path: Path) -> str:
        return Path(self.tokens(file_path)[len(self.module_root.parts) + 2]).stem

    def relative(self, file_path: Path) -> str:
        return get_relative_path(file_path, self.root).as_posix()


def find_command_files(layout: SourceLayout, exclude_dirs: Optional[Set[str]] = None) -> List[Path]:
    """
    Discover all command endpoint files of a project.

    Returns an empty list, and logs a warning, when the module root does
    not exist or contains no command files.
    """
    module_root = layout.module_root_path
    if not module_root.is_dir():
        logger.warning("Module root %s does not exist; no modules will be found", module_root)
        return []

    if exclude_dirs is None:
        exclude_dirs = COMMAND_EXCLUDE_DIRS

    files = [
        path
        for path in iter_files(module_root, exclude_dirs=exclude_dirs, max_depth=2)
        if layout.is_command_file(path)
    ]

    if not files:
        logger.warning(
            "No command files found under %s/*/%s",
            layout.relative(module_root),
            layout.commands_dir,
        )
    else:
        logger.info("Found %d command files under %s", len(files), layout.relative(module_root))

    return files
