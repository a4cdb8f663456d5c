"""Import resolution: mapping dotted module names to files and back."""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple


def resolve_module(name: str, search_paths: Sequence[Path]) -> Optional[Path]:
    """
    Resolve a dotted module name to a source file.

    Tries each search path in order, first as a plain module
    (``a/b.py``) and then as a package (``a/b/__init__.py``).

    Args:
        name: Absolute dotted module name, e.g. ``mage.core``.
        search_paths: Import roots, highest priority first.

    Returns:
        Resolved Path if a file exists, None otherwise.
    """
    if not name:
        return None

    parts = name.split(".")
    if any(not part.isidentifier() for part in parts):
        return None

    for search_path in search_paths:
        base = search_path.joinpath(*parts)

        candidate = base.with_name(base.name + ".py")
        if candidate.is_file():
            return candidate.resolve()

        candidate = base / "__init__.py"
        if candidate.is_file():
            return candidate.resolve()

    return None


def module_name_for_path(file_path: Path, search_paths: Sequence[Path]) -> Tuple[str, bool]:
    """
    Compute the dotted module name of a file.

    The first search path containing the file wins. Files outside every
    search path are named after their stem.

    Returns:
        Tuple of (module name, whether the file is a package ``__init__``).
    """
    file_path = file_path.resolve()
    is_package = file_path.name == "__init__.py"

    for search_path in search_paths:
        if not _is_within_repo(file_path, search_path):
            continue
        relative = file_path.relative_to(search_path.resolve())
        parts = list(relative.parent.parts) if is_package else list(relative.with_suffix("").parts)
        if parts:
            return ".".join(parts), is_package

    return (file_path.parent.name if is_package else file_path.stem), is_package


def resolve_relative_import(
    current_module: str,
    is_package: bool,
    level: int,
    module: Optional[str],
) -> Optional[str]:
    """
    Turn a relative import into an absolute dotted name.

    ``from .. import x`` inside ``modules.test.commands.wait`` refers to
    ``modules.test``.

    Returns:
        The absolute module name, or None if the import climbs above the
        top-level package.
    """
    if level == 0:
        return module

    package: List[str] = current_module.split(".")
    if not is_package:
        package = package[:-1]

    if level - 1 > len(package):
        return None
    if level > 1:
        package = package[:len(package) - (level - 1)]

    if module:
        package.extend(module.split("."))

    if not package:
        return None
    return ".".join(package)


def parent_packages(name: str) -> List[str]:
    """Return the enclosing package names of a module, outermost first."""
    parts = name.split(".")
    return [".".join(parts[:i]) for i in range(1, len(parts))]


def _is_within_repo(path: Path, root: Path) -> bool:
    """Check if a path is within the given root directory."""
    try:
        path.resolve().relative_to(root.resolve())
        return True
    except ValueError:
        return False
