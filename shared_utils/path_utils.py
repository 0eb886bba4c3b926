"""
Path utilities for the forest carbon estimation tools.

Author: Diego Bengochea
"""

from pathlib import Path
from typing import Optional, Union


def ensure_directory(path: Union[str, Path], parents: bool = True) -> Path:
    """
    Ensure directory exists, creating it if necessary.

    Args:
        path: Directory path to create
        parents: Whether to create parent directories

    Returns:
        Path: Created directory path

    Examples:
        >>> output_dir = ensure_directory("results/carbon")
    """
    path = Path(path)
    path.mkdir(parents=parents, exist_ok=True)
    return path


def resolve_path(path: Union[str, Path], base_path: Optional[Union[str, Path]] = None) -> Path:
    """
    Resolve path to absolute path, optionally relative to base_path.

    Args:
        path: Path to resolve
        base_path: Base path for relative resolution (default: current directory)

    Returns:
        Path: Resolved absolute path
    """
    path = Path(path).expanduser()

    if path.is_absolute():
        return path

    if base_path:
        return (Path(base_path) / path).resolve()

    return path.resolve()
