"""Path management utilities for forge-deployments library."""

from pathlib import Path
from typing import List, Optional, Union


def get_project_root(project_root: Optional[Union[Path, str]] = None) -> Path:
    """
    Resolve the project root.

    Args:
        project_root: Custom project directory (defaults to the current directory)

    Returns:
        Absolute path to the project root
    """
    if project_root is None:
        return Path.cwd()
    return Path(project_root).absolute()


def get_artifact_dir(
    network: str, project_root: Optional[Union[Path, str]] = None
) -> Path:
    """
    Get the deployment record directory for a network.

    Returns:
        Path to {project_root}/build/abi/{network}
    """
    return get_project_root(project_root) / "build" / "abi" / network


def get_compiled_artifact_paths(
    contract_name: str, project_root: Optional[Union[Path, str]] = None
) -> List[Path]:
    """
    Get candidate paths of the compiled artifact for a contract, in lookup order.

    The project's configured build/out directory comes first, then Foundry's
    default out/ directory.
    """
    root = get_project_root(project_root)
    return [
        root / out_dir / f"{contract_name}.sol" / f"{contract_name}.json"
        for out_dir in (Path("build") / "out", Path("out"))
    ]


def get_broadcast_dirs(project_root: Optional[Union[Path, str]] = None) -> List[Path]:
    """
    Get the directories where forge keeps local broadcast bookkeeping.

    Returns:
        [{project_root}/broadcast, {project_root}/cache]
    """
    root = get_project_root(project_root)
    return [root / "broadcast", root / "cache"]
