"""
Corpus Loader
=============

Discovery of skill documents under a corpus root and async file reading.
"""

from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, List, Optional, Union

import aiofiles

from skilldocs.config.logging import get_logger
from skilldocs.core.errors import CorpusNotFoundError

logger = get_logger(__name__)


def is_excluded(relative: str, exclude: Iterable[str]) -> bool:
    """Whether a root-relative POSIX path matches any exclude pattern."""
    candidates = (relative, f"./{relative}")
    return any(fnmatch(candidate, pattern) for pattern in exclude for candidate in candidates)


def discover_files(
    root: Union[str, Path],
    include: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None,
) -> List[Path]:
    """
    Find skill documents under a corpus root.

    Args:
        root: Corpus directory, or a single file
        include: Glob patterns relative to root (default: all Markdown files)
        exclude: fnmatch patterns matched against root-relative paths

    Returns:
        Sorted, de-duplicated list of file paths

    Raises:
        CorpusNotFoundError: If root does not exist
    """
    root = Path(root)
    if not root.exists():
        raise CorpusNotFoundError(str(root))

    if root.is_file():
        return [root]

    include = list(include) if include is not None else ["**/*.md"]
    exclude = list(exclude) if exclude is not None else []

    found = set()
    for pattern in include:
        for path in root.glob(pattern):
            if not path.is_file():
                continue
            if is_excluded(path.relative_to(root).as_posix(), exclude):
                continue
            found.add(path)

    files = sorted(found)
    logger.debug("Discovered skill documents", root=str(root), count=len(files))
    return files


async def read_document(path: Union[str, Path]) -> str:
    """
    Read a document as UTF-8 text.

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not valid UTF-8
    """
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        return await f.read()
