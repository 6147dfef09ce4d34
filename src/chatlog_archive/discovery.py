"""File discovery for the archive's store files."""

import os
import re
from pathlib import Path
from typing import List, Union

MESSAGE_FILE_PATTERN = r"^message_([0-9]?[0-9])?\.db$"
CONTACT_FILE_PATTERN = r"^contact\.db$"
SESSION_FILE_PATTERN = r"^session\.db$"
MEDIA_FILE_PATTERN = r"^hardlink\.db$"


def find_files(root: Union[str, Path], pattern: str, recursive: bool = True) -> List[Path]:
    """Return files under ``root`` whose name matches ``pattern``.

    Directories are walked in sorted order so discovery order is stable across
    runs; matches inside one directory are sorted by name.
    """
    root = Path(root).expanduser()
    if not root.is_dir():
        return []

    regex = re.compile(pattern)
    found: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            if regex.match(name):
                found.append(Path(dirpath) / name)
        if not recursive:
            break
    return found
