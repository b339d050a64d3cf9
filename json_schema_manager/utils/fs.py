# Copyright 2025 TIER IV, inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Filesystem helpers shared by the registry, searcher and watcher."""

import os
from pathlib import Path
from typing import List, Union

PathLike = Union[str, os.PathLike]


def canonical_path(path: PathLike) -> Path:
    """Absolute path with symlinks resolved. Raises OSError if it does not exist."""
    return Path(path).expanduser().resolve(strict=True)


def is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def uint_subdirectories(directory: PathLike) -> List[int]:
    """Return the sorted numeric names of the sub directories of ``directory``.

    Entries that are not directories, or whose name is not a plain decimal
    number without leading zeros, are ignored.  Read errors propagate.
    """
    result = []
    with os.scandir(directory) as entries:
        for entry in entries:
            name = entry.name
            if entry.is_dir() and name.isascii() and name.isdigit() and (name == "0" or name[0] != "0"):
                result.append(int(name))
    return sorted(result)
