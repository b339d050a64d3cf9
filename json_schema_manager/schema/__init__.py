"""Schema registry model: keys, versions, rendering, testing and watching.

Modules below here only depend on ``config``, ``validator`` and ``file_io``,
never on the CLI layer.
"""

from .key import Key, PathType
from .registry import ROOT_DIR_ENV_VAR, Registry
from .resolver import ResolvedTarget, TargetResolver
from .results import TestReport
from .schema import RenderInfo, Schema, TestDocType, TestInfo
from .searcher import Searcher
from .semver import ReleaseType, SemVer
from .spec import Spec
from .tester import Tester, TestScope

__all__ = [
    "Key",
    "PathType",
    "ROOT_DIR_ENV_VAR",
    "Registry",
    "ReleaseType",
    "RenderInfo",
    "ResolvedTarget",
    "Schema",
    "Searcher",
    "SemVer",
    "Spec",
    "TargetResolver",
    "TestDocType",
    "TestInfo",
    "TestReport",
    "TestScope",
    "Tester",
]
