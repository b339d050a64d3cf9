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

"""Change tracking interface used by incremental distribution builds."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

DEPLOY_TAG_PREFIX = "jsm-deploy"

# A git point in time: a tag name or a commit hash.
Revision = str


@dataclass(frozen=True)
class Change:
    path: str
    is_new: bool = False


class Gitter(ABC):
    """Repository operations needed to build only what changed since a deployment."""

    @abstractmethod
    def get_latest_anchor(self, env: str) -> Revision:
        """Latest deployment tag of ``env``, or the initial commit if there is none."""

    @abstractmethod
    def get_schema_changes(self, anchor: Revision, source_dir: str, suffix: str) -> List[Change]:
        """Files under ``source_dir`` ending in ``suffix`` changed between ``anchor`` and HEAD."""

    @abstractmethod
    def tag_deployment_success(self, env: str) -> str:
        """Create and push a deployment tag for ``env``. Returns the tag name."""
