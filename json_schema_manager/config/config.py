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

"""Registry configuration (``json-schema-manager-config.yml``)."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union
from urllib.parse import urlparse

import yaml

from ..exceptions import (
    InvalidBooleanPropertyError,
    InvalidDefaultJSONSchemaVersionError,
    InvalidURLError,
    InvalidYAMLError,
    MissingConfigError,
    MissingPropertyError,
    MustHaveExactlyOneProductionEnvironmentError,
    RegistryExistsError,
    UnknownEnvironmentError,
)
from ..file_io.template_renderer import TemplateRenderer
from ..validator.compiler import DEFAULT_DRAFT, Draft

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "json-schema-manager-config.yml"
CONFIG_TEMPLATE_NAME = "json-schema-manager-config.yml.jinja2"


@dataclass(frozen=True)
class EnvConfig:
    """URL roots and policy of one deployment environment."""

    name: str
    public_url_root: str
    private_url_root: str
    allow_schema_mutation: bool = False
    is_production: bool = False

    def url_root(self, is_public: bool) -> str:
        return self.public_url_root if is_public else self.private_url_root

    @classmethod
    def from_mapping(cls, name: str, data: Any) -> "EnvConfig":
        """Build and validate one entry of the ``environments`` mapping.

        Raises:
            MissingPropertyError: If a URL root is absent.
            InvalidURLError: If a URL root is not an https URL with a host.
            InvalidBooleanPropertyError: If a flag is present but not a boolean.
        """
        if not isinstance(data, dict):
            raise MissingPropertyError(f"environments.{name}.publicUrlRoot")
        public_root = _require_https(data, name, "publicUrlRoot")
        private_root = _require_https(data, name, "privateUrlRoot")
        return cls(
            name=name,
            public_url_root=public_root,
            private_url_root=private_root,
            allow_schema_mutation=_optional_bool(data, name, "allowSchemaMutation"),
            is_production=_optional_bool(data, name, "isProduction"),
        )


def _optional_bool(data: Dict[str, Any], env_name: str, prop: str) -> bool:
    value = data.get(prop, False)
    if not isinstance(value, bool):
        raise InvalidBooleanPropertyError(f"environments.{env_name}.{prop}", value)
    return value


def _require_https(data: Dict[str, Any], env_name: str, prop: str) -> str:
    qualified = f"environments.{env_name}.{prop}"
    value = data.get(prop)
    if value is None or value == "":
        raise MissingPropertyError(qualified)
    if not isinstance(value, str):
        raise InvalidURLError(qualified, value)
    parsed = urlparse(value)
    if parsed.scheme != "https" or not parsed.netloc:
        raise InvalidURLError(qualified, value)
    return value


@dataclass
class Config:
    """Parsed registry configuration."""

    environments: Dict[str, EnvConfig]
    default_json_schema_version: str = DEFAULT_DRAFT.value
    production_env: str = ""
    source_path: Optional[Path] = field(default=None, compare=False)

    def env_config(self, name: str) -> EnvConfig:
        try:
            return self.environments[name]
        except KeyError:
            raise UnknownEnvironmentError(name, self.environments) from None

    def production_env_config(self) -> EnvConfig:
        return self.environments[self.production_env]

    @classmethod
    def from_mapping(cls, data: Dict[str, Any], supported_drafts: Iterable[str]) -> "Config":
        """Validate raw YAML data.

        Checks run in a fixed order: default draft, environments present,
        each environment's URL roots, then exactly one production environment.
        """
        supported = list(supported_drafts)
        draft = data.get("defaultJsonSchemaVersion") or DEFAULT_DRAFT.value
        if draft not in supported:
            raise InvalidDefaultJSONSchemaVersionError(draft, supported)

        raw_envs = data.get("environments")
        if not isinstance(raw_envs, dict) or not raw_envs:
            raise MissingPropertyError("environments")

        environments: Dict[str, EnvConfig] = {}
        for name, env_data in raw_envs.items():
            environments[str(name)] = EnvConfig.from_mapping(str(name), env_data)

        production = [env.name for env in environments.values() if env.is_production]
        if len(production) != 1:
            raise MustHaveExactlyOneProductionEnvironmentError(len(production))

        return cls(
            environments=environments,
            default_json_schema_version=draft,
            production_env=production[0],
        )


def config_path(root_dir: Union[str, Path]) -> Path:
    return Path(root_dir) / CONFIG_FILE_NAME


def load_config(root_dir: Union[str, Path], supported_drafts: Iterable[str]) -> Config:
    """Load and validate the configuration file of a registry.

    Args:
        root_dir: Registry root directory.
        supported_drafts: Meta-schema URIs the active compiler supports.

    Returns:
        The validated :class:`Config`.

    Raises:
        MissingConfigError: If the file does not exist.
        InvalidYAMLError: If the file is not a YAML mapping.
        ConfigError: If validation fails.
    """
    path = config_path(root_dir)
    if not path.is_file():
        raise MissingConfigError(path)

    logger.debug(f"Loading registry configuration: {path}")
    try:
        with open(path, "r", encoding="utf-8") as stream:
            data = yaml.safe_load(stream)
    except yaml.YAMLError as exc:
        raise InvalidYAMLError(path, str(exc)) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidYAMLError(path, f"expected a mapping, got {type(data).__name__}")

    config = Config.from_mapping(data, supported_drafts)
    config.source_path = path
    return config


def create_registry(root_dir: Union[str, Path]) -> Path:
    """Create a registry directory with the default configuration.

    Returns:
        Path of the written configuration file.

    Raises:
        RegistryExistsError: If a configuration already exists there.
    """
    root = Path(root_dir).expanduser().absolute()
    path = config_path(root)
    if path.exists():
        raise RegistryExistsError(path)

    root.mkdir(parents=True, exist_ok=True)
    renderer = TemplateRenderer()
    try:
        renderer.render_template_to_file(
            CONFIG_TEMPLATE_NAME,
            str(path),
            supported_drafts=[d.value for d in Draft],
            default_draft=DEFAULT_DRAFT.value,
        )
    except FileExistsError:
        raise RegistryExistsError(path) from None
    logger.debug(f"Wrote default configuration: {path}")
    return path
