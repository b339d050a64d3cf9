"""Tests for registry configuration loading and registry creation."""

import pytest
import yaml

from json_schema_manager.config import CONFIG_FILE_NAME, create_registry, load_config
from json_schema_manager.exceptions import (
    InvalidBooleanPropertyError,
    InvalidDefaultJSONSchemaVersionError,
    InvalidURLError,
    InvalidYAMLError,
    MissingConfigError,
    MissingPropertyError,
    MustHaveExactlyOneProductionEnvironmentError,
    RegistryExistsError,
    RegistryInitError,
    RegistryRootNotFolderError,
    UnknownEnvironmentError,
)
from json_schema_manager.schema.registry import ROOT_DIR_ENV_VAR, Registry
from json_schema_manager.validator import Draft, JsonschemaCompiler

SUPPORTED = [draft.value for draft in Draft]


def write_config(root, data):
    root.mkdir(parents=True, exist_ok=True)
    (root / CONFIG_FILE_NAME).write_text(yaml.safe_dump(data), encoding="utf-8")


def env(public="https://pub.example.com/", private="https://priv.example.com/", **flags):
    data = {"publicUrlRoot": public, "privateUrlRoot": private}
    data.update(flags)
    return data


class TestLoadConfig:
    def test_default_config_is_valid(self, tmp_path):
        create_registry(tmp_path / "reg")
        config = load_config(tmp_path / "reg", SUPPORTED)

        assert config.default_json_schema_version == Draft.DRAFT7.value
        assert set(config.environments) == {"dev", "prod"}
        assert config.production_env == "prod"
        assert config.environments["dev"].allow_schema_mutation
        assert not config.environments["prod"].allow_schema_mutation

    def test_url_root_follows_visibility(self, tmp_path):
        write_config(tmp_path, {"environments": {"prod": env(isProduction=True)}})
        prod = load_config(tmp_path, SUPPORTED).production_env_config()

        assert prod.url_root(True) == "https://pub.example.com/"
        assert prod.url_root(False) == "https://priv.example.com/"

    def test_missing_file(self, tmp_path):
        with pytest.raises(MissingConfigError):
            load_config(tmp_path, SUPPORTED)

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / CONFIG_FILE_NAME).write_text("environments: [unclosed", encoding="utf-8")
        with pytest.raises(InvalidYAMLError):
            load_config(tmp_path, SUPPORTED)

    def test_non_mapping_yaml(self, tmp_path):
        (tmp_path / CONFIG_FILE_NAME).write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(InvalidYAMLError):
            load_config(tmp_path, SUPPORTED)

    def test_unsupported_draft(self, tmp_path):
        write_config(
            tmp_path,
            {
                "defaultJsonSchemaVersion": "http://example.com/not-a-draft",
                "environments": {"prod": env(isProduction=True)},
            },
        )
        with pytest.raises(InvalidDefaultJSONSchemaVersionError):
            load_config(tmp_path, SUPPORTED)

    def test_missing_environments(self, tmp_path):
        write_config(tmp_path, {"defaultJsonSchemaVersion": Draft.DRAFT7.value})
        with pytest.raises(MissingPropertyError):
            load_config(tmp_path, SUPPORTED)

    def test_missing_url_root(self, tmp_path):
        write_config(
            tmp_path,
            {"environments": {"prod": {"publicUrlRoot": "https://a.example.com/", "isProduction": True}}},
        )
        with pytest.raises(MissingPropertyError) as excinfo:
            load_config(tmp_path, SUPPORTED)
        assert "privateUrlRoot" in str(excinfo.value)

    @pytest.mark.parametrize("url", ["http://insecure.example.com/", "https://", "not a url"])
    def test_url_roots_must_be_https(self, tmp_path, url):
        write_config(tmp_path, {"environments": {"prod": env(public=url, isProduction=True)}})
        with pytest.raises(InvalidURLError):
            load_config(tmp_path, SUPPORTED)

    @pytest.mark.parametrize("flags", [(False, False), (True, True)])
    def test_exactly_one_production_environment(self, tmp_path, flags):
        write_config(
            tmp_path,
            {"environments": {"a": env(isProduction=flags[0]), "b": env(isProduction=flags[1])}},
        )
        with pytest.raises(MustHaveExactlyOneProductionEnvironmentError):
            load_config(tmp_path, SUPPORTED)

    @pytest.mark.parametrize("prop", ["isProduction", "allowSchemaMutation"])
    def test_flags_must_be_booleans(self, tmp_path, prop):
        flags = {"isProduction": True, prop: "yes"}
        write_config(tmp_path, {"environments": {"prod": env(**flags)}})
        with pytest.raises(InvalidBooleanPropertyError) as excinfo:
            load_config(tmp_path, SUPPORTED)
        assert excinfo.value.prop == f"environments.prod.{prop}"


class TestCreateRegistry:
    def test_refuses_existing_registry(self, tmp_path):
        create_registry(tmp_path)
        with pytest.raises(RegistryExistsError):
            create_registry(tmp_path)


class TestRegistryInit:
    def test_root_from_environment(self, registry_root):
        registry = Registry(environ={ROOT_DIR_ENV_VAR: str(registry_root)})
        assert registry.root_directory == registry_root

    def test_no_root(self):
        with pytest.raises(RegistryInitError):
            Registry(environ={})

    def test_missing_root(self, tmp_path):
        with pytest.raises(RegistryInitError):
            Registry(tmp_path / "missing", environ={})

    def test_root_is_a_file(self, tmp_path):
        path = tmp_path / "file"
        path.write_text("x")
        with pytest.raises(RegistryRootNotFolderError):
            Registry(path, environ={})

    def test_uses_compiler_drafts(self, registry_root):
        registry = Registry(registry_root, compiler=JsonschemaCompiler(), environ={})
        assert registry.config.default_json_schema_version in registry.compiler.supported_schema_versions()

    def test_env_config(self, registry):
        assert registry.env_config().name == "prod"
        assert registry.env_config("dev").name == "dev"
        with pytest.raises(UnknownEnvironmentError):
            registry.env_config("staging")
