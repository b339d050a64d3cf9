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

"""Custom exceptions for the JSON Schema Manager."""

from typing import Iterable, Optional


class JsonSchemaManagerError(Exception):
    """Base exception for schema-manager related errors."""
    pass


# ---- (a) invalid input -------------------------------------------------------


class InvalidInputError(JsonSchemaManagerError):
    """Exception raised for malformed user input."""
    pass


class InvalidSchemaKeyCharactersError(InvalidInputError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"schema key '{value}' must contain only [a-z], [0-9], '-' and '_'"
        )


class InvalidKeyStringError(InvalidInputError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"invalid schema key '{value}': expected "
            "<domain>_..._<family>_<major>_<minor>_<patch>"
        )


class NoDomainError(InvalidInputError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"schema key '{value}' has no domain")


class InvalidDomainError(InvalidInputError):
    def __init__(self, domain: Iterable[str]):
        self.domain = list(domain)
        super().__init__(
            f"domain {self.domain} must contain only [a-z], [0-9] and '-'"
        )


class InvalidFamilyNameError(InvalidInputError):
    def __init__(self, family: str):
        self.family = family
        super().__init__(
            f"family name '{family}' must contain only [a-z], [0-9] and '-'"
        )


class InvalidVersionError(InvalidInputError):
    """Base for the three version component errors."""

    component = "version"
    requirement = "must be a non-negative integer"

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"invalid {self.component} version '{value}': {self.requirement}"
        )


class InvalidMajorVersionError(InvalidVersionError):
    component = "major"
    requirement = "must be an integer greater than 0"


class InvalidMinorVersionError(InvalidVersionError):
    component = "minor"


class InvalidPatchVersionError(InvalidVersionError):
    component = "patch"


class InvalidReleaseTypeError(InvalidInputError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"invalid release type '{value}': must be one of major, minor, patch"
        )


class InvalidSearchScopeError(InvalidInputError):
    def __init__(self, scope: str):
        self.scope = scope
        super().__init__(
            f"invalid search scope '{scope}': must contain only [a-z], [0-9], '-' and '/'"
        )


class InvalidCreateSchemaArgError(InvalidInputError):
    def __init__(self, arg: str, cause: Optional[Exception] = None):
        self.arg = arg
        self.cause = cause
        message = f"invalid argument '{arg}': expected <domain>/.../<family>"
        if cause is not None:
            message += f" ({cause})"
        super().__init__(message)


class InvalidTestScopeError(InvalidInputError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"invalid test scope '{value}': must be one of "
            "local, pass-only, fail-only, consumer-breaking, all"
        )


class InvalidTargetArgumentError(InvalidInputError):
    def __init__(self, arg: str, reason: str):
        self.arg = arg
        self.reason = reason
        super().__init__(f"invalid target '{arg}': {reason}")


class NoSchemaTargetsError(InvalidInputError):
    def __init__(self):
        super().__init__(
            "no schema target given: pass a key, a canonical ID, a path, a scope or 'all'"
        )


class TargetArgumentTargetsMultipleSchemasError(InvalidInputError):
    def __init__(self, arg: str):
        self.arg = arg
        super().__init__(
            f"target '{arg}' matches more than one schema; a single schema is required"
        )


class NotASchemaFileError(InvalidInputError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"'{path}' is not a .schema.json file")


class UnknownEnvironmentError(InvalidInputError):
    def __init__(self, name: str, valid: Iterable[str] = ()):
        self.name = name
        self.valid = sorted(valid)
        message = f"unknown environment '{name}'"
        if self.valid:
            message += f" (valid environments: {', '.join(self.valid)})"
        super().__init__(message)


# ---- (b) resources -----------------------------------------------------------


class ResourceError(JsonSchemaManagerError):
    """Exception raised for missing, conflicting or invalid registry resources."""
    pass


class NotFoundError(ResourceError):
    def __init__(self, target: str):
        self.target = str(target)
        super().__init__(f"'{target}' not found")


class SchemaReadError(ResourceError):
    def __init__(self, path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"cannot read schema file {path}: {cause}")


class AlreadyExistsError(ResourceError):
    def __init__(self, target: str):
        self.target = str(target)
        super().__init__(f"'{target}' already exists")


class LocationOutsideRootDirectoryError(ResourceError):
    def __init__(self, path, root):
        self.path = path
        self.root = root
        super().__init__(f"'{path}' is outside the registry root directory {root}")


class InvalidSchemaFilenameError(ResourceError):
    def __init__(self, path, cause: Optional[Exception] = None):
        self.path = path
        self.cause = cause
        message = f"invalid schema filename {path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class RegistryInitError(ResourceError):
    def __init__(self, root, reason: str):
        self.root = root
        self.reason = reason
        super().__init__(f"cannot initialise registry at '{root}': {reason}")


class RegistryRootNotFolderError(ResourceError):
    def __init__(self, root):
        self.root = root
        super().__init__(f"registry root '{root}' is not a directory")


class RegistryExistsError(ResourceError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"a registry configuration already exists at {path}")


class CannotReadXPublicError(ResourceError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"'x-public' in {path} must be a boolean")


class ConfigError(ResourceError):
    """Exception raised for registry configuration errors."""
    pass


class MissingConfigError(ConfigError):
    def __init__(self, path):
        self.path = path
        super().__init__(
            f"registry configuration not found at {path}; run 'jsm create-registry' first"
        )


class InvalidYAMLError(ConfigError):
    def __init__(self, path, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"invalid YAML in {path}: {detail}")


class MissingPropertyError(ConfigError):
    def __init__(self, prop: str):
        self.prop = prop
        super().__init__(f"configuration is missing required property '{prop}'")


class InvalidURLError(ConfigError):
    def __init__(self, prop: str, url):
        self.prop = prop
        self.url = url
        super().__init__(f"'{prop}' must be an https URL, got '{url}'")


class InvalidBooleanPropertyError(ConfigError):
    def __init__(self, prop: str, value):
        self.prop = prop
        self.value = value
        super().__init__(f"'{prop}' must be true or false, got '{value}'")


class InvalidDefaultJSONSchemaVersionError(ConfigError):
    def __init__(self, version, supported: Iterable[str] = ()):
        self.version = version
        self.supported = list(supported)
        super().__init__(
            f"unsupported defaultJsonSchemaVersion '{version}' "
            f"(supported: {', '.join(self.supported)})"
        )


class MustHaveExactlyOneProductionEnvironmentError(ConfigError):
    def __init__(self, count: int):
        self.count = count
        super().__init__(
            f"exactly one environment must set isProduction: true, found {count}"
        )


# ---- (c) rendering -----------------------------------------------------------


class RenderError(JsonSchemaManagerError):
    """Exception raised while rendering or compiling a schema."""
    pass


class TemplateFormatInvalidError(RenderError):
    def __init__(self, path, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"invalid template syntax in {path}: {detail}")


class TemplateExecutionFailedError(RenderError):
    def __init__(self, path, detail):
        self.path = path
        self.detail = detail
        super().__init__(f"template execution failed for {path}: {detail}")


class JSMArgInvalidKeyError(RenderError):
    def __init__(self, arg: str, cause: Optional[Exception] = None):
        self.arg = arg
        self.cause = cause
        super().__init__(
            "A $ref to a JSM schema ({{ JSM `<schema key>` }}) "
            f"has an invalid <schema key>: {arg}"
        )


class JSMArgNotFoundError(RenderError):
    def __init__(self, key, cause: Exception):
        self.key = key
        self.cause = cause
        super().__init__(
            f"A $ref to a JSM schema ({{{{ JSM `{key}` }}}}) could not be loaded. "
            f"Error: {cause}"
        )


class InvalidJSONError(RenderError):
    def __init__(self, path, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"{path} is not valid JSON: {detail}")


class InvalidJSONSchemaError(RenderError):
    def __init__(self, path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"{path} is not a valid JSON Schema: {cause}")


class SchemaCompileError(RenderError):
    def __init__(self, schema_id: str, detail: str):
        self.schema_id = schema_id
        self.detail = detail
        super().__init__(f"cannot compile {schema_id}: {detail}")


class UnresolvableReferenceError(RenderError):
    def __init__(self, schema_id: str, detail: str):
        self.schema_id = schema_id
        self.detail = detail
        super().__init__(f"unresolvable reference while validating against {schema_id}: {detail}")


# ---- validation --------------------------------------------------------------


class DocumentInvalidError(JsonSchemaManagerError):
    """Raised by a compiled validator when a document does not conform."""

    def __init__(self, message: str, instance_path: str = ""):
        self.message = message
        self.instance_path = instance_path
        if instance_path:
            super().__init__(f"{instance_path}: {message}")
        else:
            super().__init__(message)


# ---- (d) test infrastructure and outcomes ------------------------------------


class TestInfrastructureError(JsonSchemaManagerError):
    """Exception raised when a test run cannot be carried out."""

    __test__ = False


class TestDirMissingError(TestInfrastructureError):
    def __init__(self, path, doc_type):
        self.path = path
        self.doc_type = doc_type
        super().__init__(f"{doc_type} test directory {path} is missing")


class CannotReadTestDocumentError(TestInfrastructureError):
    def __init__(self, path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"cannot read test document {path}: {cause}")


class InvalidTestDocumentError(TestInfrastructureError):
    def __init__(self, path, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"test document {path} is not valid JSON: {detail}")


class InvalidTestDocumentDirectoryError(TestInfrastructureError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"test document {path} is not in a pass/ or fail/ directory")


class TestOutcomeError(JsonSchemaManagerError):
    """A test document did not behave as expected. Recorded in reports."""

    __test__ = False


class PassTestFailedError(TestOutcomeError):
    def __init__(self, schema_path, doc_path, cause: Exception):
        self.schema_path = schema_path
        self.doc_path = doc_path
        self.cause = cause
        super().__init__(
            f"document {doc_path} should pass against {schema_path} but failed: {cause}"
        )


class FailTestPassedError(TestOutcomeError):
    def __init__(self, schema_path, doc_path):
        self.schema_path = schema_path
        self.doc_path = doc_path
        super().__init__(
            f"document {doc_path} should fail against {schema_path} but passed"
        )


# ---- operations --------------------------------------------------------------


class OperationCancelledError(JsonSchemaManagerError):
    """Raised when a long-running operation observes its cancel event."""
    pass


class DistBuildError(JsonSchemaManagerError):
    """Exception raised when a distribution build fails."""
    pass


class ChangedDeployedSchemasError(JsonSchemaManagerError):
    def __init__(self, paths: Iterable[str]):
        self.paths = list(paths)
        listing = "\n".join(f"  {p}" for p in self.paths)
        super().__init__(
            "the following already deployed schemas were modified, "
            f"which this environment does not allow:\n{listing}"
        )
