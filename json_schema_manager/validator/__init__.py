from .compiler import DEFAULT_DRAFT, Compiler, Draft, Validator
from .jsonschema_compiler import JsonschemaCompiler

__all__ = ["DEFAULT_DRAFT", "Compiler", "Draft", "JsonschemaCompiler", "Validator"]
