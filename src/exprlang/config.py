"""
Configuration for expression environments.
"""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .limits import ExpressionLimits

ENV_VAR_PREFIX = "EXPRLANG_"

_TRUE_STRINGS = ("1", "true", "yes", "on")

# Upper bound for max_ast_depth; nesting past the interpreter stack fails
# with LimitExceededError or RecursionLimitError instead of RecursionError
MAX_AST_DEPTH_CEILING = 256


class EnvironmentConfig(BaseModel):
    """
    Configuration for an Environment.

    Numeric fields mirror ExpressionLimits and are validated as positive.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    # Absent symbols are persisted as null entries on first lookup
    autoregister_globals: bool = False

    # Tokenizer emits whitespace tokens
    include_whitespace: bool = False

    # Parser rejects tokens left over after a complete expression
    strict_parsing: bool = False

    max_expression_length: int = Field(default=4096, gt=0)
    max_ast_depth: int = Field(default=64, gt=0, le=MAX_AST_DEPTH_CEILING)
    max_ast_nodes: int = Field(default=1024, gt=0)
    max_list_length: int = Field(default=256, gt=0)
    max_function_args: int = Field(default=16, gt=0)
    max_call_depth: int = Field(default=64, gt=0)
    max_glob_pattern_length: int = Field(default=256, gt=0)
    max_glob_steps: int = Field(default=100_000, gt=0)

    def to_limits(self) -> ExpressionLimits:
        """Builds the limits dataclass consumed by the parser and evaluator."""
        return ExpressionLimits(
            max_expression_length=self.max_expression_length,
            max_ast_depth=self.max_ast_depth,
            max_ast_nodes=self.max_ast_nodes,
            max_list_length=self.max_list_length,
            max_function_args=self.max_function_args,
            max_call_depth=self.max_call_depth,
            max_glob_pattern_length=self.max_glob_pattern_length,
            max_glob_steps=self.max_glob_steps,
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EnvironmentConfig":
        """
        Builds a config from ``EXPRLANG_*`` environment variables.

        Every field is addressable as ``EXPRLANG_<FIELD_NAME>``; unset
        variables keep their defaults.
        """
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            raw = environ.get(ENV_VAR_PREFIX + name.upper())
            if raw is None:
                continue
            if field.annotation is bool:
                values[name] = raw.strip().lower() in _TRUE_STRINGS
            else:
                values[name] = raw.strip()
        return cls.model_validate(values)


def normalize_config(
    config: EnvironmentConfig | Mapping[str, Any] | None,
) -> EnvironmentConfig:
    """Normalize and validate configuration."""
    if config is None:
        return EnvironmentConfig()

    if isinstance(config, EnvironmentConfig):
        return config

    return EnvironmentConfig.model_validate(dict(config))
