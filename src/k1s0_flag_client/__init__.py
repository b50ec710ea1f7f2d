"""k1s0 flag client library."""

from .cache import (
    DefinitionsCache,
    DefinitionsCacheEntry,
    EvaluationCache,
    create_definitions_cache,
    create_evaluation_cache,
)
from .config import SDK_VERSION, DefinitionsConfig, get_default_config, resolve_config
from .definitions import (
    HttpDefinitionsClient,
    fetch_definitions,
    fetch_definitions_cached,
    reset_definitions_cache,
    resolve_cache_key,
)
from .evaluator import Evaluator, evaluate_flags
from .exceptions import EvaluationError, FlagClientError, FlagClientErrorCodes, StaleCacheError
from .flag import FlagOptions, evaluate, evaluate_flag, reset_default_caches
from .flags_client import FlagsClient
from .logger import new_logger
from .models import FlagEvaluation, FlagResult, Toggle, Variant, VariantPayload

__version__ = SDK_VERSION

__all__ = [
    "DefinitionsCache",
    "DefinitionsCacheEntry",
    "DefinitionsConfig",
    "EvaluationCache",
    "EvaluationError",
    "Evaluator",
    "FlagClientError",
    "FlagClientErrorCodes",
    "FlagEvaluation",
    "FlagOptions",
    "FlagResult",
    "FlagsClient",
    "HttpDefinitionsClient",
    "StaleCacheError",
    "Toggle",
    "Variant",
    "VariantPayload",
    "create_definitions_cache",
    "create_evaluation_cache",
    "evaluate",
    "evaluate_flag",
    "evaluate_flags",
    "fetch_definitions",
    "fetch_definitions_cached",
    "get_default_config",
    "new_logger",
    "reset_default_caches",
    "reset_definitions_cache",
    "resolve_cache_key",
    "resolve_config",
]
