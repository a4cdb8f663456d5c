"""Scanner module for source discovery and catalog extraction."""

from .discovery import iter_files, find_command_files, SourceLayout
from .context import SourceContext
from .config import AnalyzerConfig, load_config
from .builder import Parser, build_catalog
from .errors import (
    AnalysisError,
    ContextBuildError,
    UnresolvableEventName,
    NotAModuleFile,
    HandlerNotExported,
    OverloadedHandler,
    MissingReturnTypeArgument,
    TypeExtractionFailure,
)

__all__ = [
    "iter_files",
    "find_command_files",
    "SourceLayout",
    "SourceContext",
    "AnalyzerConfig",
    "load_config",
    "Parser",
    "build_catalog",
    "AnalysisError",
    "ContextBuildError",
    "UnresolvableEventName",
    "NotAModuleFile",
    "HandlerNotExported",
    "OverloadedHandler",
    "MissingReturnTypeArgument",
    "TypeExtractionFailure",
]
