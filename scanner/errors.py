"""Analysis errors. Every error is fatal to the parse session."""

from typing import Optional


class AnalysisError(Exception):
    """
    Base class for errors raised while building a module catalog.

    Attributes:
        module_name: Name of the module being analyzed, when known.
        source_text: Exact source fragment that triggered the error.
        file_path: Project-relative path of the offending file; filled in
                   by the parse session before the error is re-raised.
    """

    def __init__(
        self,
        message: str,
        module_name: Optional[str] = None,
        source_text: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.module_name = module_name
        self.source_text = source_text
        self.file_path: Optional[str] = None

    def __str__(self) -> str:
        text = self.message
        if self.module_name:
            text = f"{self.module_name}: {text}"
        if self.source_text:
            text = f"{text}, received: {self.source_text}"
        if self.file_path:
            text = f"[{self.file_path}] {text}"
        return text


class ContextBuildError(AnalysisError):
    """A source file of the resolution context could not be read or parsed."""


class UnresolvableEventName(AnalysisError):
    """Event identifier is not a literal or a constant enum reference."""


class NotAModuleFile(AnalysisError):
    """A command file does not export any runtime value."""


class HandlerNotExported(AnalysisError):
    """Neither export convention yields a callable ``execute`` handler."""


class OverloadedHandler(AnalysisError):
    """The handler exposes more than one call signature."""


class MissingReturnTypeArgument(AnalysisError):
    """The handler's return type is not a single-argument deferred result."""


class TypeExtractionFailure(AnalysisError):
    """The type materializer met a type shape it cannot describe."""
