"""Catalog builder that orchestrates discovery, scanning and extraction."""

import logging
from pathlib import Path
from typing import List, Optional

from catalog.model import Module, ModuleRegistry
from .commands import extract_command
from .config import AnalyzerConfig
from .context import SourceContext, SourceFile
from .discovery import SourceLayout, find_command_files
from .errors import AnalysisError
from .materializer import TypeMaterializer
from .messages import scan_messages


logger = logging.getLogger(__name__)


class ParseSession:
    """
    State of one parse: the resolution context and the module registry.

    A session is created by every ``Parser.parse()`` call and passed
    explicitly to the scanner and the command extractor.
    """

    def __init__(self, root: Path, config: AnalyzerConfig, layout: SourceLayout, context: SourceContext):
        self.root = root
        self.config = config
        self.layout = layout
        self.context = context
        self.registry = ModuleRegistry()
        self.materializer = TypeMaterializer(context)
        self.command_files = set(context.root_files)

    @property
    def modules(self) -> List[Module]:
        return self.registry.modules


class Parser:
    """
    Extracts the module catalog of a service project.

    Args:
        project_path: Project root directory.
        config: Analyzer settings; defaults to ``AnalyzerConfig()``.
    """

    def __init__(self, project_path: Path, config: Optional[AnalyzerConfig] = None):
        self.project_path = Path(project_path).resolve()
        self.config = config or AnalyzerConfig()
        self.layout = SourceLayout(self.project_path, self.config.module_root, self.config.commands_dir)

    @property
    def search_paths(self) -> List[Path]:
        return [self.project_path] + [self.project_path / p for p in self.config.search_paths]

    def create_session(self) -> ParseSession:
        """Discover the command files and build the resolution context over them."""
        command_files = find_command_files(self.layout)
        context = SourceContext(command_files, self.search_paths, self.config.feature_version())
        return ParseSession(self.project_path, self.config, self.layout, context)

    def parse(self) -> List[Module]:
        """
        Parse the project and collect all modules.

        Returns:
            Modules in first-discovered order.

        Raises:
            AnalysisError: On the first fatal error; ``file_path`` is set to
                           the offending file, relative to the project root.
        """
        session = self.create_session()

        for source in session.context.files:
            try:
                self.process_source_file(session, source)
            except AnalysisError as error:
                error.file_path = self.layout.relative(source.path)
                raise

        if not len(session.registry):
            logger.warning("No modules found in %s", self.project_path)

        return session.modules

    def process_source_file(self, session: ParseSession, source: SourceFile) -> None:
        """Scan a module file for messages and, for command files, extract the command."""
        if not self.layout.is_module_file(source.path):
            return

        module = session.registry.get_or_create(self.layout.module_name(source.path))
        scan_messages(session, module, source)

        if source.path not in session.command_files:
            return

        command_name = self.layout.command_name(source.path)
        extract_command(session, module, command_name, source)


def build_catalog(root: Path, config: Optional[AnalyzerConfig] = None) -> List[Module]:
    """
    Scan a project and build its module catalog.

    Args:
        root: Project root directory.
        config: Analyzer settings.

    Returns:
        Modules in first-discovered order.
    """
    return Parser(root, config).parse()
