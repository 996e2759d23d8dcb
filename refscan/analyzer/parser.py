"""Tree-sitter parser for TypeScript and JavaScript sources."""
from pathlib import Path
from typing import Optional
from tree_sitter import Language, Parser, Tree
import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript


class LanguageParser:
    """Grammar-per-extension parser using the tree-sitter v0.22+ API.

    Parser instances are not shared between threads; build one per file
    (they are cheap) via from_file_extension().
    """

    SUPPORTED_LANGUAGES = {
        '.ts': 'typescript',
        '.mts': 'typescript',
        '.cts': 'typescript',
        '.tsx': 'tsx',
        '.js': 'javascript',
        '.jsx': 'javascript',
        '.mjs': 'javascript',
        '.cjs': 'javascript',
    }

    def __init__(self, language: str):
        """Initialize parser for given language (typescript, tsx, javascript).

        Args:
            language: One of 'typescript', 'tsx', 'javascript'

        Raises:
            ValueError: If language is not supported
        """
        self.language = language
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        """Factory method using the Parser(Language(capsule)) constructor.

        Returns:
            Configured Parser instance

        Raises:
            ValueError: If language is not supported
        """
        if self.language == 'typescript':
            lang = Language(tstypescript.language_typescript())
        elif self.language == 'tsx':
            # JSX-aware TypeScript grammar
            lang = Language(tstypescript.language_tsx())
        elif self.language == 'javascript':
            lang = Language(tsjavascript.language())
        else:
            raise ValueError(f"Unsupported language: {self.language}")

        return Parser(lang)

    def parse_source(self, source_code: bytes) -> Tree:
        """Parse raw source bytes.

        tree-sitter always returns a tree; syntax errors show up as ERROR or
        MISSING nodes and root_node.has_error.
        """
        return self.parser.parse(source_code)

    @classmethod
    def from_file_extension(cls, file_path: str | Path) -> Optional['LanguageParser']:
        """Create parser based on file extension.

        Args:
            file_path: Path to determine language from

        Returns:
            LanguageParser instance, or None if extension not supported
        """
        extension = Path(file_path).suffix.lower()

        language = cls.SUPPORTED_LANGUAGES.get(extension)
        if language:
            return cls(language)
        return None
