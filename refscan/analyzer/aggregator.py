"""Project-wide aggregation of references into an ordered, summarised report."""
import json
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from refscan.config import ScanConfig
from refscan.errors import ParseError, UnexpectedError
from refscan.analyzer.classifier import Category, categorize, in_scope
from refscan.analyzer.context import ContextExtractor, split_lines
from refscan.analyzer.reference_scanner import TYPE_PRECEDENCE, ReferenceScanner, ReferenceType
from refscan.analyzer.source_loader import SourceLoader


@dataclass(frozen=True)
class Reference:
    """One located occurrence of the target symbol."""
    file: str
    line: int
    type: ReferenceType
    category: Category
    context: str

    def to_dict(self) -> Dict:
        return {
            'file': self.file,
            'line': self.line,
            'type': self.type.value,
            'category': self.category.value,
            'context': self.context,
        }

    def sort_key(self):
        return (self.file, self.line, TYPE_PRECEDENCE[self.type], self.type.value)


@dataclass(frozen=True)
class Summary:
    """Counts by role and by category, every key present even when zero."""
    counts_by_type: Dict[str, int]
    counts_by_category: Dict[str, int]

    @classmethod
    def from_references(cls, references: List[Reference]) -> 'Summary':
        by_type = {ref_type.value: 0 for ref_type in ReferenceType}
        by_category = {category.value: 0 for category in Category}
        for reference in references:
            by_type[reference.type.value] += 1
            by_category[reference.category.value] += 1
        return cls(counts_by_type=by_type, counts_by_category=by_category)

    def to_dict(self) -> Dict:
        return {
            'countsByType': dict(self.counts_by_type),
            'countsByCategory': dict(self.counts_by_category),
        }


@dataclass
class FileResult:
    """Outcome of scanning one file."""
    path: Path
    references: List[Reference] = field(default_factory=list)
    error: Optional[ParseError] = None
    out_of_scope: bool = False


@dataclass
class ScanReport:
    """Final, ordered result of one run."""
    files: List[Path]
    references: List[Reference]
    summary: Summary
    failures: List[ParseError] = field(default_factory=list)
    out_of_scope: List[Path] = field(default_factory=list)

    def to_json(self) -> str:
        """The machine-readable result: a JSON array of references."""
        return _dumps([reference.to_dict() for reference in self.references])

    def to_payload_json(self) -> str:
        """References plus summary as a single JSON object."""
        return _dumps({
            'references': [reference.to_dict() for reference in self.references],
            'summary': self.summary.to_dict(),
        })


class ReferenceAggregator:
    """Run the loader, classifier, scanner and context extractor over a project."""

    def __init__(self, config: ScanConfig):
        """Initialize aggregator.

        Args:
            config: Scan configuration

        Raises:
            ConfigurationError: If the project root cannot be scanned
        """
        self.config = config
        self.loader = SourceLoader(config)
        self.scanner = ReferenceScanner(config.symbol_name)
        self.extractor = ContextExtractor(config.context_before, config.context_after)

    def discover(self) -> List[Path]:
        return self.loader.discover()

    def run(self, files: Optional[List[Path]] = None,
            on_file_done: Optional[Callable[[FileResult], None]] = None) -> ScanReport:
        """Scan every file and build the report.

        Args:
            files: Files to scan (defaults to discover())
            on_file_done: Called in the calling thread after each file completes

        Raises:
            UnexpectedError: If traversal fails, or every scanned file failed to parse
        """
        if files is None:
            files = self.discover()

        results = self._scan_all(files, on_file_done)

        references: List[Reference] = []
        failures: List[ParseError] = []
        out_of_scope: List[Path] = []
        for result in results:
            if result.out_of_scope:
                out_of_scope.append(result.path)
            elif result.error is not None:
                failures.append(result.error)
            else:
                references.extend(result.references)

        parsed_count = len(results) - len(out_of_scope)
        if parsed_count > 0 and len(failures) == parsed_count:
            raise UnexpectedError(f"All {parsed_count} source files failed to parse")

        # Order is a property of the output, not of completion order
        references.sort(key=Reference.sort_key)
        failures.sort(key=lambda error: error.path)
        out_of_scope.sort(key=str)

        return ScanReport(
            files=list(files),
            references=references,
            summary=Summary.from_references(references),
            failures=failures,
            out_of_scope=out_of_scope,
        )

    def _scan_all(self, files: List[Path],
                  on_file_done: Optional[Callable[[FileResult], None]]) -> List[FileResult]:
        results: List[FileResult] = []

        if self.config.workers <= 1 or len(files) <= 1:
            for file_path in files:
                result = self.scan_file(file_path)
                results.append(result)
                if on_file_done:
                    on_file_done(result)
            return results

        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            futures = [executor.submit(self.scan_file, file_path) for file_path in files]
            try:
                for future in as_completed(futures):
                    result = future.result()
                    results.append(result)
                    if on_file_done:
                        on_file_done(result)
            except BaseException:
                # Abort the whole run: nothing partial is reported
                for future in futures:
                    future.cancel()
                raise

        return results

    def scan_file(self, file_path: Path) -> FileResult:
        """Classify, parse and scan one file. Safe to call from worker threads."""
        rel_path = '/' + self.loader.relative_path(file_path)
        category = categorize(rel_path)
        if not in_scope(rel_path, category, self.config.domain_filter):
            return FileResult(path=file_path, out_of_scope=True)

        try:
            unit = self.loader.load(file_path)
        except ParseError as e:
            return FileResult(path=file_path, error=e)
        except Exception as e:
            raise UnexpectedError(f"Failed to load {file_path}: {e}") from e

        try:
            hits = self.scanner.scan(unit)
            lines = split_lines(unit.text)
            references = [
                Reference(
                    file=hit.file,
                    line=hit.line,
                    type=hit.type,
                    category=category,
                    context=self.extractor.render_lines(lines, hit.line),
                )
                for hit in hits
            ]
        except Exception as e:
            raise UnexpectedError(f"Failed while scanning {file_path}: {e}") from e

        return FileResult(path=file_path, references=references)


def _dumps(data) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)
