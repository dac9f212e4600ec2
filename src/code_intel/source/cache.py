"""Per-project cache of parsed source units."""

import logging
import os
import threading
from pathlib import Path
from typing import Optional

from code_intel.core.config import ScanConfig
from code_intel.core.language import Language, detect_language_from_path
from code_intel.source.models import Diagnostic, DiagnosticKind, ParsedUnit
from code_intel.source.parsers import ParseError, ParserRegistry
from code_intel.utils.error_handling import ErrorContext, format_exception, log_and_ignore

logger = logging.getLogger(__name__)


class SourceProject:
    """Parsed units of one project, loaded on first access and never evicted."""

    def __init__(
        self,
        root: Path,
        scan: ScanConfig,
        registry: ParserRegistry,
        lock: threading.Lock,
    ) -> None:
        self.root = root
        self._scan = scan
        self._registry = registry
        self._lock = lock
        self._units: Optional[dict[str, ParsedUnit]] = None
        self._diagnostics: list[Diagnostic] = []

    def _ensure_loaded(self) -> dict[str, ParsedUnit]:
        if self._units is None:
            with self._lock:
                if self._units is None:
                    self._units = self._load()
        return self._units

    @property
    def units(self) -> dict[str, ParsedUnit]:
        """Relative POSIX path -> unit, in traversal order."""
        return self._ensure_loaded()

    @property
    def diagnostics(self) -> list[Diagnostic]:
        self._ensure_loaded()
        return list(self._diagnostics)

    @property
    def file_count(self) -> int:
        return len(self.units)

    @property
    def is_loaded(self) -> bool:
        return self._units is not None

    def get(self, relative_path: str) -> Optional[ParsedUnit]:
        return self.units.get(relative_path)

    def relative_path(self, path: str) -> str:
        """Normalise a caller-supplied path (absolute or relative) to a unit key."""
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.resolve().relative_to(self.root)
            except ValueError:
                return candidate.as_posix()
        return Path(os.path.normpath(candidate)).as_posix()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, ParsedUnit]:
        units: dict[str, ParsedUnit] = {}
        if not self.root.is_dir():
            logger.warning("Project directory not found: %s", self.root)
            return units

        for rel in self._iter_source_files():
            unit = self._load_unit(rel)
            if unit is not None:
                units[rel] = unit

        logger.debug(
            "Loaded %d units from %s (%d skipped)",
            len(units), self.root, len(self._diagnostics),
        )
        return units

    def _is_excluded(self, rel_dir: str) -> bool:
        probe = f"/{rel_dir}/"
        return any(f"/{segment}/" in probe for segment in self._scan.exclude_dirs)

    def _iter_source_files(self):
        for dirpath, dirnames, filenames in os.walk(self.root):
            rel_dir = Path(dirpath).relative_to(self.root).as_posix()
            rel_dir = "" if rel_dir == "." else rel_dir
            dirnames[:] = sorted(
                d for d in dirnames
                if not self._is_excluded(f"{rel_dir}/{d}" if rel_dir else d)
            )
            for name in sorted(filenames):
                if detect_language_from_path(name) is None:
                    continue
                yield f"{rel_dir}/{name}" if rel_dir else name

    def _record(self, rel: str, kind: DiagnosticKind, message: str) -> None:
        self._diagnostics.append(Diagnostic(file_path=rel, kind=kind, message=message))

    def _load_unit(self, rel: str) -> Optional[ParsedUnit]:
        abs_path = self.root / rel
        language = detect_language_from_path(rel) or Language.UNKNOWN

        with ErrorContext(
            f"reading {rel}",
            raise_on_error=False,
            logger_instance=logger,
            log_level=logging.WARNING,
            on_error=lambda e: self._record(rel, DiagnosticKind.IO_FAILURE, format_exception(e)),
        ) as ctx:
            size = abs_path.stat().st_size
            if size > self._scan.max_file_size:
                logger.warning("Skipping %s: %d bytes exceeds limit", rel, size)
                self._record(
                    rel, DiagnosticKind.TOO_LARGE,
                    f"{size} bytes exceeds max_file_size {self._scan.max_file_size}",
                )
                return None
            text = abs_path.read_text(encoding="utf-8", errors="replace")
        if ctx.error is not None:
            return None

        try:
            tree = self._registry.parse(rel, text, language)
        except ParseError as e:
            log_and_ignore(e, f"Skipping {rel}", logger_instance=logger)
            self._record(rel, DiagnosticKind.PARSE_FAILURE, str(e))
            return None

        return ParsedUnit(path=rel, language=language, text=text, tree=tree)


class SourceCache:
    """Maps canonical project roots to their SourceProject.

    One lock serialises population, so a cache may be shared by threads.
    """

    def __init__(
        self,
        scan: Optional[ScanConfig] = None,
        registry: Optional[ParserRegistry] = None,
    ) -> None:
        self._scan = scan or ScanConfig()
        self._registry = registry or ParserRegistry()
        self._lock = threading.Lock()
        self._projects: dict[Path, SourceProject] = {}

    @property
    def registry(self) -> ParserRegistry:
        return self._registry

    def get_or_create(self, project_path: str | Path) -> SourceProject:
        root = Path(project_path).expanduser().resolve()
        with self._lock:
            project = self._projects.get(root)
            if project is None:
                project = SourceProject(root, self._scan, self._registry, self._lock)
                self._projects[root] = project
                logger.debug("Created project cache entry for %s", root)
        return project

    def stats(self) -> dict:
        with self._lock:
            projects = list(self._projects.values())
        return {
            "cached_projects": len(projects),
            "projects": [
                {
                    "path": str(p.root),
                    "files": p.file_count if p.is_loaded else 0,
                    "loaded": p.is_loaded,
                }
                for p in projects
            ],
        }

    def clear(self) -> None:
        with self._lock:
            self._projects.clear()
