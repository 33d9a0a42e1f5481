# File: routegen/exporters.py
"""
RouteGen - Route Exporter (File-System Manager)
=================================================

Responsible for:
    1. Optionally wiping the output directory (every run writes a full,
       fresh tree; nothing is merged with a previous run).
    2. Writing materialized files atomically (write-to-temp then rename).
    3. Producing an export manifest with checksums for reproducibility.

If a write fails mid-batch, previously written files remain intact (each
individual file is atomic); the failure is reported in ``ExportResult``.

Complexity: O(F) where F = total number of output files.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from routegen.models import GenerationConfig
from routegen.utils import Timer, count_lines, sha256_hex

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("routegen.exporters")

MANIFEST_FILE: str = "manifest.json"

# Entries that survive a clean.
_PRESERVED_ON_CLEAN: FrozenSet[str] = frozenset({".git", ".gitignore", ".gitkeep"})


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "relative_path": self.relative_path,
            "size_bytes": self.size_bytes,
            "line_count": self.line_count,
            "sha256": self.sha256,
        }


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """
    Complete manifest of all exported files.

    Serialisable to JSON for build reproducibility verification. Holds
    nothing tied to the clock or the output location, so identical input
    yields an identical manifest.
    """

    project_name: str = ""
    project_version: str = ""
    generator_version: str = ""
    group: Optional[str] = None
    route_count: int = 0
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_name": self.project_name,
            "project_version": self.project_version,
            "generator_version": self.generator_version,
            "group": self.group,
            "route_count": self.route_count,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [f.to_dict() for f in self.files],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Final result returned by ``RouteExporter.export()``."""

    success: bool
    manifest: ExportManifest
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# RouteExporter
# ---------------------------------------------------------------------------


class RouteExporter:
    """
    Writes a materialized file map to the filesystem.

    Usage::

        exporter = RouteExporter(config, output_dir=Path("./app"))
        result = exporter.export(files, route_count=len(tree.operations()))
        print(result.manifest.to_json())

    Thread-safety: NOT thread-safe.  Use one exporter per output directory.
    """

    def __init__(
        self,
        config: GenerationConfig,
        output_dir: Path,
        *,
        clean_before_export: bool = False,
        atomic_writes: bool = True,
        generate_manifest: bool = True,
    ) -> None:
        """
        Args:
            config: Generation configuration (manifest metadata).
            output_dir: Root directory for output files.
            clean_before_export: If True, wipe the output directory first.
            atomic_writes: If True, use write-to-temp+rename pattern.
            generate_manifest: If True, write a manifest.json file.
        """
        self._config: GenerationConfig = config
        self._output_dir: Path = output_dir.resolve()
        self._clean_before_export: bool = clean_before_export
        self._atomic_writes: bool = atomic_writes
        self._generate_manifest: bool = generate_manifest

        self._errors: List[str] = []
        self._warnings: List[str] = []
        self._file_records: List[FileRecord] = []
        self._route_count: int = 0

        logger.debug(
            "RouteExporter initialised: output_dir=%s, atomic=%s.",
            self._output_dir,
            self._atomic_writes,
        )

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(
        self,
        files: Dict[str, str],
        *,
        route_count: int = 0,
    ) -> ExportResult:
        """
        Write every ``relative_path → content`` entry of *files*.

        Returns:
            ExportResult with success flag, manifest, and error details.
        """
        # Each call reports on its own files only.
        self._errors = []
        self._warnings = []
        self._file_records = []
        self._route_count = route_count

        with Timer("export") as timer:
            try:
                self._pre_export_cleanup()
                self._output_dir.mkdir(parents=True, exist_ok=True)
                self._write_files(files)

                if self._generate_manifest:
                    self._write_manifest_file()

            except OSError as exc:
                error_msg: str = f"Fatal export error: {type(exc).__name__}: {exc}"
                self._errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

        manifest: ExportManifest = self._build_manifest()
        success: bool = len(self._errors) == 0

        result: ExportResult = ExportResult(
            success=success,
            manifest=manifest,
            errors=tuple(self._errors),
            warnings=tuple(self._warnings),
            elapsed_seconds=timer.elapsed,
        )

        if success:
            logger.info(
                "Export completed successfully: %d files, %d bytes, %.3fs.",
                manifest.total_files,
                manifest.total_bytes,
                timer.elapsed,
            )
        else:
            logger.error(
                "Export completed with %d error(s) in %.3fs.",
                len(self._errors),
                timer.elapsed,
            )

        return result

    # -----------------------------------------------------------------
    # Internal: directory management
    # -----------------------------------------------------------------

    def _pre_export_cleanup(self) -> None:
        """Clean output directory if configured to do so."""
        if not self._clean_before_export or not self._output_dir.exists():
            return

        logger.info("Cleaning output directory: %s", self._output_dir)
        for item in self._output_dir.iterdir():
            if item.name in _PRESERVED_ON_CLEAN:
                continue
            try:
                if item.is_dir():
                    shutil.rmtree(item)
                else:
                    item.unlink()
            except OSError as exc:
                warning_msg: str = f"Could not remove {item}: {exc}"
                self._warnings.append(warning_msg)
                logger.warning(warning_msg)

    def _resolve_target(self, rel_path: str) -> Path:
        """Absolute target for *rel_path*; refuses paths escaping the output root."""
        target: Path = (self._output_dir / rel_path).resolve()
        if target != self._output_dir and self._output_dir not in target.parents:
            raise ValueError(f"'{rel_path}' resolves outside {self._output_dir}.")
        return target

    # -----------------------------------------------------------------
    # Internal: file writing
    # -----------------------------------------------------------------

    def _write_files(self, files: Dict[str, str]) -> None:
        for rel_path, content in files.items():
            try:
                full_path: Path = self._resolve_target(rel_path)
                record: FileRecord = self._write_single_file(
                    full_path, content, rel_path
                )
                self._file_records.append(record)
            except (OSError, ValueError) as exc:
                error_msg: str = (
                    f"Failed to write {rel_path}: {type(exc).__name__}: {exc}"
                )
                self._errors.append(error_msg)
                logger.error(error_msg)

        logger.info(
            "Wrote %d file(s) to %s.",
            len(self._file_records),
            self._output_dir,
        )

    def _write_single_file(
        self,
        full_path: Path,
        content: str,
        rel_path: str,
    ) -> FileRecord:
        full_path.parent.mkdir(parents=True, exist_ok=True)

        encoded: bytes = content.encode("utf-8")
        size_bytes: int = len(encoded)
        line_count: int = count_lines(content)
        checksum: str = sha256_hex(content)

        if self._atomic_writes:
            self._atomic_write(full_path, encoded)
        else:
            full_path.write_bytes(encoded)

        logger.debug(
            "Wrote file: %s (%d bytes, %d lines).",
            rel_path,
            size_bytes,
            line_count,
        )

        return FileRecord(
            relative_path=rel_path,
            absolute_path=str(full_path),
            size_bytes=size_bytes,
            line_count=line_count,
            sha256=checksum,
        )

    @staticmethod
    def _atomic_write(target_path: Path, data: bytes) -> None:
        """
        Write data to target_path atomically using a temporary file.

        The temp file lives in the target's directory so ``os.replace``
        stays on one filesystem.
        """
        fd: int = -1
        tmp_path: str = ""
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=str(target_path.parent),
                prefix=f".{target_path.name}.",
                suffix=".tmp",
            )
            os.write(fd, data)
            os.fsync(fd)
            os.close(fd)
            fd = -1

            os.replace(tmp_path, str(target_path))

        except OSError:
            if fd >= 0:
                os.close(fd)
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    # -----------------------------------------------------------------
    # Internal: manifest
    # -----------------------------------------------------------------

    def _build_manifest(self) -> ExportManifest:
        import routegen

        total_bytes: int = sum(r.size_bytes for r in self._file_records)
        total_lines: int = sum(r.line_count for r in self._file_records)

        return ExportManifest(
            project_name=self._config.project_name,
            project_version=self._config.project_version,
            generator_version=routegen.__version__,
            group=self._config.group,
            route_count=self._route_count,
            total_files=len(self._file_records),
            total_bytes=total_bytes,
            total_lines=total_lines,
            files=list(self._file_records),
        )

    def _write_manifest_file(self) -> None:
        manifest: ExportManifest = self._build_manifest()
        manifest_path: Path = self._output_dir / MANIFEST_FILE

        try:
            record: FileRecord = self._write_single_file(
                manifest_path, manifest.to_json(), MANIFEST_FILE
            )
            self._file_records.append(record)
            logger.debug("Wrote manifest to %s.", manifest_path)
        except OSError as exc:
            self._warnings.append(f"Could not write manifest: {exc}")
            logger.warning("Failed to write manifest: %s", exc)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MANIFEST_FILE",
    "RouteExporter",
    "ExportManifest",
    "ExportResult",
    "FileRecord",
]

logger.debug("routegen.exporters loaded.")
