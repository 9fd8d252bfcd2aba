"""
Automated pipeline for layout generation.

Orchestrates catalog loading, layout generation, the post-generation audit,
and debug export (JSON / DOT) of the finished layout.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from dungeon_assembler.generators.layout.host import HostAdapter
from dungeon_assembler.generators.layout.layout_engine import (
    GenerationResult,
    GenerationStatus,
    LayoutConfigError,
    LayoutEngine,
    LayoutSettings,
)
from dungeon_assembler.generators.layout.layout_validation import validate_layout
from dungeon_assembler.generators.templates import CATALOG_REGISTRY, RoomCatalog, load_catalog
from dungeon_assembler.validation.core import ValidationError, ValidationResult

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "dot")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PipelineStage(Enum):
    INITIALIZE = "initialize"
    GENERATE_LAYOUT = "generate_layout"
    AUDIT = "audit"
    EXPORT = "export"
    COMPLETE = "complete"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class PipelineError(Exception):
    pass


# ---------------------------------------------------------------------------
# Settings / Result dataclasses
# ---------------------------------------------------------------------------

@dataclass
class PipelineSettings:
    # Catalog: a registered name, or a JSON file (takes precedence)
    catalog_name: str = "crypt"
    catalog_file: Optional[str] = None

    # Layout
    total_rooms: int = 10
    door_snap_tolerance: float = 0.2
    match_local_direction: bool = False

    # Seeding for reproducible generation
    seed: Optional[int] = None  # None = random seed, otherwise deterministic

    # Output
    output_dir: Optional[str] = None
    map_name: str = "generated_layout"
    export_formats: Tuple[str, ...] = ("json",)

    # Raise ValidationError when the audit finds FAIL issues
    strict: bool = False


@dataclass
class PipelineProgress:
    stage: PipelineStage
    stage_progress: float
    overall_progress: float
    message: str
    elapsed_time: float

    @property
    def percentage(self) -> int:
        return int(round(self.overall_progress * 100))


@dataclass
class PipelineResult:
    success: bool
    status: Optional[GenerationStatus] = None
    layout: Optional[GenerationResult] = None
    audit: Optional[ValidationResult] = None
    output_files: List[str] = field(default_factory=list)
    stages_completed: List[PipelineStage] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_time(self) -> float:
        return self.metrics.get("total_time", 0.0)

    @property
    def seed(self) -> Optional[int]:
        return self.metrics.get("seed")

    def add_error(self, error: str, stage: Optional[PipelineStage] = None):
        if stage:
            error = f"[{stage.value}] {error}"
        self.errors.append(error)

    def add_warning(self, warning: str, stage: Optional[PipelineStage] = None):
        if stage:
            warning = f"[{stage.value}] {warning}"
        self.warnings.append(warning)


# ---------------------------------------------------------------------------
# Progress tracker
# ---------------------------------------------------------------------------

class ProgressTracker:
    STAGE_WEIGHTS = {
        PipelineStage.INITIALIZE: 0.05,
        PipelineStage.GENERATE_LAYOUT: 0.75,
        PipelineStage.AUDIT: 0.10,
        PipelineStage.EXPORT: 0.10,
    }

    def __init__(self):
        self.start_time = time.time()

    def calculate_progress(self, current_stage: PipelineStage, stage_progress: float) -> PipelineProgress:
        stages = list(self.STAGE_WEIGHTS.keys())
        if current_stage not in stages:
            overall = 1.0
        else:
            idx = stages.index(current_stage)
            completed = sum(self.STAGE_WEIGHTS[s] for s in stages[:idx])
            overall = completed + self.STAGE_WEIGHTS[current_stage] * stage_progress
        return PipelineProgress(
            stage=current_stage,
            stage_progress=stage_progress,
            overall_progress=min(overall, 1.0),
            message="",
            elapsed_time=time.time() - self.start_time,
        )


# ---------------------------------------------------------------------------
# Main pipeline
# ---------------------------------------------------------------------------

class AutomatedPipeline:
    """Generates a layout from a catalog, audits it and writes debug exports."""

    def __init__(self, settings: Optional[PipelineSettings] = None,
                 host: Optional[HostAdapter] = None):
        self.settings = settings or PipelineSettings()
        self.host = host
        self.is_running = False
        self.current_stage = PipelineStage.INITIALIZE
        self.progress_tracker = ProgressTracker()
        self.progress_callback: Optional[Callable[[PipelineProgress], None]] = None

        # Components
        self.catalog: Optional[RoomCatalog] = None
        self.engine: Optional[LayoutEngine] = None

        # Data
        self.layout: Optional[GenerationResult] = None
        self.audit: Optional[ValidationResult] = None
        self._validate_settings()

    # -- helpers --

    def set_progress_callback(self, callback: Callable[[PipelineProgress], None]):
        self.progress_callback = callback

    def _update_progress(self, stage_progress: float, message: str):
        progress = self.progress_tracker.calculate_progress(self.current_stage, stage_progress)
        progress.message = message
        if self.progress_callback:
            try:
                self.progress_callback(progress)
            except Exception:
                logger.exception("Progress callback failed")

    def _validate_settings(self):
        errors = []
        unknown = [f for f in self.settings.export_formats if f not in EXPORT_FORMATS]
        if unknown:
            errors.append(f"Unknown export format(s): {', '.join(unknown)}")
        if not self.settings.map_name:
            errors.append("Map name must not be empty")
        if not self.settings.catalog_file and not self.settings.catalog_name:
            errors.append("A catalog name or catalog file is required")
        if errors:
            raise PipelineError(f"Invalid settings: {'; '.join(errors)}")

    def _output_dir(self) -> Path:
        out_dir = Path(self.settings.output_dir) if self.settings.output_dir else Path("output") / "layouts"
        out_dir.mkdir(parents=True, exist_ok=True)
        return out_dir

    # -- stages --

    def _initialize(self, seed: int):
        self.current_stage = PipelineStage.INITIALIZE
        self._update_progress(0.0, "Loading catalog...")

        if self.settings.catalog_file:
            self.catalog = load_catalog(self.settings.catalog_file)
            if self.catalog is None:
                raise PipelineError(f"Could not load catalog file: {self.settings.catalog_file}")
        else:
            self.catalog = CATALOG_REGISTRY.get_catalog(self.settings.catalog_name)
            if self.catalog is None:
                available = ', '.join(CATALOG_REGISTRY.list_catalogs())
                raise PipelineError(f"Unknown catalog: {self.settings.catalog_name} (available: {available})")

        layout_settings = LayoutSettings(
            total_rooms=self.settings.total_rooms,
            door_snap_tolerance=self.settings.door_snap_tolerance,
            seed=seed,
            match_local_direction=self.settings.match_local_direction,
        )
        try:
            self.engine = LayoutEngine(self.catalog, layout_settings, host=self.host)
        except LayoutConfigError as e:
            raise PipelineError(str(e)) from e

        self.engine.set_wave_callback(
            lambda wave, placed, target: self._update_progress(
                placed / target, f"Wave {wave}: {placed}/{target} rooms"))
        self._update_progress(1.0, f"Catalog '{self.catalog.name}' loaded")

    def _generate_layout(self) -> GenerationResult:
        self.current_stage = PipelineStage.GENERATE_LAYOUT
        self._update_progress(0.0, "Generating layout...")
        self.layout = self.engine.generate()
        self._update_progress(1.0, f"Layout {self.layout.status.value}: "
                                   f"{self.layout.room_count}/{self.settings.total_rooms} rooms")
        return self.layout

    def _audit_layout(self) -> ValidationResult:
        self.current_stage = PipelineStage.AUDIT
        self._update_progress(0.0, "Auditing layout...")
        self.audit = validate_layout(self.layout)
        self._update_progress(1.0, "Audit passed" if self.audit.passed else "Audit failed")
        return self.audit

    def _export(self) -> List[str]:
        from dungeon_assembler.pipeline.debug.graph_export import (
            export_layout_dot, export_layout_json
        )

        self.current_stage = PipelineStage.EXPORT
        self._update_progress(0.0, "Writing exports...")
        if not self.settings.export_formats:
            self._update_progress(1.0, "No exports requested")
            return []

        out_dir = self._output_dir()
        written = []
        for fmt in self.settings.export_formats:
            if fmt == "json":
                content = export_layout_json(self.layout, self.audit)
            else:
                content = export_layout_dot(self.layout)
            path = out_dir / f"{self.settings.map_name}.{fmt}"
            try:
                with open(path, 'w', encoding='utf-8') as f:
                    f.write(content)
            except OSError as e:
                raise PipelineError(f"Failed to write {path}: {e}") from e
            written.append(str(path))
            logger.info("Export written: %s", path)

        self._update_progress(1.0, f"{len(written)} file(s) written")
        return written

    # -- main entry --

    def generate(self) -> PipelineResult:
        """Run every stage and return the outcome.

        Raises:
            PipelineError: If the pipeline is already running
            ValidationError: In strict mode, when the audit reports FAIL issues
        """
        if self.is_running:
            raise PipelineError("Pipeline is already running")
        self.is_running = True
        self.progress_tracker = ProgressTracker()
        result = PipelineResult(success=False)
        start_time = time.time()

        try:
            # Resolve seed for reproducible generation
            if self.settings.seed is not None:
                actual_seed = self.settings.seed
            else:
                actual_seed = random.randint(0, 2**31 - 1)

            result.metrics['seed'] = actual_seed
            logger.info("Generation seed: %d", actual_seed)

            stages = [
                (lambda: self._initialize(actual_seed), "Initialize"),
                (self._generate_layout, "Generate layout"),
                (self._audit_layout, "Audit"),
                (self._export, "Export"),
            ]
            for stage_fn, desc in stages:
                try:
                    logger.info("Stage: %s", desc)
                    stage_result = stage_fn()
                    result.stages_completed.append(self.current_stage)
                except PipelineError as e:
                    result.add_error(str(e), self.current_stage)
                    return result

                if self.current_stage == PipelineStage.GENERATE_LAYOUT:
                    result.layout = stage_result
                    result.status = stage_result.status
                    result.metrics.update(stage_result.metrics)
                    diagnostics = stage_result.diagnostics
                    for issue in diagnostics.errors + diagnostics.warnings:
                        result.add_warning(str(issue), PipelineStage.GENERATE_LAYOUT)
                elif self.current_stage == PipelineStage.AUDIT:
                    result.audit = stage_result
                    for issue in stage_result.issues:
                        result.add_warning(str(issue), PipelineStage.AUDIT)
                    if stage_result.failed and self.settings.strict:
                        raise ValidationError(stage_result)
                elif self.current_stage == PipelineStage.EXPORT:
                    result.output_files.extend(stage_result)

            self.current_stage = PipelineStage.COMPLETE
            result.stages_completed.append(PipelineStage.COMPLETE)
            result.success = True
            result.metrics["total_time"] = time.time() - start_time
            logger.info("Pipeline complete in %.2fs", result.metrics["total_time"])
        except ValidationError:
            raise
        except Exception as e:
            logger.exception("Unexpected pipeline error")
            result.add_error(f"Unexpected error: {e}")
        finally:
            self.is_running = False
        return result
