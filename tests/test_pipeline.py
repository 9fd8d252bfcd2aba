import json

import pytest

from dungeon_assembler.generators.layout.layout_engine import GenerationStatus
from dungeon_assembler.generators.templates import RoomCatalog, save_catalog
from dungeon_assembler.pipeline import (
    AutomatedPipeline,
    PipelineError,
    PipelineSettings,
    PipelineStage,
)
from dungeon_assembler.validation.core import (
    Severity,
    ValidationError,
    ValidationIssue,
    ValidationResult,
    ValidationStage,
)

from tests.factories import dead_end, hall_catalog, hub, vault


def settings(tmp_path, **overrides):
    values = dict(catalog_name="crypt", total_rooms=8, seed=99, output_dir=str(tmp_path),
                  map_name="run", export_formats=("json", "dot"))
    values.update(overrides)
    return PipelineSettings(**values)


def test_generates_audits_and_exports(tmp_path):
    result = AutomatedPipeline(settings(tmp_path)).generate()

    assert result.success
    assert result.seed == 99
    assert result.status in set(GenerationStatus)
    assert result.audit.passed
    assert result.stages_completed == [
        PipelineStage.INITIALIZE,
        PipelineStage.GENERATE_LAYOUT,
        PipelineStage.AUDIT,
        PipelineStage.EXPORT,
        PipelineStage.COMPLETE,
    ]
    assert sorted(result.output_files) == sorted([str(tmp_path / "run.json"), str(tmp_path / "run.dot")])

    data = json.loads((tmp_path / "run.json").read_text(encoding="utf-8"))
    assert data["metadata"]["seed"] == 99
    assert data["statistics"]["room_count"] == result.layout.room_count
    assert data["audit"]["passed"] is True
    assert (tmp_path / "run.dot").read_text(encoding="utf-8").startswith("graph DungeonLayout {")


def test_same_seed_same_export(tmp_path):
    first = AutomatedPipeline(settings(tmp_path / "a")).generate()
    second = AutomatedPipeline(settings(tmp_path / "b")).generate()
    a = json.loads((tmp_path / "a" / "run.json").read_text(encoding="utf-8"))
    b = json.loads((tmp_path / "b" / "run.json").read_text(encoding="utf-8"))
    assert a["layout"]["rooms"] == b["layout"]["rooms"]
    assert first.status == second.status


def test_random_seed_is_recorded(tmp_path):
    result = AutomatedPipeline(settings(tmp_path, seed=None, export_formats=())).generate()
    assert result.success
    assert isinstance(result.seed, int)
    assert result.layout.seed == result.seed
    assert result.output_files == []


def test_catalog_file(tmp_path):
    path = save_catalog(hall_catalog(), tmp_path / "halls.json")
    result = AutomatedPipeline(settings(tmp_path, catalog_file=str(path), total_rooms=5)).generate()
    assert result.success
    assert result.status == GenerationStatus.SUCCESS
    assert [r.name for r in result.layout.rooms] == ["Hub", "Hall", "Hall", "Hall", "Vault"]


def test_unknown_catalog_is_reported(tmp_path):
    result = AutomatedPipeline(settings(tmp_path, catalog_name="atlantis")).generate()
    assert not result.success
    assert "Unknown catalog" in result.errors[0]
    assert result.errors[0].startswith("[initialize]")


def test_unreadable_catalog_file_is_reported(tmp_path):
    result = AutomatedPipeline(settings(tmp_path, catalog_file=str(tmp_path / "none.json"))).generate()
    assert not result.success
    assert "Could not load catalog" in result.errors[0]


def test_invalid_layout_settings_are_reported(tmp_path):
    result = AutomatedPipeline(settings(tmp_path, total_rooms=1)).generate()
    assert not result.success
    assert "total_rooms" in result.errors[0]


def test_invalid_export_format_is_rejected(tmp_path):
    with pytest.raises(PipelineError, match="export format"):
        AutomatedPipeline(settings(tmp_path, export_formats=("svg",)))


def test_generation_issues_become_warnings(tmp_path):
    path = save_catalog(hall_catalog(), tmp_path / "halls.json")
    # Hub, one hall, vault: no generation or audit findings
    result = AutomatedPipeline(settings(tmp_path, catalog_file=str(path), total_rooms=3,
                                        export_formats=())).generate()
    assert result.success
    assert result.warnings == []


def test_generation_failures_are_reported_as_warnings(tmp_path):
    catalog = RoomCatalog(name="closet", start=hub(), destination=vault(), rooms=[dead_end()])
    path = save_catalog(catalog, tmp_path / "closet.json")
    result = AutomatedPipeline(settings(tmp_path, catalog_file=str(path), total_rooms=5,
                                        export_formats=())).generate()
    assert result.success
    assert result.status == GenerationStatus.PARTIAL_SUCCESS
    generation = [w for w in result.warnings if w.startswith("[generate_layout]")]
    assert any("GEN-004" in w for w in generation)
    assert any("GEN-002" in w for w in generation)


def test_progress_callback_sees_every_stage(tmp_path):
    seen = []
    pipeline = AutomatedPipeline(settings(tmp_path))
    pipeline.set_progress_callback(lambda p: seen.append((p.stage, p.percentage)))
    pipeline.generate()

    stages = [stage for stage, _ in seen]
    for stage in (PipelineStage.INITIALIZE, PipelineStage.GENERATE_LAYOUT,
                  PipelineStage.AUDIT, PipelineStage.EXPORT):
        assert stage in stages
    percentages = [pct for _, pct in seen]
    assert percentages[-1] == 100
    assert all(0 <= pct <= 100 for pct in percentages)


def test_strict_mode_raises_on_failed_audit(tmp_path, monkeypatch):
    failing = ValidationResult(
        issues=[ValidationIssue(severity=Severity.FAIL, code="LAYOUT-001", message="overlap")],
        stage=ValidationStage.AUDIT,
    )
    monkeypatch.setattr("dungeon_assembler.pipeline.automated_pipeline.validate_layout",
                        lambda layout: failing)

    lenient = AutomatedPipeline(settings(tmp_path)).generate()
    assert lenient.success
    assert any("LAYOUT-001" in w for w in lenient.warnings)

    with pytest.raises(ValidationError) as info:
        AutomatedPipeline(settings(tmp_path, strict=True)).generate()
    assert info.value.result is failing
