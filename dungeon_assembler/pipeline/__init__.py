"""
Layout generation pipeline.

Provides automated layout generation, audit and debug export.
"""

from .automated_pipeline import (
    AutomatedPipeline,
    PipelineSettings,
    PipelineResult,
    PipelineProgress,
    PipelineStage,
    PipelineError,
)

__all__ = [
    'AutomatedPipeline',
    'PipelineSettings',
    'PipelineResult',
    'PipelineProgress',
    'PipelineStage',
    'PipelineError',
]
