"""
ts-barrels Core — configuration, scanning, export extraction, writing and
the generation pipeline.

Re-exports the primary classes for convenience::

    from tsbarrels.core import BarrelConfig, ExportExtractor, GenerationPipeline
"""

from tsbarrels.core.config import BarrelConfig, DEFAULT_BARREL_NAME
from tsbarrels.core.extractor import ExportDescriptor, ExportExtractor
from tsbarrels.core.generator import (
    DirectoryResult,
    GenerationOptions,
    GenerationPipeline,
    GenerationResult,
    ModuleFailure,
)
from tsbarrels.core.scanner import DirectoryNode, build_tree, scan_directory
from tsbarrels.core.writer import (
    BarrelContent,
    BarrelEntry,
    Outcome,
    plan_barrel,
    write_barrel,
)

__all__ = [
    "BarrelConfig",
    "DEFAULT_BARREL_NAME",
    "ExportDescriptor",
    "ExportExtractor",
    "DirectoryResult",
    "GenerationOptions",
    "GenerationPipeline",
    "GenerationResult",
    "ModuleFailure",
    "DirectoryNode",
    "build_tree",
    "scan_directory",
    "BarrelContent",
    "BarrelEntry",
    "Outcome",
    "plan_barrel",
    "write_barrel",
]
