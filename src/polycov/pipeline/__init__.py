"""Coverage run orchestration."""

from polycov.pipeline.executor import CoveragePipeline
from polycov.pipeline.parallel import CoverageJob, ParallelCoverageExecutor

__all__ = ["CoverageJob", "CoveragePipeline", "ParallelCoverageExecutor"]
