"""Execution of per-project coverage runs, sequential or on a thread pool.

Every tool invocation gets an explicit working directory, so projects can run
concurrently. Results are returned in job order regardless of completion
order.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, List

from polycov.core.errors import CancelledError
from polycov.core.logging import get_logger
from polycov.core.models import CoverageStatus, LogicalProject, ProjectCoverage, RunContext
from polycov.plugins.coverage.base import CoveragePlugin

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class CoverageJob:
    """One logical project paired with the plugin that measures it."""

    project: LogicalProject
    plugin: CoveragePlugin


class ParallelCoverageExecutor:
    """Runs coverage jobs; ``max_workers=1`` means strictly sequential."""

    def __init__(self, max_workers: int = 1) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._max_workers = max_workers

    def execute(self, jobs: List[CoverageJob], context: RunContext) -> List[ProjectCoverage]:
        """Run all jobs and return one result per job, in job order."""
        if not jobs:
            return []
        if self._max_workers == 1 or len(jobs) == 1:
            return self._execute_sequential(jobs, context)
        return self._execute_parallel(jobs, context)

    def _execute_sequential(self, jobs: List[CoverageJob], context: RunContext) -> List[ProjectCoverage]:
        results: List[ProjectCoverage] = []
        for job in jobs:
            if context.cancel_event.is_set():
                results.append(_cancelled(job.project))
                continue
            results.append(run_job(job, context))
        return results

    def _execute_parallel(self, jobs: List[CoverageJob], context: RunContext) -> List[ProjectCoverage]:
        results: Dict[int, ProjectCoverage] = {}

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            future_to_index = {
                executor.submit(self._run_unless_cancelled, job, context): index
                for index, job in enumerate(jobs)
            }
            try:
                for future in as_completed(future_to_index):
                    results[future_to_index[future]] = future.result()
            except KeyboardInterrupt:
                LOGGER.warning("Interrupted, stopping running tools")
                context.cancel_event.set()
                raise

        return [results[index] for index in range(len(jobs))]

    @staticmethod
    def _run_unless_cancelled(job: CoverageJob, context: RunContext) -> ProjectCoverage:
        if context.cancel_event.is_set():
            return _cancelled(job.project)
        return run_job(job, context)


def run_job(job: CoverageJob, context: RunContext) -> ProjectCoverage:
    """Run one job. Never raises except for KeyboardInterrupt."""
    try:
        return job.plugin.run(job.project, context)
    except CancelledError:
        return _cancelled(job.project)
    except Exception as e:
        LOGGER.error(f"{job.project.name}: {job.plugin.name} failed: {e}")
        return ProjectCoverage(project=job.project, status=CoverageStatus.FAILED, message=str(e))


def _cancelled(project: LogicalProject) -> ProjectCoverage:
    return ProjectCoverage(project=project, status=CoverageStatus.FAILED, message="cancelled")
