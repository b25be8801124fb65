"""Coverage pipeline: discovery, per-project measurement, aggregation, summary.

Only structural failures abort a run: the results directory cannot be
created, or the summary cannot be written. Both raise OutputDirectoryError.
"""

from __future__ import annotations

import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from polycov.config.models import PolycovConfig
from polycov.core.errors import CancelledError, OutputDirectoryError
from polycov.core.logging import get_logger
from polycov.core.models import CoverageReport, RunContext, Technology
from polycov.core.streaming import StreamHandler
from polycov.core.tally import CoverageAggregator
from polycov.discovery.engine import DiscoveryResult, ProjectDiscovery
from polycov.pipeline.parallel import CoverageJob, ParallelCoverageExecutor
from polycov.plugins.coverage import get_coverage_plugins
from polycov.plugins.coverage.base import CoveragePlugin
from polycov.plugins.reporters.json_reporter import JSONReporter
from polycov.plugins.reporters.summary_reporter import SummaryReporter

LOGGER = get_logger(__name__)

SUMMARY_PREFIX = "coverage-summary"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class CoveragePipeline:
    """One coverage run over a workspace.

    Construct one pipeline per run; the aggregator and discovery caches it
    creates are discarded with it.
    """

    def __init__(
        self,
        workspace_root: Path,
        config: Optional[PolycovConfig] = None,
        plugins: Optional[Dict[Technology, CoveragePlugin]] = None,
        stream_handler: Optional[StreamHandler] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.workspace_root = Path(workspace_root).resolve()
        self.config = config or PolycovConfig()
        self._plugins = plugins
        self._stream_handler = stream_handler
        self.cancel_event = cancel_event or threading.Event()

    @property
    def output_dir(self) -> Path:
        return self.config.output.resolve_dir(self.workspace_root)

    @property
    def plugins(self) -> Dict[Technology, CoveragePlugin]:
        if self._plugins is None:
            self._plugins = get_coverage_plugins()
        return self._plugins

    def discover(self, technologies: Optional[List[Technology]] = None) -> DiscoveryResult:
        discovery = ProjectDiscovery(
            self.workspace_root, self.config, exclude_paths=[self.output_dir]
        )
        return discovery.discover(technologies)

    def run(self, technologies: Optional[List[Technology]] = None) -> CoverageReport:
        """Execute the full pipeline.

        Raises:
            OutputDirectoryError: The results directory or summary cannot be written.
            CancelledError: The run was cancelled.
        """
        self._prepare_output_dir()

        discovery = self.discover(technologies)
        LOGGER.info(f"Discovered {discovery.total} logical project(s)")

        jobs: List[CoverageJob] = []
        for tech, projects in discovery.projects.items():
            plugin = self.plugins.get(tech)
            if plugin is None:
                LOGGER.warning(f"No coverage plugin for {tech.value}; skipping {len(projects)} project(s)")
                continue
            jobs.extend(CoverageJob(project, plugin) for project in projects)

        context = RunContext(
            workspace_root=self.workspace_root,
            output_dir=self.output_dir,
            config=self.config,
            stream_handler=self._stream_handler,
            cancel_event=self.cancel_event,
        )
        executor = ParallelCoverageExecutor(max_workers=self.config.pipeline.max_workers)
        results = executor.execute(jobs, context)

        if self.cancel_event.is_set():
            raise CancelledError("Coverage run was cancelled")

        aggregator = CoverageAggregator(discovery.projects.keys())
        for result in results:
            aggregator.add(result)

        report = CoverageReport(
            workspace_root=self.workspace_root,
            generated_at=datetime.now(),
            tallies=aggregator.tallies,
            overall=aggregator.overall,
            projects=aggregator.results,
        )
        if self.config.output.write_summary:
            report.summary_file = self.write_summary(report)
        return report

    def write_summary(self, report: CoverageReport) -> Path:
        """Persist the report as timestamped text and JSON files.

        Returns:
            Path to the text summary.
        """
        stamp = report.generated_at.strftime(TIMESTAMP_FORMAT)
        text_path = self.output_dir / f"{SUMMARY_PREFIX}-{stamp}.txt"
        json_path = text_path.with_suffix(".json")
        try:
            with open(text_path, "w", encoding="utf-8") as f:
                SummaryReporter().report(report, f)
            report.summary_file = text_path
            with open(json_path, "w", encoding="utf-8") as f:
                JSONReporter().report(report, f)
        except OSError as e:
            raise OutputDirectoryError(f"Cannot write summary to {self.output_dir}: {e}") from e
        LOGGER.info(f"Summary saved to: {text_path}")
        return text_path

    def _prepare_output_dir(self) -> None:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(f"Cannot create output directory {self.output_dir}: {e}") from e
