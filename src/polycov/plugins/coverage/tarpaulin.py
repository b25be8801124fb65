"""Rust coverage via cargo-tarpaulin."""

from __future__ import annotations

import shutil
from typing import List

from polycov.core.logging import get_logger
from polycov.core.models import LogicalProject, ProjectCoverage, RunContext, Technology
from polycov.plugins.coverage.base import CoveragePlugin, ToolRequirement
from polycov.plugins.coverage.reports import cobertura_parser
from polycov.plugins.utils import check_project_directory

LOGGER = get_logger(__name__)

REPORT_NAME = "cobertura.xml"


class TarpaulinCoveragePlugin(CoveragePlugin):
    """Measures Cargo packages and workspaces (``Cargo.toml``)."""

    @property
    def name(self) -> str:
        return "tarpaulin"

    @property
    def technology(self) -> Technology:
        return Technology.RUST

    @property
    def requirements(self) -> List[ToolRequirement]:
        return [
            ToolRequirement("cargo", "https://rustup.rs"),
            ToolRequirement("cargo-tarpaulin", "cargo install cargo-tarpaulin"),
        ]

    def measure(self, project: LogicalProject, context: RunContext) -> ProjectCoverage:
        binary = self.ensure_binary(project)
        check_project_directory(project.directory)

        output_dir = context.project_results_dir(project)
        shutil.rmtree(output_dir, ignore_errors=True)
        output_dir.mkdir(parents=True, exist_ok=True)

        cmd = [str(binary), "tarpaulin", "--out", "Xml", "--output-dir", str(output_dir)]
        cmd.extend(context.extra_args(self.technology))
        LOGGER.info(f"{project.name}: running tests with coverage")
        self.invoke(cmd, project, context, "cargo-tarpaulin")

        report = output_dir / REPORT_NAME
        reports = [report] if report.is_file() else []
        parser = cobertura_parser(context.config.pipeline.report_parser)
        return self.collect(project, context, parser, reports, copy=False)
