"""Extraction of (covered, total) line counts from coverage reports.

Two strategies exist for the XML formats: a structured parser built on
``defusedxml`` and a pattern parser built on regular expressions. In ``auto``
mode the structured parser is tried first and the pattern parser takes over
when the document cannot be parsed, which happens with reports truncated by a
killed or failed tool run.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import defusedxml.ElementTree as ET  # type: ignore[import-untyped]

from polycov.core.logging import get_logger
from polycov.core.models import LineCounts

LOGGER = get_logger(__name__)

MODE_AUTO = "auto"
MODE_STRUCTURED = "structured"
MODE_PATTERN = "pattern"


class ReportFormatError(Exception):
    """A report could not be parsed by the selected strategy."""


class ReportParser(ABC):
    """Extracts line counts from one report file."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Parser identifier, used in log messages."""

    @abstractmethod
    def extract(self, path: Path) -> Optional[LineCounts]:
        """Read the report's line totals.

        Returns:
            The counts, or None if the report carries no totals.

        Raises:
            ReportFormatError: If the document cannot be read by this parser.
        """


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ReportFormatError(f"Cannot read {path}: {e}") from e


def _parse_xml(path: Path):
    try:
        root = ET.parse(str(path)).getroot()
    except OSError as e:
        raise ReportFormatError(f"Cannot read {path}: {e}") from e
    except Exception as e:
        raise ReportFormatError(f"Invalid XML in {path}: {e}") from e
    if root is None:
        raise ReportFormatError(f"Empty XML document: {path}")
    return root


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class CoberturaXmlParser(ReportParser):
    """Cobertura: ``lines-covered`` / ``lines-valid`` on the root element."""

    @property
    def name(self) -> str:
        return "cobertura-xml"

    def extract(self, path: Path) -> Optional[LineCounts]:
        root = _parse_xml(path)
        covered = _to_int(root.get("lines-covered"))
        total = _to_int(root.get("lines-valid"))
        if covered is None or total is None:
            return None
        return LineCounts(covered, total)


class CoberturaPatternParser(ReportParser):
    """Cobertura totals via the first matching attributes in the text."""

    COVERED = re.compile(r'lines-covered="(\d+)"')
    VALID = re.compile(r'lines-valid="(\d+)"')

    @property
    def name(self) -> str:
        return "cobertura-pattern"

    def extract(self, path: Path) -> Optional[LineCounts]:
        text = _read(path)
        covered = self.COVERED.search(text)
        total = self.VALID.search(text)
        if covered is None or total is None:
            return None
        return LineCounts(int(covered.group(1)), int(total.group(1)))


class JacocoXmlParser(ReportParser):
    """JaCoCo: the report-level ``LINE`` counter, a direct child of the root."""

    @property
    def name(self) -> str:
        return "jacoco-xml"

    def extract(self, path: Path) -> Optional[LineCounts]:
        root = _parse_xml(path)
        counter = root.find("counter[@type='LINE']")
        if counter is None:
            return None
        covered = _to_int(counter.get("covered"))
        missed = _to_int(counter.get("missed"))
        if covered is None or missed is None:
            return None
        return LineCounts(covered, covered + missed)


class JacocoPatternParser(ReportParser):
    """JaCoCo totals from the last ``LINE`` counter in the text.

    JaCoCo writes the report-level counters after all package elements, so
    the last LINE counter is the report total.
    """

    COUNTER = re.compile(r"<counter\b[^>]*>")
    ATTRIBUTE = re.compile(r'(\w+)="([^"]*)"')

    @property
    def name(self) -> str:
        return "jacoco-pattern"

    def extract(self, path: Path) -> Optional[LineCounts]:
        text = _read(path)
        last: Optional[dict] = None
        for tag in self.COUNTER.findall(text):
            attrs = dict(self.ATTRIBUTE.findall(tag))
            if attrs.get("type") == "LINE":
                last = attrs
        if last is None:
            return None
        covered = _to_int(last.get("covered"))
        missed = _to_int(last.get("missed"))
        if covered is None or missed is None:
            return None
        return LineCounts(covered, covered + missed)


class LcovParser(ReportParser):
    """LCOV: every ``DA:<line>,<hits>`` record is one line, covered if hits > 0."""

    DA_RECORD = re.compile(r"^DA:\d+,(-?\d+)", re.MULTILINE)

    @property
    def name(self) -> str:
        return "lcov"

    def extract(self, path: Path) -> Optional[LineCounts]:
        text = _read(path)
        hits = [int(h) for h in self.DA_RECORD.findall(text)]
        if not hits:
            return None
        return LineCounts(sum(1 for h in hits if h > 0), len(hits))


class FallbackParser(ReportParser):
    """Tries a structured parser, then a pattern parser on format errors."""

    def __init__(self, primary: ReportParser, fallback: ReportParser) -> None:
        self.primary = primary
        self.fallback = fallback

    @property
    def name(self) -> str:
        return f"{self.primary.name}+{self.fallback.name}"

    def extract(self, path: Path) -> Optional[LineCounts]:
        try:
            return self.primary.extract(path)
        except ReportFormatError as e:
            LOGGER.debug(f"{self.primary.name} failed, using {self.fallback.name}: {e}")
            return self.fallback.extract(path)


def _select(structured: ReportParser, pattern: ReportParser, mode: str) -> ReportParser:
    if mode == MODE_STRUCTURED:
        return structured
    if mode == MODE_PATTERN:
        return pattern
    if mode == MODE_AUTO:
        return FallbackParser(structured, pattern)
    raise ValueError(f"Unknown report parser mode: {mode}")


def cobertura_parser(mode: str = MODE_AUTO) -> ReportParser:
    return _select(CoberturaXmlParser(), CoberturaPatternParser(), mode)


def jacoco_parser(mode: str = MODE_AUTO) -> ReportParser:
    return _select(JacocoXmlParser(), JacocoPatternParser(), mode)


def sum_reports(
    parser: ReportParser,
    paths: Iterable[Path],
) -> Tuple[Optional[LineCounts], List[Path]]:
    """Sum the counts of several reports for one project.

    Reports that cannot be parsed or carry no totals are logged and left out.

    Returns:
        The summed counts (None if no report contributed) and the reports
        that contributed.
    """
    total: Optional[LineCounts] = None
    used: List[Path] = []
    for path in paths:
        try:
            counts = parser.extract(path)
        except ReportFormatError as e:
            LOGGER.warning(str(e))
            continue
        if counts is None:
            LOGGER.warning(f"No coverage totals in {path}")
            continue
        total = counts if total is None else total + counts
        used.append(path)
    return total, used
