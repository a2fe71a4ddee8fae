"""One strictify session: load, pre-flight, repair, format, emit, report."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from strictify.config import StrictifyConfig
from strictify.emit.emitter import Emitter, InPlaceEmitter, OutOfPlaceEmitter
from strictify.exceptions import ProjectNotCompilingError
from strictify.frontend.checker import Frontend
from strictify.frontend.diagnostics import CompilerDiagnostic, DiagnosticCategory
from strictify.frontend.project import Project
from strictify.reporting import Logger, NullLogger
from strictify.repair.driver import ConvergenceDriver, DriverResult
from strictify.repair.registry import build_strategies
from strictify.repair.strategy import RepairMode
from strictify.schema import UpgradeReportDTO


@dataclass(frozen=True)
class UpgradeOutcome:
    result: DriverResult
    written: list[Path]
    report: UpgradeReportDTO

    @property
    def exit_code(self) -> int:
        if self.result.stalled and self.report.mode == RepairMode.ALL.value:
            return 1
        return 0


class Runner:
    def __init__(
        self,
        config: StrictifyConfig,
        *,
        logger: Logger | None = None,
        out_of_place: Path | None = None,
        report_path: Path | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or NullLogger()
        self.out_of_place = out_of_place
        self.report_path = report_path

    def _exclude_dirs(self) -> set[str]:
        excluded = set(self.config.exclude)
        if self.out_of_place is not None and not self.out_of_place.is_absolute():
            parts = self.out_of_place.parts
            if parts:
                excluded.add(parts[0])
        return excluded

    def load_project(self) -> Project:
        project = Project.from_paths(
            self.config.root, self.config.include, exclude_dirs=self._exclude_dirs()
        )
        self.logger.info(f"Loaded {len(project.files)} file(s) from {self.config.root}")
        return project

    def check_preconditions(self, project: Project) -> None:
        """Refuse to start unless the project compiles with no stricter checks."""
        errors = [
            diagnostic
            for diagnostic in Frontend().parse(project)
            if diagnostic.category is DiagnosticCategory.ERROR
        ]
        if errors:
            for diagnostic in errors:
                self.logger.error(diagnostic.render())
            raise ProjectNotCompilingError(errors)

    def check(self) -> list[CompilerDiagnostic]:
        project = self.load_project()
        self.check_preconditions(project)
        return Frontend(self.config.checks).parse(project)

    def emitter(self) -> Emitter:
        if self.out_of_place is not None:
            return OutOfPlaceEmitter(self.out_of_place)
        return InPlaceEmitter()

    def upgrade(self) -> UpgradeOutcome:
        project = self.load_project()
        self.check_preconditions(project)
        strategies = build_strategies(
            self.config.checks,
            project=project,
            mode=self.config.mode,
            logger=self.logger,
        )
        driver = ConvergenceDriver(
            project,
            Frontend(self.config.checks),
            strategies,
            max_iterations=self.config.max_iterations,
            logger=self.logger,
        )
        result = driver.run()
        for diagnostic in result.diagnostics:
            self.logger.warning(diagnostic.render())

        emitter = self.emitter()
        if self.config.format:
            emitter.format(result.modified_paths, project)
        written = emitter.emit(project)
        self.logger.info(
            f"{result.reason.value} after {result.iterations} iteration(s); "
            f"wrote {len(written)} file(s)"
        )

        report = UpgradeReportDTO.from_result(
            result,
            checks=[flag.value for flag in self.config.checks],
            mode=self.config.mode.value,
            written_files=[str(path) for path in written],
        )
        if self.report_path is not None:
            self.report_path.parent.mkdir(parents=True, exist_ok=True)
            self.report_path.write_text(report.model_dump_json(indent=2) + "\n", encoding="utf-8")
        return UpgradeOutcome(result=result, written=written, report=report)
