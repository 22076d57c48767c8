"""Projection matching and focus/viewer orchestration for a batch of changed files."""

from __future__ import annotations

import inspect
from typing import Any, List, Mapping, Optional, Sequence

from ..config import (
    DefinedBlock,
    FocusConfig,
    ProjectionRef,
    ReportViewer,
    RunViewer,
    TiltshiftConfig,
    UpdateSubjectContextViewer,
    Viewer,
)
from ..errors import ConfigurationError
from ..focuses import Focus, apply_focus, default_focuses
from ..globbing import matches_glob
from ..logging import RuleLogger, get_logger, rule_logger
from ..models import (
    ChangedFile,
    FileVersions,
    FilterResult,
    ProcessingContext,
    ProcessingResult,
    ReportOutput,
)
from ..resolver import resolve_focuses, resolve_projection, resolve_viewers
from ..viewers import (
    execute_report_viewer,
    execute_update_subject_context_viewer,
    merge_subject_context,
    render_run_viewer,
)


class ProjectionRunner:
    """Runs every subject's projections over a batch of changed files.

    Traversal is files, then subjects, then projections, all in declaration
    order. Subject-context updates from one file are visible to every viewer
    that runs afterwards.
    """

    def __init__(
        self,
        focuses: Optional[Mapping[str, Focus]] = None,
        *,
        skip_unfetchable_files: bool = False,
    ) -> None:
        self.focuses = dict(focuses) if focuses is not None else default_focuses()
        self.skip_unfetchable_files = skip_unfetchable_files
        self.logger = get_logger("runner")

    async def run(
        self,
        files: Sequence[ChangedFile],
        config: TiltshiftConfig,
        context: ProcessingContext,
    ) -> ProcessingResult:
        self.logger.info(
            "Processing %d changed files against %d subjects (%s...%s)",
            len(files),
            len(config.subjects),
            context.refs.base,
            context.refs.head,
        )
        reports: List[ReportOutput] = []
        for file in files:
            for subject_id, subject in config.subjects.items():
                for projection_ref in subject.projections:
                    reports.extend(
                        await self._process_projection(
                            file,
                            projection_ref,
                            subject_id=subject_id,
                            defined=config.defined,
                            context=context,
                        )
                    )
        self.logger.info("Produced %d reports", len(reports))
        return ProcessingResult(reports=reports, subjects=context.subjects)

    async def _process_projection(
        self,
        file: ChangedFile,
        projection_ref: ProjectionRef,
        *,
        subject_id: str,
        defined: Optional[DefinedBlock],
        context: ProcessingContext,
    ) -> List[ReportOutput]:
        projection = resolve_projection(projection_ref, defined)
        file_path = file.path
        log = rule_logger(self.logger, file_path, subject_id)

        if not matches_glob(file_path, projection.include):
            log.debug("skipped by '%s'", projection.include)
            return []

        focuses = resolve_focuses(projection.focuses, defined)

        try:
            versions = await self._fetch_versions(file, context)
        except Exception as exc:
            if not self.skip_unfetchable_files:
                raise
            log.warning("content fetch failed, skipping (%s)", exc)
            return []

        result = await self._run_focuses(focuses, versions, file_path, log)
        if result is None:
            return []

        viewers = resolve_viewers(projection.viewers, defined)
        return await self._dispatch_viewers(viewers, result, file_path, subject_id, context, log)

    async def _run_focuses(
        self,
        focuses: Sequence[FocusConfig],
        versions: FileVersions,
        file_path: str,
        log: RuleLogger,
    ) -> Optional[FilterResult]:
        result: Optional[FilterResult] = None
        for index, focus in enumerate(focuses):
            result = await apply_focus(focus, versions, file_path, self.focuses)
            if result is None:
                log.debug("no meaningful difference from %s focus #%d", focus.type, index)
                return None
        return result

    async def _dispatch_viewers(
        self,
        viewers: Sequence[Viewer],
        result: FilterResult,
        file_path: str,
        subject_id: str,
        context: ProcessingContext,
        log: RuleLogger,
    ) -> List[ReportOutput]:
        reports: List[ReportOutput] = []
        for viewer in viewers:
            if isinstance(viewer, ReportViewer):
                reports.append(
                    execute_report_viewer(
                        viewer, result, file_path, subject=subject_id, subjects=context.subjects
                    )
                )
            elif isinstance(viewer, UpdateSubjectContextViewer):
                updates = execute_update_subject_context_viewer(
                    viewer, result, file_path, subject=subject_id, subjects=context.subjects
                )
                merge_subject_context(context.subjects, subject_id, updates)
                log.debug("updated context keys %s", sorted(updates))
            elif isinstance(viewer, RunViewer):
                invocation = render_run_viewer(
                    viewer, result, file_path, subject=subject_id, subjects=context.subjects
                )
                if context.command_executor is None:
                    log.debug("no command executor configured; skipping %s", invocation.argv)
                    continue
                await _maybe_await(context.command_executor(invocation))
            else:
                raise ConfigurationError(f"Unsupported viewer {viewer!r} for {file_path}")
        return reports

    @staticmethod
    async def _fetch_versions(file: ChangedFile, context: ProcessingContext) -> FileVersions:
        old_content: Optional[str] = None
        new_content: Optional[str] = None

        old_path = file.old_path or file.new_path
        new_path = file.new_path or file.old_path
        if not file.is_added and old_path:
            old_content = await _maybe_await(context.content_provider(context.refs.base, old_path))
        if not file.is_deleted and new_path:
            new_content = await _maybe_await(context.content_provider(context.refs.head, new_path))

        return FileVersions(old_content=old_content, new_content=new_content)


async def process_files(
    files: Sequence[ChangedFile],
    config: TiltshiftConfig,
    context: ProcessingContext,
    *,
    focuses: Optional[Mapping[str, Focus]] = None,
) -> ProcessingResult:
    """Process a batch with a fresh :class:`ProjectionRunner`."""
    return await ProjectionRunner(focuses).run(files, config, context)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


__all__ = ["ProjectionRunner", "process_files"]
