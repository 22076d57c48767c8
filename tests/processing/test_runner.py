"""Tests for the projection runner."""

from __future__ import annotations

import pytest

from tests._fixtures.batch import ContentStore, RecordingFocus
from tiltshift.config import (
    DefinedBlock,
    JqFocusConfig,
    Projection,
    RegexFocusConfig,
    ReportViewer,
    RunViewer,
    Subject,
    TiltshiftConfig,
    UpdateSubjectContextViewer,
    UseReference,
    load_config_text,
)
from tiltshift.errors import ConfigurationError
from tiltshift.models import ChangedFile, ProcessingContext, RevisionPair, RunInvocation
from tiltshift.processing import ProjectionRunner, process_files

PACKAGE_CONFIG = """
subjects:
  deps:
    projections:
      - use: "#defined/projections/package"
defined:
  projections:
    package:
      include: "**/package.json"
      focuses:
        - use: "#defined/focuses/dependencies"
      viewers:
        - use: "#defined/viewers/comment"
  focuses:
    dependencies:
      type: jq
      query: .dependencies
  viewers:
    comment:
      template: "Changed: {{filePath}}"
"""


def _config(*projections: Projection, defined: DefinedBlock | None = None) -> TiltshiftConfig:
    return TiltshiftConfig(subjects={"api": Subject(projections=projections)}, defined=defined)


@pytest.mark.asyncio
async def test_package_json_dependency_change_produces_one_report(
    content_store: ContentStore, processing_context: ProcessingContext
) -> None:
    content_store.add(
        "package.json",
        old='{"name": "app", "dependencies": {"left-pad": "1.0.0"}}',
        new='{"name": "app", "dependencies": {"left-pad": "1.1.0"}}',
    )
    content_store.add("readme.md", old="# App", new="# App!")
    files = [ChangedFile("package.json", "package.json"), ChangedFile("readme.md", "readme.md")]

    result = await process_files(files, load_config_text(PACKAGE_CONFIG), processing_context)

    assert [report.content for report in result.reports] == ["Changed: package.json"]
    assert result.reports[0].subject == "deps"
    assert '+  "left-pad": "1.1.0"' in result.reports[0].metadata.diff_text
    assert result.subjects == {}


@pytest.mark.asyncio
async def test_package_json_without_dependency_change_reports_nothing(
    content_store: ContentStore, processing_context: ProcessingContext
) -> None:
    content_store.add(
        "package.json",
        old='{"name": "app", "dependencies": {"left-pad": "1.0.0"}}',
        new='{"name": "renamed", "dependencies": {"left-pad": "1.0.0"}}',
    )

    result = await process_files(
        [ChangedFile("package.json", "package.json")], load_config_text(PACKAGE_CONFIG), processing_context
    )

    assert result.reports == []


@pytest.mark.asyncio
async def test_unmatched_files_are_not_fetched(
    content_store: ContentStore, processing_context: ProcessingContext
) -> None:
    result = await process_files(
        [ChangedFile("readme.md", "readme.md")], load_config_text(PACKAGE_CONFIG), processing_context
    )

    assert result.reports == []
    assert result.subjects == {}
    assert content_store.calls == []


@pytest.mark.asyncio
async def test_focus_pipeline_short_circuits_on_no_difference(
    content_store: ContentStore, processing_context: ProcessingContext
) -> None:
    focus = RecordingFocus({"A": None, "B": "B"})
    projection = Projection(
        include="*.txt",
        focuses=(RegexFocusConfig(pattern="A"), RegexFocusConfig(pattern="B")),
        viewers=(ReportViewer(template="{{ diffText }}"), UpdateSubjectContextViewer(set={"seen": "yes"})),
    )
    content_store.add("notes.txt", old="a", new="b")

    result = await ProjectionRunner({"regex": focus}).run(
        [ChangedFile("notes.txt", "notes.txt")], _config(projection), processing_context
    )

    assert [call[0] for call in focus.calls] == ["A"]
    assert result.reports == []
    assert result.subjects == {}


@pytest.mark.asyncio
async def test_viewers_receive_the_last_focus_result(
    content_store: ContentStore, processing_context: ProcessingContext
) -> None:
    focus = RecordingFocus({"A": "A", "B": "B"})
    projection = Projection(
        include="*.txt",
        focuses=(RegexFocusConfig(pattern="A"), RegexFocusConfig(pattern="B")),
        viewers=(ReportViewer(template="{{ diffText }} / {{ right.artifact }}"),),
    )
    content_store.add("notes.txt", old="a", new="b")

    result = await ProjectionRunner({"regex": focus}).run(
        [ChangedFile("notes.txt", "notes.txt")], _config(projection), processing_context
    )

    assert [call[0] for call in focus.calls] == ["A", "B"]
    assert [report.content for report in result.reports] == ["diff from B / B-right"]


@pytest.mark.asyncio
async def test_projection_without_focuses_does_not_run_viewers(
    content_store: ContentStore, processing_context: ProcessingContext
) -> None:
    projection = Projection(include="*.txt", viewers=(ReportViewer(template="x"),))
    content_store.add("notes.txt", old="a", new="b")

    result = await process_files([ChangedFile("notes.txt", "notes.txt")], _config(projection), processing_context)

    assert result.reports == []


@pytest.mark.asyncio
async def test_subject_context_from_earlier_files_is_visible_later(
    content_store: ContentStore, processing_context: ProcessingContext
) -> None:
    focus = RecordingFocus({"any": "any"})
    first = Projection(
        include="first.txt",
        focuses=(RegexFocusConfig(pattern="any"),),
        viewers=(UpdateSubjectContextViewer(set={"k": "{{ filePath }}"}),),
    )
    second = Projection(
        include="second.txt",
        focuses=(RegexFocusConfig(pattern="any"),),
        viewers=(ReportViewer(template="previous={{ subjectContext.k }}"),),
    )
    content_store.add("first.txt", old="1", new="2")
    content_store.add("second.txt", old="1", new="2")
    files = [ChangedFile("first.txt", "first.txt"), ChangedFile("second.txt", "second.txt")]

    result = await ProjectionRunner({"regex": focus}).run(files, _config(first, second), processing_context)

    assert [report.content for report in result.reports] == ["previous=first.txt"]
    assert result.subjects == {"api": {"k": "first.txt"}}
    assert processing_context.subjects is result.subjects


@pytest.mark.asyncio
async def test_traversal_is_files_then_subjects_then_projections(
    content_store: ContentStore, processing_context: ProcessingContext
) -> None:
    focus = RecordingFocus({"any": "any"})

    def projection(label: str) -> Projection:
        return Projection(
            include="*.txt",
            focuses=(RegexFocusConfig(pattern="any"),),
            viewers=(ReportViewer(template=f"{label}:{{{{ filePath }}}}"),),
        )

    config = TiltshiftConfig(
        subjects={
            "one": Subject(projections=(projection("1a"), projection("1b"))),
            "two": Subject(projections=(projection("2a"),)),
        }
    )
    content_store.add("a.txt", old="1", new="2")
    content_store.add("b.txt", old="1", new="2")
    files = [ChangedFile("a.txt", "a.txt"), ChangedFile("b.txt", "b.txt")]

    result = await ProjectionRunner({"regex": focus}).run(files, config, processing_context)

    assert [report.content for report in result.reports] == [
        "1a:a.txt",
        "1b:a.txt",
        "2a:a.txt",
        "1a:b.txt",
        "1b:b.txt",
        "2a:b.txt",
    ]
    assert [report.subject for report in result.reports[:3]] == ["one", "one", "two"]


@pytest.mark.asyncio
async def test_missing_projection_reference_raises(processing_context: ProcessingContext) -> None:
    config = _config(UseReference(use="#defined/projections/foo"), defined=DefinedBlock())

    with pytest.raises(ConfigurationError, match='"foo"'):
        await process_files([ChangedFile("a.txt", "a.txt")], config, processing_context)


@pytest.mark.asyncio
async def test_bad_focus_reference_in_unmatched_projection_is_not_resolved(
    processing_context: ProcessingContext,
) -> None:
    projection = Projection(include="*.py", focuses=(UseReference(use="#defined/focuses/missing"),))

    result = await process_files([ChangedFile("a.txt", "a.txt")], _config(projection), processing_context)

    assert result.reports == []


@pytest.mark.asyncio
async def test_added_and_deleted_files_fetch_only_existing_side(
    content_store: ContentStore, processing_context: ProcessingContext
) -> None:
    focus = RecordingFocus({"any": None})
    projection = Projection(include="*.txt", focuses=(RegexFocusConfig(pattern="any"),))
    content_store.add("new.txt", new="hello")
    content_store.add("gone.txt", old="bye")
    files = [ChangedFile(None, "new.txt", "add"), ChangedFile("gone.txt", None, "delete")]

    await ProjectionRunner({"regex": focus}).run(files, _config(projection), processing_context)

    assert content_store.calls == [("head", "new.txt"), ("base", "gone.txt")]
    assert focus.calls[0][1].old_content is None
    assert focus.calls[0][1].new_content == "hello"
    assert focus.calls[1][1].old_content == "bye"
    assert focus.calls[1][1].new_content is None
    assert focus.calls[1][2] == "gone.txt"


@pytest.mark.asyncio
async def test_renamed_file_fetches_both_paths(
    content_store: ContentStore, processing_context: ProcessingContext
) -> None:
    focus = RecordingFocus({"any": None})
    projection = Projection(include="src/*.txt", focuses=(RegexFocusConfig(pattern="any"),))
    files = [ChangedFile("old/a.txt", "src/a.txt", "rename")]

    await ProjectionRunner({"regex": focus}).run(files, _config(projection), processing_context)

    assert content_store.calls == [("base", "old/a.txt"), ("head", "src/a.txt")]


class _FailingStore(ContentStore):
    async def __call__(self, revision: str, path: str) -> str | None:
        self.calls.append((revision, path))
        if path == "broken.txt":
            raise OSError("object not found")
        return "content"


@pytest.mark.asyncio
async def test_fetch_failures_propagate_by_default() -> None:
    context = ProcessingContext(content_provider=_FailingStore(), refs=RevisionPair(base="base", head="head"))
    projection = Projection(include="*.txt", focuses=(JqFocusConfig(query="."),))

    with pytest.raises(OSError, match="object not found"):
        await process_files([ChangedFile("broken.txt", "broken.txt")], _config(projection), context)


@pytest.mark.asyncio
async def test_fetch_failures_can_skip_the_file() -> None:
    store = _FailingStore()
    context = ProcessingContext(content_provider=store, refs=RevisionPair(base="base", head="head"))
    focus = RecordingFocus({"any": "any"})
    projection = Projection(
        include="*.txt",
        focuses=(RegexFocusConfig(pattern="any"),),
        viewers=(ReportViewer(template="{{ filePath }}"),),
    )
    files = [ChangedFile("broken.txt", "broken.txt"), ChangedFile("fine.txt", "fine.txt")]

    runner = ProjectionRunner({"regex": focus}, skip_unfetchable_files=True)
    result = await runner.run(files, _config(projection), context)

    assert [report.content for report in result.reports] == ["fine.txt"]


@pytest.mark.asyncio
async def test_run_viewer_is_handed_to_the_command_executor(
    content_store: ContentStore,
) -> None:
    invocations: list[RunInvocation] = []
    context = ProcessingContext(
        content_provider=content_store,
        refs=RevisionPair(base="base", head="head"),
        command_executor=invocations.append,
    )
    focus = RecordingFocus({"any": "any"})
    projection = Projection(
        include="*.txt",
        focuses=(RegexFocusConfig(pattern="any"),),
        viewers=(RunViewer(command=("notify", "{{ filePath }}")),),
    )
    content_store.add("a.txt", old="1", new="2")

    result = await ProjectionRunner({"regex": focus}).run([ChangedFile("a.txt", "a.txt")], _config(projection), context)

    assert result.reports == []
    assert [invocation.argv for invocation in invocations] == [["notify", "a.txt"]]


@pytest.mark.asyncio
async def test_run_viewer_without_executor_is_skipped(
    content_store: ContentStore, processing_context: ProcessingContext
) -> None:
    focus = RecordingFocus({"any": "any"})
    projection = Projection(
        include="*.txt",
        focuses=(RegexFocusConfig(pattern="any"),),
        viewers=(RunViewer(command=("notify",)), ReportViewer(template="done")),
    )
    content_store.add("a.txt", old="1", new="2")

    result = await ProjectionRunner({"regex": focus}).run(
        [ChangedFile("a.txt", "a.txt")], _config(projection), processing_context
    )

    assert [report.content for report in result.reports] == ["done"]
