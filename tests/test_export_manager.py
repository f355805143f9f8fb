"""
Tests for building and rendering the objectives export.
"""
from abcd_wizard.managers import build_export, render_markdown


class TestBuildExport:

    def test_groups_and_uncovered(self, sample_snapshot):
        export = build_export(sample_snapshot)

        assert export.course_name == "Claims Onboarding"
        assert export.default_audience == "Claims processors"
        assert export.objective_count == 2
        assert [g.task for g in export.groups] == ["Enter a new claim", "Ungrouped"]
        assert export.uncovered_tasks == ["Search for a member", "Resolve a pended claim"]

    def test_rows_use_export_text(self, sample_snapshot):
        rows = build_export(sample_snapshot).groups[0].objectives
        assert rows[0].text == "Given a paper claim, Claims processors will enter a new claim, with no errors"
        assert rows[0].bloom_level == "Apply"
        assert rows[0].priority == "Should Have"

    def test_incomplete_objectives_never_block(self, mock_data):
        snapshot = mock_data.create_snapshot(
            objectives=[mock_data.create_objective("o1"), mock_data.create_objective("o2", priority="")],
            audiences=[],
        )
        export = build_export(snapshot)

        assert export.objective_count == 2
        assert export.default_audience == "All learners"
        assert export.groups[0].objectives[0].text == "All learners will [behavior]"

    def test_empty_session(self, mock_data):
        export = build_export(mock_data.create_snapshot())
        assert export.groups == []
        assert export.uncovered_tasks == []

    def test_assessed_count(self, mock_data):
        snapshot = mock_data.create_snapshot(objectives=[
            mock_data.create_objective("o1", requires_assessment=True),
            mock_data.create_objective("o2"),
        ])
        assert build_export(snapshot).assessed_count == 1


class TestRenderMarkdown:

    def test_document(self, sample_snapshot):
        markdown = render_markdown(build_export(sample_snapshot))

        assert markdown.startswith("# Learning Objectives: Claims Onboarding\n")
        assert "Audience: Claims processors" in markdown
        assert "Objectives: 2 (0 assessed)" in markdown
        assert "> 2 parent tasks have no matching objectives:" in markdown
        assert "> - Resolve a pended claim" in markdown
        assert "## Parent Task: Enter a new claim" in markdown
        assert "## Parent Task: Ungrouped" in markdown
        assert "| Objective | Bloom | Priority | Assessed |" in markdown
        assert markdown.endswith("\n")

    def test_pipes_are_escaped(self, mock_data):
        snapshot = mock_data.create_snapshot(objectives=[
            mock_data.create_objective("o1", freeform_text="Pick A|B", requires_assessment=True),
        ])
        markdown = render_markdown(build_export(snapshot))
        assert "| Pick A\\|B |  | Should Have | yes |" in markdown

    def test_line_breaks_stay_in_one_row(self, mock_data):
        snapshot = mock_data.create_snapshot(objectives=[
            mock_data.create_objective("o1", freeform_text="Open the form\nthen key the claim\r\nand save"),
        ])
        markdown = render_markdown(build_export(snapshot))
        assert "| Open the form then key the claim and save |  | Should Have |  |" in markdown

    def test_single_uncovered_task_wording(self, mock_data):
        snapshot = mock_data.create_snapshot(triage_items=[mock_data.create_triage_item()])
        assert "> 1 parent task has no matching objectives:" in render_markdown(build_export(snapshot))
