"""Unit tests for relevance and type classification, and pattern extraction."""

import pytest

from learnloop.patterns.classifier import (
    HIGH_RELEVANCE_KEYWORDS,
    MEDIUM_RELEVANCE_KEYWORDS,
    assess_relevance,
    classify_candidate,
    find_existing_alternative,
    infer_pattern_type,
    title_from_id,
)
from learnloop.patterns.extractor import (
    build_pattern_tags,
    extract_patterns,
    generate_pattern_id,
)
from learnloop.patterns.models import PatternCandidate, PatternType, Relevance
from learnloop.records.models import Record
from learnloop.records.reports import InvestigationReport, RawPattern


class TestInferPatternType:
    """Tests for infer_pattern_type."""

    def test_workflow_checked_first(self):
        """Workflow wins even when architectural keywords also appear."""
        assert infer_pattern_type("A pipeline with a layered design") == PatternType.WORKFLOW

    def test_architectural(self):
        assert infer_pattern_type("Layered Architecture") == PatternType.ARCHITECTURAL

    def test_integration(self):
        assert infer_pattern_type("Bridge to the payments API") == PatternType.INTEGRATION

    def test_default_code(self):
        assert infer_pattern_type("String formatting helper") == PatternType.CODE

    def test_orchestrat_prefix(self):
        assert infer_pattern_type("Orchestrates jobs") == PatternType.WORKFLOW


class TestAssessRelevance:
    """Tests for assess_relevance."""

    @pytest.mark.parametrize("keyword", HIGH_RELEVANCE_KEYWORDS)
    def test_high_keyword_beats_medium(self, keyword):
        """Any HIGH keyword gives high, whatever MEDIUM keywords are present."""
        assert assess_relevance("Tool plugin", f"uses {keyword} in a pipeline") == Relevance.HIGH

    @pytest.mark.parametrize("keyword", MEDIUM_RELEVANCE_KEYWORDS)
    def test_medium(self, keyword):
        assert assess_relevance("Thing", f"a {keyword}") == Relevance.MEDIUM

    def test_low(self):
        assert assess_relevance("Simple Utility", "basic string formatting") == Relevance.LOW

    def test_name_counts(self):
        """Keywords in the name are considered too."""
        assert assess_relevance("Memory Cache", "stores values") == Relevance.HIGH


class TestFindExistingAlternative:
    """Tests for find_existing_alternative."""

    def test_majority_overlap_matches(self):
        """Two of two words matching is above half."""
        existing = ["context-manager_owner_repo"]
        assert find_existing_alternative("Context Manager", existing) == existing[0]

    def test_exactly_half_does_not_match(self):
        """The ratio must be strictly greater than one half."""
        assert find_existing_alternative("Context Window", ["context-handler_x_y"]) is None

    def test_short_words_ignored(self):
        """Words of two characters or fewer are not compared."""
        assert find_existing_alternative("Of An", ["of-an_x_y"]) is None

    def test_first_match_wins(self):
        existing = ["unrelated_a_b", "retry-loop_a_b", "retry-loop_c_d"]
        assert find_existing_alternative("Retry Loop", existing) == "retry-loop_a_b"


class TestTitleFromId:
    def test_title(self):
        assert title_from_id("coding-error-handling") == "Coding Error Handling"


class TestClassifyCandidate:
    """Tests for classify_candidate."""

    def test_learning_pattern_classified(self):
        members = [
            Record(id=f"r{i}", date="2026-01-15", domain="process", tags=("workflow", "review"))
            for i in range(3)
        ]
        candidate = PatternCandidate(
            pattern_id="process-workflow", members=members, match_score=4
        )

        pattern = classify_candidate(candidate)

        assert pattern.id == "process-workflow"
        assert pattern.name == "Process Workflow"
        assert pattern.type == PatternType.WORKFLOW
        assert pattern.relevance == Relevance.HIGH
        assert pattern.tags == ["workflow", "review"]
        assert pattern.source == "r0"

    def test_own_id_not_reported_as_alternative(self):
        members = [Record(id="r", date="", domain="coding", tags=("retry",))]
        candidate = PatternCandidate(pattern_id="coding-retry", members=members, match_score=0)

        pattern = classify_candidate(candidate, ["coding-retry"])

        assert pattern.existing_alternative is None


def make_report(**overrides) -> InvestigationReport:
    fields = dict(
        repo="owner/repo",
        url="https://github.com/owner/repo",
        language="TypeScript",
        topics=["AI", "agents", "patterns", "extra"],
        stars=500,
        patterns=[
            RawPattern(
                "Process-Save-Summarize",
                "Sub-agent workflow that processes data, saves to files, returns summaries",
            ),
            RawPattern("Context Window Management", "Managing agent context efficiently"),
            RawPattern("Simple Utility", "A basic function for string formatting"),
        ],
    )
    fields.update(overrides)
    return InvestigationReport(**fields)


class TestGeneratePatternId:
    """Tests for generate_pattern_id."""

    def test_scenario(self):
        assert (
            generate_pattern_id("Process Save Summarize", "owner/repo")
            == "process-save-summarize_owner_repo"
        )

    def test_special_characters_removed(self):
        assert generate_pattern_id("Pattern (v2.0)", "a/b") == "pattern-v20_a_b"

    def test_whitespace_collapsed(self):
        assert generate_pattern_id("  Multiple   Spaces  ", "a/b") == "multiple-spaces_a_b"

    def test_only_first_slash_replaced(self):
        assert generate_pattern_id("X", "a/b/c") == "x_a_bc"


class TestBuildPatternTags:
    """Tests for build_pattern_tags."""

    def test_tag_sources_in_order(self):
        report = make_report()
        tags = build_pattern_tags(report, RawPattern("Process Manager", "a workflow"))

        assert tags == ["typescript", "ai", "agents", "patterns", "workflow", "process", "manager"]

    def test_deduplicated(self):
        report = make_report(language=None, topics=["workflow"])
        tags = build_pattern_tags(report, RawPattern("Workflow Runner", "a workflow"))

        assert tags == ["workflow", "runner"]


class TestExtractPatterns:
    """Tests for extract_patterns."""

    def test_low_relevance_dropped(self):
        patterns = extract_patterns(make_report(), "report.yaml")

        assert [p.name for p in patterns] == [
            "Process-Save-Summarize",
            "Context Window Management",
        ]

    def test_fields_populated(self):
        pattern = extract_patterns(make_report(), "report.yaml")[0]

        assert pattern.id == "process-save-summarize_owner_repo"
        assert pattern.type == PatternType.WORKFLOW
        assert pattern.relevance == Relevance.HIGH
        assert pattern.source == "owner/repo"
        assert "typescript" in pattern.tags

    def test_existing_alternative_detected(self):
        patterns = extract_patterns(
            make_report(), "report.yaml", existing_ids=["context-window-management_other_repo"]
        )

        assert patterns[1].existing_alternative == "context-window-management_other_repo"
