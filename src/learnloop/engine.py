"""
Pattern Engine - Mining passes and review operations.

One engine serves both record sources. Local learnings flow

    Scanner -> Detector -> Classifier -> Index -> Policy -> Compiler -> Changelog

and investigation reports are extracted, categorised and applied, with the
learnings they yield written back into the same corpus and mined like any
other record.

A failure while handling one pattern is logged and reported in the result;
it never stops the rest of the pass.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .changelog import (
    ChangelogAction,
    ChangelogEntry,
    add_changelog_entry,
    check_changelog,
    get_git_short_hash,
    prepare_changelog_commit,
)
from .compiler.integration import (
    IntegrationOutput,
    categorize_integrations,
    format_integration_summary,
)
from .compiler.proposals import save_pattern_note, save_proposal
from .compiler.routing import route_destination
from .compiler.rules import (
    RuleProposal,
    append_rule_to_destination,
    compile_rule,
    format_date_range,
    proposal_path,
    write_proposal,
)
from .config import LearnloopPaths, get_detection_config, get_paths
from .errors import ChangelogError, InvalidTransitionError, PatternNotFoundError
from .patterns.classifier import classify_candidate, title_from_id
from .patterns.detector import detect_pattern
from .patterns.extractor import extract_patterns
from .patterns.index import IndexUpdate, PatternIndexStore
from .patterns.models import (
    ExtractedPattern,
    PatternCandidate,
    PatternIndexEntry,
    PatternStatus,
    Relevance,
    can_transition,
)
from .records.models import Record
from .records.reports import extract_learnings, load_report, save_learnings
from .records.scanner import RecordScanner

logger = logging.getLogger(__name__)


class MiningOutcome(str, Enum):
    """What a mining pass did for one record."""

    NO_PATTERN = "no_pattern"
    LOW_RELEVANCE = "low_relevance"
    REJECTED = "rejected"  # pattern was rejected earlier, skipped
    ALREADY_REVIEWED = "already_reviewed"  # approved or archived, members merged
    PROPOSED = "proposed"  # proposal written for review
    APPLIED = "applied"  # rule appended automatically
    FAILED = "failed"


@dataclass
class MiningResult:
    record_id: str
    outcome: MiningOutcome
    pattern_id: str | None = None
    proposal: RuleProposal | None = None
    path: Path | None = None
    error: str | None = None


@dataclass
class InvestigationResult:
    """Everything one investigation report led to."""

    report_path: str
    repo: str
    patterns: list[ExtractedPattern] = field(default_factory=list)
    integrations: IntegrationOutput = field(default_factory=IntegrationOutput)
    written: list[Path] = field(default_factory=list)
    mining: list[MiningResult] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @property
    def summary(self) -> str:
        return format_integration_summary(self.integrations)


@dataclass
class ReviewResult:
    """Outcome of an explicit approve, reject or archive."""

    pattern_id: str
    entry: PatternIndexEntry
    changelog_entry: ChangelogEntry
    commit: dict[str, Any]
    destination: Path | None = None


class PatternEngine:
    """
    Main interface for mining and reviewing patterns.

    Holds the scanner and index store for one memory root; every other
    component is a pure function called from here.
    """

    def __init__(
        self,
        paths: LearnloopPaths,
        threshold: int = 3,
        tag_overlap_required: int = 2,
        drop_low_relevance: bool = False,
    ):
        """
        Initialize the engine.

        Args:
            paths: Resolved memory locations
            threshold: Records needed to form a pattern
            tag_overlap_required: Shared tags needed per record
            drop_low_relevance: Also discard low-relevance learning patterns
        """
        self.paths = paths
        self.threshold = threshold
        self.tag_overlap_required = tag_overlap_required
        self.drop_low_relevance = drop_low_relevance
        self.scanner = RecordScanner(paths.learnings)
        self.store = PatternIndexStore(paths.index_file)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "PatternEngine":
        detection = get_detection_config(config)
        classification = config.get("classification", {})
        return cls(
            get_paths(config),
            threshold=detection["threshold"],
            tag_overlap_required=detection["tag_overlap_required"],
            drop_low_relevance=bool(
                classification.get("drop_low_relevance_learnings", False)
            ),
        )

    # =========================================================================
    # Learning mining
    # =========================================================================

    def process_file(self, path: Path) -> MiningResult:
        """Mine for a pattern completed by the record at ``path``."""
        record = self.scanner.scan_file(path)
        if record is None:
            return MiningResult(
                record_id=Path(path).stem,
                outcome=MiningOutcome.FAILED,
                error=f"could not read {path}",
            )
        return self.process_record(record)

    def process_record(
        self, record: Record, corpus: list[Record] | None = None
    ) -> MiningResult:
        """
        Run one detection pass for a new record.

        Args:
            record: The new record
            corpus: Every known record; scanned from disk when omitted

        Returns:
            MiningResult describing what happened

        Raises:
            ChangelogError: If an auto-applied rule cannot be logged
        """
        if corpus is None:
            corpus = self.scanner.scan()

        candidate = detect_pattern(
            record,
            corpus,
            threshold=self.threshold,
            tag_overlap_required=self.tag_overlap_required,
        )
        if candidate is None:
            return MiningResult(record_id=record.id, outcome=MiningOutcome.NO_PATTERN)

        pattern_id = candidate.pattern_id
        extracted = classify_candidate(candidate, list(self.store.load().patterns))
        if self.drop_low_relevance and extracted.relevance == Relevance.LOW:
            logger.info(f"Pattern {pattern_id} has low relevance, dropped")
            return MiningResult(
                record_id=record.id,
                outcome=MiningOutcome.LOW_RELEVANCE,
                pattern_id=pattern_id,
            )

        try:
            update, entry = self.store.update(candidate)
        except OSError as e:
            return self._failed(record.id, pattern_id, f"index write failed: {e}")

        if update == IndexUpdate.SKIPPED_REJECTED:
            return MiningResult(
                record_id=record.id, outcome=MiningOutcome.REJECTED, pattern_id=pattern_id
            )
        if entry.status != PatternStatus.PENDING:
            return MiningResult(
                record_id=record.id,
                outcome=MiningOutcome.ALREADY_REVIEWED,
                pattern_id=pattern_id,
            )

        proposal = compile_rule(candidate)
        if proposal.auto_apply:
            self._require_changelog()
            try:
                destination = self._apply_rule(proposal, candidate, entry)
            except OSError as e:
                return self._failed(record.id, pattern_id, f"rule write failed: {e}")
            return MiningResult(
                record_id=record.id,
                outcome=MiningOutcome.APPLIED,
                pattern_id=pattern_id,
                proposal=proposal,
                path=destination,
            )

        try:
            path = write_proposal(proposal, self.paths.pending)
        except OSError as e:
            return self._failed(record.id, pattern_id, f"proposal write failed: {e}")
        return MiningResult(
            record_id=record.id,
            outcome=MiningOutcome.PROPOSED,
            pattern_id=pattern_id,
            proposal=proposal,
            path=path,
        )

    def mine_all(self) -> list[MiningResult]:
        """Re-run detection with every record in turn as the new record."""
        corpus = self.scanner.scan()
        results = []
        for record in corpus:
            try:
                results.append(self.process_record(record, corpus))
            except ChangelogError as e:
                logger.warning(f"{record.id}: {e}")
                results.append(self._failed(record.id, None, str(e)))
        return results

    def _failed(self, record_id: str, pattern_id: str | None, error: str) -> MiningResult:
        logger.warning(f"{record_id}: {error}")
        return MiningResult(
            record_id=record_id,
            outcome=MiningOutcome.FAILED,
            pattern_id=pattern_id,
            error=error,
        )

    def _apply_rule(
        self,
        proposal: RuleProposal,
        candidate: PatternCandidate,
        entry: PatternIndexEntry,
    ) -> Path:
        destination = append_rule_to_destination(proposal, self.paths.destinations_root)
        self.store.transition(proposal.pattern_id, PatternStatus.APPROVED)
        self._remove_proposals(proposal.pattern_id)

        commit = get_git_short_hash(self.paths.root)
        add_changelog_entry(
            self.paths.changelog,
            ChangelogEntry(
                action=ChangelogAction.ADDED,
                rule_name=proposal.title,
                pattern_id=proposal.pattern_id,
                source_count=len(entry.member_ids),
                date_range=format_date_range(candidate),
                location=proposal.destination,
                commit=commit if commit != "unknown" else None,
            ),
        )
        return destination

    # =========================================================================
    # Investigation mining
    # =========================================================================

    def process_investigation(self, report_path: Path) -> InvestigationResult | None:
        """
        Apply everything an investigation report suggests.

        Pattern notes are written and approved straight away, skill proposals
        and rule modifications go to the pending directory, and extracted
        learnings are saved as records and mined.

        Returns:
            InvestigationResult, or None if the report cannot be loaded
        """
        report = load_report(report_path)
        if report is None:
            return None

        result = InvestigationResult(report_path=str(report_path), repo=report.repo)
        index = self.store.load()
        result.patterns = extract_patterns(report, str(report_path), list(index.patterns))
        result.integrations = categorize_integrations(result.patterns)

        for pattern in result.integrations.auto_applied.pattern_notes:
            known = self.store.get(pattern.id)
            already_approved = known is not None and known.status == PatternStatus.APPROVED
            try:
                self._require_changelog()
                path = save_pattern_note(
                    pattern, self.paths.approved, self.store, str(report_path)
                )
                if path is not None:
                    result.written.append(path)
                    # A refreshed note is not a new decision
                    if not already_approved:
                        self._log_note(pattern, path)
            except (OSError, ChangelogError) as e:
                self._record_failure(result, pattern.id, e)

        pending = result.integrations.pending_review
        for proposal in [*pending.skill_proposals, *pending.rule_modifications]:
            pattern = proposal.pattern
            if not self._accepts_proposal(pattern.id):
                continue
            try:
                result.written.append(
                    save_proposal(proposal, self.paths.pending, str(report_path))
                )
                self.store.record_extracted(pattern, PatternStatus.PENDING)
            except OSError as e:
                self._record_failure(result, pattern.id, e)

        learnings = extract_learnings(report, str(report_path))
        saved = save_learnings(learnings, self.paths.learnings)
        result.integrations.auto_applied.learnings = [str(p) for p in saved]
        result.written.extend(saved)

        if saved:
            corpus = self.scanner.scan()
            for path in saved:
                record = self.scanner.scan_file(path)
                if record is None:
                    continue
                try:
                    result.mining.append(self.process_record(record, corpus))
                except ChangelogError as e:
                    self._record_failure(result, record.id, e)

        logger.info(f"{report.repo}: {result.summary}")
        return result

    def _accepts_proposal(self, pattern_id: str) -> bool:
        entry = self.store.get(pattern_id)
        if entry is None or entry.status == PatternStatus.PENDING:
            return True
        logger.info(f"Pattern {pattern_id} is {entry.status.value}, no new proposal")
        return False

    def _record_failure(self, result: InvestigationResult, item: str, error: Exception):
        logger.warning(f"{item}: {error}")
        result.failures.append(f"{item}: {error}")

    def _log_note(self, pattern: ExtractedPattern, path: Path) -> None:
        add_changelog_entry(
            self.paths.changelog,
            ChangelogEntry(
                action=ChangelogAction.ADDED,
                rule_name=pattern.name,
                pattern_id=pattern.id,
                source_count=1,
                location=self._relative(path),
            ),
        )

    # =========================================================================
    # Explicit review
    # =========================================================================

    def approve(self, pattern_id: str) -> ReviewResult:
        """
        Approve a pending pattern.

        Learning patterns have their rule compiled from the current member
        records and appended to the routed destination. Investigation
        patterns are marked approved for manual application.

        Raises:
            PatternNotFoundError: If the id is not indexed
            InvalidTransitionError: If the pattern is not pending
            ChangelogError: If the changelog is missing
        """
        entry = self._entry_for(pattern_id, PatternStatus.APPROVED)
        self._require_changelog()

        destination = None
        if entry.type is None:
            candidate = self._candidate_from_entry(pattern_id, entry)
            proposal = compile_rule(candidate, domain=entry.domain)
            destination = append_rule_to_destination(
                proposal, self.paths.destinations_root
            )
            location = proposal.destination
            date_range = format_date_range(candidate)
        else:
            location = route_destination(entry.type.value, entry.primary_tags)
            date_range = None

        entry = self.store.transition(pattern_id, PatternStatus.APPROVED)
        self._remove_proposals(pattern_id)

        commit = get_git_short_hash(self.paths.root)
        changelog_entry = ChangelogEntry(
            action=ChangelogAction.ADDED,
            rule_name=title_from_id(pattern_id),
            pattern_id=pattern_id,
            source_count=len(entry.member_ids),
            date_range=date_range,
            location=location,
            commit=commit if commit != "unknown" else None,
        )
        return self._finish_review(pattern_id, entry, changelog_entry, destination)

    def reject(self, pattern_id: str, reason: str | None = None) -> ReviewResult:
        """
        Reject a pending pattern. It will never be proposed again.

        Raises:
            PatternNotFoundError: If the id is not indexed
            InvalidTransitionError: If the pattern is not pending
            ChangelogError: If the changelog is missing
        """
        self._entry_for(pattern_id, PatternStatus.REJECTED)
        self._require_changelog()

        entry = self.store.transition(pattern_id, PatternStatus.REJECTED, reason=reason)
        self._remove_proposals(pattern_id)

        changelog_entry = ChangelogEntry(
            action=ChangelogAction.REJECTED,
            rule_name=title_from_id(pattern_id),
            pattern_id=pattern_id,
            reason=reason,
        )
        return self._finish_review(pattern_id, entry, changelog_entry)

    def archive(self, pattern_id: str) -> ReviewResult:
        """
        Retire a pending or approved pattern, listing its member records.

        Raises:
            PatternNotFoundError: If the id is not indexed
            InvalidTransitionError: If the pattern is rejected or archived
            ChangelogError: If the changelog is missing
        """
        self._entry_for(pattern_id, PatternStatus.ARCHIVED)
        self._require_changelog()

        entry = self.store.transition(pattern_id, PatternStatus.ARCHIVED)
        self._remove_proposals(pattern_id)

        changelog_entry = ChangelogEntry(
            action=ChangelogAction.ARCHIVED,
            rule_name=title_from_id(pattern_id),
            pattern_id=pattern_id,
            source_count=len(entry.member_ids),
            member_ids=list(entry.member_ids),
        )
        return self._finish_review(pattern_id, entry, changelog_entry)

    def _entry_for(self, pattern_id: str, requested: PatternStatus) -> PatternIndexEntry:
        entry = self.store.get(pattern_id)
        if entry is None:
            raise PatternNotFoundError(pattern_id)
        if not can_transition(entry.status, requested):
            raise InvalidTransitionError(pattern_id, entry.status.value, requested.value)
        return entry

    def _candidate_from_entry(
        self, pattern_id: str, entry: PatternIndexEntry
    ) -> PatternCandidate:
        by_id = {record.id: record for record in self.scanner.scan()}
        members = [by_id[mid] for mid in entry.member_ids if mid in by_id]
        missing = len(entry.member_ids) - len(members)
        if missing:
            logger.warning(f"{pattern_id}: {missing} member records no longer on disk")
        return PatternCandidate(
            pattern_id=pattern_id,
            members=members,
            match_score=0,
            detected_at=entry.detected_at,
        )

    def _finish_review(
        self,
        pattern_id: str,
        entry: PatternIndexEntry,
        changelog_entry: ChangelogEntry,
        destination: Path | None = None,
    ) -> ReviewResult:
        add_changelog_entry(self.paths.changelog, changelog_entry)
        commit = prepare_changelog_commit(
            changelog_entry,
            changelog_file=self._relative(self.paths.changelog),
            index_file=self._relative(self.paths.index_file),
        )
        return ReviewResult(
            pattern_id=pattern_id,
            entry=entry,
            changelog_entry=changelog_entry,
            commit=commit,
            destination=destination,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_changelog(self) -> None:
        check_changelog(self.paths.changelog)

    def _remove_proposals(self, pattern_id: str) -> None:
        pending = self.paths.pending
        for path in (
            proposal_path(pending, pattern_id),
            pending / f"skill_{pattern_id}.md",
            pending / f"rule_{pattern_id}.md",
        ):
            if path.exists():
                path.unlink()
                logger.debug(f"Removed proposal {path}")

    def _relative(self, path: Path) -> str:
        try:
            return str(Path(path).resolve().relative_to(self.paths.root.resolve()))
        except ValueError:
            return str(path)
