"""
Runs every configured rule over the commits a push or merge proposal introduces and
collects all the failures, not just the first one.

Rule violations are data (failing outcomes). Anything that prevents a rule from being
decided (repository, user directory or issue tracker errors, invalid patterns) is raised
and aborts the ref update being validated.
"""

import logging
from typing import Iterable, List, Sequence

from refgate.changesets import ChangeSetResolver
from refgate.config import Config
from refgate.model import Commit, Identity, MergeProposal, RefChangeKind, RefUpdate
from refgate.render import RenderContext
from refgate.results import BatchVerificationResult, RefUpdateVerificationResult
from refgate.rules import RULE_ORDER, RuleEvaluator

logger = logging.getLogger(__name__)


class RefUpdateValidator:
    def __init__(
        self,
        config: Config,
        resolver: ChangeSetResolver,
        evaluators: Sequence[RuleEvaluator],
        pusher: Identity | None = None,
    ) -> None:
        categories = [evaluator.category for evaluator in evaluators]
        if categories != RULE_ORDER:
            raise ValueError(f"Evaluators must cover {[c.name for c in RULE_ORDER]} in order, got {[c.name for c in categories]}")

        self.config = config
        self.resolver = resolver
        self.evaluators: List[RuleEvaluator] = list(evaluators)
        self.pusher = pusher

    def validate_batch(self, updates: Iterable[RefUpdate | MergeProposal]) -> BatchVerificationResult:
        """
        Validates updates in order. Deleted refs and refs outside the configured branches are
        skipped; merge proposals are always validated. Only results with something to report
        are kept.
        """
        batch = BatchVerificationResult()
        for update in updates:
            if isinstance(update, RefUpdate) and not self.should_validate(update):
                continue
            result = self.validate_update(update)
            if result.has_reportables():
                batch.add(result)
        return batch.seal()

    def should_validate(self, update: RefUpdate) -> bool:
        if update.kind == RefChangeKind.DELETE:
            logger.debug("Skipping deleted ref %s", update.ref_id)
            return False
        if not self.config.branch_inclusion_pattern.search(update.ref_id):
            logger.debug("Skipping %s, not in configured branches", update.ref_id)
            return False
        return True

    def validate_update(self, update: RefUpdate | MergeProposal) -> RefUpdateVerificationResult:
        match update:
            case RefUpdate(ref_id=ref_id, kind=kind, from_hash=from_hash, to_hash=to_hash):
                logger.debug("%s> RefChange %s", self.pusher, update)
                commits = self.resolver.get_new_change_sets(self.config, ref_id, kind, from_hash, to_hash)
                return self._validate_commits(ref_id, from_hash, to_hash, commits)

            case MergeProposal(from_ref_id=ref_id, from_hash=from_hash, to_hash=to_hash):
                logger.debug("%s> MergeProposal %s", self.pusher, update)
                commits = self.resolver.get_new_change_sets_for_proposal(self.config, update)
                return self._validate_commits(ref_id, from_hash, to_hash, commits)

            case _:
                raise TypeError(f"Cannot validate {type(update).__name__}")

    def branch_name_accepted(self, ref_id: str) -> bool:
        rejection = self.config.branch_rejection_pattern
        return rejection is None or rejection.search(ref_id) is None

    def _validate_commits(
        self, ref_id: str, from_hash: str, to_hash: str, commits: Sequence[Commit],
    ) -> RefUpdateVerificationResult:
        result = RefUpdateVerificationResult(ref_id, from_hash, to_hash)
        result.set_branch_name_accepted(self.branch_name_accepted(ref_id))

        base_ctx = RenderContext(ref_id=ref_id, pusher=self.pusher)
        for commit in commits:
            logger.debug("%s> ChangeSet %s %s %s %s",
                         self.pusher, commit.id, commit.summary, commit.parent_count, commit.committer)
            ctx = base_ctx.for_commit(commit)
            for evaluator in self.evaluators:
                result.record(commit, evaluator.category, evaluator.evaluate(self.config, commit, ctx))

        return result.seal()
