from __future__ import annotations
from collections import OrderedDict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Tuple

from refgate.model import Commit, RuleCategory, RuleOutcome


@dataclass
class CommitVerification:
    """
    Outcomes recorded for one commit, in evaluation order.
    """
    commit: Commit
    _outcomes: Dict[RuleCategory, RuleOutcome] = field(default_factory=OrderedDict)

    @property
    def outcomes(self) -> Mapping[RuleCategory, RuleOutcome]:
        return MappingProxyType(self._outcomes)

    @property
    def failures(self) -> List[Tuple[RuleCategory, RuleOutcome]]:
        return [(category, outcome) for category, outcome in self._outcomes.items() if not outcome.passed]

    def has_failures(self) -> bool:
        return any(not outcome.passed for outcome in self._outcomes.values())


class RefUpdateVerificationResult:
    """
    Everything the validator found for one ref update or merge proposal.

    Outcomes are appended one (commit, category, outcome) triple at a time. Once the
    validator seals the result it no longer accepts new outcomes.
    """

    def __init__(self, ref_id: str, from_hash: str, to_hash: str) -> None:
        self.ref_id = ref_id
        self.from_hash = from_hash
        self.to_hash = to_hash
        self.branch_name_accepted: bool = True
        self._commits: OrderedDict[str, CommitVerification] = OrderedDict()
        self._sealed = False

    def set_branch_name_accepted(self, accepted: bool) -> None:
        self._check_open()
        self.branch_name_accepted = accepted

    def record(self, commit: Commit, category: RuleCategory, outcome: RuleOutcome) -> None:
        self._check_open()
        verification = self._commits.get(commit.id)
        if verification is None:
            verification = CommitVerification(commit)
            self._commits[commit.id] = verification
        if category in verification._outcomes:
            raise ValueError(f"{category.name} already recorded for commit {commit.id}")
        verification._outcomes[category] = outcome

    def seal(self) -> 'RefUpdateVerificationResult':
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _check_open(self) -> None:
        if self._sealed:
            raise RuntimeError(f"Verification result for {self.ref_id} is sealed")

    @property
    def commits(self) -> List[CommitVerification]:
        return list(self._commits.values())

    def outcomes_for(self, commit_id: str) -> Mapping[RuleCategory, RuleOutcome]:
        return self._commits[commit_id].outcomes

    def failures(self) -> Iterator[Tuple[Commit, RuleCategory, RuleOutcome]]:
        for verification in self._commits.values():
            for category, outcome in verification.failures:
                yield verification.commit, category, outcome

    def has_reportables(self) -> bool:
        if not self.branch_name_accepted:
            return True
        return any(verification.has_failures() for verification in self._commits.values())

    def __repr__(self) -> str:
        return (f"RefUpdateVerificationResult(ref_id={self.ref_id!r}, from_hash={self.from_hash!r}, "
                f"to_hash={self.to_hash!r}, branch_name_accepted={self.branch_name_accepted}, "
                f"commits={len(self._commits)})")


class BatchVerificationResult:
    """
    Per-update results that have something to report, in input order.
    An empty batch means every update passed. Sealed before it is handed back.
    """

    def __init__(self) -> None:
        self._results: List[RefUpdateVerificationResult] = []
        self._sealed = False

    def add(self, result: RefUpdateVerificationResult) -> None:
        if self._sealed:
            raise RuntimeError("Batch verification result is sealed")
        assert result.has_reportables(), f"Nothing to report for {result.ref_id}"
        self._results.append(result)

    def seal(self) -> 'BatchVerificationResult':
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def results(self) -> Tuple[RefUpdateVerificationResult, ...]:
        return tuple(self._results)

    def __iter__(self) -> Iterator[RefUpdateVerificationResult]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self._results)

    def is_empty(self) -> bool:
        return not self._results

    def has_reportables(self) -> bool:
        return any(result.has_reportables() for result in self._results)
