from __future__ import annotations
from dataclasses import dataclass, field
from typing import Tuple
import enum
import re

ZERO_HASH_RE = re.compile(r'^0+$')


def is_zero_hash(commit_id: str | None) -> bool:
    """
    Git reports a missing side of a ref change (creation or deletion) as a hash of zeros.
    """
    return not commit_id or bool(ZERO_HASH_RE.match(commit_id))


################################################################################
# Identities and commits
################################################################################

@dataclass(frozen=True, order=True)
class Identity:
    name: str
    email: str

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True)
class ChangedFile:
    path: str
    size: int = 0
    diff: str = ''


@dataclass(frozen=True)
class Commit:
    id: str
    message: str
    parent_count: int
    author: Identity
    committer: Identity
    files: Tuple[ChangedFile, ...] = field(default_factory=tuple)

    @property
    def short_id(self) -> str:
        return self.id[:10]

    @property
    def summary(self) -> str:
        return self.message.strip().split('\n', 1)[0] if self.message.strip() else ''

    @property
    def is_merge(self) -> bool:
        return self.parent_count > 1


################################################################################
# Ref changes
################################################################################

class RefChangeKind(enum.Enum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def of(cls, from_hash: str, to_hash: str) -> 'RefChangeKind':
        if is_zero_hash(to_hash):
            return cls.DELETE
        if is_zero_hash(from_hash):
            return cls.ADD
        return cls.UPDATE


@dataclass(frozen=True)
class RefUpdate:
    ref_id: str
    kind: RefChangeKind
    from_hash: str
    to_hash: str

    def __str__(self) -> str:
        return f"{self.from_hash} {self.ref_id} {self.to_hash} {self.kind.name}"


@dataclass(frozen=True)
class MergeProposal:
    from_ref_id: str
    from_hash: str
    to_ref_id: str
    to_hash: str

    def __str__(self) -> str:
        return f"{self.from_ref_id}@{self.from_hash} -> {self.to_ref_id}@{self.to_hash}"


################################################################################
# Rule outcomes
################################################################################

class RuleCategory(enum.Enum):
    """
    Rule categories, declared in evaluation order. Reports list outcomes in this order.
    """
    MESSAGE_GROUPS = "message_groups"
    AUTHOR_EMAIL = "author_email"
    COMMITTER_EMAIL = "committer_email"
    AUTHOR_NAME = "author_name"
    COMMITTER_NAME = "committer_name"
    CONTENT_SIZE = "content_size"
    CONTENT_DIFF = "content_diff"
    AUTHOR_EMAIL_IN_DIRECTORY = "author_email_in_directory"
    AUTHOR_NAME_IN_DIRECTORY = "author_name_in_directory"
    ISSUE_QUERY = "issue_query"


@dataclass(frozen=True)
class RuleOutcome:
    passed: bool
    detail: str | None = None

    @classmethod
    def ok(cls) -> 'RuleOutcome':
        return cls(True)

    @classmethod
    def fail(cls, detail: str | None = None) -> 'RuleOutcome':
        return cls(False, detail)
