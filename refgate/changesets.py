"""
Resolves ref updates and merge proposals into the commits they introduce.
"""

import abc
import logging
from typing import List, Sequence

import git
from git import Repo
from git.exc import BadName, GitCommandError

from refgate.config import Config, compile_pattern
from refgate.errors import RepositoryError
from refgate.model import ChangedFile, Commit, Identity, MergeProposal, RefChangeKind, is_zero_hash

logger = logging.getLogger(__name__)


class ChangeSetResolver(abc.ABC):
    """
    Lists the commits a ref update or merge proposal introduces, oldest first.
    Commits the configuration excludes (merge commits, matching messages) are dropped.
    """

    def get_new_change_sets(
        self, config: Config, ref_id: str, kind: RefChangeKind, from_hash: str, to_hash: str,
    ) -> List[Commit]:
        if kind == RefChangeKind.DELETE:
            return []
        return self.exclude(config, self.list_ref_commits(ref_id, kind, from_hash, to_hash))

    def get_new_change_sets_for_proposal(self, config: Config, proposal: MergeProposal) -> List[Commit]:
        return self.exclude(config, self.list_proposal_commits(proposal))

    @abc.abstractmethod
    def list_ref_commits(self, ref_id: str, kind: RefChangeKind, from_hash: str, to_hash: str) -> List[Commit]:
        raise NotImplementedError()

    @abc.abstractmethod
    def list_proposal_commits(self, proposal: MergeProposal) -> List[Commit]:
        raise NotImplementedError()

    @staticmethod
    def exclude(config: Config, commits: Sequence[Commit]) -> List[Commit]:
        pattern = compile_pattern(config.exclude.regexp, 'exclude') if config.exclude.regexp else None
        kept: List[Commit] = []
        for commit in commits:
            if config.exclude.merge_commits and commit.is_merge:
                logger.debug("Excluding merge commit %s", commit.id)
                continue
            if pattern is not None and pattern.search(commit.message):
                logger.debug("Excluding commit %s, message matches %s", commit.id, config.exclude.regexp)
                continue
            kept.append(commit)
        return kept


class StaticChangeSetResolver(ChangeSetResolver):
    """Serves a fixed list of commits, whatever the range. Used where commits arrive pre-resolved."""

    def __init__(self, commits: Sequence[Commit]) -> None:
        self.commits = list(commits)

    def list_ref_commits(self, ref_id: str, kind: RefChangeKind, from_hash: str, to_hash: str) -> List[Commit]:
        return list(self.commits)

    def list_proposal_commits(self, proposal: MergeProposal) -> List[Commit]:
        return list(self.commits)


##################################################################################################
# Git
##################################################################################################

class GitChangeSetResolver(ChangeSetResolver):
    """
    Reads commits from a local repository.

    With exclude_existing_refs (the pre-receive case, where refs still point at their old
    values) commits already reachable from any ref are not considered new.
    """

    def __init__(self, repo: Repo, exclude_existing_refs: bool = False) -> None:
        self.repo = repo
        self.exclude_existing_refs = exclude_existing_refs

    def list_ref_commits(self, ref_id: str, kind: RefChangeKind, from_hash: str, to_hash: str) -> List[Commit]:
        revs = [to_hash]
        if kind == RefChangeKind.UPDATE and not is_zero_hash(from_hash):
            revs.append(f"^{from_hash}")
        if self.exclude_existing_refs:
            revs += ["--not", "--all"]
        return self._rev_list(revs)

    def list_proposal_commits(self, proposal: MergeProposal) -> List[Commit]:
        return self._rev_list([proposal.from_hash, f"^{proposal.to_hash}"])

    def _rev_list(self, revs: List[str]) -> List[Commit]:
        try:
            output = self.repo.git.rev_list("--reverse", *revs)
        except GitCommandError as e:
            raise RepositoryError(f"git rev-list {' '.join(revs)} failed: {str(e.stderr).strip()}") from e

        commits: List[Commit] = []
        for sha in output.split():
            commits.append(self._convert(sha))
        return commits

    def _convert(self, sha: str) -> Commit:
        try:
            commit = self.repo.commit(sha)
            files = tuple(self._changed_files(commit))
        except (BadName, ValueError, GitCommandError) as e:
            raise RepositoryError(f"Cannot read commit {sha}: {e}") from e

        return Commit(
            id=commit.hexsha,
            message=commit.message if isinstance(commit.message, str) else commit.message.decode('utf-8', 'replace'),
            parent_count=len(commit.parents),
            author=Identity(commit.author.name or '', commit.author.email or ''),
            committer=Identity(commit.committer.name or '', commit.committer.email or ''),
            files=files,
        )

    @staticmethod
    def _changed_files(commit: git.Commit) -> List[ChangedFile]:
        if commit.parents:
            diffs = commit.parents[0].diff(commit, create_patch=True)
        else:
            # Root commit: everything it contains is new
            diffs = commit.diff(git.NULL_TREE, create_patch=True)

        files: List[ChangedFile] = []
        for d in diffs:
            if d.deleted_file:
                continue
            path = d.b_path or d.a_path
            size = d.b_blob.size if d.b_blob is not None else 0
            patch = d.diff.decode('utf-8', 'replace') if isinstance(d.diff, bytes) else (d.diff or '')
            files.append(ChangedFile(path=path, size=size, diff=patch))
        return files
