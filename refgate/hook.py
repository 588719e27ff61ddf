"""
Front end for git's pre-receive hook and for ad-hoc checks: turns hook input into ref
updates, wires the validator to the repository and host services, and reports the result.
"""

import logging
import os
from typing import Iterable, List, Mapping, Optional

from git import Repo

from refgate.changesets import ChangeSetResolver, GitChangeSetResolver
from refgate.config import Config
from refgate.directory import UserDirectory, make_directory
from refgate.issues import IssueTracker, make_issue_tracker
from refgate.messages import error, success, warning
from refgate.model import Identity, MergeProposal, RefChangeKind, RefUpdate
from refgate.render import RenderContext, Renderer
from refgate.results import BatchVerificationResult
from refgate.rules import default_evaluators
from refgate.validator import RefUpdateValidator

logger = logging.getLogger(__name__)

DEFAULT_BRANCH_MESSAGE = "Branch {{ ref_id }} is not allowed."
DEFAULT_REJECT_MESSAGE = "Push rejected, fix the commits listed above."
DEFAULT_DRY_RUN_MESSAGE = "Dry run: the push is accepted anyway."

EXIT_ACCEPTED = 0
EXIT_REJECTED = 1


def parse_ref_updates(lines: Iterable[str]) -> List[RefUpdate]:
    """
    Parses pre-receive input, one `<old> <new> <ref>` line per updated ref.
    """
    updates: List[RefUpdate] = []
    for n, line in enumerate(lines, 1):
        line = line.strip()
        if not line:
            continue
        parts = line.split()
        if len(parts) != 3:
            raise ValueError(f"Malformed ref update on line {n}: {line!r}")
        from_hash, to_hash, ref_id = parts
        updates.append(RefUpdate(ref_id, RefChangeKind.of(from_hash, to_hash), from_hash, to_hash))
    return updates


def current_pusher(repo: Repo | None, environ: Mapping[str, str] = os.environ) -> Optional[Identity]:
    """
    The identity pushing. Hosts export it in REFGATE_PUSHER_NAME and REFGATE_PUSHER_EMAIL;
    otherwise the repository's configured git user is used.
    """
    name = environ.get('REFGATE_PUSHER_NAME')
    email = environ.get('REFGATE_PUSHER_EMAIL')
    if (not name or not email) and repo is not None:
        reader = repo.config_reader()
        name = name or reader.get_value('user', 'name', '')
        email = email or reader.get_value('user', 'email', '')
    if name or email:
        return Identity(str(name or ''), str(email or ''))
    return None


def build_validator(
    config: Config,
    resolver: ChangeSetResolver,
    pusher: Identity | None = None,
    directory: UserDirectory | None = None,
    issue_tracker: IssueTracker | None = None,
    renderer: Renderer | None = None,
) -> RefUpdateValidator:
    evaluators = default_evaluators(
        directory if directory is not None else make_directory(config.directory),
        issue_tracker if issue_tracker is not None else make_issue_tracker(config.issues),
        renderer,
    )
    return RefUpdateValidator(config, resolver, evaluators, pusher)


##################################################################################################
# Reporting
##################################################################################################

def _label(category) -> str:
    return category.name.lower().replace('_', ' ')


def render_report(
    config: Config,
    batch: BatchVerificationResult,
    renderer: Renderer,
    pusher: Identity | None = None,
) -> List[str]:
    lines: List[str] = []
    for result in batch:
        lines.append(f"{result.ref_id} {result.from_hash[:10]}..{result.to_hash[:10]}")
        ctx = RenderContext(ref_id=result.ref_id, pusher=pusher)
        if not result.branch_name_accepted:
            lines.append("  " + renderer.render(
                config.branch_rejection.message or DEFAULT_BRANCH_MESSAGE, ctx,
                regexp=config.branch_rejection.regexp))
        for verification in result.commits:
            failures = verification.failures
            if not failures:
                continue
            commit = verification.commit
            lines.append(f"  {commit.short_id} {commit.author} >> {commit.summary}")
            for category, outcome in failures:
                detail = (outcome.detail or 'failed').split('\n')
                lines.append(f"    - {_label(category)}: {detail[0]}")
                lines.extend(f"      {d}" for d in detail[1:])
    return lines


def report(config: Config, batch: BatchVerificationResult, renderer: Renderer, pusher: Identity | None = None) -> int:
    """
    Prints the outcome of a validation and returns the hook exit status.
    """
    ctx = RenderContext(ref_id='', pusher=pusher)
    if batch.is_empty():
        if config.messages.accept:
            success(renderer.render(config.messages.accept, ctx))
        return EXIT_ACCEPTED

    lines = render_report(config, batch, renderer, pusher)
    if config.dry_run.enabled:
        warning(*lines, renderer.render(config.dry_run.message or DEFAULT_DRY_RUN_MESSAGE, ctx))
        return EXIT_ACCEPTED

    error(*lines, renderer.render(config.messages.reject or DEFAULT_REJECT_MESSAGE, ctx))
    return EXIT_REJECTED


def run_hook(
    config: Config,
    repo: Repo,
    lines: Iterable[str],
    environ: Mapping[str, str] = os.environ,
    directory: UserDirectory | None = None,
    issue_tracker: IssueTracker | None = None,
) -> int:
    """
    pre-receive entry point: validates every pushed ref and returns 0 to accept, 1 to reject.
    """
    updates = parse_ref_updates(lines)
    pusher = current_pusher(repo, environ)
    renderer = Renderer()
    validator = build_validator(
        config, GitChangeSetResolver(repo, exclude_existing_refs=True), pusher,
        directory=directory, issue_tracker=issue_tracker, renderer=renderer)
    batch = validator.validate_batch(updates)
    logger.debug("%d of %d ref update(s) have findings", len(batch), len(updates))
    return report(config, batch, renderer, pusher)


def run_check(
    config: Config,
    repo: Repo,
    update: RefUpdate | MergeProposal,
    environ: Mapping[str, str] = os.environ,
    directory: UserDirectory | None = None,
    issue_tracker: IssueTracker | None = None,
) -> int:
    """
    Validates one ref range or merge proposal in a repository where the commits already exist.
    """
    pusher = current_pusher(repo, environ)
    renderer = Renderer()
    validator = build_validator(
        config, GitChangeSetResolver(repo, exclude_existing_refs=False), pusher,
        directory=directory, issue_tracker=issue_tracker, renderer=renderer)
    return report(config, validator.validate_batch([update]), renderer, pusher)
