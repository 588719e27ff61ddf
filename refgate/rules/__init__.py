from typing import List

from refgate.directory import UserDirectory
from refgate.issues import IssueTracker
from refgate.model import RuleCategory
from refgate.render import Renderer
from refgate.rules.base import RuleEvaluator
from refgate.rules.content import ContentDiffRule, ContentSizeRule
from refgate.rules.directory import AuthorEmailInDirectoryRule, AuthorNameInDirectoryRule
from refgate.rules.identity import AuthorEmailRule, AuthorNameRule, CommitterEmailRule, CommitterNameRule
from refgate.rules.issues import IssueQueryRule
from refgate.rules.message import MessageGroupsRule

# Evaluation order. Reports follow it, so it is part of the output format.
RULE_ORDER: List[RuleCategory] = list(RuleCategory)


def default_evaluators(
    directory: UserDirectory,
    issue_tracker: IssueTracker | None,
    renderer: Renderer | None = None,
) -> List[RuleEvaluator]:
    renderer = renderer or Renderer()
    evaluators: List[RuleEvaluator] = [
        MessageGroupsRule(renderer),
        AuthorEmailRule(renderer),
        CommitterEmailRule(renderer),
        AuthorNameRule(renderer),
        CommitterNameRule(renderer),
        ContentSizeRule(renderer),
        ContentDiffRule(renderer),
        AuthorEmailInDirectoryRule(directory, renderer),
        AuthorNameInDirectoryRule(directory, renderer),
        IssueQueryRule(issue_tracker, renderer),
    ]
    assert [e.category for e in evaluators] == RULE_ORDER, f"Evaluators out of order: {evaluators}"
    return evaluators


__all__ = [
    "RULE_ORDER",
    "RuleEvaluator",
    "default_evaluators",
    "MessageGroupsRule",
    "AuthorEmailRule",
    "CommitterEmailRule",
    "AuthorNameRule",
    "CommitterNameRule",
    "ContentSizeRule",
    "ContentDiffRule",
    "AuthorEmailInDirectoryRule",
    "AuthorNameInDirectoryRule",
    "IssueQueryRule",
]
