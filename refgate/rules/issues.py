from typing import List

from refgate.config import Config, compile_pattern
from refgate.errors import ConfigError
from refgate.issues import IssueTracker
from refgate.model import Commit, RuleCategory, RuleOutcome
from refgate.render import Renderer, RenderContext
from refgate.rules.base import RuleEvaluator

DEFAULT_QUERY_MESSAGE = "Issue {{ key }} does not satisfy: {{ query }}"


class IssueQueryRule(RuleEvaluator):
    """
    Every issue key mentioned in the message must be returned by the configured JQL query.
    The query is a template; `{{ key }}` is the issue key being checked.
    """
    category = RuleCategory.ISSUE_QUERY

    def __init__(self, tracker: IssueTracker | None, renderer: Renderer | None = None) -> None:
        super().__init__(renderer)
        self.tracker = tracker

    def evaluate(self, config: Config, commit: Commit, ctx: RenderContext) -> RuleOutcome:
        settings = config.issues
        if not settings.query:
            return RuleOutcome.ok()
        if self.tracker is None:
            raise ConfigError("issues.query is set but no issue tracker url is configured")

        keys: List[str] = []
        for match in compile_pattern(settings.key_regexp, 'issue key').finditer(commit.message):
            if match.group(0) not in keys:
                keys.append(match.group(0))

        failing: List[str] = []
        for key in keys:
            query = self.renderer.render(settings.query, ctx, key=key)
            if self.tracker.count(query) == 0:
                failing.append(self.renderer.render(
                    settings.message or DEFAULT_QUERY_MESSAGE, ctx, key=key, query=query))

        if failing:
            return RuleOutcome.fail('\n'.join(failing))
        return RuleOutcome.ok()
