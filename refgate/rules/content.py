from typing import List

from refgate.config import Config, compile_pattern
from refgate.model import ChangedFile, Commit, RuleCategory, RuleOutcome
from refgate.render import RenderContext
from refgate.rules.base import RuleEvaluator

DEFAULT_SIZE_MESSAGE = "{{ path }} is {{ size }} bytes, larger than the limit of {{ limit }} bytes."
DEFAULT_DIFF_MESSAGE = "Changes to {{ path }} match the rejected pattern {{ regexp }}."


class ContentSizeRule(RuleEvaluator):
    """Rejects commits that add or grow a file past the configured size."""
    category = RuleCategory.CONTENT_SIZE

    def evaluate(self, config: Config, commit: Commit, ctx: RenderContext) -> RuleOutcome:
        limit = config.content.size_limit
        if limit is None:
            return RuleOutcome.ok()

        too_large: List[ChangedFile] = [f for f in commit.files if f.size > limit]
        if not too_large:
            return RuleOutcome.ok()
        return RuleOutcome.fail('\n'.join(
            self.renderer.render(config.content.size_message or DEFAULT_SIZE_MESSAGE, ctx,
                                 path=f.path, size=f.size, limit=limit)
            for f in too_large
        ))


class ContentDiffRule(RuleEvaluator):
    """Rejects commits whose diff contains something matching the configured pattern."""
    category = RuleCategory.CONTENT_DIFF

    def evaluate(self, config: Config, commit: Commit, ctx: RenderContext) -> RuleOutcome:
        if not config.content.diff_regexp:
            return RuleOutcome.ok()

        pattern = compile_pattern(config.content.diff_regexp, 'content diff')
        matching = [f for f in commit.files if f.diff and pattern.search(f.diff)]
        if not matching:
            return RuleOutcome.ok()
        return RuleOutcome.fail('\n'.join(
            self.renderer.render(config.content.diff_message or DEFAULT_DIFF_MESSAGE, ctx,
                                 path=f.path, regexp=config.content.diff_regexp)
            for f in matching
        ))
