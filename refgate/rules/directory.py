from refgate.config import Config
from refgate.directory import UserDirectory
from refgate.model import Commit, RuleCategory, RuleOutcome
from refgate.render import Renderer, RenderContext
from refgate.rules.base import RuleEvaluator

DEFAULT_UNKNOWN_EMAIL_MESSAGE = "Author email {{ value }} does not belong to a known user."
DEFAULT_UNKNOWN_NAME_MESSAGE = "Author name {{ value }} does not belong to a known user."


class AuthorEmailInDirectoryRule(RuleEvaluator):
    category = RuleCategory.AUTHOR_EMAIL_IN_DIRECTORY

    def __init__(self, directory: UserDirectory, renderer: Renderer | None = None) -> None:
        super().__init__(renderer)
        self.directory = directory

    def evaluate(self, config: Config, commit: Commit, ctx: RenderContext) -> RuleOutcome:
        rule = config.identity.author_email_in_directory
        if not rule.enabled:
            return RuleOutcome.ok()
        if self.directory.find_by_email(commit.author.email) is not None:
            return RuleOutcome.ok()
        return RuleOutcome.fail(self.renderer.render(
            rule.message or DEFAULT_UNKNOWN_EMAIL_MESSAGE, ctx, value=commit.author.email))


class AuthorNameInDirectoryRule(RuleEvaluator):
    category = RuleCategory.AUTHOR_NAME_IN_DIRECTORY

    def __init__(self, directory: UserDirectory, renderer: Renderer | None = None) -> None:
        super().__init__(renderer)
        self.directory = directory

    def evaluate(self, config: Config, commit: Commit, ctx: RenderContext) -> RuleOutcome:
        rule = config.identity.author_name_in_directory
        if not rule.enabled:
            return RuleOutcome.ok()
        if self.directory.find_by_name(commit.author.name) is not None:
            return RuleOutcome.ok()
        return RuleOutcome.fail(self.renderer.render(
            rule.message or DEFAULT_UNKNOWN_NAME_MESSAGE, ctx, value=commit.author.name))
