import abc

from refgate.config import Config, IdentityRule, compile_pattern
from refgate.model import Commit, Identity, RuleCategory, RuleOutcome
from refgate.render import RenderContext
from refgate.rules.base import RuleEvaluator

DEFAULT_EMAIL_MESSAGE = "{{ role }} email {{ value }} does not match {{ expected }}."
DEFAULT_NAME_MESSAGE = "{{ role }} name {{ value }} does not match {{ expected }}."


class IdentityRuleBase(RuleEvaluator):
    """
    Compares the author or committer of a commit with the configured regexp, or with
    the pusher when no regexp is configured.

    The regexp is a template, so it can refer to the pusher: `^{{ pusher.email }}$`.
    Substituted values are matched literally. The regexp is searched, not anchored:
    add `^` and `$` to require a full match.
    """
    role: str
    default_message: str

    @abc.abstractmethod
    def settings(self, config: Config) -> IdentityRule:
        raise NotImplementedError()

    @abc.abstractmethod
    def identity(self, commit: Commit) -> Identity:
        raise NotImplementedError()

    @abc.abstractmethod
    def field(self, identity: Identity) -> str:
        raise NotImplementedError()

    def evaluate(self, config: Config, commit: Commit, ctx: RenderContext) -> RuleOutcome:
        rule = self.settings(config)
        if not rule.enabled:
            return RuleOutcome.ok()

        value = self.field(self.identity(commit))
        if rule.regexp:
            expected = self.renderer.render_pattern(rule.regexp, ctx)
            passed = compile_pattern(expected, f'{self.role.lower()} identity').search(value) is not None
        elif ctx.pusher is not None:
            expected = self.field(ctx.pusher)
            passed = value.strip().lower() == expected.strip().lower()
        else:
            # Nothing to compare against
            return RuleOutcome.ok()

        if passed:
            return RuleOutcome.ok()
        return RuleOutcome.fail(self.renderer.render(
            rule.message or self.default_message, ctx, role=self.role, value=value, expected=expected))


class AuthorEmailRule(IdentityRuleBase):
    category = RuleCategory.AUTHOR_EMAIL
    role = 'Author'
    default_message = DEFAULT_EMAIL_MESSAGE

    def settings(self, config: Config) -> IdentityRule:
        return config.identity.author_email

    def identity(self, commit: Commit) -> Identity:
        return commit.author

    def field(self, identity: Identity) -> str:
        return identity.email


class CommitterEmailRule(IdentityRuleBase):
    category = RuleCategory.COMMITTER_EMAIL
    role = 'Committer'
    default_message = DEFAULT_EMAIL_MESSAGE

    def settings(self, config: Config) -> IdentityRule:
        return config.identity.committer_email

    def identity(self, commit: Commit) -> Identity:
        return commit.committer

    def field(self, identity: Identity) -> str:
        return identity.email


class AuthorNameRule(IdentityRuleBase):
    category = RuleCategory.AUTHOR_NAME
    role = 'Author'
    default_message = DEFAULT_NAME_MESSAGE

    def settings(self, config: Config) -> IdentityRule:
        return config.identity.author_name

    def identity(self, commit: Commit) -> Identity:
        return commit.author

    def field(self, identity: Identity) -> str:
        return identity.name


class CommitterNameRule(IdentityRuleBase):
    category = RuleCategory.COMMITTER_NAME
    role = 'Committer'
    default_message = DEFAULT_NAME_MESSAGE

    def settings(self, config: Config) -> IdentityRule:
        return config.identity.committer_name

    def identity(self, commit: Commit) -> Identity:
        return commit.committer

    def field(self, identity: Identity) -> str:
        return identity.name
