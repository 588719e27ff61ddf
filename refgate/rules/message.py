from typing import List

from refgate.config import Config, GroupAcceptance, MessageRule, RuleGroup, compile_pattern
from refgate.model import Commit, RuleCategory, RuleOutcome
from refgate.render import RenderContext
from refgate.rules.base import RuleEvaluator

DEFAULT_GROUP_MESSAGES = {
    GroupAcceptance.ALL: "Commit message must match all of the following:",
    GroupAcceptance.ONE: "Commit message must match at least one of the following:",
    GroupAcceptance.NONE: "Commit message must not match any of the following:",
}
DEFAULT_RULE_MESSAGE = "{{ regexp }}"


class MessageGroupsRule(RuleEvaluator):
    """
    Checks the commit message against every configured rule group. A group passes when
    the number of its rules that find a match satisfies its acceptance (ALL, ONE, NONE).
    """
    category = RuleCategory.MESSAGE_GROUPS

    def evaluate(self, config: Config, commit: Commit, ctx: RenderContext) -> RuleOutcome:
        problems: List[str] = []
        for group in config.groups:
            offending = self._offending_rules(group, commit.message)
            if offending is None:
                continue
            problems.append(self.renderer.render(
                group.message or DEFAULT_GROUP_MESSAGES[group.accept], ctx, accept=group.accept.value))
            for rule in offending:
                problems.append("  " + self.renderer.render(rule.message or DEFAULT_RULE_MESSAGE, ctx, regexp=rule.regexp))

        if problems:
            return RuleOutcome.fail('\n'.join(problems))
        return RuleOutcome.ok()

    def _offending_rules(self, group: RuleGroup, message: str) -> List[MessageRule] | None:
        """
        Returns the rules to report when the group fails, or None when it passes.
        """
        matched = [rule for rule in group.rules if compile_pattern(rule.regexp, 'message rule').search(message)]
        unmatched = [rule for rule in group.rules if rule not in matched]

        match group.accept:
            case GroupAcceptance.ALL:
                return unmatched or None
            case GroupAcceptance.ONE:
                if matched or not group.rules:
                    return None
                return list(group.rules)
            case GroupAcceptance.NONE:
                return matched or None
