from typing import Any, Dict, List, Mapping, Optional
import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from pathlib import Path
import re

import yaml

from refgate.errors import ConfigError

CONFIG_FILE = 'refgate.yaml'

MATCH_ALL = '.*'


@lru_cache(maxsize=256)
def compile_pattern(pattern: str, what: str = 'pattern') -> re.Pattern:
    """
    Compiles a configured regular expression. Invalid patterns surface here, at first use.
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Invalid {what} regexp {pattern!r}: {e}") from e


################################################################################
# Message groups
################################################################################

class GroupAcceptance(Enum):
    ALL = 'ALL'
    ONE = 'ONE'
    NONE = 'NONE'


@dataclass
class MessageRule:
    regexp: str
    message: str | None = None


@dataclass
class RuleGroup:
    accept: GroupAcceptance = GroupAcceptance.ALL
    message: str | None = None
    rules: List[MessageRule] = field(default_factory=list)


################################################################################
# Per-category settings
################################################################################

@dataclass
class BranchRejection:
    # No regexp means no branch name is rejected
    regexp: str | None = None
    message: str | None = None


@dataclass
class Exclusions:
    merge_commits: bool = False
    regexp: str | None = None


@dataclass
class DryRun:
    enabled: bool = False
    message: str | None = None


@dataclass
class Messages:
    accept: str | None = None
    reject: str | None = None


@dataclass
class IdentityRule:
    enabled: bool = False
    regexp: str | None = None
    message: str | None = None


@dataclass
class IdentityRules:
    author_email: IdentityRule = field(default_factory=IdentityRule)
    committer_email: IdentityRule = field(default_factory=IdentityRule)
    author_name: IdentityRule = field(default_factory=IdentityRule)
    committer_name: IdentityRule = field(default_factory=IdentityRule)
    author_email_in_directory: IdentityRule = field(default_factory=IdentityRule)
    author_name_in_directory: IdentityRule = field(default_factory=IdentityRule)


@dataclass
class ContentRules:
    size_limit: int | None = None
    size_message: str | None = None
    diff_regexp: str | None = None
    diff_message: str | None = None


@dataclass
class IssueTrackerSettings:
    url: str | None = None
    username: str | None = None
    token: str | None = None
    query: str | None = None
    key_regexp: str = r'[A-Z][A-Z0-9]+-[0-9]+'
    message: str | None = None


@dataclass
class DirectoryUser:
    name: str
    email: str


@dataclass
class DirectorySettings:
    url: str | None = None
    username: str | None = None
    token: str | None = None
    users: List[DirectoryUser] = field(default_factory=list)


##################################################################################################
# Config
##################################################################################################

@dataclass
class Config:
    branches: str | None = None
    branch_rejection: BranchRejection = field(default_factory=BranchRejection)
    exclude: Exclusions = field(default_factory=Exclusions)
    dry_run: DryRun = field(default_factory=DryRun)
    messages: Messages = field(default_factory=Messages)
    groups: List[RuleGroup] = field(default_factory=list)
    identity: IdentityRules = field(default_factory=IdentityRules)
    content: ContentRules = field(default_factory=ContentRules)
    issues: IssueTrackerSettings = field(default_factory=IssueTrackerSettings)
    directory: DirectorySettings = field(default_factory=DirectorySettings)

    @property
    def branch_inclusion_pattern(self) -> re.Pattern:
        return compile_pattern(self.branches or MATCH_ALL, 'branches')

    @property
    def branch_rejection_pattern(self) -> re.Pattern | None:
        if not self.branch_rejection.regexp:
            return None
        return compile_pattern(self.branch_rejection.regexp, 'branch rejection')

    def patterns(self) -> Dict[str, str]:
        """
        Every regexp in the configuration that is compiled as-is, keyed by where it was found.
        """
        found: Dict[str, str] = {'branches': self.branches or MATCH_ALL}
        if self.branch_rejection.regexp:
            found['branch_rejection.regexp'] = self.branch_rejection.regexp
        if self.exclude.regexp:
            found['exclude.regexp'] = self.exclude.regexp
        for i, group in enumerate(self.groups):
            for j, rule in enumerate(group.rules):
                found[f'groups[{i}].rules[{j}].regexp'] = rule.regexp
        if self.content.diff_regexp:
            found['content.diff_regexp'] = self.content.diff_regexp
        found['issues.key_regexp'] = self.issues.key_regexp
        return found

    def templates(self) -> Dict[str, str]:
        """
        Every jinja2 template in the configuration, keyed by where it was found.
        """
        found: Dict[str, str] = {}

        def add(name: str, value: str | None) -> None:
            if value:
                found[name] = value

        add('branch_rejection.message', self.branch_rejection.message)
        add('dry_run.message', self.dry_run.message)
        add('messages.accept', self.messages.accept)
        add('messages.reject', self.messages.reject)
        for i, group in enumerate(self.groups):
            add(f'groups[{i}].message', group.message)
            for j, rule in enumerate(group.rules):
                add(f'groups[{i}].rules[{j}].message', rule.message)
        for f in dataclasses.fields(IdentityRules):
            rule: IdentityRule = getattr(self.identity, f.name)
            add(f'identity.{f.name}.regexp', rule.regexp)
            add(f'identity.{f.name}.message', rule.message)
        add('content.size_message', self.content.size_message)
        add('content.diff_message', self.content.diff_message)
        add('issues.query', self.issues.query)
        add('issues.message', self.issues.message)
        return found


##################################################################################################
# Loading
##################################################################################################

def _build(cls: type, raw: Any, where: str) -> Any:
    """
    Builds a (possibly nested) config dataclass from a YAML mapping.
    """
    prefix = where
    where = where or 'top level'
    if raw is None:
        return cls()
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Expected a mapping at '{where}', got {type(raw).__name__}")

    fields = {f.name: f for f in dataclasses.fields(cls)}
    unknown = [key for key in raw if key not in fields]
    if unknown:
        raise ConfigError(f"Unknown key(s) at '{where}': {', '.join(map(str, unknown))}")

    kwargs: Dict[str, Any] = {}
    for key, value in raw.items():
        kwargs[key] = _convert(cls, fields[key].name, value, f"{prefix}.{key}" if prefix else key)

    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ConfigError(f"Invalid settings at '{where}': {e}") from e


def _convert(cls: type, name: str, value: Any, where: str) -> Any:
    nested = {
        (Config, 'branch_rejection'): BranchRejection,
        (Config, 'exclude'): Exclusions,
        (Config, 'dry_run'): DryRun,
        (Config, 'messages'): Messages,
        (Config, 'identity'): IdentityRules,
        (Config, 'content'): ContentRules,
        (Config, 'issues'): IssueTrackerSettings,
        (Config, 'directory'): DirectorySettings,
    }
    if (cls, name) in nested:
        return _build(nested[(cls, name)], value, where)

    if cls is IdentityRules:
        return _build(IdentityRule, value, where)

    if cls is Config and name == 'groups':
        return [_build_group(group, f"{where}[{i}]") for i, group in enumerate(_as_list(value, where))]

    if cls is DirectorySettings and name == 'users':
        return [_build(DirectoryUser, user, f"{where}[{i}]") for i, user in enumerate(_as_list(value, where))]

    if cls is ContentRules and name == 'size_limit':
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigError(f"Expected a non-negative integer at '{where}', got {value!r}")
        return value

    if name in ('enabled', 'merge_commits'):
        if not isinstance(value, bool):
            raise ConfigError(f"Expected true or false at '{where}', got {value!r}")
        return value

    if value is not None and not isinstance(value, str):
        raise ConfigError(f"Expected a string at '{where}', got {value!r}")
    return value


def _build_group(raw: Any, where: str) -> RuleGroup:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Expected a mapping at '{where}', got {type(raw).__name__}")
    raw = dict(raw)
    accept = str(raw.pop('accept', GroupAcceptance.ALL.value)).upper()
    try:
        acceptance = GroupAcceptance(accept)
    except ValueError as e:
        raise ConfigError(f"Unknown acceptance '{accept}' at '{where}.accept', expected one of ALL, ONE, NONE") from e
    rules = [_build(MessageRule, rule, f"{where}.rules[{i}]") for i, rule in enumerate(_as_list(raw.pop('rules', []), where))]
    message = raw.pop('message', None)
    if raw:
        raise ConfigError(f"Unknown key(s) at '{where}': {', '.join(map(str, raw))}")
    return RuleGroup(accept=acceptance, message=message, rules=rules)


def _as_list(value: Any, where: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"Expected a list at '{where}', got {type(value).__name__}")
    return value


def parse_config(raw: Optional[Mapping[str, Any]]) -> Config:
    return _build(Config, raw, '')


def load_config(path: Path | str = CONFIG_FILE) -> Config:
    path = Path(path)
    try:
        with open(path, 'rt', encoding='utf-8') as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file {path} does not exist") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file {path} is not valid YAML: {e}") from e
    return parse_config(raw)
