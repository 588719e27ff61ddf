import pytest

from refgate.config import (
    Config, GroupAcceptance, MATCH_ALL, compile_pattern, load_config, parse_config,
)
from refgate.errors import ConfigError

EXAMPLE = """
branches: ^refs/heads/(master|release/.*)$
branch_rejection:
  regexp: ^refs/heads/tmp/
  message: "{{ ref_id }} is a temporary branch"
exclude:
  merge_commits: true
dry_run:
  enabled: false
messages:
  reject: Fix the listed commits, {{ pusher.name }}.
groups:
  - accept: ONE
    message: Reference an issue
    rules:
      - regexp: "[A-Z]+-[0-9]+"
        message: Jira issue key
  - accept: none
    rules:
      - regexp: ^WIP
identity:
  author_email:
    enabled: true
    regexp: "@example\\\\.com$"
content:
  size_limit: 1048576
  diff_regexp: "BEGIN RSA PRIVATE KEY"
issues:
  url: https://jira.example.com
  query: key = {{ key }} AND status = "In Progress"
directory:
  users:
    - name: Alice Doe
      email: alice@example.com
"""


def test_defaults():
    config = parse_config(None)
    assert config == Config()
    assert config.branch_inclusion_pattern.pattern == MATCH_ALL
    assert config.branch_rejection_pattern is None
    assert config.groups == []
    assert not config.identity.author_email.enabled
    assert config.content.size_limit is None


def test_load_example(tmp_path):
    path = tmp_path / "refgate.yaml"
    path.write_text(EXAMPLE, encoding="utf-8")
    config = load_config(path)

    assert config.branch_inclusion_pattern.search("refs/heads/release/1.0")
    assert not config.branch_inclusion_pattern.search("refs/heads/feature")
    assert config.branch_rejection_pattern.search("refs/heads/tmp/x")
    assert config.exclude.merge_commits is True

    assert [g.accept for g in config.groups] == [GroupAcceptance.ONE, GroupAcceptance.NONE]
    assert config.groups[0].rules[0].message == "Jira issue key"
    assert config.groups[1].rules[0].regexp == "^WIP"
    assert config.groups[1].message is None

    assert config.identity.author_email.enabled
    assert config.identity.author_email.regexp == r"@example\.com$"
    assert not config.identity.committer_email.enabled
    assert config.content.size_limit == 1048576
    assert config.issues.url == "https://jira.example.com"
    assert [u.email for u in config.directory.users] == ["alice@example.com"]


def test_patterns_and_templates(tmp_path):
    path = tmp_path / "refgate.yaml"
    path.write_text(EXAMPLE, encoding="utf-8")
    config = load_config(path)

    patterns = config.patterns()
    assert patterns['branch_rejection.regexp'] == "^refs/heads/tmp/"
    assert patterns['groups[0].rules[0].regexp'] == "[A-Z]+-[0-9]+"
    assert 'issues.key_regexp' in patterns

    templates = config.templates()
    assert templates['messages.reject'].startswith("Fix the listed commits")
    assert templates['identity.author_email.regexp'] == r"@example\.com$"
    assert 'issues.query' in templates
    assert 'dry_run.message' not in templates


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "refgate.yaml"
    path.write_text("groups: [\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


@pytest.mark.parametrize("raw", [
    {'branchez': '.*'},
    {'identity': {'author_mail': {'enabled': True}}},
    {'groups': [{'accept': 'ALL', 'rulez': []}]},
    {'groups': [{'accept': 'SOME', 'rules': []}]},
    {'groups': {'accept': 'ALL'}},
    {'exclude': {'merge_commits': 'yes please'}},
    {'content': {'size_limit': -1}},
    {'content': {'size_limit': '1MB'}},
    {'dry_run': ['enabled']},
    {'directory': {'users': [{'name': 'Alice Doe'}]}},
])
def test_rejected_settings(raw):
    with pytest.raises(ConfigError):
        parse_config(raw)


def test_invalid_pattern_surfaces_on_use():
    config = parse_config({'branch_rejection': {'regexp': '(unclosed'}})
    with pytest.raises(ConfigError):
        config.branch_rejection_pattern
    with pytest.raises(ConfigError):
        compile_pattern('[', 'test')


def test_config_error_is_value_error():
    with pytest.raises(ValueError):
        parse_config({'unknown': 1})
