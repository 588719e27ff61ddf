import io

import pytest

from refgate import messages
from refgate.changesets import StaticChangeSetResolver
from refgate.config import parse_config
from refgate.directory import StaticUserDirectory
from refgate.hook import (
    EXIT_ACCEPTED, EXIT_REJECTED, build_validator, current_pusher, parse_ref_updates, render_report, report,
    run_check, run_hook,
)
from refgate.model import Commit, Identity, MergeProposal, RefChangeKind, RefUpdate
from refgate.render import Renderer
from refgate.test_changesets import GitTestBase

ALICE = Identity("Alice Doe", "alice@example.com")

OLD = 'a' * 40
NEW = 'b' * 40
ZERO = '0' * 40

WIP_CONFIG = {
    'groups': [{'accept': 'NONE', 'rules': [{'regexp': '^WIP'}]}],
    'messages': {'accept': 'Thanks {{ pusher.name }}', 'reject': 'Rejected.'},
}


@pytest.fixture
def output(monkeypatch):
    out = io.StringIO()
    monkeypatch.setattr(messages, 'OUTPUT', out)
    return out


def validate(raw_config, *commits, ref_id='refs/heads/feature'):
    config = parse_config(raw_config)
    validator = build_validator(config, StaticChangeSetResolver(commits), ALICE, directory=StaticUserDirectory())
    return config, validator.validate_batch([RefUpdate(ref_id, RefChangeKind.UPDATE, OLD, NEW)])


def test_parse_ref_updates():
    updates = parse_ref_updates([
        f"{ZERO} {NEW} refs/heads/new\n",
        "\n",
        f"{OLD} {NEW} refs/heads/master\n",
        f"{OLD} {ZERO} refs/tags/v1\n",
    ])
    assert updates == [
        RefUpdate('refs/heads/new', RefChangeKind.ADD, ZERO, NEW),
        RefUpdate('refs/heads/master', RefChangeKind.UPDATE, OLD, NEW),
        RefUpdate('refs/tags/v1', RefChangeKind.DELETE, OLD, ZERO),
    ]


def test_parse_malformed_line():
    with pytest.raises(ValueError):
        parse_ref_updates([f"{OLD} refs/heads/master"])


def test_current_pusher_from_environment():
    environ = {'REFGATE_PUSHER_NAME': 'Alice Doe', 'REFGATE_PUSHER_EMAIL': 'alice@example.com'}
    assert current_pusher(None, environ) == ALICE
    assert current_pusher(None, {}) is None


def test_render_report():
    commit = Commit('1' * 40, "WIP: half done\n\nmore", 1, ALICE, ALICE)
    config, batch = validate(WIP_CONFIG, commit)

    lines = render_report(config, batch, Renderer(), ALICE)

    assert lines == [
        f"refs/heads/feature {'a' * 10}..{'b' * 10}",
        f"  {'1' * 10} Alice Doe <alice@example.com> >> WIP: half done",
        "    - message groups: Commit message must not match any of the following:",
        "        ^WIP",
    ]


def test_render_report_rejected_branch():
    commit = Commit('1' * 40, "Fine", 1, ALICE, ALICE)
    raw = dict(WIP_CONFIG, branch_rejection={'regexp': '^refs/heads/tmp/'})
    config, batch = validate(raw, commit, ref_id='refs/heads/tmp/x')

    lines = render_report(config, batch, Renderer(), ALICE)

    assert lines == [
        f"refs/heads/tmp/x {'a' * 10}..{'b' * 10}",
        "  Branch refs/heads/tmp/x is not allowed.",
    ]


def test_report_accepts_clean_batch(output):
    config, batch = validate(WIP_CONFIG, Commit('1' * 40, "Fine", 1, ALICE, ALICE))

    assert report(config, batch, Renderer(), ALICE) == EXIT_ACCEPTED
    assert "Thanks Alice Doe" in output.getvalue()


def test_report_rejects(output):
    config, batch = validate(WIP_CONFIG, Commit('1' * 40, "WIP", 1, ALICE, ALICE))

    assert report(config, batch, Renderer(), ALICE) == EXIT_REJECTED
    text = output.getvalue()
    assert "refs/heads/feature" in text
    assert "message groups" in text
    assert "Rejected." in text


def test_report_dry_run(output):
    raw = dict(WIP_CONFIG, dry_run={'enabled': True, 'message': 'Would have rejected {{ pusher.email }}'})
    config, batch = validate(raw, Commit('1' * 40, "WIP", 1, ALICE, ALICE))

    assert report(config, batch, Renderer(), ALICE) == EXIT_ACCEPTED
    text = output.getvalue()
    assert "message groups" in text
    assert "Would have rejected alice@example.com" in text
    assert "Rejected." not in text


class TestRunHook(GitTestBase):

    def setUp(self):
        super().setUp()
        self.output = io.StringIO()
        self._saved_output = messages.OUTPUT
        messages.OUTPUT = self.output

    def tearDown(self):
        messages.OUTPUT = self._saved_output
        super().tearDown()

    def test_pre_receive_rejects_wip(self):
        c1 = self._commit("Initial", {"a.txt": "1\n"})
        c2 = self._commit("WIP: not yet", {"a.txt": "2\n"})
        # pre-receive runs before the ref moves
        self.repo.head.reference.set_commit(c1)

        status = run_hook(parse_config(WIP_CONFIG), self.repo, [f"{c1} {c2} refs/heads/master\n"], environ={})

        self.assertEqual(status, EXIT_REJECTED)
        text = self.output.getvalue()
        self.assertIn("WIP: not yet", text)
        self.assertNotIn("Initial", text)

    def test_pre_receive_accepts_clean_push(self):
        c1 = self._commit("Initial", {"a.txt": "1\n"})
        c2 = self._commit("Second", {"a.txt": "2\n"})
        self.repo.head.reference.set_commit(c1)

        status = run_hook(parse_config(WIP_CONFIG), self.repo, [f"{c1} {c2} refs/heads/master\n"], environ={})

        self.assertEqual(status, EXIT_ACCEPTED)
        # Falls back to the repository's git user
        self.assertIn("Thanks Test User", self.output.getvalue())

    def test_check_existing_range(self):
        c1 = self._commit("Initial", {"a.txt": "1\n"})
        c2 = self._commit("WIP: again", {"a.txt": "2\n"})

        update = RefUpdate('refs/heads/master', RefChangeKind.UPDATE, c1, c2)
        self.assertEqual(run_check(parse_config(WIP_CONFIG), self.repo, update, environ={}), EXIT_REJECTED)

        proposal = MergeProposal('refs/heads/master', c1, 'refs/heads/base', c1)
        self.assertEqual(run_check(parse_config(WIP_CONFIG), self.repo, proposal, environ={}), EXIT_ACCEPTED)
