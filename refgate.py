#!python3 -X utf8

from typing import Any
import sys
import argparse
from pathlib import Path
import logging

##################################################################################################
# Main
##################################################################################################

ArgParser = argparse.ArgumentParser

class Commands:
    def __init__(self, parser: ArgParser) -> None:
        self.root_parser = parser
        self.parsers = {}
        self.subparsers = {}

    class Command:
        def __init__(self, commands: 'Commands', name: str) -> None:
            path = name.split('/')
            parsers = commands.parsers
            subparsers = commands.subparsers

            def subcommand(i: int) -> str:
                if i == 0: return 'command'
                return ('sub' * i) + 'command'

            if '' not in parsers:
                parsers[''] = commands.root_parser

            if '' not in subparsers:
                subparsers[''] = commands.root_parser.add_subparsers(dest='command')

            for i in range(1, len(path) + 1):
                p = '/'.join(path[:i])
                p0 = '/'.join(path[:i-1])
                if p not in parsers:
                    parsers[p] = subparsers[p0].add_parser(path[i-1])
                if p not in subparsers and i != len(path):
                    subparsers[p] = parsers[p].add_subparsers(dest=subcommand(i))

            self.parser = parsers[name]

        def __enter__(self) -> ArgParser:
            return self.parser

        def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
            pass

    def __call__(self, name: str) -> 'Commands.Command':
        return Commands.Command(self, name)


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate the commits introduced by a push or a merge proposal.")
    parser.add_argument('--config', type=str, default='refgate.yaml', help='Path to the YAML configuration.')
    parser.add_argument('--repo', type=str, default='.', help='Path to the git repository.')
    parser.add_argument('--verbose', action='store_true', help='Log every ref update and commit.')
    commands = Commands(parser)

    with commands('hook') as cmd:
        cmd.description = 'pre-receive hook: reads "<old> <new> <ref>" lines from stdin.'

    with commands('check') as cmd:
        cmd.add_argument('ref', type=str)
        cmd.add_argument('from_hash', type=str)
        cmd.add_argument('to_hash', type=str)

    with commands('proposal') as cmd:
        cmd.add_argument('from_ref', type=str)
        cmd.add_argument('from_hash', type=str)
        cmd.add_argument('to_ref', type=str)
        cmd.add_argument('to_hash', type=str)

    with commands('config/check') as cmd:
        pass

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        return 0

    logging.basicConfig(level=logging.INFO, format='%(message)s')
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    from git import Repo
    from git.exc import InvalidGitRepositoryError, NoSuchPathError

    from refgate.config import load_config, compile_pattern
    from refgate.errors import GateError
    from refgate.messages import error, info, success
    from refgate.model import MergeProposal, RefChangeKind, RefUpdate
    from refgate.render import Renderer

    try:
        config = load_config(Path(args.config))

        match args.command:
            case 'config':
                match args.subcommand:
                    case 'check':
                        for where, pattern in config.patterns().items():
                            compile_pattern(pattern, where)
                        renderer = Renderer()
                        for where, template in config.templates().items():
                            renderer.template(template)
                        info(f"{len(config.patterns())} pattern(s) and {len(config.templates())} template(s) compiled")
                        success(f"{args.config} is valid")
                        return 0
                    case _:
                        raise ValueError(f"Unknown subcommand: {args.subcommand}")

            case 'hook' | 'check' | 'proposal':
                from refgate.hook import run_check, run_hook
                try:
                    repo = Repo(args.repo)
                except (InvalidGitRepositoryError, NoSuchPathError) as e:
                    error(f"{args.repo} is not a git repository: {e}")
                    return 2

                try:
                    if args.command == 'hook':
                        return run_hook(config, repo, sys.stdin)
                    if args.command == 'check':
                        update = RefUpdate(args.ref, RefChangeKind.of(args.from_hash, args.to_hash),
                                           args.from_hash, args.to_hash)
                        return run_check(config, repo, update)
                    proposal = MergeProposal(args.from_ref, args.from_hash, args.to_ref, args.to_hash)
                    return run_check(config, repo, proposal)
                finally:
                    repo.close()

            case _:
                raise ValueError(f"Unknown command: {args.command}")

    except (GateError, ValueError) as e:
        error(f"{type(e).__name__}: {e}")
        return 2


if __name__ == '__main__':
    sys.exit(main())
