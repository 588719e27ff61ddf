import sys
from typing import TextIO

from termcolor import colored

###############################################################################
# Output prefixes
###############################################################################

CHECKMARK    = '[' + colored("✓", "green") + ']'
CROSSMARK    = '[' + colored("✗", "red") + ']'
QUESTIONMARK = '[' + colored("?", "yellow") + ']'
INFOMARK     = '[' + colored("i", "blue") + ']'

# Git forwards a hook's stderr to the pushing client
OUTPUT: TextIO | None = None


def _message(prefix: str, raw_prefix: str, *args):
    out = OUTPUT if OUTPUT is not None else sys.stderr
    msg = '\n'.join(str(arg) for arg in args)
    first = True
    for line in msg.split('\n'):
        if first: print(f"{prefix} {line}", file=out)
        else:     print(f"{' ' * len(raw_prefix)} {line}", file=out)
        first = False

# Use CROSSMARK for rejected refs and commits
def error(*msg): _message(CROSSMARK, '[✗]', *msg)

# Use QUESTIONMARK for dry-run notices and warnings
def warning(*msg): _message(QUESTIONMARK, '[?]', *msg)

# Use INFOMARK for information
def info(*msg): _message(INFOMARK, '[i]', *msg)

# Use CHECKMARK for accepted pushes
def success(*msg): _message(CHECKMARK, '[✓]', *msg)
