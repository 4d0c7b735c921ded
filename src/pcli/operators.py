## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import sys
import subprocess

from .formatting import format_value


# INPUT/OUTPUT
def op_print(*values) -> None:
    print(''.join(format_value(v) for v in values))

# PROCESSES
def op_cmd(name, *args) -> int | None:
    """Run an external command and wait for it; failing to launch is reported, not raised."""
    argv = [format_value(name), *(format_value(a) for a in args)]
    sys.stdout.flush()
    try:
        completed = subprocess.run(argv)
    except OSError:
        print("command failed!", file=sys.stderr)
        return None
    return completed.returncode
