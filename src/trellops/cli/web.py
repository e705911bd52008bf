"""Handler for 'trellops web' command."""

import shlex
import shutil
import sys

from textual_serve.server import Server


def web(args) -> int:
    trellops = shutil.which("trellops")
    if trellops is None:
        print("error: trellops not found on PATH", file=sys.stderr)
        return 1

    command = [trellops]
    if args.config:
        command += ["--config", args.config]
    if args.board:
        command += ["--board", args.board]
    server = Server(shlex.join(command), host=args.host, port=args.port, title="trellops")

    print(f"serving dashboard at http://{args.host}:{args.port}")
    server.serve()
    return 0
