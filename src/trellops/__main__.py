"""Entry point for trellops CLI."""

import sys

NOUNS = {"tiles", "map", "stats", "tasks", "layout", "rules", "config", "cache", "watch", "web"}


def main():
    # No subcommand = TUI mode, optionally with --board/--config
    if len(sys.argv) < 2 or (sys.argv[1] not in NOUNS and sys.argv[1] not in ("-h", "--help")):
        from trellops.cli import build_tui_parser
        from trellops.ui import TrellopsApp

        args = build_tui_parser().parse_args()
        app = TrellopsApp(config_path=args.config, board_id=args.board)
        app.run()
        return

    from trellops.cli import build_parser

    parser = build_parser()
    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
