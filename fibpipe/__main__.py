"""
Command line entry: python -m fibpipe {gateway,worker,diagram}
"""

import sys

USAGE = "Usage: python -m fibpipe {gateway|worker|diagram}"


def main(argv=None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if len(argv) != 1:
        print(USAGE)
        return 1

    command = argv[0]
    if command == "gateway":
        from .main import run_gateway
        run_gateway()
    elif command == "worker":
        from .main import run_worker
        run_worker()
    elif command == "diagram":
        from .sequence_diagram import render
        print(render())
    else:
        print(f"Unknown command: {command}")
        print(USAGE)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
