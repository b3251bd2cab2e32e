import argparse
import logging
import sys
from pathlib import Path
from typing import IO

from . import __version__
from .common import ThrownError
from .lib.docs import USER_GUIDE
from .main import Interpreter

PROMPT = ">> "


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m sharpscript",
        usage="python -m sharpscript [-v] [script.sharp]",
        description=USER_GUIDE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("script", nargs="?", help="script to run; omit for the REPL")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def describe_uncaught(exc: BaseException) -> str:
    if isinstance(exc, ThrownError):
        return f"Uncaught {exc.error.name}: {exc.error.message}"
    return f"Uncaught {type(exc).__name__}: {exc}"


def repl(interpreter: Interpreter, stdin: IO[str] | None = None) -> int:
    """Read-eval loop; every line runs in the same interpreter."""
    stdin = sys.stdin if stdin is None else stdin
    out = interpreter.stdout
    print(f"SharpScript REPL v{__version__}", file=out)
    print("Type 'exit' to quit\n", file=out)
    while True:
        out.write(PROMPT)
        out.flush()
        line = stdin.readline()
        if not line:
            out.write("\n")
            return 0
        line = line.strip()
        if line == "exit":
            return 0
        if not line:
            continue
        result = interpreter.run(line, filename="<stdin>")
        if result.exception is not None:
            print(describe_uncaught(result.exception), file=interpreter.stderr)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args_list = sys.argv[1:] if argv is None else argv
    try:
        args = parser.parse_args(args_list)
    except SystemExit as exc:
        return int(exc.code)

    logging.basicConfig(
        stream=sys.stderr,
        format="%(message)s",
        level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    interpreter = Interpreter()
    if args.script is None:
        return repl(interpreter)

    script_path = Path(args.script).resolve()
    if not script_path.is_file():
        print(f"sharpscript: script not found: {script_path}", file=sys.stderr)
        return 2

    result = interpreter.run_file(script_path)
    if result.exception is not None:
        print(describe_uncaught(result.exception), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
