"""Run a stacko program file and write the final stack, one value per line."""

from __future__ import annotations

import argparse
import logging
import re
from pathlib import Path

from .errors import StackoError
from .evaluator import interpret
from .printer import render_stack

_log = logging.getLogger(__name__)

_NUMBERED_INPUT_RE = re.compile(r"([0-9]{3})\.txt")


def default_output_path(input_path: Path) -> Path:
    """``input-001.txt`` -> ``output-001.txt`` in the working directory, else ``<stem>.out.txt`` beside the input."""
    m = _NUMBERED_INPUT_RE.search(input_path.name)
    if m:
        return Path(f"output-{m.group(1)}.txt")
    return input_path.with_name(f"{input_path.stem}.out.txt")


def read_program(path: Path) -> list[str]:
    return [line.strip() for line in path.read_text(encoding="utf-8").splitlines()]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stacko", description=__doc__)
    parser.add_argument("input", help="program file, one line of tokens per line")
    parser.add_argument("--output", help="where to write the final stack (default derived from the input name)")
    parser.add_argument("--print", dest="echo", action="store_true", help="also print the final stack to stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    input_path = Path(args.input)
    if not input_path.is_file():
        _log.error("input file %s does not exist", input_path)
        return 2

    output_path = Path(args.output) if args.output else default_output_path(input_path)
    program = read_program(input_path)
    _log.debug("running %d line(s) from %s", len(program), input_path)

    try:
        result = interpret(program)
    except StackoError as err:
        _log.error("%s: %s: %s", input_path, type(err).__name__, err)
        return 1

    lines = render_stack(result)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
    _log.debug("wrote %d value(s) to %s", len(lines), output_path)
    if args.echo:
        for line in lines:
            print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
