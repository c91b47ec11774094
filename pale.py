import argparse
import sys
from pathlib import Path

from pale.pale_runtime import ScriptRunner
from pale.pale_printer import Printer
from pale.pale_profile import ProfileError, load_profile
from pale.pale_lexer import tokenize
from pale.pale_parser import parse
from pale.pale_datatypes import PaleError


# A basic input prompt, kept as a function so tests can replace it.
def read_line(prompt: str) -> str:
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return sys.stdin.readline()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="pale", description="Run a PALE script.")
    ap.add_argument("script", nargs="?", help="script text to run (omit for the REPL)")
    ap.add_argument("-f", "--file", help="read the script from a file instead")
    ap.add_argument("-d", "--dump", action="store_true", help="print tokens and parsed statements before running")
    ap.add_argument("--profile", help="YAML sandbox profile selecting the exposed functions")
    ap.add_argument("--max-steps", type=int, default=None, help="abort after this many evaluation steps")
    return ap


def print_side_effects(result):
    for line in result.stdout:
        print(line)


def dump(source: str, filename: str):
    """Print the token stream and the parsed statements; parse errors are left to the run."""
    printer = Printer()
    try:
        tokens = tokenize(source, filename)
        print("Tokens =")
        for tok in tokens:
            print(f"  {printer.pformat(tok)}")
        print("Statements =")
        for stmt in parse(tokens):
            print(f"  {printer.pformat(stmt)}")
    except PaleError:
        # run_source reports the same error with full context.
        pass


def run_source(runner: ScriptRunner, source: str) -> int:
    """Run a script non-interactively and return the exit status."""
    printer = Printer()
    result = runner.handle_script(source)
    # Print side effects (from `print`)
    print_side_effects(result)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        return 1
    if result.value is not None:
        print(printer.pformat(result.value))
    return 0


def repl(runner: ScriptRunner):
    print("PALE REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")
    printer = Printer()
    while True:
        try:
            raw = read_line(">> ")
        except (EOFError, KeyboardInterrupt):
            raw = ""
        if raw == "":
            print("\nExiting.")
            break
        line = raw.strip()
        if not line:
            continue
        if line == "exit":
            break

        result = runner.handle_script(line)
        print_side_effects(result)
        if result.status == 'error':
            print(result.format_error(), file=sys.stderr)
            continue
        if result.value is not None:
            print(printer.pformat(result.value))


def main(argv=None) -> int:
    """Run a script when provided, otherwise start the interactive REPL."""
    args = build_parser().parse_args(argv)

    profile = None
    if args.profile:
        try:
            profile = load_profile(args.profile)
        except (OSError, ProfileError) as e:
            print(f"Error: cannot load profile {args.profile}: {e}", file=sys.stderr)
            return 1

    filename = "<provided>"
    source = args.script
    if args.file:
        p = Path(args.file)
        try:
            source = p.read_text(encoding="utf-8")
        except OSError:
            print(f"Error: file not found: {args.file}", file=sys.stderr)
            return 1
        filename = str(p)

    try:
        runner = ScriptRunner(profile=profile, max_steps=args.max_steps, filename=filename)
    except ProfileError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if source is None:
        repl(runner)
        return 0
    if args.dump:
        dump(source, filename)
    return run_source(runner, source)


if __name__ == "__main__":
    raise SystemExit(main())
