"""
Command-line front end.

Usage: scriptlex input.txt [--expr] [--base DIR] [-D NAME=VALUE] [--deps]

Prints every token of a script as ``origin:line: token``, or with --deps
the tree of script files pulled in through $include.
"""

import argparse
import sys
from typing import List, Optional, Tuple

from .errors import ScriptError
from .filesystem import FileSystem, PathMode
from .lexer import Tokenizer, MAX_INCLUDES, MAX_TOKEN


def parse_define(definition: str) -> Tuple[str, str]:
    """Split a NAME=VALUE command-line definition."""
    name, sep, value = definition.partition('=')
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {definition!r}")
    return name, value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='scriptlex',
        description='Script Lexer - Dump the preprocessed tokens of a script file'
    )
    parser.add_argument('input', help='Script file to tokenize')
    parser.add_argument('--expr', action='store_true',
                        help='Split tokens with expression (C operator) rules')
    parser.add_argument('-b', '--base', metavar='DIR',
                        help='Base search path for $include files')
    parser.add_argument('-D', '--define', action='append', type=parse_define,
                        default=[], metavar='NAME=VALUE',
                        help='Predefine a $NAME$ variable (can be used multiple times)')
    parser.add_argument('--deps', action='store_true',
                        help='List the included script files instead of the tokens')
    parser.add_argument('--max-token', type=int, default=MAX_TOKEN,
                        help=f'Maximum token size (default: {MAX_TOKEN})')
    parser.add_argument('--max-depth', type=int, default=MAX_INCLUDES,
                        help=f'Maximum include/macro nesting (default: {MAX_INCLUDES})')
    parser.add_argument('--verbose', action='store_true',
                        help='Verbose output')
    return parser


def main(argv: Optional[List[str]] = None):
    """Command-line interface for the tokenizer."""
    parser = build_parser()
    args = parser.parse_args(argv)

    tokenizer = Tokenizer(filesystem=FileSystem(base_path=args.base),
                          max_token=args.max_token, max_depth=args.max_depth,
                          verbose=args.verbose)
    for name, value in args.define:
        tokenizer.define_variable(name, value)

    loaded = []

    def record_file(filename, parent, parent_line):
        loaded.append((len(tokenizer.stack) - 1, filename, parent, parent_line))

    if args.deps:
        tokenizer.set_definition_callback(record_file)

    get = tokenizer.next_expr_token if args.expr else tokenizer.next_token
    try:
        tokenizer.begin(args.input, PathMode.RELATIVE)
        count = 0
        while True:
            token = get()
            if token is None:
                break
            count += 1
            if not args.deps:
                print(f"{token.filename}:{token.line}: {token.value}")
        tokenizer.log(f"{count} tokens")
    except ScriptError as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    for depth, filename, parent, parent_line in loaded:
        if parent is None:
            print(filename)
        else:
            print(f"{'  ' * depth}{filename} ({parent}:{parent_line})")

    sys.exit(0)


if __name__ == '__main__':
    main()
