"""Command-line interface for HTML to text conversion."""

import argparse
import logging
import sys
from pathlib import Path

from html2plain.converter import ConversionOptions, HtmlConverter
from html2plain.links import LinkMode


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater, got {number}")
    return number


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {number}")
    return number


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: Command-line arguments. Uses sys.argv if None.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="html2plain",
        description="Convert HTML documents to readable plain text, keeping headings, lists, tables, quotes and links.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  html2plain page.html                      Convert to stdout
  html2plain page.html -o page.txt          Convert to file
  html2plain page.html --links table        List link URLs after the text
  html2plain *.html -o ./output/            Batch convert multiple files
        """,
    )

    parser.add_argument(
        "input",
        nargs="+",
        type=Path,
        help="Input HTML file(s) to convert",
    )

    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output file or directory. If directory, creates .txt files with same names as inputs.",
    )

    parser.add_argument(
        "--links",
        choices=[mode.value for mode in LinkMode],
        default=LinkMode.INLINE.value,
        help="How to render links (default: inline)",
    )

    parser.add_argument(
        "--width",
        type=_non_negative_int,
        default=70,
        help="Wrap text at this many columns, 0 to disable (default: 70)",
    )

    parser.add_argument(
        "--base-url",
        default="",
        help="Base URL for resolving relative links",
    )

    parser.add_argument(
        "--max-input-length",
        type=_positive_int,
        help="Reject inputs longer than this many characters",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print progress information to stderr",
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    return parser.parse_args(args)


def create_options(args: argparse.Namespace) -> ConversionOptions:
    """Create ConversionOptions from parsed arguments.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Configured ConversionOptions object.
    """
    return ConversionOptions(
        link_mode=args.links,
        width=args.width,
        max_input_length=args.max_input_length,
    )


def process_single_file(input_path: Path, output_path: Path | None, converter: HtmlConverter, verbose: bool) -> bool:
    """Process a single HTML file.

    Args:
        input_path: Path to the input HTML.
        output_path: Path to write output, or None for stdout.
        converter: Configured HtmlConverter instance.
        verbose: Whether to print progress messages.

    Returns:
        True if conversion succeeded, False otherwise.
    """
    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return False

    if input_path.suffix.lower() not in (".html", ".htm", ".xhtml"):
        print(f"Warning: {input_path} may not be an HTML file", file=sys.stderr)

    if verbose:
        print(f"Converting: {input_path}", file=sys.stderr)

    try:
        text = converter.convert(input_path.read_text(encoding="utf-8"))

        if output_path:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(text, encoding="utf-8")
            if verbose:
                print(f"  -> {output_path}", file=sys.stderr)
        else:
            print(text)

        return True

    except (OSError, ValueError) as e:
        print(f"Error converting {input_path}: {e}", file=sys.stderr)
        return False


def main(args: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command-line arguments. Uses sys.argv if None.

    Returns:
        Exit code (0 for success, 1 for errors).
    """
    parsed_args = parse_args(args)
    if parsed_args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")

    options = create_options(parsed_args)
    converter = HtmlConverter(options, base_url=parsed_args.base_url)

    input_files = parsed_args.input
    output = parsed_args.output
    verbose = parsed_args.verbose

    success_count = 0
    error_count = 0

    if output and len(input_files) > 1:
        # Output is a directory for multiple files.
        output.mkdir(parents=True, exist_ok=True)
        targets = [(path, output / (path.stem + ".txt")) for path in input_files]
    else:
        # Single file or stdout.
        targets = [(path, output) for path in input_files]

    for input_path, output_path in targets:
        if process_single_file(input_path, output_path, converter, verbose):
            success_count += 1
        else:
            error_count += 1

    if verbose and len(input_files) > 1:
        print(f"\nProcessed {success_count} files, {error_count} errors", file=sys.stderr)

    return 0 if error_count == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
