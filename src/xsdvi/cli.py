"""Command-line interface for xsdvi compile/render workflows."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .resolver import element_names
from .schema import SchemaLoadError, load_schema
from .svg import write_css
from .xsdvi import EmptySchemaError, RootNotFoundError, xsd_to_png, xsd_to_svg, xsd_to_svg_per_element

logger = logging.getLogger(__name__)


@dataclass
class CliError(Exception):
    code: str
    message: str
    hint: Optional[str] = None
    exit_code: int = 1
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    retryable: bool = True


class UsageError(Exception):
    pass


class FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # pragma: no cover - argparse callback
        raise UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = FriendlyArgumentParser(
        prog="xsdvi",
        description="Draw XML Schema (XSD) documents as SVG or PNG diagrams.",
    )
    parser.add_argument("--error-format", choices=["text", "json"], default="text")
    parser.add_argument("--debug", action="store_true")

    subparsers = parser.add_subparsers(dest="command")

    compile_parser = subparsers.add_parser("compile", help="Compile XSD to SVG")
    compile_parser.add_argument("inputs", nargs="+", metavar="INPUT", help="Input .xsd files")
    compile_parser.add_argument(
        "-r", "--root-node-name", help="Root element to draw, or 'all' for one diagram per element"
    )
    compile_parser.add_argument(
        "--one-node-only", action="store_true", help="Expand only one level below the root"
    )
    compile_parser.add_argument("-p", "--output-path", help="Output folder")
    compile_parser.add_argument("--stdout", action="store_true", help="Write SVG to stdout")
    style_group = compile_parser.add_mutually_exclusive_group()
    style_group.add_argument("--use-style", metavar="URI", help="Link an external CSS file")
    style_group.add_argument(
        "--generate-style", metavar="FILE", help="Write the CSS to FILE and link it"
    )

    render_parser = subparsers.add_parser("render", help="Render XSD to a PNG preview")
    render_parser.add_argument("input", help="Input .xsd file")
    render_parser.add_argument("-r", "--root-node-name", help="Root element to draw")
    render_parser.add_argument("--one-node-only", action="store_true")
    render_parser.add_argument("-o", "--output", help="Output .png path")
    render_parser.add_argument("--stdout", action="store_true", help="Write PNG bytes to stdout")
    render_parser.add_argument("--scale", type=float, default=1.0)

    elements_parser = subparsers.add_parser("elements", help="List global element names")
    elements_parser.add_argument("input", help="Input .xsd file")

    return parser


def _read_input(path: str) -> str:
    input_path = Path(path)
    if not input_path.exists():
        raise CliError(
            "E_IO_READ",
            f"XSD file not found: {input_path}",
            exit_code=2,
            file=str(input_path),
        )
    try:
        return input_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CliError(
            "E_IO_READ",
            f"failed to read input file: {input_path}",
            hint=str(exc),
            exit_code=2,
            file=str(input_path),
        )


def _output_file(input_path: str, name: Optional[str], output_path: Optional[str]) -> Path:
    filename = f"{name}.svg" if name else f"{Path(input_path).stem}.svg"
    if output_path:
        folder = Path(output_path)
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CliError(
                "E_IO_WRITE",
                f"failed to create output folder: {folder}",
                hint=str(exc),
                exit_code=4,
                file=str(folder),
            )
        return folder / filename
    return Path(filename)


def _write_text(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise CliError(
            "E_IO_WRITE",
            f"failed to write output file: {path}",
            hint=str(exc),
            exit_code=4,
            file=str(path),
        )


def _write_bytes(path: Path, content: bytes) -> None:
    try:
        path.write_bytes(content)
    except OSError as exc:
        raise CliError(
            "E_IO_WRITE",
            f"failed to write output file: {path}",
            hint=str(exc),
            exit_code=4,
            file=str(path),
        )


def _error_from_exception(exc: Exception) -> CliError:
    if isinstance(exc, CliError):
        return exc
    if isinstance(exc, SchemaLoadError):
        return CliError(
            "E_PARSE_XML",
            str(exc),
            hint="Ensure the schema is well-formed XML.",
            exit_code=2,
            line=exc.line,
            column=exc.column,
        )
    if isinstance(exc, RootNotFoundError):
        return CliError(
            "E_NOT_FOUND",
            str(exc),
            hint="Run `xsdvi elements FILE` to list global elements.",
            exit_code=3,
        )
    if isinstance(exc, EmptySchemaError):
        return CliError(
            "E_EMPTY",
            str(exc),
            hint="Check that the document root is xs:schema with global elements.",
            exit_code=3,
        )
    if isinstance(exc, ValueError):
        return CliError("E_ARGS", str(exc), exit_code=2)
    return CliError(
        "E_INTERNAL",
        str(exc) or exc.__class__.__name__,
        hint="Re-run with --debug to see traceback.",
        exit_code=1,
        retryable=False,
    )


def _emit_error(err: CliError, *, error_format: str) -> None:
    if error_format == "json":
        payload = {
            "ok": False,
            "code": err.code,
            "message": err.message,
            "file": err.file,
            "line": err.line,
            "column": err.column,
            "hint": err.hint,
            "retryable": err.retryable,
        }
        sys.stderr.write(json.dumps(payload) + "\n")
        return

    sys.stderr.write(f"error[{err.code}]: {err.message}\n")
    if err.hint:
        sys.stderr.write(f"hint: {err.hint}\n")


def _handle_compile(args: argparse.Namespace) -> int:
    if args.stdout and (args.output_path or len(args.inputs) > 1 or args.root_node_name == "all"):
        raise CliError(
            "E_ARGS",
            "--stdout needs a single input and a single diagram",
            hint="Drop --stdout or --output-path, or pick one root element.",
            exit_code=2,
        )

    style_uri = None
    if args.generate_style:
        style_uri = args.generate_style
        _write_text(Path(style_uri), write_css())
        logger.info("generated style %s", style_uri)
    elif args.use_style:
        style_uri = args.use_style
    embody_style = style_uri is None

    for input_path in args.inputs:
        source = _read_input(input_path)
        try:
            if args.root_node_name == "all":
                diagrams = xsd_to_svg_per_element(
                    source, embody_style=embody_style, style_uri=style_uri
                )
                if not diagrams:
                    logger.warning("no root elements found in %s", input_path)
                for name, svg_text in diagrams:
                    target = _output_file(input_path, name, args.output_path)
                    _write_text(target, svg_text)
                    print(f"Wrote {target}")
                continue

            svg_text = xsd_to_svg(
                source,
                args.root_node_name,
                one_node_only=args.one_node_only,
                embody_style=embody_style,
                style_uri=style_uri,
            )
        except SchemaLoadError as exc:
            err = _error_from_exception(exc)
            err.file = input_path
            raise err

        if args.stdout:
            sys.stdout.write(svg_text)
            if not svg_text.endswith("\n"):
                sys.stdout.write("\n")
            continue

        name = args.root_node_name if args.root_node_name and args.one_node_only else None
        target = _output_file(input_path, name, args.output_path)
        _write_text(target, svg_text)
        print(f"Wrote {target}")
    return 0


def _handle_render(args: argparse.Namespace) -> int:
    if args.stdout and args.output:
        raise CliError(
            "E_ARGS",
            "--stdout and --output are mutually exclusive",
            hint="Choose either --stdout or --output.",
            exit_code=2,
        )
    if args.scale <= 0:
        raise CliError(
            "E_ARGS",
            "--scale must be > 0",
            hint="Use a positive scale factor like 1 or 2.",
            exit_code=2,
        )

    source = _read_input(args.input)
    png_bytes = xsd_to_png(
        source,
        args.root_node_name,
        one_node_only=args.one_node_only,
        scale=args.scale,
    )

    if args.stdout:
        sys.stdout.buffer.write(png_bytes)
        return 0

    output_path = Path(args.output) if args.output else Path(args.input).with_suffix(".png")
    _write_bytes(output_path, png_bytes)
    print(f"Wrote {output_path}")
    return 0


def _handle_elements(args: argparse.Namespace) -> int:
    model = load_schema(_read_input(args.input))
    for name in element_names(model):
        print(name)
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    parser = _build_parser()

    if not raw_argv:
        err = CliError(
            "E_ARGS",
            "missing subcommand",
            hint="Use one of: compile, render, elements.",
            exit_code=2,
        )
        _emit_error(err, error_format="text")
        return err.exit_code

    debug_enabled = "--debug" in raw_argv or os.getenv("XSDVI_DEBUG") == "1"
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if debug_enabled else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    error_format = "text"
    if "--error-format" in raw_argv:
        idx = raw_argv.index("--error-format")
        if idx + 1 < len(raw_argv):
            error_format = raw_argv[idx + 1]

    try:
        args = parser.parse_args(raw_argv)
        error_format = args.error_format

        if args.command == "compile":
            return _handle_compile(args)
        if args.command == "render":
            return _handle_render(args)
        if args.command == "elements":
            return _handle_elements(args)

        raise CliError(
            "E_ARGS",
            "missing subcommand",
            hint="Use one of: compile, render, elements.",
            exit_code=2,
        )
    except UsageError as exc:
        err = CliError(
            "E_ARGS",
            str(exc),
            hint="Use subcommands: compile, render, elements.",
            exit_code=2,
        )
        _emit_error(err, error_format=error_format)
        return err.exit_code
    except Exception as exc:  # pragma: no cover - exercised in acceptance tests
        err = _error_from_exception(exc)
        _emit_error(err, error_format=error_format)
        if debug_enabled:
            traceback.print_exc(file=sys.stderr)
        return err.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
