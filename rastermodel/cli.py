"""Command line interface for rastermodel operations."""

import argparse, logging
from pathlib import Path

from rastermodel.config import load_model_config
from rastermodel.engine import create_session, get_numpy_info, get_onnxruntime_info, get_rasterio_info, load_graph
from rastermodel.parameters import DEFAULT_PROVIDERS


log = logging.getLogger(__name__)


def _resolve_log_level(args: argparse.Namespace) -> int:
    """Resolve effective logging level from explicit level or verbosity flags."""
    if args.log_level is not None:
        return getattr(logging, args.log_level)

    # Start from INFO, then apply -v and -q offsets with DEBUG/ERROR clamp.
    level = logging.INFO - (10 * int(args.verbose)) + (10 * int(args.quiet))
    return max(logging.DEBUG, min(logging.ERROR, level))


def _configure_logging(args: argparse.Namespace) -> None:
    """Configure stdlib logging using Python default handler routing."""
    effective_level = _resolve_log_level(args)
    root_logger = logging.getLogger()
    root_logger.setLevel(effective_level)
    if not root_logger.handlers:
        logging.basicConfig(level=effective_level)


def _format_shape(shape: tuple[int | None, ...]) -> str:
    return "(" + ", ".join("?" if dim is None else str(dim) for dim in shape) + ")"


def _inspect(args: argparse.Namespace) -> list[str]:
    """Introspect named (or all) graph tensors and return printable rows."""
    input_names = list(args.input or [])
    output_names = list(args.output or [])
    model_fp = args.model
    sha256 = args.sha256
    providers = DEFAULT_PROVIDERS

    # Config values fill in whatever the command line leaves out.
    if args.config is not None:
        config = load_model_config(args.config)
        model_fp = model_fp or config.model_fp
        sha256 = sha256 or config.sha256
        providers = config.providers
        input_names = input_names or [entry.name for entry in config.inputs]
        output_names = output_names or [entry.name for entry in config.outputs]
    if model_fp is None:
        raise ValueError("inspect requires --model or --config")

    graph = load_graph(model_fp, expected_sha256=sha256, logger=log)
    session = create_session(graph, providers=providers, logger=log)
    if not input_names and not output_names:
        input_names = session.input_names
        output_names = session.output_names

    rows = []
    for role, names in (("input", input_names), ("output", output_names)):
        for name in names:
            spec = session.introspect(name)
            rows.append(f"{role}\t{spec.name}\t{spec.dtype}\t{_format_shape(spec.shape)}")
    return rows


def main_cli(args: argparse.Namespace) -> int:
    """Run the CLI command selected by parsed arguments."""
    if args.command == "inspect":
        for row in _inspect(args):
            print(row)
        return 0

    if args.command == "doctor":
        ort_info = get_onnxruntime_info()
        rasterio_info = get_rasterio_info()
        numpy_info = get_numpy_info()
        print(f"onnxruntime_installed={ort_info['installed']}")
        print(f"onnxruntime_version={ort_info['version']}")
        print(f"onnxruntime_available_providers={','.join(ort_info['available_providers'])}")
        print(f"rasterio_installed={rasterio_info['installed']}")
        print(f"rasterio_version={rasterio_info['version']}")
        print(f"numpy_version={numpy_info['version']}")
        return 0

    raise ValueError(f"unsupported command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    """Run the rastermodel CLI and return an exit code."""
    args = _parse_arguments(argv)
    _configure_logging(args)
    try:
        return main_cli(args)
    except Exception as err:
        log.error(f"{err}")
        log.debug("unhandled CLI exception", exc_info=True)
        return 1


def _parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for rastermodel."""
    parser = argparse.ArgumentParser(prog="rastermodel", description="Raster model inference utilities.")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (repeatable).",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        help="Decrease logging verbosity (repeatable).",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default=None,
        help="Explicit log level override.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    inspect_parser = subparsers.add_parser("inspect", help="Report dtype and shape of graph tensors.")
    inspect_parser.add_argument("--model", type=Path, default=None, help="ONNX model path.")
    inspect_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Model configuration JSON; supplies the model path and tensor names.",
    )
    inspect_parser.add_argument(
        "--input",
        action="append",
        default=None,
        help="Input placeholder name to introspect (repeatable).",
    )
    inspect_parser.add_argument(
        "--output",
        action="append",
        default=None,
        help="Output tensor name to introspect (repeatable).",
    )
    inspect_parser.add_argument("--sha256", default=None, help="Expected SHA256 of the model file.")

    subparsers.add_parser("doctor", help="Report runtime dependency diagnostics.")
    return parser.parse_args(argv)


if __name__ == "__main__":
    raise SystemExit(main())
