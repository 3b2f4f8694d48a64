"""Command line front end: one sub-command per joinery operation.

Solids are read from mesh files; solid outputs are written as STL and curve
outputs as DXF plus SVG into the output directory.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List

import trimesh
from shapely.geometry import LinearRing, LineString

from strip_joinery.contracts import SEVERITY_ERROR, JoineryConfig, PiecePolicy
from strip_joinery.dxf_exporter import curves_to_dxf, layout_to_dxf
from strip_joinery.geometry_primitives import Plane
from strip_joinery.kernel import TrimeshKernel
from strip_joinery.operation_schema import (
    BOOLEAN,
    CHOICE,
    CURVE,
    CURVES,
    INTEGER,
    LAYOUT,
    LIST,
    NUMBER,
    OPERATIONS,
    PLANE,
    POINT,
    SOLID,
    OperationSpec,
    ParamSpec,
)
from strip_joinery.svg_exporter import curves_to_svg, layout_to_svg

logger = logging.getLogger(__name__)


def parse_curve(text: str) -> LineString:
    """Parse ``"x,y;x,y;..."``; a repeated first point makes a closed ring."""
    points = [tuple(float(c) for c in pair.split(",")) for pair in text.split(";") if pair.strip()]
    if len(points) < 2:
        raise argparse.ArgumentTypeError(f"Curve needs at least two points: {text!r}")
    if len(points) > 3 and points[0] == points[-1]:
        return LinearRing(points[:-1])
    return LineString(points)


def _add_param(parser: argparse.ArgumentParser, param: ParamSpec) -> None:
    flag = "--" + param.name.replace("_", "-")
    kwargs: Dict[str, Any] = {"dest": param.name, "help": param.description or None}

    if param.type == SOLID:
        kwargs["metavar"] = "MESH"
        kwargs["required"] = not param.optional
        if param.cardinality == LIST:
            kwargs["nargs"] = "+"
    elif param.type == NUMBER:
        kwargs.update(type=float, default=param.default)
    elif param.type == INTEGER:
        kwargs.update(type=int, default=param.default)
    elif param.type == BOOLEAN:
        kwargs["action"] = "store_true"
    elif param.type == POINT:
        kwargs.update(type=float, nargs=3, metavar=("X", "Y", "Z"))
    elif param.type == PLANE:
        kwargs.update(type=float, nargs=9, metavar="F",
                      help=f"{param.description} (origin, x axis, y axis)")
    elif param.type == CURVE:
        kwargs.update(type=parse_curve, metavar="X,Y;X,Y;...")
    elif param.type == CHOICE:
        kwargs.update(choices=param.choices, default=param.default)
    else:
        raise ValueError(f"Unsupported parameter type {param.type!r}")
    parser.add_argument(flag, **kwargs)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Interlocking joinery and flat layouts for strip solids"
    )
    parser.add_argument("--out-dir", default="joinery_out", help="Output directory")
    parser.add_argument(
        "--precision", type=float, default=JoineryConfig.precision,
        help="Model tolerance in mm",
    )
    parser.add_argument(
        "--piece-policy",
        choices=[p.value for p in PiecePolicy],
        default=PiecePolicy.FIRST.value,
        help="Which piece to keep when a boolean splits a solid",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logs"
    )

    sub = parser.add_subparsers(dest="operation", required=True)
    for spec in OPERATIONS.values():
        op_parser = sub.add_parser(spec.name, help=spec.summary, description=spec.summary)
        for param in spec.inputs:
            _add_param(op_parser, param)
    return parser


def load_solid(path: str) -> trimesh.Trimesh:
    return trimesh.load(path, force="mesh")


def _collect_inputs(spec: OperationSpec, args: argparse.Namespace) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for param in spec.inputs:
        raw = getattr(args, param.name)
        if raw is None:
            values[param.name] = None
        elif param.type == SOLID:
            if param.cardinality == LIST:
                values[param.name] = [load_solid(p) for p in raw]
            else:
                values[param.name] = load_solid(raw)
        elif param.type == PLANE:
            values[param.name] = Plane(raw[0:3], raw[3:6], raw[6:9])
        else:
            values[param.name] = raw
    return values


def write_outputs(spec: OperationSpec, value: Any, out_dir: Path) -> List[Path]:
    """Write every output slot of ``value`` into ``out_dir``."""
    out_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for output in spec.outputs:
        item = output.getter(value)
        if item is None:
            logger.warning("Output %s is empty", output.name)
            continue
        if output.type == SOLID:
            solids = item if output.cardinality == LIST else [item]
            for i, solid in enumerate(solids):
                suffix = f"_{i}" if output.cardinality == LIST else ""
                path = out_dir / f"{output.name}{suffix}.stl"
                solid.export(str(path))
                written.append(path)
        elif output.type == CURVES:
            written.append(Path(curves_to_dxf(item, str(out_dir / f"{output.name}.dxf"), label=output.name)))
            written.append(Path(curves_to_svg(item, str(out_dir / f"{output.name}.svg"), label=output.name)))
        elif output.type == LAYOUT:
            written.append(Path(layout_to_dxf(item, str(out_dir / f"{output.name}.dxf"))))
            written.append(Path(layout_to_svg(item, str(out_dir / f"{output.name}.svg"))))
    return written


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    spec = OPERATIONS[args.operation]
    config = JoineryConfig(
        precision=args.precision,
        piece_policy=PiecePolicy(args.piece_policy),
    )

    try:
        values = _collect_inputs(spec, args)
    except (OSError, ValueError) as exc:
        logger.error("Could not load inputs: %s", exc)
        return 1

    result = spec.runner(values, config, TrimeshKernel())
    for diag in result.diagnostics:
        level = logging.ERROR if diag.severity == SEVERITY_ERROR else logging.WARNING
        logger.log(level, "[%s] %s", diag.code, diag.message)

    if not result.ok:
        logger.error("%s produced no result", spec.name)
        return 1

    written = write_outputs(spec, result.value, Path(args.out_dir))
    for path in written:
        print(path)
    logger.info("%s: wrote %d files to %s", spec.name, len(written), args.out_dir)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
