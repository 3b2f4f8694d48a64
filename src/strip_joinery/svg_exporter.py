"""
SVG Exporter for strip layouts and profiles.

Generates 2D cut drawings for laser cutting: closed outlines as red cut
polygons, unjoined curves as grey draft polylines.
"""

import logging
import os
from typing import List, Optional, Tuple

import svgwrite

from strip_joinery.dxf_exporter import Curves, as_curve_set
from strip_joinery.strip_layouts import CurveSet, StripLayout

logger = logging.getLogger(__name__)

STYLE = """
    .cut { stroke: #ff0000; stroke-width: 0.5; fill: none; }
    .draft { stroke: #999999; stroke-width: 0.25; fill: none; stroke-dasharray: 2,1; }
    .label { font-size: 6px; font-family: Arial, sans-serif; fill: #333; }
"""


def curves_to_svg(
    curves: Curves,
    filepath: str,
    label: Optional[str] = None,
    margin: float = 10.0,  # mm
    scale: float = 1.0,  # 1.0 = 1mm per user unit
) -> str:
    """
    Export one set of 2D curves to SVG.

    Args:
        curves: CurveSet, or loose curves sorted by whether they are closed
        filepath: Output SVG file path
        label: Optional text placed at the centre of the curves
        margin: Margin around the drawing (mm)
        scale: Scale factor (1.0 = 1:1)

    Returns:
        Path to created SVG file
    """
    return _write([(label, as_curve_set(curves))], filepath, margin, scale)


def layout_to_svg(
    layout: StripLayout,
    filepath: str,
    margin: float = 10.0,
    scale: float = 1.0,
) -> str:
    """Export a strip layout, horizontal and vertical side by side."""
    return _write(
        [("horizontal", layout.horizontal), ("vertical", layout.vertical)],
        filepath, margin, scale,
    )


def _write(
    groups: List[Tuple[Optional[str], CurveSet]],
    filepath: str,
    margin: float,
    scale: float,
) -> str:
    # Lay groups out left to right in drawing units
    placed = []
    cursor = 0.0
    top = 0.0
    for name, curve_set in groups:
        minx, miny, maxx, maxy = curve_set.bounds
        placed.append((name, curve_set, cursor - minx, miny))
        cursor += (maxx - minx) + margin
        top = max(top, maxy - miny)
    total_width = max(cursor - margin, 0.0)

    canvas_width = total_width * scale + 2 * margin
    canvas_height = top * scale + 2 * margin

    dwg = svgwrite.Drawing(
        filepath,
        size=(f"{canvas_width}mm", f"{canvas_height}mm"),
        viewBox=f"0 0 {canvas_width} {canvas_height}",
    )
    dwg.defs.add(dwg.style(STYLE))

    for name, curve_set, dx, base_y in placed:
        # SVG y grows downwards
        def to_svg(x, y):
            return (
                margin + (x + dx) * scale,
                canvas_height - margin - (y - base_y) * scale,
            )

        for curve in curve_set.closed:
            points = [to_svg(x, y) for x, y, *_ in curve.coords]
            dwg.add(dwg.polygon(points[:-1], class_="cut"))
        for curve in curve_set.open:
            points = [to_svg(x, y) for x, y, *_ in curve.coords]
            dwg.add(dwg.polyline(points, class_="draft"))

        if name and len(curve_set):
            minx, miny, maxx, maxy = curve_set.bounds
            dwg.add(
                dwg.text(
                    name,
                    insert=to_svg((minx + maxx) / 2, (miny + maxy) / 2),
                    class_="label",
                    text_anchor="middle",
                )
            )

    os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
    dwg.save()
    logger.info("Exported SVG: %s", filepath)
    return filepath
