"""
DXF export for strip layouts and profiles.

Uses ezdxf to produce DXF files with layers:
  - CUT (red, ACI 1): closed outlines
  - DRAFT (yellow, ACI 2): curves that did not join into outlines
  - ENGRAVE (blue, ACI 5): labels

Units: millimeters. Format: R2010.
"""
import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import ezdxf
from ezdxf.enums import TextEntityAlignment
from shapely import affinity
from shapely.geometry import LineString

from strip_joinery.strip_layouts import CurveSet, StripLayout

logger = logging.getLogger(__name__)

Curves = Union[CurveSet, Sequence[LineString]]


@dataclass
class DXFExportConfig:
    """Configuration for DXF export."""
    cut_layer: str = "CUT"
    draft_layer: str = "DRAFT"
    engrave_layer: str = "ENGRAVE"
    cut_color: int = 1       # ACI red
    draft_color: int = 2     # ACI yellow
    engrave_color: int = 5   # ACI blue
    add_labels: bool = True
    label_height_mm: float = 5.0
    spacing_mm: float = 10.0


def as_curve_set(curves: Curves) -> CurveSet:
    if isinstance(curves, CurveSet):
        return curves
    return CurveSet.from_curves(curves)


def curves_to_dxf(
    curves: Curves,
    filepath: str,
    label: Optional[str] = None,
    config: Optional[DXFExportConfig] = None,
) -> str:
    """Export one set of 2D curves to a DXF file.

    Args:
        curves: CurveSet, or loose curves sorted by whether they are closed.
        filepath: Output DXF file path.
        label: Optional text placed at the centre of the curves.
        config: DXF export settings.

    Returns:
        Path to created DXF file.
    """
    return _write(
        [(label, as_curve_set(curves))], filepath, config or DXFExportConfig(),
    )


def layout_to_dxf(
    layout: StripLayout,
    filepath: str,
    config: Optional[DXFExportConfig] = None,
) -> str:
    """Export a strip layout, horizontal and vertical side by side."""
    return _write(
        [("horizontal", layout.horizontal), ("vertical", layout.vertical)],
        filepath,
        config or DXFExportConfig(),
    )


def _write(
    groups: List[Tuple[Optional[str], CurveSet]],
    filepath: str,
    config: DXFExportConfig,
) -> str:
    doc = ezdxf.new("R2010")
    doc.units = ezdxf.units.MM
    msp = doc.modelspace()
    _setup_layers(doc, config)

    current_x = None
    for name, curve_set in groups:
        minx, miny, maxx, maxy = curve_set.bounds
        dx = 0.0 if current_x is None else current_x - minx
        for curve in curve_set.closed:
            _add_curve(msp, affinity.translate(curve, dx, 0.0), config.cut_layer, close=True)
        for curve in curve_set.open:
            _add_curve(msp, affinity.translate(curve, dx, 0.0), config.draft_layer, close=False)

        if config.add_labels and name and len(curve_set):
            msp.add_text(
                name,
                height=config.label_height_mm,
                dxfattribs={"layer": config.engrave_layer},
            ).set_placement(
                ((minx + maxx) / 2 + dx, (miny + maxy) / 2),
                align=TextEntityAlignment.MIDDLE_CENTER,
            )
        current_x = maxx + dx + config.spacing_mm

    os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
    doc.saveas(filepath)
    logger.info("Exported DXF: %s", filepath)
    return filepath


# ─── Internal helpers ────────────────────────────────────────────────────────

def _setup_layers(doc, config: DXFExportConfig) -> None:
    """Create CUT, DRAFT and ENGRAVE layers."""
    doc.layers.add(config.cut_layer, color=config.cut_color)
    doc.layers.add(config.draft_layer, color=config.draft_color)
    doc.layers.add(config.engrave_layer, color=config.engrave_color)


def _add_curve(msp, curve: LineString, layer: str, close: bool) -> None:
    """Add a shapely curve as an LWPolyline."""
    if curve.is_empty:
        return
    coords = [(x, y) for x, y, *_ in curve.coords]
    if close and len(coords) > 1 and coords[0] == coords[-1]:
        coords = coords[:-1]
    if len(coords) >= 2:
        msp.add_lwpolyline(coords, close=close, dxfattribs={"layer": layer})
