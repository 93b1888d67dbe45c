"""Read pipe segments from an IFC model into PipeRecords.

Endpoints come from the segment's ``Axis`` polyline when present, otherwise
from the extruded ``Body`` solid.  Both are transformed to world
coordinates with the object placement.  Diameter and declared gradient are
read from the standard pipe property sets.  All lengths are converted from
the project unit to feet.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import ifcopenshell
import ifcopenshell.util.element
import ifcopenshell.util.placement
import ifcopenshell.util.unit
import numpy as np

from slopecheck.models.pipe import PipeRecord

logger = logging.getLogger(__name__)

FOOT_IN_METRES = 0.3048

# Property lookups, in order of preference
_DIAMETER_KEYS = (
    ("Pset_PipeSegmentTypeCommon", "NominalDiameter"),
    ("Pset_PipeSegmentTypeCommon", "OuterDiameter"),
)
_GRADIENT_KEY = ("Pset_PipeSegmentOccurrence", "Gradient")


def length_scale_to_feet(ifc_file: ifcopenshell.file) -> float:
    """Factor converting the project length unit to feet."""
    return ifcopenshell.util.unit.calculate_unit_scale(ifc_file) / FOOT_IN_METRES


def pipe_segments(ifc_file: ifcopenshell.file) -> list[ifcopenshell.entity_instance]:
    """Return the pipe segment occurrences in *ifc_file*."""
    if ifc_file.schema == "IFC2X3":
        segments = []
        for element in ifc_file.by_type("IfcFlowSegment"):
            element_type = ifcopenshell.util.element.get_type(element)
            if element_type is not None and element_type.is_a("IfcPipeSegmentType"):
                segments.append(element)
        return segments
    return list(ifc_file.by_type("IfcPipeSegment"))


def _coords(point: ifcopenshell.entity_instance) -> np.ndarray:
    values = [float(c) for c in point.Coordinates]
    values += [0.0] * (3 - len(values))
    return np.array(values[:3])


def _placement_matrix(element: ifcopenshell.entity_instance) -> np.ndarray:
    if element.ObjectPlacement is None:
        return np.eye(4)
    return ifcopenshell.util.placement.get_local_placement(element.ObjectPlacement)


def _shape_items(element: ifcopenshell.entity_instance, identifier: str) -> list[Any]:
    if element.Representation is None:
        return []
    items: list[Any] = []
    for shape in element.Representation.Representations:
        if shape.RepresentationIdentifier == identifier:
            items.extend(shape.Items)
    return items


def _local_endpoints(element: ifcopenshell.entity_instance) -> tuple[np.ndarray, np.ndarray] | None:
    """Return centerline endpoints in the element's local coordinates."""
    for item in _shape_items(element, "Axis"):
        if item.is_a("IfcPolyline") and len(item.Points) >= 2:
            return _coords(item.Points[0]), _coords(item.Points[-1])

    for item in _shape_items(element, "Body"):
        if not item.is_a("IfcExtrudedAreaSolid"):
            continue
        if item.Position is not None:
            position = ifcopenshell.util.placement.get_axis2placement(item.Position)
        else:
            position = np.eye(4)
        direction = np.array([float(d) for d in item.ExtrudedDirection.DirectionRatios])
        direction = direction / np.linalg.norm(direction)
        start = position[:3, 3]
        end = start + position[:3, :3] @ direction * float(item.Depth)
        return start, end

    return None


def _profile_diameter(element: ifcopenshell.entity_instance) -> float | None:
    for item in _shape_items(element, "Body"):
        if item.is_a("IfcSweptAreaSolid") and item.SweptArea.is_a("IfcCircleProfileDef"):
            return 2.0 * float(item.SweptArea.Radius)
    return None


def _pset_value(psets: dict[str, dict[str, Any]], key: tuple[str, str]) -> Any:
    return psets.get(key[0], {}).get(key[1])


def pipe_from_element(
    element: ifcopenshell.entity_instance,
    scale: float,
) -> PipeRecord | None:
    """Build a PipeRecord for one segment, or None if it has no centerline.

    *scale* converts project length units to feet.
    """
    endpoints = _local_endpoints(element)
    if endpoints is None:
        return None

    matrix = _placement_matrix(element)
    start = (matrix @ np.append(endpoints[0], 1.0))[:3] * scale
    end = (matrix @ np.append(endpoints[1], 1.0))[:3] * scale

    psets = ifcopenshell.util.element.get_psets(element)
    diameter = None
    for key in _DIAMETER_KEYS:
        diameter = _pset_value(psets, key)
        if diameter:
            break
    if not diameter:
        diameter = _profile_diameter(element)

    gradient = _pset_value(psets, _GRADIENT_KEY)
    element_type = ifcopenshell.util.element.get_type(element)

    return PipeRecord(
        id=element.GlobalId,
        start_point=tuple(float(v) for v in start),
        end_point=tuple(float(v) for v in end),
        diameter=float(diameter) * scale if diameter else 0.0,
        native_slope=float(gradient) if gradient is not None else None,
        type_name=(element_type.Name or "") if element_type is not None else "",
    )


def pipes_from_ifc(source: str | Path | ifcopenshell.file) -> list[PipeRecord]:
    """Read every pipe segment in an IFC file or path.

    Segments without a usable centerline are skipped with a warning.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.is_file():
            raise FileNotFoundError(f"IFC file not found: {path}")
        logger.info("Opening %s", path)
        ifc_file = ifcopenshell.open(str(path))
    else:
        ifc_file = source

    scale = length_scale_to_feet(ifc_file)
    segments = pipe_segments(ifc_file)
    logger.info("Found %d pipe segments", len(segments))

    pipes: list[PipeRecord] = []
    for element in segments:
        try:
            pipe = pipe_from_element(element, scale)
        except Exception:
            logger.warning(
                "Skipping pipe %s due to error", element.GlobalId, exc_info=True
            )
            continue
        if pipe is None:
            logger.warning("Skipping pipe %s: no axis or body geometry", element.GlobalId)
            continue
        pipes.append(pipe)

    return pipes
