"""Tests for the model sources: JSON records and IFC pipe segments.

IFC tests build a synthetic IFC4 file in memory with ifcopenshell's API.
No units are assigned, so coordinates are in metres.
"""

from __future__ import annotations

import json
from pathlib import Path

import ifcopenshell
import ifcopenshell.api
import pytest

from slopecheck.compliance import SlopeRule, classify
from slopecheck.extraction.ifc import pipe_segments, pipes_from_ifc
from slopecheck.extraction.records import load_pipes_json, pipe_from_dict, pipes_from_dicts


# ---------------------------------------------------------------------------
# JSON records
# ---------------------------------------------------------------------------


class TestRecords:
    def test_pipe_from_dict(self) -> None:
        pipe = pipe_from_dict(
            {
                "id": 316001,
                "start": [0.0, 0.0, 10.0],
                "end": [20.0, 0.0, 9.6],
                "diameter": 0.328084,
                "slope": 0.02,
                "type_name": "PVC - DWV",
            }
        )
        assert pipe.id == "316001"
        assert pipe.end_point == (20.0, 0.0, 9.6)
        assert pipe.native_slope == 0.02
        assert pipe.type_name == "PVC - DWV"

    def test_aliases(self) -> None:
        pipe = pipe_from_dict(
            {
                "element_id": "a",
                "start_point": [0, 0, 0],
                "end_point": [1, 0, 0],
                "native_slope": 0.01,
            }
        )
        assert pipe.id == "a"
        assert pipe.diameter == 0.0
        assert pipe.native_slope == 0.01

    def test_missing_fields_raise(self) -> None:
        with pytest.raises(ValueError):
            pipe_from_dict({"id": "x", "start": [0, 0, 0]})

    def test_malformed_records_skipped(self) -> None:
        items = [
            {"id": "ok", "start": [0, 0, 0], "end": [1, 0, 0], "diameter": 0.3},
            {"id": "neg", "start": [0, 0, 0], "end": [1, 0, 0], "diameter": -1},
            {"id": "short", "start": [0, 0], "end": [1, 0, 0]},
            "not a record",
            {"id": "ok2", "start": [0, 0, 0], "end": [2, 0, 0]},
        ]
        pipes = pipes_from_dicts(items)
        assert [p.id for p in pipes] == ["ok", "ok2"]

    def test_load_list(self, tmp_path: Path) -> None:
        path = tmp_path / "pipes.json"
        path.write_text(
            json.dumps([{"id": "1", "start": [0, 0, 0], "end": [1, 0, 0], "diameter": 0.25}]),
            encoding="utf-8",
        )
        assert [p.id for p in load_pipes_json(path)] == ["1"]

    def test_load_wrapped(self, tmp_path: Path) -> None:
        path = tmp_path / "pipes.json"
        path.write_text(
            json.dumps({"pipes": [{"id": "1", "start": [0, 0, 0], "end": [1, 0, 0]}]}),
            encoding="utf-8",
        )
        assert len(load_pipes_json(path)) == 1

    def test_load_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_pipes_json(tmp_path / "nope.json")

    def test_load_wrong_shape(self, tmp_path: Path) -> None:
        path = tmp_path / "pipes.json"
        path.write_text(json.dumps({"pipes": "nope"}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_pipes_json(path)


# ---------------------------------------------------------------------------
# IFC
# ---------------------------------------------------------------------------


def _placement(f: ifcopenshell.file, origin: tuple[float, float, float]) -> ifcopenshell.entity_instance:
    return f.createIfcLocalPlacement(
        None,
        f.createIfcAxis2Placement3D(f.createIfcCartesianPoint(origin), None, None),
    )


def _add_axis_pipe(
    f: ifcopenshell.file,
    ctx: ifcopenshell.entity_instance,
    name: str,
    origin: tuple[float, float, float],
    end: tuple[float, float, float],
) -> ifcopenshell.entity_instance:
    pipe = ifcopenshell.api.run("root.create_entity", f, ifc_class="IfcPipeSegment", name=name)
    polyline = f.createIfcPolyline(
        [f.createIfcCartesianPoint((0.0, 0.0, 0.0)), f.createIfcCartesianPoint(end)]
    )
    rep = f.createIfcShapeRepresentation(ctx, "Axis", "Curve3D", [polyline])
    pipe.Representation = f.createIfcProductDefinitionShape(None, None, [rep])
    pipe.ObjectPlacement = _placement(f, origin)
    return pipe


def _build_pipe_ifc() -> ifcopenshell.file:
    """Return an IFC4 file with four pipe segments.

    - ``Drain``: 100 mm axis pipe, 10 m run falling 0.2 m, no gradient pset.
    - ``Declared``: 100 mm axis pipe with Pset_PipeSegmentOccurrence.Gradient.
    - ``Extruded``: 50 mm circular extrusion along X, no axis.
    - ``Empty``: no representation; skipped.
    """
    f = ifcopenshell.file(schema="IFC4")
    ifcopenshell.api.run("root.create_entity", f, ifc_class="IfcProject", name="PipeProject")
    ctx = ifcopenshell.api.run("context.add_context", f, context_type="Model")

    drain = _add_axis_pipe(f, ctx, "Drain", (0.0, 0.0, 3.0), (10.0, 0.0, -0.2))
    pset = ifcopenshell.api.run("pset.add_pset", f, product=drain, name="Pset_PipeSegmentTypeCommon")
    ifcopenshell.api.run("pset.edit_pset", f, pset=pset, properties={"NominalDiameter": 0.1})

    declared = _add_axis_pipe(f, ctx, "Declared", (0.0, 5.0, 3.0), (10.0, 0.0, 0.0))
    pset = ifcopenshell.api.run("pset.add_pset", f, product=declared, name="Pset_PipeSegmentTypeCommon")
    ifcopenshell.api.run("pset.edit_pset", f, pset=pset, properties={"NominalDiameter": 0.1})
    pset = ifcopenshell.api.run("pset.add_pset", f, product=declared, name="Pset_PipeSegmentOccurrence")
    ifcopenshell.api.run("pset.edit_pset", f, pset=pset, properties={"Gradient": 0.015})

    extruded = ifcopenshell.api.run("root.create_entity", f, ifc_class="IfcPipeSegment", name="Extruded")
    solid = f.createIfcExtrudedAreaSolid(
        f.createIfcCircleProfileDef("AREA", None, None, 0.025),
        f.createIfcAxis2Placement3D(f.createIfcCartesianPoint((0.0, 0.0, 0.0)), None, None),
        f.createIfcDirection((1.0, 0.0, 0.0)),
        4.0,
    )
    body = f.createIfcShapeRepresentation(ctx, "Body", "SweptSolid", [solid])
    extruded.Representation = f.createIfcProductDefinitionShape(None, None, [body])
    extruded.ObjectPlacement = _placement(f, (0.0, 10.0, 2.0))

    ifcopenshell.api.run("root.create_entity", f, ifc_class="IfcPipeSegment", name="Empty")
    return f


@pytest.fixture()
def pipe_ifc_file() -> ifcopenshell.file:
    return _build_pipe_ifc()


def _by_name(ifc_file: ifcopenshell.file) -> dict[str, str]:
    return {e.Name: e.GlobalId for e in ifc_file.by_type("IfcPipeSegment")}


class TestIfcSource:
    def test_finds_segments(self, pipe_ifc_file: ifcopenshell.file) -> None:
        assert len(pipe_segments(pipe_ifc_file)) == 4

    def test_skips_segments_without_geometry(self, pipe_ifc_file: ifcopenshell.file) -> None:
        pipes = pipes_from_ifc(pipe_ifc_file)
        ids = {p.id for p in pipes}
        names = _by_name(pipe_ifc_file)
        assert len(pipes) == 3
        assert names["Empty"] not in ids

    def test_axis_endpoints_in_feet(self, pipe_ifc_file: ifcopenshell.file) -> None:
        names = _by_name(pipe_ifc_file)
        pipe = next(p for p in pipes_from_ifc(pipe_ifc_file) if p.id == names["Drain"])
        assert pipe.start_point[2] == pytest.approx(3.0 / 0.3048)
        assert pipe.end_point[0] == pytest.approx(10.0 / 0.3048)
        assert pipe.end_point[2] == pytest.approx(2.8 / 0.3048)
        assert pipe.diameter_mm == pytest.approx(100.0)
        assert pipe.native_slope is None
        assert pipe.geometric_slope() == pytest.approx(0.02)

    def test_gradient_is_native_slope(self, pipe_ifc_file: ifcopenshell.file) -> None:
        names = _by_name(pipe_ifc_file)
        pipe = next(p for p in pipes_from_ifc(pipe_ifc_file) if p.id == names["Declared"])
        assert pipe.native_slope == pytest.approx(0.015)

    def test_extrusion_and_profile(self, pipe_ifc_file: ifcopenshell.file) -> None:
        names = _by_name(pipe_ifc_file)
        pipe = next(p for p in pipes_from_ifc(pipe_ifc_file) if p.id == names["Extruded"])
        assert pipe.start_point == pytest.approx((0.0, 10.0 / 0.3048, 2.0 / 0.3048))
        assert pipe.end_point[0] == pytest.approx(4.0 / 0.3048)
        assert pipe.diameter_mm == pytest.approx(50.0)
        assert pipe.geometric_slope() == 0.0

    def test_from_path(self, pipe_ifc_file: ifcopenshell.file, tmp_path: Path) -> None:
        path = tmp_path / "pipes.ifc"
        pipe_ifc_file.write(str(path))
        assert len(pipes_from_ifc(path)) == 3

    def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            pipes_from_ifc(tmp_path / "missing.ifc")

    def test_classify_ifc_pipes(self, pipe_ifc_file: ifcopenshell.file) -> None:
        rules = [
            SlopeRule(diameter_mm=100, slope=2.0),
            SlopeRule(diameter_mm=50, slope=1.0, unit="percent"),
        ]
        names = _by_name(pipe_ifc_file)
        results = classify(pipes_from_ifc(pipe_ifc_file), rules, 5)
        verdicts = {r.pipe_id: r.compliant for r in results}
        assert verdicts == {
            names["Drain"]: True,
            names["Declared"]: False,
            names["Extruded"]: False,
        }
