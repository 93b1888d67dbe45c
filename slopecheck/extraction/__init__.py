"""Model sources — turn exported or IFC pipe data into PipeRecords."""

from slopecheck.extraction.ifc import pipes_from_ifc
from slopecheck.extraction.records import load_pipes_json, pipe_from_dict, pipes_from_dicts

__all__ = ["load_pipes_json", "pipe_from_dict", "pipes_from_dicts", "pipes_from_ifc"]
