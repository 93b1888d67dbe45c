"""Global configuration: unit factors, thresholds, rule-entry defaults."""

# Host length unit is decimal feet
FEET_TO_MM = 304.8

# A segment is a vertical riser when its rise exceeds this multiple of its run
VERTICAL_RATIO_THRESHOLD = 10.0

# Maximum |pipe diameter - rule diameter| (mm) for a rule to apply
SIZE_TOLERANCE_MM = 5.0

# Untagged rule slopes above this value are read as percentages
PERCENT_THRESHOLD = 1.0

# Allowed deviation from the required slope, in percent of the required slope
DEFAULT_TOLERANCE_PERCENT = 5.0

# Common nominal pipe sizes (mm) offered when the model has none
PREDEFINED_SIZES_MM = (
    50.0, 75.0, 100.0, 125.0, 150.0, 200.0, 250.0, 300.0, 350.0,
    400.0, 450.0, 500.0, 600.0, 700.0, 800.0, 900.0, 1000.0,
)

# Common drainage slopes (%) offered when the model has none
PREDEFINED_SLOPES_PERCENT = (0.5, 1.0, 1.5, 2.0, 2.5, 3.0, 4.0, 5.0)

# Number of rule rows pre-filled from model data
DEFAULT_RULE_ROWS = 3

SCHEDULE_TITLE = "Non-compliant pipe slope schedule"
