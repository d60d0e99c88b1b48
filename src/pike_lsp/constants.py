"""
Configuration constants for the Pike bridge and RXML detection.
"""

# Default timeout for a bridge request, in seconds
BRIDGE_TIMEOUT_DEFAULT = 30.0

# Seconds to wait for the analyzer to exit before killing it
GRACEFUL_SHUTDOWN_DELAY = 0.5

# Default command used to run the analyzer
PIKE_PATH_DEFAULT = "pike"
ANALYZER_PATH_DEFAULT = "pike-scripts/analyzer.pike"

# Number of recent stderr error lines kept for health reports
MAX_RECENT_ERRORS = 5

# RXML confidence scoring
RXML_CONFIDENCE_FLOOR_DEFAULT = 0.3
RXML_DENSITY_SCALE = 20.0
RXML_WEIGHT_KNOWN_TAG = 1.0
RXML_WEIGHT_UNKNOWN_TAG = 0.25
RXML_WEIGHT_ENTITY = 0.75
RXML_WEIGHT_ATTRIBUTE = 0.25

# Symbol node names produced by the merger
RXML_CONTAINER_NAME = "RXML Template"
