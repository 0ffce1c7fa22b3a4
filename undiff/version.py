"""
Undiff version constants.

This module defines version constants for the undiff library and the
exported timeline format. Exported files carry both so older exports can
still be loaded.
"""

# Library version (matches pyproject.toml)
UNDIFF_VERSION = "0.1.0"

# Schema version for exported timelines
# Increment when the export format changes in a breaking way
TIMELINE_SCHEMA_VERSION = "timeline_v0"

# Default for exports written without a schema_version field
DEFAULT_TIMELINE_SCHEMA_VERSION = "timeline_v0"
