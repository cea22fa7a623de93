from __future__ import annotations

BYLAYER = "BYLAYER"
CONTINUOUS = "CONTINUOUS"
DEFAULT_LAYER = "0"

COLOR_BYBLOCK = 0
COLOR_BYLAYER = 256
COLOR_WHITE = 7

LINEWEIGHT_BYLAYER = -1

MODELSPACE = 0
PAPERSPACE = 1

VISIBLE = 0
INVISIBLE = 1

DEFAULT_LINETYPE_SCALE = 1.0
DEFAULT_EXTRUSION = (0.0, 0.0, 1.0)
ORIGIN = (0.0, 0.0, 0.0)

MODELER_FORMAT_CURRENT_VERSION = 1
MAX_PROPRIETARY_LINE_LENGTH = 255

# Identity 4x3 transform, column-major, as SPATIAL_FILTER writes it.
IDENTITY_4X3 = (
    1.0, 0.0, 0.0,
    0.0, 1.0, 0.0,
    0.0, 0.0, 1.0,
    0.0, 0.0, 0.0,
)

ENTITY_TERMINATOR = 0
COMMENT_CODE = 999
SUBCLASS_MARKER_CODE = 100
APP_GROUP_CODE = 102
