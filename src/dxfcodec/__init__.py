from .chain import Chain
from .codec import Diagnostic, decode, encode, encode_tags, write
from .convert import ConvertResult, to_dxf
from .document import Document, WriteFailure, WriteResult, read, read_stream, save, write_entities
from .entity import Entity
from .errors import ChainError, DecodeError, DxfError, DxfStreamError, EncodeError, GeometryError
from .fields import Check, EntityTable, Fence, Field, FieldType, Marker
from .geometry import Inherit, length, line_from_points, midpoint, point_at_midpoint
from .revision import LATEST, Revision
from .stream import Tag, TagReader, TagWriter
from .tables import TABLES, new, table_for

__all__ = [
    "read",
    "read_stream",
    "save",
    "write_entities",
    "Document",
    "WriteResult",
    "WriteFailure",
    "Entity",
    "Chain",
    "Revision",
    "LATEST",
    "Tag",
    "TagReader",
    "TagWriter",
    "decode",
    "encode",
    "encode_tags",
    "write",
    "Diagnostic",
    "Field",
    "FieldType",
    "Marker",
    "Fence",
    "Check",
    "EntityTable",
    "TABLES",
    "table_for",
    "new",
    "midpoint",
    "length",
    "point_at_midpoint",
    "line_from_points",
    "Inherit",
    "to_dxf",
    "ConvertResult",
    "DxfError",
    "DxfStreamError",
    "DecodeError",
    "EncodeError",
    "ChainError",
    "GeometryError",
]
