"""Generic deep copying through a cascade of serialization strategies."""

from .copier import ObjectCopier, copy_value
from .strategies import (
    CopyStrategy,
    FastMarshalStrategy,
    TrustedBinaryStrategy,
    XmlFileRoundtripStrategy,
    XmlObjectGraphStrategy,
    default_strategies,
    is_marked_serializable,
)

__all__ = [
    "CopyStrategy",
    "FastMarshalStrategy",
    "ObjectCopier",
    "TrustedBinaryStrategy",
    "XmlFileRoundtripStrategy",
    "XmlObjectGraphStrategy",
    "copy_value",
    "default_strategies",
    "is_marked_serializable",
]
