"""Document identifier helpers."""
from bson import ObjectId
from bson.errors import InvalidId


def to_object_id(value: str, kind: str = "goal") -> ObjectId:
    """
    Parse a path or payload id into an ObjectId.

    Raises:
        ValueError: If the id is not a valid ObjectId
    """
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValueError(f"Invalid {kind} ID format")
