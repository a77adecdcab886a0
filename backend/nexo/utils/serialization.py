"""JSON-friendly conversion of ORM rows and query results."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict


def convert_decimals_to_floats(obj: Any) -> Any:
    """
    Recursively convert Decimal values to floats (and dates to ISO strings)
    for JSON serialization.

    Args:
        obj: Any Python object (dict, list, Decimal, date, etc.)

    Returns:
        Object with all Decimal values converted to float
    """
    if isinstance(obj, Decimal):
        return float(obj)
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, dict):
        return {key: convert_decimals_to_floats(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_decimals_to_floats(item) for item in obj]
    else:
        return obj


def model_to_dict(row: Any) -> Dict[str, Any]:
    """Flatten an ORM instance into a plain dict of its table columns."""
    return convert_decimals_to_floats(
        {column.name: getattr(row, column.name) for column in row.__table__.columns}
    )
