from typing import Any, Dict, List

# Columns the record sources are known to carry. All optional; a row may
# carry any subset, and unknown columns are passed through untouched.
NAME_FIELDS = ["company_name", "employer_name"]
DETAIL_FIELDS = [
    "group_name",
    "category",
    "legal_status",
    "establishment_date",
    "emirate",
    "industry",
    "po_box",
    "comments",
    "employer_code",
    "employer_id",
    "status",
    "reason",
]
KNOWN_FIELDS = (
    ["id"]
    + NAME_FIELDS
    + ["company_name_normalized", "employer_name_normalized"]
    + DETAIL_FIELDS
)


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_scalar(v: Any) -> bool:
    return v is None or isinstance(v, (str, int, float, bool))


def validate_row(row: Any, name_column: str) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means the row
    can be scored: it is a mapping and its name column holds a non-empty string.
    """
    if not isinstance(row, dict):
        return [f"Row must be an object, got {type(row).__name__}"]

    errors: List[str] = []
    if name_column not in row:
        errors.append(f"Missing name column: {name_column}")
    elif not _is_non_empty_str(row[name_column]):
        errors.append(f"Column '{name_column}' must be a non-empty string")

    for f in KNOWN_FIELDS:
        if f in row and not _is_scalar(row[f]):
            errors.append(f"Column '{f}' must be a string or number if provided")

    return errors


def present_details(row: Dict[str, Any]) -> Dict[str, Any]:
    """Detail columns present with a non-empty value, in display order."""
    out: Dict[str, Any] = {}
    for f in DETAIL_FIELDS:
        v = row.get(f)
        if v is None or (isinstance(v, str) and not v.strip()):
            continue
        out[f] = v
    return out
