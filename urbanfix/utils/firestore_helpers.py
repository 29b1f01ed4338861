"""
Firestore query helpers.

NOTE: firebase_admin still accepts positional where() arguments; the
deprecation warning does not affect functionality. Keeping the call in one
place makes the later switch to FieldFilter a one-line change.
"""


def where_filter(query, field_path: str, op_string: str, value):
    """
    Apply a single where clause.

    Usage:
        query = where_filter(collection, "status", "==", "Pending")
        query = where_filter(query, "priority", "==", "Critical")
    """
    return query.where(field_path, op_string, value)


def snapshot_to_dict(snapshot) -> dict:
    """Convert a DocumentSnapshot into a plain dict carrying its id."""
    data = snapshot.to_dict() or {}
    data["id"] = snapshot.id
    return data
