from __future__ import annotations

from .exceptions import ValidationError
from .ids import canonical_id

_PARAM_LABELS = {
    "lecturerId": "Lecturer ID",
    "studentId": "Student ID",
}


def actor_id_from_request(request, param: str) -> str:
    """Return the canonical id of the acting user.

    An authenticated session wins; otherwise the id is taken from the query
    string parameter ``param``.
    """
    label = _PARAM_LABELS.get(param, "ID")
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return str(user.pk)

    value = request.query_params.get(param)
    if not value:
        raise ValidationError(f"{label} is required")
    return canonical_id(value, label)
