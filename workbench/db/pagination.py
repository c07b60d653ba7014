"""Offset pagination helper used by every list endpoint."""

import math
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Query

from workbench.core.exceptions import ValidationError

DEFAULT_SORT = "created_at:desc"


def _sort_criteria(model, sort_by: Optional[str]) -> List[Any]:
    """Parse ``field:asc,other:desc`` into ORDER BY criteria for ``model``."""
    columns = model.__table__.columns
    criteria = []
    for part in (sort_by or DEFAULT_SORT).split(","):
        part = part.strip()
        if not part:
            continue
        field, _, direction = part.partition(":")
        direction = (direction or "asc").lower()
        if field not in columns or direction not in ("asc", "desc"):
            raise ValidationError(
                invalid_fields=[{"field": "sort_by", "message": f"Cannot sort by '{part}'"}],
            )
        column = columns[field]
        criteria.append(column.desc() if direction == "desc" else column.asc())
    # stable order across pages
    criteria.append(model.id.asc())
    return criteria


def paginate(
    query: Query,
    model,
    sort_by: Optional[str] = None,
    limit: int = 10,
    page: int = 1,
) -> Dict[str, Any]:
    """Return one page of ``query`` with totals.

    Returns:
        dict with ``results``, ``page``, ``limit``, ``total_pages`` and
        ``total_results``.
    """
    total = query.order_by(None).count()
    results = (
        query.order_by(*_sort_criteria(model, sort_by))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "results": results,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if limit else 0,
        "total_results": total,
    }
