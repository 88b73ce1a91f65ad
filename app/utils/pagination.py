# app/utils/pagination.py

import math
from pymongo import ASCENDING, DESCENDING

def build_pagination(page: int, limit: int):
    skip = (page - 1) * limit
    return skip, limit

def build_sort(sort_by: str, sort_order: str = "desc"):
    direction = DESCENDING if sort_order == "desc" else ASCENDING
    return [(sort_by, direction)]

def build_pagination_meta(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if limit else 0,
    }
