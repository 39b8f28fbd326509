# optica/utils/pagination.py
from optica.extensions import db


def parse_pagination(req, default_page=1, default_per_page=10, max_per_page=100):
    try:
        page = max(int(req.args.get("page", default_page)), 1)
        raw_limit = req.args.get("limit", req.args.get("per_page", default_per_page))
        per_page = min(max(int(raw_limit), 1), max_per_page)
        return page, per_page
    except ValueError:
        return default_page, default_per_page


def paginate_query(query, page, per_page):
    """Devuelve (items, total, total_pages) de un select ya filtrado y ordenado."""
    pagination = db.paginate(query, page=page, per_page=per_page, error_out=False)
    return pagination.items, pagination.total, pagination.pages
