import math

from fastapi import Depends, Query, Response
from typing_extensions import Annotated

from todo_api.core.config import get_settings


def get_limit_from_page_index(page: int, per_page: int) -> tuple[int, int]:
    """
    Translate a page number into (limit, start).

    A page below 1 means "everything" and yields a limit of 0.
    """
    if page < 1:
        return 0, 0

    max_items = get_settings().max_items_per_page
    limit = max_items
    if 0 < per_page < max_items:
        limit = per_page
    start = limit * (page - 1)
    return limit, start


def total_pages(total_items: int, per_page: int) -> int:
    if per_page <= 0:
        return 1
    return math.ceil(total_items / per_page)


class PageParams:
    """Common query parameters of paginated collections"""

    def __init__(
        self,
        page: int = Query(default=1, description="The page number, starting at 1."),
        per_page: int = Query(
            default=0, ge=0, description="Items per page, capped by the server."
        ),
        s: str = Query(default="", description="Search string."),
    ):
        self.page = page
        self.per_page = per_page
        self.search = s

    @property
    def limit(self) -> int:
        return get_limit_from_page_index(self.page, self.per_page)[0]

    def set_headers(self, response: Response, total_items: int, result_count: int):
        response.headers["x-pagination-total-pages"] = str(
            total_pages(total_items, self.limit)
        )
        response.headers["x-pagination-result-count"] = str(result_count)


PageDep = Annotated[PageParams, Depends()]
