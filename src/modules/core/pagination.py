"""Page-number pagination shared by every list endpoint."""

from __future__ import annotations

from rest_framework.pagination import PageNumberPagination


class StandardResultsSetPagination(PageNumberPagination):
    """``?page=N&page_size=M`` with a hard ceiling on ``page_size``.

    Drivers poll the full order list every few seconds, so the ceiling is
    generous; clients follow ``next`` links for anything beyond it.
    """

    page_size_query_param = "page_size"
    max_page_size = 500
