"""Success envelope and the shared pagination block."""

import math

from rest_framework import status as http
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


def ok(data=None, message: str = "", status: int = http.HTTP_200_OK) -> Response:
    """{"success": true, "message": ..., "data": ...}"""
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return Response(body, status=status)


def pagination_block(page: int, limit: int, total_items: int) -> dict:
    total_pages = math.ceil(total_items / limit) if total_items else 0
    return {
        "currentPage": page,
        "totalPages":  total_pages,
        "totalItems":  total_items,
        "limit":       limit,
        "hasNext":     page < total_pages,
        "hasPrev":     page > 1,
    }


class EnvelopePagination(PageNumberPagination):
    """?page=&limit= pagination that answers in the standard envelope."""
    page_size             = 10
    page_size_query_param = "limit"
    max_page_size         = 50
    results_key           = "items"

    def get_paginated_response(self, data):
        page = self.page.number
        limit = self.page.paginator.per_page
        return ok({
            self.results_key: data,
            "pagination": pagination_block(page, limit, self.page.paginator.count),
        })
