import math

from django.core.paginator import EmptyPage
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from .exceptions import BadRequest


def envelope(message, data=None, status_code=status.HTTP_200_OK):
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return Response(body, status=status_code)


def query_int(request, name, default, minimum, maximum, message):
    raw = request.query_params.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise BadRequest(message)
    if value < minimum or (maximum is not None and value > maximum):
        raise BadRequest(message)
    return value


class FarmLinkPagination(PageNumberPagination):
    """
    ?page=N&limit=M, reported back as a `pagination` block next to the items.

    Out-of-range values are rejected with 400; a page past the end is an
    empty list, not a 404.
    """
    page_size = 10
    page_query_param = "page"
    page_size_query_param = "limit"
    max_page_size = 100

    def paginate_queryset(self, queryset, request, view=None):
        self.request = request
        self.page_number = query_int(
            request, self.page_query_param, 1, 1, None, "Page must be a positive integer"
        )
        self.items_per_page = query_int(
            request, self.page_size_query_param, self.page_size, 1, self.max_page_size,
            f"Limit must be between 1 and {self.max_page_size}",
        )
        paginator = self.django_paginator_class(queryset, self.items_per_page)
        self.total_items = paginator.count
        try:
            self.page = paginator.page(self.page_number)
        except EmptyPage:
            self.page = None
            return []
        return list(self.page)

    def get_pagination_block(self):
        return {
            "currentPage": self.page_number,
            "totalPages": math.ceil(self.total_items / self.items_per_page),
            "totalItems": self.total_items,
            "itemsPerPage": self.items_per_page,
        }
