"""
Pagination for API responses

List endpoints use 1-based ``page`` and ``limit`` query parameters and
return a ``pagination`` block next to ``results``.
"""

import math
from collections import OrderedDict
from typing import Any, Dict

from django.core.paginator import Paginator, EmptyPage
from rest_framework.pagination import BasePagination
from rest_framework.response import Response

from .exceptions import ValidationException
from .validators import Err, validate_pagination, PAGINATION_MAX_LIMIT


def build_pagination_meta(page: int, limit: int, total_count: int) -> Dict[str, Any]:
    """Pagination block shared by service-level listings and DRF lists."""
    total_pages = math.ceil(total_count / limit) if total_count else 0
    return OrderedDict([
        ('page', page),
        ('limit', limit),
        ('total_count', total_count),
        ('total_pages', total_pages),
        ('has_next_page', page * limit < total_count),
        ('has_previous_page', page > 1),
    ])


def paginated_response(results: Any, pagination: Dict[str, Any]) -> Response:
    return Response(OrderedDict([
        ('success', True),
        ('results', results),
        ('pagination', pagination),
    ]))


class StandardPagination(BasePagination):
    """
    Page/limit pagination for generic list views.

    Out-of-range pages yield an empty ``results`` list rather than 404,
    so ``has_next_page`` stays meaningful for any valid page number.
    """

    page_query_param = 'page'
    limit_query_param = 'limit'
    max_limit = PAGINATION_MAX_LIMIT

    def paginate_queryset(self, queryset, request, view=None):
        result = validate_pagination(
            request.query_params.get(self.page_query_param),
            request.query_params.get(self.limit_query_param),
            max_limit=self.max_limit,
        )
        if isinstance(result, Err):
            raise ValidationException(result.errors, detail=result.errors[0])

        self.page_number = result.value['page']
        self.limit = result.value['limit']

        paginator = Paginator(queryset, self.limit)
        self.total_count = paginator.count
        try:
            return list(paginator.page(self.page_number).object_list)
        except EmptyPage:
            return []

    def get_paginated_response(self, data: Any) -> Response:
        return paginated_response(
            data,
            build_pagination_meta(self.page_number, self.limit, self.total_count),
        )

    def get_paginated_response_schema(self, schema: Dict) -> Dict:
        return {
            'type': 'object',
            'properties': {
                'success': {'type': 'boolean', 'example': True},
                'results': schema,
                'pagination': {
                    'type': 'object',
                    'properties': {
                        'page': {'type': 'integer', 'example': 1},
                        'limit': {'type': 'integer', 'example': 20},
                        'total_count': {'type': 'integer', 'example': 100},
                        'total_pages': {'type': 'integer', 'example': 5},
                        'has_next_page': {'type': 'boolean', 'example': True},
                        'has_previous_page': {'type': 'boolean', 'example': False},
                    },
                },
            }
        }
