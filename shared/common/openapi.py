"""
OpenAPI Schema Configuration

drf-spectacular settings for the booking API plus two hooks: health probes
are left out of the schema, and the bearer scheme and the shared error
envelope are declared as components.
"""
from typing import Dict, Any, List

API_TAGS = [
    {'name': 'events', 'description': 'Event bookings, status changes and deletion'},
    {'name': 'event-services', 'description': 'Services booked on an event'},
    {'name': 'rooms', 'description': 'Rooms, availability and images'},
    {'name': 'services', 'description': 'Bookable services and their images'},
    {'name': 'variations', 'description': 'Priced variations of a service'},
    {'name': 'pricing-tiers', 'description': 'Dated price adjustments of a variation'},
    {'name': 'invoices', 'description': 'Invoices generated from bookings'},
    {'name': 'payments', 'description': 'Checkout and payment status'},
    {'name': 'reviews', 'description': 'Ratings for services and events'},
    {'name': 'notifications', 'description': "The caller's notifications"},
]

ERROR_ENVELOPE = {
    'type': 'object',
    'required': ['success', 'error'],
    'properties': {
        'success': {'type': 'boolean', 'enum': [False]},
        'error': {
            'type': 'object',
            'required': ['code', 'message'],
            'properties': {
                'code': {'type': 'string', 'example': 'BOOKING_CONFLICT'},
                'message': {'type': 'string'},
                'details': {'type': 'object', 'additionalProperties': True},
                'request_id': {'type': 'string', 'nullable': True},
            },
        },
    },
}


def get_spectacular_settings(
    title: str,
    description: str,
    version: str = "1.0.0",
) -> Dict[str, Any]:
    return {
        'TITLE': f'{title} API',
        'DESCRIPTION': description,
        'VERSION': version,
        'TAGS': API_TAGS,
        'SERVE_INCLUDE_SCHEMA': False,
        'COMPONENT_SPLIT_REQUEST': True,
        'SECURITY': [{'BearerAuth': []}],
        'PREPROCESSING_HOOKS': [
            'shared.common.openapi.preprocess_exclude_health',
        ],
        'POSTPROCESSING_HOOKS': [
            'drf_spectacular.hooks.postprocess_schema_enums',
            'shared.common.openapi.postprocess_components',
        ],
        'SCHEMA_PATH_PREFIX': r'/api/v[0-9]+/',
        'SORT_OPERATIONS': True,
    }


def preprocess_exclude_health(endpoints: List, **kwargs) -> List:
    return [
        (path, path_regex, method, callback)
        for path, path_regex, method, callback in endpoints
        if not path.startswith('/health')
    ]


def postprocess_components(result: Dict, **kwargs) -> Dict:
    """Declare the bearer scheme and the ``ErrorEnvelope`` schema."""
    components = result.setdefault('components', {})
    components.setdefault('securitySchemes', {})['BearerAuth'] = {
        'type': 'http',
        'scheme': 'bearer',
        'bearerFormat': 'JWT',
    }
    components.setdefault('schemas', {})['ErrorEnvelope'] = ERROR_ENVELOPE
    return result


def get_api_docs_urlpatterns():
    from django.urls import path
    from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

    return [
        path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
        path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    ]
