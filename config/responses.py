"""
Response envelope shared by every API endpoint.

    success: {"success": true, "data": ..., "timestamp": iso[, "message": str]}
    failure: {"success": false, "error": str, "errors": [...], "timestamp": iso}

``exception_handler`` wraps DRF's handler so authentication failures,
validation errors and APIException subclasses use the failure envelope too.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from statesync.timestamps import now_iso

logger = logging.getLogger(__name__)


def success_response(data, status_code=status.HTTP_200_OK, message=None):
    body = {
        'success': True,
        'data': data,
        'timestamp': now_iso(),
    }
    if message:
        body['message'] = message
    return Response(body, status=status_code)


def error_response(message, status_code=status.HTTP_400_BAD_REQUEST, errors=None):
    return Response({
        'success': False,
        'error': message,
        'errors': errors or [],
        'timestamp': now_iso(),
    }, status=status_code)


def _flatten_errors(detail, prefix=''):
    """Turn DRF's nested error detail into ``[{field, message}]``."""
    if isinstance(detail, dict):
        errors = []
        for field, value in detail.items():
            name = f'{prefix}.{field}' if prefix else str(field)
            errors.extend(_flatten_errors(value, name))
        return errors
    if isinstance(detail, list):
        errors = []
        for value in detail:
            errors.extend(_flatten_errors(value, prefix))
        return errors
    return [{'field': prefix or 'non_field_errors', 'message': str(detail)}]


def exception_handler(exc, context):
    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    detail = response.data
    if isinstance(detail, dict) and 'detail' in detail:
        message = str(detail['detail'])
        errors = []
    else:
        message = 'Validation failed' if response.status_code == 400 else 'Request failed'
        errors = _flatten_errors(detail)

    logger.debug('API error %s: %s', response.status_code, message)
    response.data = {
        'success': False,
        'error': message,
        'errors': errors,
        'timestamp': now_iso(),
    }
    return response
