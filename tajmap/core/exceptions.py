"""
API error formatting.

Every error body is a JSON object with a ``message`` string. Validation errors
additionally name the first offending ``field`` and carry the full ``errors``.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def first_error(detail, path=()):
    """Walk serializer errors and return (dotted field path, message) of the first one"""
    if isinstance(detail, dict):
        for key, value in detail.items():
            sub_path = path if key == 'non_field_errors' else path + (str(key),)
            return first_error(value, sub_path)
    elif isinstance(detail, (list, tuple)):
        for index, value in enumerate(detail):
            if not value:
                continue
            if isinstance(value, (dict, list, tuple)):
                sub_path = path + (str(index),) if isinstance(value, dict) else path
                return first_error(value, sub_path)
            return '.'.join(path), str(value)
    return '.'.join(path), str(detail)


def validation_error_body(detail):
    field, message = first_error(detail)
    body = {'message': message or 'Invalid input'}
    if field:
        body['field'] = field
    body['errors'] = detail
    return body


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        return unexpected_error_response(exc, context.get('view'))

    if isinstance(exc, ValidationError):
        response.data = validation_error_body(response.data)
        return response

    data = response.data
    if isinstance(data, dict) and 'detail' in data:
        body = {'message': str(data['detail'])}
        code = getattr(data['detail'], 'code', None)
        if code:
            body['code'] = code
        response.data = body
    elif not (isinstance(data, dict) and 'message' in data):
        response.data = {'message': str(data)}

    if response.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"API error in {context.get('view')}: {exc}")
    return response


def unexpected_error_response(exc, where):
    """Log an unexpected exception and return a generic 500 response"""
    logger.error(f"Unexpected error in {where}: {str(exc)}", exc_info=True)
    return Response({'message': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def filter_error_response(filterset):
    """400 response for query parameters a FilterSet rejected"""
    detail = {field: [str(message) for message in messages] for field, messages in filterset.errors.items()}
    return Response(validation_error_body(detail), status=status.HTTP_400_BAD_REQUEST)
