"""
Handler decorators for error handling, access logging and JSON responses.
"""
import datetime as dt
import functools
import json
import traceback
import uuid
from typing import Callable, Any, Dict
from urllib.parse import urlencode
from logger_config import get_logger
from utils.exceptions import ValidationError, ProviderError

logger = get_logger(__name__)

JSON_HEADERS = {'Content-Type': 'application/json'}


def json_default(value: Any) -> Any:
    """Encode values the json module does not know (SDK timestamps, bytes)."""
    if isinstance(value, (dt.datetime, dt.date)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return str(value)


def json_response(status_code: int, body: Any) -> Dict[str, Any]:
    """Build an API Gateway proxy response with a JSON body."""
    return {
        'statusCode': status_code,
        'headers': dict(JSON_HEADERS),
        'body': json.dumps(body, default=json_default),
    }


def error_response(status_code: int, error: Exception, correlation_id: str) -> Dict[str, Any]:
    return json_response(status_code, {
        'error': {
            'type': type(error).__name__,
            'message': getattr(error, 'message', None) or str(error),
            'correlation_id': correlation_id,
        }
    })


def query_params(event: Dict[str, Any]) -> Dict[str, str]:
    """Query string parameters of a proxy event, never None."""
    return (event or {}).get('queryStringParameters') or {}


def request_path(event: Dict[str, Any]) -> str:
    event = event or {}
    return event.get('rawPath') or event.get('path') or '/'


def _access_log_line(event: Dict[str, Any], status_code: int) -> str:
    """Format ``- ip host - status method url proto 'agent'`` for one request."""
    event = event or {}
    request_context = event.get('requestContext') or {}
    http = request_context.get('http') or {}
    identity = request_context.get('identity') or {}
    headers = {k.lower(): v for k, v in (event.get('headers') or {}).items()}

    source_ip = http.get('sourceIp') or identity.get('sourceIp') or '-'
    method = http.get('method') or event.get('httpMethod') or '-'
    protocol = http.get('protocol') or request_context.get('protocol') or '-'
    user_agent = http.get('userAgent') or headers.get('user-agent', '')

    url = request_path(event)
    # Never write the timestamp secret to the logs
    params = {k: ('***' if k == 'secret' else v) for k, v in query_params(event).items()}
    if params:
        url = f"{url}?{urlencode(params)}"

    return (
        f"- {source_ip} {headers.get('host', '-')} - {status_code} "
        f"{method} {url} - {protocol} '{user_agent}'"
    )


def api_handler(
    func: Callable[[Any, Any], Any]
) -> Callable[[Any, Any], Dict[str, Any]]:
    """
    Decorator for API Gateway handler functions.

    The wrapped function returns the JSON-serializable body. This decorator:
    - Maps ValidationError to 400 and ProviderError or anything else to 500
    - Attaches a correlation ID to logs and error bodies
    - Serializes the body and writes one access log line

    Args:
        func: The handler function to decorate

    Returns:
        Decorated handler function
    """
    @functools.wraps(func)
    def wrapper(event: Any, context: Any) -> Dict[str, Any]:
        correlation_id = str(uuid.uuid4())

        logger.debug(
            f"Handler {func.__name__} invoked",
            extra={
                "correlation_id": correlation_id,
                "handler": func.__name__,
                "request_id": getattr(context, "aws_request_id", None) if context else None
            }
        )

        try:
            body = func(event, context)
            response = json_response(200, body)

        except ValidationError as e:
            logger.warning(
                f"Handler {func.__name__} validation error: {str(e)}",
                extra={"correlation_id": correlation_id}
            )
            response = error_response(400, e, correlation_id)

        except ProviderError as e:
            logger.error(
                f"Handler {func.__name__} provider error at step {e.step}: {e.message}",
                extra={"correlation_id": correlation_id}
            )
            response = error_response(500, e, correlation_id)

        except Exception as e:
            logger.error(
                f"Handler {func.__name__} failed: {str(e)}",
                extra={
                    "correlation_id": correlation_id,
                    "traceback": traceback.format_exc()
                },
                exc_info=True
            )
            response = error_response(500, e, correlation_id)

        response['headers']['X-Correlation-Id'] = correlation_id
        logger.info(_access_log_line(event, response['statusCode']))
        return response

    return wrapper
