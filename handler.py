"""
API Gateway handlers for the Lightsail control API.

Routes:
    GET /api/regions    supported regions
    GET /api/instances  instances of one region/profile
    GET /api/instance   run an action against one instance
"""
import uuid
from typing import Any, Dict, List
from config import get_config
from credentials import get_dns_accounts
from logger_config import get_logger
from services.dns_sync_service import DNSSyncService
from services.instance_actions import InstanceAction, run_action
from services.lightsail_service import LightsailService
from utils.decorators import api_handler, error_response, query_params, request_path
from utils.exceptions import ValidationError
from utils.validators import require_params, check_secret_timestamp

logger = get_logger(__name__)

REGIONS = [
    "us-east-1", "us-east-2", "us-west-2",
    "eu-west-1", "eu-west-2", "eu-west-3",
    "eu-central-1", "ap-southeast-1",
    "ap-southeast-2", "ap-northeast-1", "ap-northeast-2",
    "ap-south-1", "ca-central-1", "eu-north-1",
]

INSTANCE_PARAMS = ('region', 'profile', 'name', 'secret', 'action')


def summarize_instance(instance: Dict[str, Any]) -> Dict[str, str]:
    """Reduce a Lightsail instance to Name, State and, unless stopped, PublicIP."""
    state = instance.get('state', {}).get('name', '')
    summary = {'Name': instance.get('name', ''), 'State': state}
    public_ip = instance.get('publicIpAddress')
    if state != 'stopped' and public_ip:
        summary['PublicIP'] = public_ip
    return summary


@api_handler
def list_regions(event, context) -> List[str]:
    """GET /api/regions"""
    return list(REGIONS)


@api_handler
def list_instances(event, context) -> List[Dict[str, str]]:
    """GET /api/instances"""
    params = require_params(query_params(event), ('region', 'profile'))
    lightsail = LightsailService(params['region'], params['profile'])
    return [summarize_instance(instance) for instance in lightsail.list_instances()]


@api_handler
def instance_action(event, context) -> Dict[str, Any]:
    """GET /api/instance"""
    config = get_config()
    params = require_params(query_params(event), INSTANCE_PARAMS)
    check_secret_timestamp(params['secret'], config.secret_tolerance_seconds)
    action = InstanceAction.parse(params['action'])

    logger.info(
        f"Running {action.value} on {params['name']} "
        f"({params['region']}, profile {params['profile']})"
    )
    lightsail = LightsailService(params['region'], params['profile'])
    dns_sync = None
    if action is InstanceAction.CHANGEIP:
        dns_sync = DNSSyncService(account_loader=get_dns_accounts)
    return run_action(action, lightsail, params['name'], dns_sync)


ROUTES = {
    '/api/regions': list_regions,
    '/api/instances': list_instances,
    '/api/instance': instance_action,
}


def route(event, context):
    """Single entry point that dispatches a proxy event by path."""
    path = request_path(event).rstrip('/') or '/'
    handler = ROUTES.get(path)
    if handler is None:
        logger.warning(f'No route for path {path}')
        return error_response(404, ValidationError(f"Not found: {path}"), str(uuid.uuid4()))
    return handler(event, context)
