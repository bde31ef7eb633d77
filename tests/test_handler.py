"""
Tests for the API Gateway handlers and path routing.
"""
import datetime as dt
import json
import time
import pytest
from unittest.mock import Mock, patch
import handler
from handler import REGIONS, instance_action, list_instances, list_regions, route
from utils.exceptions import ProviderError


def api_event(path, params=None):
    return {
        'path': path,
        'httpMethod': 'GET',
        'queryStringParameters': params,
        'headers': {'Host': 'api.example.com', 'User-Agent': 'pytest'},
        'requestContext': {'identity': {'sourceIp': '192.0.2.1'}, 'protocol': 'HTTP/1.1'},
    }


def instance_params(**overrides):
    params = {
        'region': 'us-east-1',
        'profile': 'prod',
        'name': 'web-1',
        'secret': str(int(time.time())),
        'action': 'status',
    }
    params.update(overrides)
    return {k: v for k, v in params.items() if v is not None}


def body_of(response):
    return json.loads(response['body'])


@pytest.fixture
def lightsail_class():
    with patch('handler.LightsailService') as mock_class:
        yield mock_class


class TestListRegions:

    def test_returns_fixed_regions(self):
        response = list_regions(api_event('/api/regions'), None)

        assert response['statusCode'] == 200
        assert response['headers']['Content-Type'] == 'application/json'
        regions = body_of(response)
        assert regions == REGIONS
        assert len(regions) == 14
        assert regions[0] == 'us-east-1'
        assert regions[-1] == 'eu-north-1'


class TestListInstances:

    def test_summaries_omit_ip_when_stopped(self, lightsail_class):
        lightsail_class.return_value.list_instances.return_value = [
            {'name': 'web-1', 'state': {'code': 16, 'name': 'running'}, 'publicIpAddress': '198.51.100.7'},
            {'name': 'web-2', 'state': {'code': 80, 'name': 'stopped'}, 'publicIpAddress': '198.51.100.8'},
        ]

        response = list_instances(api_event('/api/instances', {'region': 'eu-west-1', 'profile': 'prod'}), None)

        assert response['statusCode'] == 200
        assert body_of(response) == [
            {'Name': 'web-1', 'State': 'running', 'PublicIP': '198.51.100.7'},
            {'Name': 'web-2', 'State': 'stopped'},
        ]
        lightsail_class.assert_called_once_with('eu-west-1', 'prod')

    @pytest.mark.parametrize('params', [None, {'region': 'eu-west-1'}, {'profile': 'prod', 'region': ''}])
    def test_missing_params(self, lightsail_class, params):
        response = list_instances(api_event('/api/instances', params), None)

        assert response['statusCode'] == 400
        assert body_of(response)['error']['type'] == 'MissingParameterError'
        lightsail_class.assert_not_called()

    def test_provider_failure_is_500(self, lightsail_class):
        lightsail_class.return_value.list_instances.side_effect = ProviderError(
            'The security token included in the request is invalid', step='list'
        )

        response = list_instances(api_event('/api/instances', {'region': 'eu-west-1', 'profile': 'prod'}), None)

        assert response['statusCode'] == 500
        error = body_of(response)['error']
        assert error['type'] == 'ProviderError'
        assert 'security token' in error['message']
        assert error['correlation_id'] == response['headers']['X-Correlation-Id']


class TestInstanceAction:

    @pytest.mark.parametrize('missing', ['region', 'profile', 'name', 'secret', 'action'])
    def test_missing_param_makes_no_provider_call(self, lightsail_class, missing):
        response = instance_action(api_event('/api/instance', instance_params(**{missing: None})), None)

        assert response['statusCode'] == 400
        assert missing in body_of(response)['error']['message']
        lightsail_class.assert_not_called()

    @pytest.mark.parametrize('offset', [-3700, 3700, 86400])
    def test_stale_secret_rejected(self, lightsail_class, offset):
        secret = str(int(time.time()) + offset)

        response = instance_action(api_event('/api/instance', instance_params(secret=secret)), None)

        assert response['statusCode'] == 400
        assert body_of(response)['error']['type'] == 'StaleTimestampError'
        lightsail_class.assert_not_called()

    def test_secret_not_a_number(self, lightsail_class):
        response = instance_action(api_event('/api/instance', instance_params(secret='letmein')), None)

        assert response['statusCode'] == 400
        assert 'Invalid timestamp format' in body_of(response)['error']['message']

    @pytest.mark.parametrize('template', ['+{}', ' {} ', '{}_0'])
    def test_loosely_formatted_secret_rejected(self, lightsail_class, template):
        secret = template.format(int(time.time()))

        response = instance_action(api_event('/api/instance', instance_params(secret=secret)), None)

        assert response['statusCode'] == 400
        assert 'Invalid timestamp format' in body_of(response)['error']['message']
        lightsail_class.assert_not_called()

    def test_tolerance_comes_from_config(self, lightsail_class, monkeypatch):
        monkeypatch.setenv('SECRET_TOLERANCE_SECONDS', '120')
        secret = str(int(time.time()) - 600)

        response = instance_action(api_event('/api/instance', instance_params(secret=secret)), None)

        assert response['statusCode'] == 400
        lightsail_class.assert_not_called()

    def test_secret_inside_window_dispatches(self, lightsail_class):
        lightsail_class.return_value.get_instance.return_value = {'instance': {'name': 'web-1'}}
        secret = str(int(time.time()) - 3000)

        response = instance_action(api_event('/api/instance', instance_params(secret=secret)), None)

        assert response['statusCode'] == 200
        lightsail_class.return_value.get_instance.assert_called_once_with('web-1')

    def test_invalid_action(self, lightsail_class):
        response = instance_action(api_event('/api/instance', instance_params(action='bogus')), None)

        assert response['statusCode'] == 400
        assert 'Invalid action' in response['body']
        lightsail_class.assert_not_called()

    def test_status_returns_instance_json(self, lightsail_class):
        created = dt.datetime(2024, 3, 1, 12, 30, tzinfo=dt.timezone.utc)
        lightsail_class.return_value.get_instance.return_value = {
            'instance': {
                'name': 'web-1',
                'createdAt': created,
                'state': {'code': 16, 'name': 'running'},
                'publicIpAddress': '198.51.100.7',
                'resourceType': 'Instance',
            }
        }

        response = instance_action(api_event('/api/instance', instance_params()), None)

        assert response['statusCode'] == 200
        instance = body_of(response)['instance']
        assert instance['createdAt'] == '2024-03-01T12:30:00+00:00'
        assert instance['state']['name'] == 'running'
        assert instance['name'] == 'web-1'

    @pytest.mark.parametrize('action,method', [
        ('reset', 'reboot_instance'),
        ('poweroff', 'stop_instance'),
        ('poweron', 'start_instance'),
    ])
    def test_operation_actions(self, lightsail_class, action, method):
        operation = {
            'operations': [{
                'resourceName': 'web-1',
                'status': 'Started',
                'createdAt': dt.datetime(2024, 3, 1, tzinfo=dt.timezone.utc),
            }]
        }
        getattr(lightsail_class.return_value, method).return_value = operation

        response = instance_action(api_event('/api/instance', instance_params(action=action)), None)

        assert response['statusCode'] == 200
        assert body_of(response)['operations'][0]['resourceName'] == 'web-1'
        assert body_of(response)['operations'][0]['status'] == 'Started'

    def test_changeip_defers_dns_account_loading(self, lightsail_class):
        with patch('handler.get_dns_accounts', return_value=[]) as mock_accounts, \
                patch('handler.run_action', return_value={'staticIp': {'ipAddress': '203.0.113.10'}}) as mock_run:
            response = instance_action(api_event('/api/instance', instance_params(action='changeip')), None)

        assert response['statusCode'] == 200
        assert body_of(response) == {'staticIp': {'ipAddress': '203.0.113.10'}}
        mock_accounts.assert_not_called()
        dns_sync = mock_run.call_args.args[3]
        assert dns_sync.account_loader is mock_accounts
        assert dns_sync.load_accounts() == []

    @pytest.mark.parametrize('dns_config', [
        '["not-an-object"]',
        '[{"apikey": "k", "apiemail": "ops@example.com", "domain": "example.com", "profiles": 123}]',
        'not json',
    ])
    def test_changeip_succeeds_with_malformed_dns_config(
        self, monkeypatch, fake_lightsail_client, dns_config_file, dns_config
    ):
        from services.lightsail_service import LightsailService
        client = fake_lightsail_client([
            {'name': 'IP-web-1', 'ipAddress': '198.51.100.7', 'attachedTo': 'web-1'},
        ])
        monkeypatch.setattr(
            handler, 'LightsailService',
            lambda region, profile: LightsailService(region, profile, client=client),
        )
        dns_config_file.write_text(dns_config)

        with patch('services.dns_sync_service.CloudflareService') as cf_class:
            response = instance_action(api_event('/api/instance', instance_params(action='changeip')), None)

        assert response['statusCode'] == 200
        assert body_of(response)['staticIp']['ipAddress'] == '203.0.113.10'
        cf_class.assert_not_called()

    def test_changeip_end_to_end(self, monkeypatch, fake_lightsail_client, dns_config_file):
        from services.lightsail_service import LightsailService
        client = fake_lightsail_client([
            {'name': 'IP-web-1', 'ipAddress': '198.51.100.7', 'attachedTo': 'web-1'},
        ])
        monkeypatch.setattr(
            handler, 'LightsailService',
            lambda region, profile: LightsailService(region, profile, client=client),
        )
        cloudflare = Mock()
        cloudflare.get_zone_id.return_value = 'zone-123'
        cloudflare.list_a_records.return_value = [
            {'id': 'rec-1', 'name': 'web.example.com', 'type': 'A', 'content': '198.51.100.7'},
        ]

        with patch('services.dns_sync_service.CloudflareService', return_value=cloudflare) as cf_class:
            response = instance_action(api_event('/api/instance', instance_params(action='changeip')), None)

        assert response['statusCode'] == 200
        assert body_of(response)['staticIp']['ipAddress'] == '203.0.113.10'
        cf_class.assert_called_once_with(
            'file-key', 'ops@example.com', api_url='https://api.cloudflare.com/client/v4'
        )
        cloudflare.update_a_record.assert_called_once_with(
            'zone-123', cloudflare.list_a_records.return_value[0], '203.0.113.10'
        )

    def test_unexpected_error_is_500(self, lightsail_class):
        lightsail_class.return_value.get_instance.side_effect = RuntimeError('boom')

        response = instance_action(api_event('/api/instance', instance_params()), None)

        assert response['statusCode'] == 500
        assert body_of(response)['error']['type'] == 'RuntimeError'


class TestRoute:

    def test_dispatches_by_path(self):
        response = route(api_event('/api/regions/'), None)

        assert response['statusCode'] == 200
        assert body_of(response) == REGIONS

    def test_http_api_raw_path(self):
        event = {'rawPath': '/api/regions', 'requestContext': {'http': {'method': 'GET'}}}

        assert route(event, None)['statusCode'] == 200

    def test_unknown_path(self):
        response = route(api_event('/api/volumes'), None)

        assert response['statusCode'] == 404
        assert 'Not found' in body_of(response)['error']['message']
