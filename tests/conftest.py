"""
Shared fixtures: isolate configuration caches and environment per test.
"""
import os
import pytest
import config
import credentials

CONFIG_ENV_VARS = (
    'CREDENTIAL_SOURCE', 'LIGHTSAIL_CONFIG_FILE', 'LIGHTSAIL_CREDENTIALS_FILE',
    'AWS_ACCESS_KEY_ID', 'AWS_SECRET_ACCESS_KEY', 'SECRET_TOLERANCE_SECONDS',
    'DNS_CONFIG_FILE', 'DNS_SECRET_NAME', 'CLOUDFLARE_API_URL', 'LOG_LEVEL',
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Reset cached config and DNS accounts, and drop config env vars."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv('AWS_REGION', 'us-east-1')
    config._config = None
    credentials._dns_accounts = None
    yield
    config._config = None
    credentials._dns_accounts = None


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so moto never touches a real account."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture
def dns_config_file(tmp_path, monkeypatch):
    """Write a DNS account list and point DNS_CONFIG_FILE at it."""
    path = tmp_path / 'config.json'
    path.write_text(
        '[{"apikey": "file-key", "apiemail": "ops@example.com", '
        '"domain": "example.com", "profiles": ["prod"]}]'
    )
    monkeypatch.setenv('DNS_CONFIG_FILE', str(path))
    return path


class FakeLightsailClient:
    """
    In-memory stand-in for the boto3 Lightsail client's static IP calls.

    Each allocation hands out the next address from 203.0.113.0/24 so tests
    can tell consecutive IPs apart. ``calls`` records the call order.
    """

    def __init__(self, static_ips=None):
        self.static_ips = {ip['name']: dict(ip) for ip in (static_ips or [])}
        self.calls = []
        self._next_host = 10

    def get_static_ips(self, **kwargs):
        self.calls.append(('get_static_ips', kwargs))
        return {'staticIps': [dict(ip) for ip in self.static_ips.values()]}

    def release_static_ip(self, staticIpName):
        self.calls.append(('release_static_ip', staticIpName))
        del self.static_ips[staticIpName]
        return {'operations': [{'resourceName': staticIpName, 'status': 'Succeeded'}]}

    def allocate_static_ip(self, staticIpName):
        self.calls.append(('allocate_static_ip', staticIpName))
        self.static_ips[staticIpName] = {
            'name': staticIpName,
            'ipAddress': f'203.0.113.{self._next_host}',
            'isAttached': False,
        }
        self._next_host += 1
        return {'operations': [{'resourceName': staticIpName, 'operationType': 'AllocateStaticIp'}]}

    def attach_static_ip(self, staticIpName, instanceName):
        self.calls.append(('attach_static_ip', staticIpName, instanceName))
        self.static_ips[staticIpName].update(isAttached=True, attachedTo=instanceName)
        return {'operations': [{'resourceName': staticIpName, 'operationType': 'AttachStaticIp'}]}

    def get_static_ip(self, staticIpName):
        self.calls.append(('get_static_ip', staticIpName))
        return {
            'staticIp': dict(self.static_ips[staticIpName]),
            'ResponseMetadata': {'HTTPStatusCode': 200},
        }

    def call_names(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_lightsail_client():
    return FakeLightsailClient


@pytest.fixture
def dns_account():
    from credentials import DNSAccount
    return DNSAccount(
        api_key='cf-key', api_email='ops@example.com',
        domain='example.com', profiles=['prod'],
    )
