"""
Credential resolution for the Lightsail and Cloudflare clients.

Lightsail clients are built either from named profiles in dedicated shared
config/credentials files or from a static access key pair. The Cloudflare
accounts used for DNS sync come from Secrets Manager, with the JSON config
file as fallback.
"""
import json
from dataclasses import dataclass, field
from typing import Any, List, Optional

import boto3
import botocore.session
from botocore.exceptions import BotoCoreError, ClientError

from config import Config, get_config
from logger_config import get_logger
from utils.exceptions import CredentialError

logger = get_logger(__name__)


class ProfileFileCredentials:
    """Resolve credentials from a named profile in shared config files."""

    def __init__(self, config_file: str, credentials_file: str) -> None:
        self.config_file = config_file
        self.credentials_file = credentials_file

    def session(self, region: str, profile: str) -> boto3.Session:
        core_session = botocore.session.Session()
        core_session.set_config_variable('config_file', self.config_file)
        core_session.set_config_variable('credentials_file', self.credentials_file)
        return boto3.Session(
            botocore_session=core_session,
            profile_name=profile,
            region_name=region,
        )


class StaticKeyCredentials:
    """Use one fixed access key pair; the request profile is ignored."""

    def __init__(self, access_key_id: str, secret_access_key: str) -> None:
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key

    def session(self, region: str, profile: str) -> boto3.Session:
        return boto3.Session(
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            region_name=region,
        )


def credential_provider_from_config(config: Config):
    """Pick the credential strategy named by ``CREDENTIAL_SOURCE``."""
    if config.credential_source == 'static':
        return StaticKeyCredentials(
            config.aws_access_key_id, config.aws_secret_access_key
        )
    return ProfileFileCredentials(
        config.lightsail_config_file, config.lightsail_credentials_file
    )


def lightsail_client(region: str, profile: str, provider=None) -> Any:
    """
    Build a Lightsail client for a region/profile pair.

    Args:
        region: AWS region name
        profile: Profile name, used by the profile-file strategy
        provider: Credential strategy, defaults to the configured one

    Returns:
        boto3 Lightsail client

    Raises:
        CredentialError: If the profile or key pair cannot be loaded
    """
    if provider is None:
        provider = credential_provider_from_config(get_config())
    try:
        return provider.session(region, profile).client('lightsail')
    except (BotoCoreError, ClientError) as e:
        logger.error(f'Failed to load AWS config for profile {profile} in {region}: {str(e)}')
        raise CredentialError(f'failed to load AWS config: {str(e)}', profile=profile) from e


@dataclass
class DNSAccount:
    """Cloudflare account and zone that serves the DNS of some profiles."""

    api_key: str
    api_email: str
    domain: str
    profiles: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "DNSAccount":
        if not isinstance(data, dict):
            raise ValueError(f"DNS account entry must be an object, got: {data!r}")
        missing = [k for k in ('apikey', 'apiemail', 'domain') if not data.get(k)]
        if missing:
            raise ValueError(f"DNS account entry is missing {', '.join(missing)}")
        profiles = data.get('profiles') or []
        if isinstance(profiles, str):
            profiles = [profiles]
        if not isinstance(profiles, list) or not all(isinstance(p, str) for p in profiles):
            raise ValueError(
                f"DNS account profiles must be a string or a list of strings, got: {profiles!r}"
            )
        return cls(
            api_key=data['apikey'],
            api_email=data['apiemail'],
            domain=data['domain'],
            profiles=list(profiles),
        )

    def manages(self, profile: str) -> bool:
        return profile in self.profiles

    def __repr__(self) -> str:
        return (
            f"DNSAccount(api_email={self.api_email!r}, domain={self.domain!r}, "
            f"profiles={self.profiles!r})"
        )


def parse_dns_accounts(raw: str) -> List[DNSAccount]:
    """
    Parse the JSON list of DNS accounts.

    Raises:
        ValueError: If the document is not a list of valid entries.
    """
    entries = json.loads(raw)
    if isinstance(entries, dict):
        entries = [entries]
    if not isinstance(entries, list):
        raise ValueError("DNS config must be a JSON list of account objects")
    return [DNSAccount.from_dict(entry) for entry in entries]


def _accounts_from_secret(config: Config) -> Optional[List[DNSAccount]]:
    try:
        secrets_client = boto3.client(
            'secretsmanager', region_name=config.aws_region
        )
        response = secrets_client.get_secret_value(SecretId=config.dns_secret_name)
        accounts = parse_dns_accounts(response['SecretString'])
        logger.info(
            f'Loaded {len(accounts)} DNS account(s) from '
            f'Secrets Manager: {config.dns_secret_name}'
        )
        return accounts
    except (BotoCoreError, ClientError, ValueError, KeyError) as e:
        logger.warning(
            f'Failed to load DNS accounts from Secrets Manager '
            f'({config.dns_secret_name}): {str(e)}. '
            f'Falling back to {config.dns_config_file}.'
        )
        return None


def _accounts_from_file(config: Config) -> List[DNSAccount]:
    try:
        with open(config.dns_config_file, 'r') as f:
            accounts = parse_dns_accounts(f.read())
    except FileNotFoundError:
        logger.warning(
            f'DNS config file {config.dns_config_file} not found, DNS sync disabled'
        )
        return []
    logger.info(f'Loaded {len(accounts)} DNS account(s) from {config.dns_config_file}')
    return accounts


_dns_accounts: Optional[List[DNSAccount]] = None


def get_dns_accounts() -> List[DNSAccount]:
    """
    Load the DNS accounts once per process.

    Secrets Manager is tried first when ``DNS_SECRET_NAME`` is set, then the
    JSON file at ``DNS_CONFIG_FILE``. A missing file means no DNS sync.

    Raises:
        ValueError: If the config file exists but is malformed.
    """
    global _dns_accounts
    if _dns_accounts is None:
        config = get_config()
        accounts = None
        if config.dns_secret_name:
            accounts = _accounts_from_secret(config)
        if accounts is None:
            accounts = _accounts_from_file(config)
        _dns_accounts = accounts
    return _dns_accounts
