"""
Lightsail service for instance and static IP operations.
"""
from typing import Dict, Any, List, Optional, TYPE_CHECKING
from botocore.exceptions import BotoCoreError, ClientError
from credentials import lightsail_client
from logger_config import get_logger
from utils.exceptions import ProviderError

if TYPE_CHECKING:
    from mypy_boto3_lightsail import LightsailClient
else:
    LightsailClient = Any

logger = get_logger(__name__)


def _error_message(error: Exception) -> str:
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Message') or str(error)
    return str(error)


class LightsailService:
    """Service for Lightsail operations in one region/profile."""

    def __init__(
        self,
        region: str,
        profile: str,
        client: Optional[LightsailClient] = None
    ) -> None:
        """
        Initialize Lightsail service.

        Args:
            region: AWS region name
            profile: Credential profile name
            client: Prebuilt Lightsail client, built lazily when omitted
        """
        self.region = region
        self.profile = profile
        self._client: Optional[LightsailClient] = client

    @property
    def client(self) -> LightsailClient:
        """Lazy initialization of Lightsail client."""
        if self._client is None:
            self._client = lightsail_client(self.region, self.profile)
        return self._client

    def _call(self, step: str, resource: Optional[str], method: str, **kwargs) -> Dict[str, Any]:
        """Run one client call, turning SDK errors into ProviderError."""
        try:
            response = getattr(self.client, method)(**kwargs)
        except (BotoCoreError, ClientError) as e:
            message = _error_message(e)
            logger.error(
                f'Lightsail {method} failed in {self.region} '
                f'(profile {self.profile}, resource {resource}): {message}'
            )
            raise ProviderError(message, step=step, resource=resource) from e
        response.pop('ResponseMetadata', None)
        return response

    def list_instances(self) -> List[Dict[str, Any]]:
        """
        List every instance in the region, following page tokens.

        Returns:
            List of Lightsail instance dictionaries
        """
        instances: List[Dict[str, Any]] = []
        kwargs: Dict[str, str] = {}
        while True:
            response = self._call('list', None, 'get_instances', **kwargs)
            instances.extend(response.get('instances', []))
            token = response.get('nextPageToken')
            if not token:
                break
            kwargs = {'pageToken': token}
        logger.info(f'Listed {len(instances)} instances in {self.region}')
        return instances

    def get_instance(self, instance_name: str) -> Dict[str, Any]:
        return self._call('status', instance_name, 'get_instance', instanceName=instance_name)

    def start_instance(self, instance_name: str) -> Dict[str, Any]:
        logger.info(f'Starting instance {instance_name} in {self.region}')
        return self._call('poweron', instance_name, 'start_instance', instanceName=instance_name)

    def stop_instance(self, instance_name: str) -> Dict[str, Any]:
        logger.info(f'Stopping instance {instance_name} in {self.region}')
        return self._call('poweroff', instance_name, 'stop_instance', instanceName=instance_name)

    def reboot_instance(self, instance_name: str) -> Dict[str, Any]:
        logger.info(f'Rebooting instance {instance_name} in {self.region}')
        return self._call('reset', instance_name, 'reboot_instance', instanceName=instance_name)

    def list_static_ips(self) -> List[Dict[str, Any]]:
        """
        List every static IP in the region, following page tokens.

        Returns:
            List of static IP dictionaries (``name``, ``ipAddress``,
            ``isAttached``, ``attachedTo``)
        """
        static_ips: List[Dict[str, Any]] = []
        kwargs: Dict[str, str] = {}
        while True:
            response = self._call('list', None, 'get_static_ips', **kwargs)
            static_ips.extend(response.get('staticIps', []))
            token = response.get('nextPageToken')
            if not token:
                break
            kwargs = {'pageToken': token}
        return static_ips

    def release_static_ip(self, static_ip_name: str) -> Dict[str, Any]:
        logger.info(f'Releasing static IP {static_ip_name} in {self.region}')
        return self._call('release', static_ip_name, 'release_static_ip', staticIpName=static_ip_name)

    def allocate_static_ip(self, static_ip_name: str) -> Dict[str, Any]:
        logger.info(f'Allocating static IP {static_ip_name} in {self.region}')
        return self._call('allocate', static_ip_name, 'allocate_static_ip', staticIpName=static_ip_name)

    def attach_static_ip(self, static_ip_name: str, instance_name: str) -> Dict[str, Any]:
        logger.info(f'Attaching static IP {static_ip_name} to {instance_name}')
        return self._call(
            'attach',
            static_ip_name,
            'attach_static_ip',
            staticIpName=static_ip_name,
            instanceName=instance_name,
        )

    def get_static_ip(self, static_ip_name: str) -> Dict[str, Any]:
        return self._call('lookup', static_ip_name, 'get_static_ip', staticIpName=static_ip_name)
