"""
Static IP reassignment: give an instance a fresh static IP and move its DNS.
"""
from typing import Dict, Any, Optional
from logger_config import get_logger
from services.dns_sync_service import DNSSyncService
from services.lightsail_service import LightsailService
from utils.exceptions import MultipleStaticIPsError

logger = get_logger(__name__)

STATIC_IP_NAME_TEMPLATE = 'IP-{instance_name}'


def static_ip_name_for(instance_name: str) -> str:
    """Name of the static IP allocated for an instance."""
    return STATIC_IP_NAME_TEMPLATE.format(instance_name=instance_name)


class IPReassignmentService:
    """
    Replace the static IP of an instance.

    The steps run in order and are not rolled back: list, release the
    attached IP, allocate ``IP-<instance>``, attach it, read it back. A
    failing step raises ProviderError naming that step. DNS sync runs
    afterwards and can only log.
    """

    def __init__(
        self,
        lightsail: LightsailService,
        dns_sync: Optional[DNSSyncService] = None
    ) -> None:
        self.lightsail = lightsail
        self.dns_sync = dns_sync

    def release_attached(self, instance_name: str) -> Optional[str]:
        """
        Release the static IP attached to the instance.

        Returns:
            The released address, or None when nothing was attached

        Raises:
            MultipleStaticIPsError: If more than one IP is attached; nothing
                is released in that case
        """
        attached = [
            ip for ip in self.lightsail.list_static_ips()
            if ip.get('attachedTo') == instance_name
        ]
        if not attached:
            logger.info(f'Instance {instance_name} has no static IP attached')
            return None
        if len(attached) > 1:
            raise MultipleStaticIPsError(instance_name, [ip['name'] for ip in attached])

        current = attached[0]
        old_ip = current.get('ipAddress')
        self.lightsail.release_static_ip(current['name'])
        logger.info(f"Released static IP {current['name']} ({old_ip}) from {instance_name}")
        return old_ip

    def change_ip(self, instance_name: str) -> Dict[str, Any]:
        """
        Run the reassignment workflow for one instance.

        Args:
            instance_name: Lightsail instance name

        Returns:
            The ``get_static_ip`` response describing the new static IP

        Raises:
            ProviderError: If any Lightsail step fails
        """
        old_ip = self.release_attached(instance_name)

        allocation = self.lightsail.allocate_static_ip(static_ip_name_for(instance_name))
        operations = allocation.get('operations') or []
        ip_name = (
            operations[0].get('resourceName') if operations else None
        ) or static_ip_name_for(instance_name)

        self.lightsail.attach_static_ip(ip_name, instance_name)

        new_static_ip = self.lightsail.get_static_ip(ip_name)
        new_ip = new_static_ip.get('staticIp', {}).get('ipAddress')
        logger.info(f'Instance {instance_name} static IP changed: {old_ip} -> {new_ip}')

        self._sync_dns(old_ip, new_ip)
        return new_static_ip

    def _sync_dns(self, old_ip: Optional[str], new_ip: Optional[str]) -> None:
        if self.dns_sync is None or not old_ip or not new_ip:
            return
        try:
            self.dns_sync.sync(self.lightsail.profile, old_ip, new_ip)
        except Exception as e:
            # The static IP already changed; DNS is best effort
            logger.error(f'DNS sync {old_ip} -> {new_ip} failed: {str(e)}', exc_info=True)
