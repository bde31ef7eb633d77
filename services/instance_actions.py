"""
Instance actions exposed by ``/api/instance`` and their dispatch table.
"""
from enum import Enum
from typing import Callable, Dict, Any, Optional
from services.dns_sync_service import DNSSyncService
from services.ip_reassignment_service import IPReassignmentService
from services.lightsail_service import LightsailService
from utils.exceptions import UnknownActionError


class InstanceAction(Enum):
    RESET = 'reset'
    POWEROFF = 'poweroff'
    POWERON = 'poweron'
    STATUS = 'status'
    CHANGEIP = 'changeip'

    @classmethod
    def parse(cls, value: str) -> "InstanceAction":
        """
        Map the ``action`` query parameter to an action.

        Raises:
            UnknownActionError: If the value names no action
        """
        try:
            return cls(value)
        except ValueError:
            raise UnknownActionError(value, [action.value for action in cls])


ActionRunner = Callable[[LightsailService, str, Optional[DNSSyncService]], Dict[str, Any]]


def _change_ip(
    lightsail: LightsailService,
    instance_name: str,
    dns_sync: Optional[DNSSyncService]
) -> Dict[str, Any]:
    return IPReassignmentService(lightsail, dns_sync).change_ip(instance_name)


ACTION_RUNNERS: Dict[InstanceAction, ActionRunner] = {
    InstanceAction.RESET: lambda ls, name, _: ls.reboot_instance(name),
    InstanceAction.POWEROFF: lambda ls, name, _: ls.stop_instance(name),
    InstanceAction.POWERON: lambda ls, name, _: ls.start_instance(name),
    InstanceAction.STATUS: lambda ls, name, _: ls.get_instance(name),
    InstanceAction.CHANGEIP: _change_ip,
}

_unmapped = set(InstanceAction) - set(ACTION_RUNNERS)
if _unmapped:
    raise RuntimeError(f"No runner for instance action(s): {sorted(a.value for a in _unmapped)}")


def run_action(
    action: InstanceAction,
    lightsail: LightsailService,
    instance_name: str,
    dns_sync: Optional[DNSSyncService] = None
) -> Dict[str, Any]:
    """
    Run one action against an instance.

    Returns:
        The provider response for the action

    Raises:
        ProviderError: If the provider call fails
    """
    return ACTION_RUNNERS[action](lightsail, instance_name, dns_sync)
