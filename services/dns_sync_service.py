"""
DNS sync: move A records from a released static IP to its replacement.

Sync is a side effect of IP reassignment. The static IP has already changed
by the time it runs, so every failure here is logged and reported in the
summary, never raised.
"""
from dataclasses import dataclass, field
from typing import Callable, List, Optional
from config import get_config
from credentials import DNSAccount
from logger_config import get_logger
from services.cloudflare_service import CloudflareService
from utils.exceptions import DNSSyncError

logger = get_logger(__name__)


@dataclass
class SyncResult:
    """Outcome of one sync run."""

    old_ip: str
    new_ip: str
    updated: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _default_client_factory(account: DNSAccount) -> CloudflareService:
    return CloudflareService(
        account.api_key, account.api_email, api_url=get_config().cloudflare_api_url
    )


class DNSSyncService:
    """Rewrites A records that still point at an old IP."""

    def __init__(
        self,
        accounts: Optional[List[DNSAccount]] = None,
        client_factory: Optional[Callable[[DNSAccount], CloudflareService]] = None,
        account_loader: Optional[Callable[[], List[DNSAccount]]] = None
    ) -> None:
        self.accounts = accounts
        self.client_factory = client_factory or _default_client_factory
        self.account_loader = account_loader

    def load_accounts(self) -> List[DNSAccount]:
        """
        Return the configured accounts, reading them on first use.

        Raises:
            DNSSyncError: If the DNS configuration cannot be loaded
        """
        if self.accounts is None:
            if self.account_loader is None:
                self.accounts = []
            else:
                try:
                    self.accounts = self.account_loader()
                except (ValueError, OSError) as e:
                    raise DNSSyncError(f'DNS configuration unavailable: {str(e)}') from e
        return self.accounts

    def accounts_for(self, profile: str) -> List[DNSAccount]:
        return [account for account in self.load_accounts() if account.manages(profile)]

    def sync(self, profile: str, old_ip: Optional[str], new_ip: str) -> SyncResult:
        """
        Update every A record whose content equals ``old_ip``.

        Args:
            profile: Profile that owns the instance
            old_ip: Address that was released, nothing happens when empty
            new_ip: Address now attached to the instance

        Returns:
            SyncResult listing updated record names and logged errors
        """
        result = SyncResult(old_ip=old_ip or '', new_ip=new_ip)
        if not old_ip:
            logger.info('No previous static IP, skipping DNS sync')
            return result

        try:
            accounts = self.accounts_for(profile)
        except DNSSyncError as e:
            logger.error(f'DNS sync {old_ip} -> {new_ip} skipped: {e.message}')
            result.errors.append(e.message)
            return result
        if not accounts:
            logger.info(f'Profile {profile} has no DNS account configured, skipping DNS sync')
            return result

        for account in accounts:
            self._sync_account(account, result)

        logger.info(
            f'DNS sync {old_ip} -> {new_ip} finished: '
            f'{len(result.updated)} updated, {len(result.errors)} error(s)'
        )
        return result

    def _sync_account(self, account: DNSAccount, result: SyncResult) -> None:
        client = self.client_factory(account)
        try:
            zone_id = client.get_zone_id(account.domain)
            records = client.list_a_records(zone_id, result.old_ip)
        except DNSSyncError as e:
            e.domain = e.domain or account.domain
            logger.error(f'DNS sync for {account.domain} aborted: {e.message}')
            result.errors.append(f'{account.domain}: {e.message}')
            return

        if not records:
            logger.info(f'No A records in {account.domain} point at {result.old_ip}')

        for record in records:
            logger.info(
                f"Record is {record.get('name')}: {record.get('content')}, {record.get('id')}"
            )
            try:
                client.update_a_record(zone_id, record, result.new_ip)
            except DNSSyncError as e:
                logger.error(f"Failed to update DNS record {record.get('name')}: {e.message}")
                result.errors.append(f"{record.get('name')}: {e.message}")
                continue
            result.updated.append(record.get('name'))
