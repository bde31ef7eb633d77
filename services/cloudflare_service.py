"""
Cloudflare API service for zone and DNS record calls.
"""
import requests
from typing import Dict, Any, List, Optional
from config import DEFAULT_CLOUDFLARE_API_URL
from logger_config import get_logger
from utils.exceptions import DNSSyncError

logger = get_logger(__name__)

# Cloudflare treats a TTL of 1 as "automatic"
AUTOMATIC_TTL = 1


class CloudflareService:
    """Service for Cloudflare v4 API operations, authenticated by global API key."""

    def __init__(
        self,
        api_key: str,
        api_email: str,
        api_url: str = DEFAULT_CLOUDFLARE_API_URL,
        timeout: int = 30
    ) -> None:
        """
        Initialize Cloudflare service.

        Args:
            api_key: Global API key of the account
            api_email: Email address of the account
            api_url: Base v4 API URL
            timeout: Per-request timeout in seconds
        """
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.headers: Dict[str, str] = {
            'X-Auth-Key': api_key,
            'X-Auth-Email': api_email,
            'Content-Type': 'application/json',
        }

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Send one API request and return the decoded envelope.

        Raises:
            DNSSyncError: On transport errors, HTTP errors or ``success: false``
        """
        url = f"{self.api_url}{path}"
        try:
            response = requests.request(
                method,
                url,
                headers=self.headers,
                params=params,
                json=json_body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            status_code = getattr(getattr(e, 'response', None), 'status_code', None)
            logger.error(f'Cloudflare {method} {path} failed: {str(e)}')
            raise DNSSyncError(
                f"Cloudflare {method} {path} failed: {str(e)}",
                status_code=status_code,
            ) from e
        except ValueError as e:
            raise DNSSyncError(f"Cloudflare {method} {path} returned invalid JSON") from e

        if not payload.get('success', False):
            errors = payload.get('errors') or []
            detail = '; '.join(str(err.get('message', err)) for err in errors) or 'unknown error'
            raise DNSSyncError(f"Cloudflare {method} {path} failed: {detail}")
        return payload

    def get_zone_id(self, domain: str) -> str:
        """
        Resolve the zone ID of a domain.

        Raises:
            DNSSyncError: If the API call fails or no zone has that name
        """
        payload = self._request('GET', '/zones', params={'name': domain})
        zones = payload.get('result') or []
        if not zones:
            raise DNSSyncError(f"zone not found for domain {domain}", domain=domain)
        return zones[0]['id']

    def list_a_records(self, zone_id: str, content: str) -> List[Dict[str, Any]]:
        """
        List the A records of a zone whose content is exactly ``content``.

        Args:
            zone_id: Cloudflare zone ID
            content: IPv4 address the records must point to

        Returns:
            List of DNS record dictionaries
        """
        records: List[Dict[str, Any]] = []
        page = 1
        while True:
            payload = self._request(
                'GET',
                f'/zones/{zone_id}/dns_records',
                params={'type': 'A', 'content': content, 'page': page, 'per_page': 100},
            )
            records.extend(payload.get('result') or [])
            total_pages = (payload.get('result_info') or {}).get('total_pages', 1)
            if page >= total_pages:
                break
            page += 1
        # Server-side filtering is not trusted to be exact
        return [r for r in records if r.get('type') == 'A' and r.get('content') == content]

    def update_a_record(self, zone_id: str, record: Dict[str, Any], new_ip: str) -> Dict[str, Any]:
        """
        Point an existing A record at ``new_ip`` with automatic TTL.

        Returns:
            The updated record as returned by Cloudflare
        """
        body = {
            'type': 'A',
            'name': record['name'],
            'content': new_ip,
            'ttl': AUTOMATIC_TTL,
        }
        if 'proxied' in record:
            body['proxied'] = record['proxied']
        payload = self._request(
            'PUT', f"/zones/{zone_id}/dns_records/{record['id']}", json_body=body
        )
        logger.info(f"Updated A record {record['name']}: {record.get('content')} -> {new_ip}")
        return payload.get('result') or {}
