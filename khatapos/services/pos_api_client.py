"""HTTP client for the remote shop backend (sales, inventory, customers, khata)."""
import logging
import os
from typing import Dict, Any, Optional, List

import requests

logger = logging.getLogger(__name__)


class PosApiClient:
    """Thin client for the backend REST API."""

    DEFAULT_BASE_URL = "http://localhost:5000/api"

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None, timeout: int = 10, http=None):
        """
        Initialize the backend client.

        Args:
            base_url: API root. If None, reads from env POS_API_BASE_URL
            token: Bearer token. If None, reads from env POS_API_TOKEN
            timeout: Per-request timeout in seconds
            http: requests-compatible session (defaults to a new requests.Session)
        """
        self.base_url = (base_url or os.getenv('POS_API_BASE_URL') or self.DEFAULT_BASE_URL).rstrip('/')
        self.token = token or os.getenv('POS_API_TOKEN')
        self.timeout = timeout
        self.http = http or requests.Session()

        self.headers = {'Content-Type': 'application/json'}
        if self.token:
            self.headers['Authorization'] = f'Bearer {self.token}'

    @classmethod
    def from_config(cls, config) -> 'PosApiClient':
        return cls(
            base_url=config.get('POS_API_BASE_URL'),
            token=config.get('POS_API_TOKEN'),
            timeout=int(config.get('POS_API_TIMEOUT', 10)),
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        """
        Perform a request and return the decoded JSON body.

        Raises:
            requests.HTTPError: if the backend answers with an error status
            requests.RequestException: on transport failures
        """
        url = self._url(path)
        try:
            response = self.http.request(method, url, json=payload, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            if not response.content:
                return None
            return response.json()
        except requests.HTTPError as e:
            body = e.response.text if e.response is not None else ''
            logger.error(f"[API] {method} {path} failed: {body[:300]}")
            raise
        except requests.RequestException as e:
            logger.error(f"[API] {method} {path} transport error: {str(e)}")
            raise

    # Catalog / customers (read-only)

    def get_inventory(self) -> List[Dict[str, Any]]:
        return self._request('GET', '/inventory') or []

    def get_customers(self) -> List[Dict[str, Any]]:
        return self._request('GET', '/customers') or []

    # Sales

    def create_sale(self, sale: Dict[str, Any]) -> Dict[str, Any]:
        logger.info(
            f"[API] Creating sale: total={sale.get('totalAmount')} "
            f"method={sale.get('paymentMethod')} customer={sale.get('customerId')}"
        )
        return self._request('POST', '/sales', sale) or {}

    # Khata

    def add_khata_entry(self, customer_id: str, entry: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('POST', f'/customers/{customer_id}/khata', entry) or {}

    def update_customer_credit(self, customer_id: str, amount_change: float) -> Dict[str, Any]:
        return self._request('PUT', f'/customers/{customer_id}/credit', {'amountChange': amount_change}) or {}

    def close(self) -> None:
        """Release the pooled HTTP connections."""
        self.http.close()
