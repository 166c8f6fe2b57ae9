# storefront/services/identity_client.py
import requests

from storefront.domain.errors import AuthenticationRequired
from storefront.utils.retry import http_retry
from storefront.utils.settings import IDENTITY_SERVICE_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class IdentityClient:
    """Zewnetrzny dostawca tozsamosci: token -> id konta."""

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or IDENTITY_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def resolve_account(self, token: str) -> str:
        url = f"{self.base_url}/verify"
        logger.info(f"IdentityClient GET {url}")

        resp = requests.get(
            url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.timeout,
        )
        #401/403 to odpowiedz, nie blad sieci - bez retry
        if resp.status_code in (401, 403):
            raise AuthenticationRequired("Niepoprawny token uwierzytelniajacy")
        resp.raise_for_status()

        account_id = resp.json().get("account_id")
        if not account_id:
            raise AuthenticationRequired("Dostawca tozsamosci nie zwrocil id konta")
        return str(account_id)
