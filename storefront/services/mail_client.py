# storefront/services/mail_client.py
import requests

from storefront.utils.retry import http_retry
from storefront.utils.settings import MAIL_SERVICE_URL, MAIL_FROM, APP_NAME
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class MailClient:
    """
    Klient HTTP do mail relay. Relay renderuje szablon po template_key,
    my wysylamy tylko odbiorce i zmienne.
    """

    def __init__(self, base_url: str | None = None, timeout: int = 5, sender: str = MAIL_FROM):
        self.base_url = (base_url or MAIL_SERVICE_URL).rstrip("/")
        self.timeout = timeout
        self.sender = sender

    @http_retry()
    def send(self, recipient: str, template_key: str, variables: dict) -> dict:
        url = f"{self.base_url}/messages"
        logger.info(f"MailClient POST {url} template={template_key} to={recipient}")

        resp = requests.post(
            url,
            json={
                "from": self.sender,
                "to": recipient,
                "template": template_key,
                "variables": {"app_name": APP_NAME, **variables},
            },
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json() if resp.content else {}
