from __future__ import annotations

import threading
from functools import lru_cache
from typing import Any, Dict, Optional

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from loguru import logger

from deadline_push.config import get_settings
from deadline_push.notifications.delivery import (
    Delivered,
    DeliveryResult,
    Failed,
    PushGateway,
)

FCM_API_BASE = "https://fcm.googleapis.com/v1/projects"
FCM_SCOPES = ["https://www.googleapis.com/auth/firebase.messaging"]
SEND_MESSAGE_TIMEOUT = 10  # seconds


class FcmSender(PushGateway):
    """Send push messages via Firebase Cloud Messaging (HTTP v1)."""

    def __init__(self):
        settings = get_settings()
        self.project_id = settings.fcm_project_id
        self.credentials_path = settings.fcm_credentials_path
        self._credentials: Optional[service_account.Credentials] = None
        self._token_lock = threading.Lock()

    @classmethod
    def is_configured(cls) -> bool:
        """Check if the FCM project and service account are set."""
        settings = get_settings()
        return bool(settings.fcm_project_id and settings.fcm_credentials_path)

    def _access_token(self) -> str:
        with self._token_lock:
            if self._credentials is None:
                self._credentials = service_account.Credentials.from_service_account_file(
                    self.credentials_path, scopes=FCM_SCOPES
                )
            if not self._credentials.valid:
                self._credentials.refresh(Request())
            return self._credentials.token

    def send(self, message: Dict[str, Any]) -> DeliveryResult:
        """Send one message.

        Args:
            message: FCM v1 message body (token plus data/notification).

        Returns:
            Delivered on a 2xx answer, Failed with the reason otherwise.
        """
        try:
            access_token = self._access_token()
        except (GoogleAuthError, OSError, ValueError) as e:
            logger.error(f"FCM credentials unavailable: {e}")
            return Failed(f"credentials unavailable: {e}")

        url = f"{FCM_API_BASE}/{self.project_id}/messages:send"
        headers = {"Authorization": f"Bearer {access_token}"}

        try:
            with httpx.Client(timeout=SEND_MESSAGE_TIMEOUT) as client:
                response = client.post(url, json={"message": message}, headers=headers)
                response.raise_for_status()

            logger.debug("FCM message sent")
            return Delivered()
        except httpx.HTTPStatusError as e:
            logger.error(f"FCM API error: {e.response.status_code} - {e.response.text}")
            return Failed(f"{e.response.status_code}: {e.response.text[:500]}")
        except httpx.RequestError as e:
            logger.error(f"FCM request failed: {e}")
            return Failed(str(e) or e.__class__.__name__)


@lru_cache
def get_push_gateway() -> PushGateway:
    return FcmSender()
