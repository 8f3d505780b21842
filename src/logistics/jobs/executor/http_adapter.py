"""HTTP job executor — publishes jobs to a message relay that calls back.

The relay (QStash-style) receives ``POST <publish_url><callback_url>`` with a
bearer token and delivers the JSON body to the worker endpoint, retrying on
its side. The callback must be publicly reachable, so a localhost base URL
disables the executor.

The relay signs every callback with an HS256 JWT in the ``Upstash-Signature``
header. Its ``body`` claim is the unpadded base64url SHA-256 of the raw
request body. Either the current or the next signing key may have signed it
while keys rotate.
"""

import base64
import hashlib
import hmac
from urllib.parse import urlparse

import jwt
import requests
import structlog

from logistics.jobs.executor.port import JobExecutor
from logistics.shared.errors import JobHandoffError

logger = structlog.get_logger(__name__)

DEFAULT_PUBLISH_URL = "https://qstash.upstash.io/v2/publish/"
WORKER_PATH = "/jobs/process-shipment"
_LOCAL_HOSTS = {"localhost", "127.0.0.1", "0.0.0.0", "::1"}
SIGNATURE_ISSUER = "Upstash"


def is_public_url(url: str | None) -> bool:
    if not url:
        return False
    host = urlparse(url).hostname
    return bool(host) and host not in _LOCAL_HOSTS


def body_digest(body: bytes) -> str:
    return base64.urlsafe_b64encode(hashlib.sha256(body).digest()).decode().rstrip("=")


class HttpJobExecutor(JobExecutor):
    def __init__(
        self,
        token: str | None,
        public_app_url: str | None,
        publish_url: str = DEFAULT_PUBLISH_URL,
        retries: int = 3,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        signing_key: str | None = None,
        next_signing_key: str | None = None,
    ) -> None:
        self.token = token
        self.public_app_url = public_app_url.rstrip("/") if public_app_url else None
        self.publish_url = publish_url
        self.retries = retries
        self.timeout = timeout
        self.session = session or requests.Session()
        self.signing_keys = [k for k in (signing_key, next_signing_key) if k]

    def is_available(self) -> bool:
        return bool(self.token) and is_public_url(self.public_app_url)

    @property
    def callback_url(self) -> str:
        return f"{self.public_app_url}{WORKER_PATH}"

    def submit(self, job_id: str, job_type: str, body: dict) -> None:
        if not self.is_available():
            raise JobHandoffError("HTTP job executor is not configured")
        try:
            response = self.session.post(
                f"{self.publish_url}{self.callback_url}",
                json=body,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Upstash-Retries": str(self.retries),
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Job publish failed", job_id=job_id, job_type=job_type, error=str(exc))
            raise JobHandoffError(f"Job publish failed: {exc}") from exc
        logger.info("Job published", job_id=job_id, job_type=job_type)

    def verify_callback_signature(self, body: bytes, signature: str) -> bool:
        if not signature or not self.signing_keys:
            return False
        for key in self.signing_keys:
            try:
                claims = jwt.decode(
                    signature,
                    key,
                    algorithms=["HS256"],
                    issuer=SIGNATURE_ISSUER,
                    options={"require": ["exp", "nbf", "iss"]},
                )
            except jwt.InvalidTokenError:
                continue
            # Claim may carry base64 padding
            return hmac.compare_digest(str(claims.get("body", "")).rstrip("="), body_digest(body))
        logger.warning("Callback signature rejected")
        return False
