from __future__ import annotations

import os
import threading
from typing import Mapping, Optional

import requests

from .config import ECS_METADATA_ENV, IMDS_BASE_URL, METADATA_TIMEOUT, TOKEN_TTL_SECONDS
from .logging_setup import get_logger

logger = get_logger(__name__)

AZ_PATH = "/latest/meta-data/placement/availability-zone"
TOKEN_PATH = "/latest/api/token"
TOKEN_TTL_HEADER = "X-aws-ec2-metadata-token-ttl-seconds"
TOKEN_HEADER = "X-aws-ec2-metadata-token"


class MetadataProbe:
    """Find the availability zone this process runs in.

    Tries, in order and stopping at the first non-empty answer:

    1. ECS task metadata (``$ECS_CONTAINER_METADATA_URI_V4/task``)
    2. EC2 instance metadata, IMDSv1
    3. EC2 instance metadata, IMDSv2 (token first, then the same path)

    Every failure is logged and falls through to the next step. The result
    of the first complete run is kept for the life of the process, even
    when it is empty.
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        session: Optional[requests.Session] = None,
        imds_base_url: str = IMDS_BASE_URL,
        timeout: float = METADATA_TIMEOUT,
    ) -> None:
        self.environ = os.environ if environ is None else environ
        self.session = session or requests.Session()
        self.imds_base_url = imds_base_url.rstrip("/")
        self.timeout = timeout
        self._az: Optional[str] = None
        self._lock = threading.Lock()

    def availability_zone(self) -> str:
        if self._az is not None:
            return self._az
        with self._lock:
            if self._az is None:
                self._az = self._probe()
                logger.debug("availability zone resolved: %r", self._az)
            return self._az

    def _probe(self) -> str:
        az = self.from_ecs()
        if az:
            return az
        az = self.from_imds_v1()
        if az:
            return az
        # On IMDSv2-only hosts v1 is rejected, so this is the last word
        return self.from_imds_v2()

    # === Individual steps ===

    def from_ecs(self) -> str:
        base = self.environ.get(ECS_METADATA_ENV)
        if not base:
            logger.warning("ERROR - %s is not set", ECS_METADATA_ENV)
            return ""
        try:
            resp = self.session.get(base.rstrip("/") + "/task", timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("ERROR - http.get from %s: %s", ECS_METADATA_ENV, exc)
            return ""
        try:
            task = resp.json()
        except ValueError as exc:
            logger.warning("ERROR - Decode %s: %s", ECS_METADATA_ENV, exc)
            return ""
        if not isinstance(task, dict):
            logger.warning("ERROR - Decode %s: task metadata is not an object", ECS_METADATA_ENV)
            return ""
        az = task.get("AvailabilityZone") or ""
        if not isinstance(az, str):
            logger.warning("ERROR - Decode %s: AvailabilityZone is not a string", ECS_METADATA_ENV)
            return ""
        return az

    def from_imds_v1(self) -> str:
        try:
            resp = self.session.get(self.imds_base_url + AZ_PATH, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("ERROR - http.get from IMDSv1: %s", exc)
            return ""
        return resp.text

    def from_imds_v2(self) -> str:
        try:
            token_resp = self.session.put(
                self.imds_base_url + TOKEN_PATH,
                headers={TOKEN_TTL_HEADER: str(TOKEN_TTL_SECONDS)},
                timeout=self.timeout,
            )
            token_resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("ERROR - http.put from IMDSv2 token: %s", exc)
            return ""
        try:
            resp = self.session.get(
                self.imds_base_url + AZ_PATH,
                headers={TOKEN_HEADER: token_resp.text},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("ERROR - http.get from IMDSv2: %s", exc)
            return ""
        return resp.text
