"""
Fetches a single repository file through the GitHub "repository contents" API.

The API answers with either inline content (usually base64) or a download_url
that has to be fetched separately; both paths end in plain text.
"""

from __future__ import annotations

import base64
import binascii
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from tracker.core.config import SourceConfig
from tracker.services.errors import ContentFetchError

logger = logging.getLogger("github_content")

GITHUB_API = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
USER_AGENT = "internship-tracker/0.3 (+github-readme-ingest)"


@dataclass
class FetchedFile:
    content: str
    metadata: Dict[str, Any]


def decode_content(payload: Dict[str, Any]) -> Optional[str]:
    content = payload.get("content")
    if not content:
        return None
    if (payload.get("encoding") or "").lower() == "base64":
        try:
            return base64.b64decode(content).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ContentFetchError(f"undecodable base64 content for {payload.get('path')!r}") from e
    return str(content)


class GitHubContentClient:
    def __init__(
        self,
        token: Optional[str] = None,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
        attempts: int = 3,
    ):
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()
        self.attempts = max(1, attempts)

    def _headers(self, api: bool) -> Dict[str, str]:
        headers = {"User-Agent": USER_AGENT}
        if api:
            headers["Accept"] = "application/vnd.github+json"
            headers["X-GitHub-Api-Version"] = GITHUB_API_VERSION
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get(self, url: str, *, api: bool) -> requests.Response:
        last_exc: Optional[Exception] = None
        for attempt in range(self.attempts):
            try:
                r = self.session.get(url, headers=self._headers(api), timeout=self.timeout)
                r.raise_for_status()
                return r
            except requests.RequestException as e:
                last_exc = e
                logger.warning("[github] GET %s failed attempt=%s err=%s", url, attempt + 1, e)
                if attempt + 1 < self.attempts:
                    time.sleep(0.6 * (2**attempt) + (0.05 * attempt))
        raise ContentFetchError(f"GET {url} failed: {last_exc}") from last_exc

    def fetch(self, src: SourceConfig) -> FetchedFile:
        url = f"{GITHUB_API}/repos/{src.owner}/{src.repo}/contents/{src.path}"
        try:
            payload = self._get(url, api=True).json()
        except ValueError as e:
            raise ContentFetchError(f"non-JSON response from {url}") from e

        if not isinstance(payload, dict):
            # a directory listing comes back as a list
            raise ContentFetchError(f"{src.owner}/{src.repo}/{src.path} is not a file")

        content = decode_content(payload)
        if content is None:
            download_url = payload.get("download_url")
            if not download_url:
                raise ContentFetchError(f"no content or download_url for {src.owner}/{src.repo}/{src.path}")
            content = self._get(download_url, api=False).text

        metadata = {k: v for k, v in payload.items() if k != "content"}
        return FetchedFile(content=content, metadata=metadata)
