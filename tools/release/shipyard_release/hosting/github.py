"""GitHub Releases backend built on the REST API."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from requests import Response, Session
from requests.exceptions import RequestException

from ..schemas.release import Release, ReleaseAsset
from .base import HostAuthError, HostError, TransientHostError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_UPLOAD_URL = "https://uploads.github.com"
API_VERSION = "2022-11-28"


class GitHubReleaseHost:
    """Create, update and attach assets to releases of a single repository.

    Every failing call is classified as transient, unauthorized, or a plain
    :class:`HostError`; retry policy belongs to the caller.
    """

    def __init__(
        self,
        repo: str,
        token: Optional[str],
        *,
        api_url: str = DEFAULT_API_URL,
        upload_url: str = DEFAULT_UPLOAD_URL,
        timeout: float = 30,
        upload_timeout: float = 300,
        session: Optional[Session] = None,
    ) -> None:
        if "/" not in repo:
            raise ValueError(f"Repository must look like owner/name (got '{repo}')")
        self.repo = repo
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.upload_url = upload_url.rstrip("/")
        self.timeout = timeout
        self.upload_timeout = upload_timeout
        self.session = session or requests.Session()

    def get_release_by_tag(self, tag: str) -> Optional[Release]:
        response = self._request(
            "GET",
            f"{self.api_url}/repos/{self.repo}/releases/tags/{quote(tag, safe='')}",
            allow_not_found=True,
        )
        if response is None:
            return None
        return Release.model_validate(response.json())

    def create_release(
        self,
        *,
        tag: str,
        prerelease: bool,
        name: Optional[str] = None,
        body: Optional[str] = None,
        commit: Optional[str] = None,
        draft: bool = False,
    ) -> Release:
        payload: Dict[str, Any] = {
            "tag_name": tag,
            "name": name or tag,
            "prerelease": prerelease,
            "draft": draft,
        }
        if body is not None:
            payload["body"] = body
        if commit:
            payload["target_commitish"] = commit
        response = self._request("POST", f"{self.api_url}/repos/{self.repo}/releases", json=payload)
        return Release.model_validate(response.json())

    def update_release(
        self,
        release_id: int,
        *,
        prerelease: bool,
        name: Optional[str] = None,
        body: Optional[str] = None,
    ) -> Release:
        payload: Dict[str, Any] = {"prerelease": prerelease}
        if name is not None:
            payload["name"] = name
        if body is not None:
            payload["body"] = body
        response = self._request(
            "PATCH",
            f"{self.api_url}/repos/{self.repo}/releases/{release_id}",
            json=payload,
        )
        return Release.model_validate(response.json())

    def upload_asset(self, release_id: int, path: Path, *, name: str, content_type: str) -> ReleaseAsset:
        data = Path(path).read_bytes()
        response = self._request(
            "POST",
            f"{self.upload_url}/repos/{self.repo}/releases/{release_id}/assets",
            params={"name": name},
            data=data,
            headers={"Content-Type": content_type},
            timeout=self.upload_timeout,
        )
        return ReleaseAsset.model_validate(response.json())

    def delete_asset(self, asset_id: int) -> None:
        self._request("DELETE", f"{self.api_url}/repos/{self.repo}/releases/assets/{asset_id}")

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }

    def _request(
        self,
        method: str,
        url: str,
        *,
        allow_not_found: bool = False,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> Optional[Response]:
        if not self.token:
            raise HostAuthError(f"No credential supplied for {self.repo}")

        merged_headers = self._headers()
        if headers:
            merged_headers.update(headers)

        logger.debug("%s %s", method, url)
        try:
            response: Response = self.session.request(
                method,
                url,
                headers=merged_headers,
                timeout=timeout or self.timeout,
                **kwargs,
            )
        except RequestException as exc:
            raise TransientHostError(f"{method} {url} failed: {exc}") from exc

        status = response.status_code
        if status == 404 and allow_not_found:
            return None
        if status < 400:
            return response

        message = f"{method} {url} returned {status}: {_error_detail(response)}"
        if status == 401:
            raise HostAuthError(message, status_code=status)
        if status == 403:
            if response.headers.get("x-ratelimit-remaining") == "0" or "retry-after" in {
                key.lower() for key in response.headers
            }:
                raise TransientHostError(message, status_code=status)
            raise HostAuthError(message, status_code=status)
        if status == 429 or status >= 500:
            raise TransientHostError(message, status_code=status)
        raise HostError(message, status_code=status)


def _error_detail(response: Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason or ""
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.text or response.reason or ""


__all__ = ["DEFAULT_API_URL", "DEFAULT_UPLOAD_URL", "GitHubReleaseHost"]
