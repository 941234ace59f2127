import httpx
from typing import Any, Dict, Optional

from .config import GITHUB_API
from .errors import ApiError, RunLookupError

class GitHubClient:
    def __init__(self, token: str, base_url: str = GITHUB_API, timeout: float = 15.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def close(self):
        await self._client.aclose()

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        # single attempt; a failed read aborts the notification
        try:
            resp = await self._client.get(url, params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise ApiError(f"GET {url} returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ApiError(f"GET {url} failed: {type(e).__name__}: {e}") from e
        except ValueError as e:
            raise ApiError(f"GET {url} returned invalid JSON") from e

    async def get_workflow_run(self, owner: str, repo: str, run_id: int):
        try:
            data = await self.get_json(f"/repos/{owner}/{repo}/actions/runs/{run_id}")
        except ApiError as e:
            raise RunLookupError(f"workflow run {run_id} lookup failed: {e}") from e
        if not isinstance(data, dict):
            raise RunLookupError(f"workflow run {run_id} lookup returned unexpected payload")
        return data

    async def list_jobs_for_workflow_run(self, owner: str, repo: str, run_id: int, per_page: int = 100):
        data = await self.get_json(
            f"/repos/{owner}/{repo}/actions/runs/{run_id}/jobs",
            params={"per_page": per_page},
        )
        if not isinstance(data, dict):
            raise ApiError(f"jobs listing for run {run_id} returned unexpected payload")
        return data
