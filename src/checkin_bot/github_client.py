import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from requests import exceptions as requests_exceptions


GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
TOKEN_ENV_KEYS = ("INPUT_REPO-TOKEN", "CHECKIN_REPO_TOKEN", "GITHUB_TOKEN", "GH_TOKEN")


class GitHubAuthError(Exception):
    pass


def search_label_term(label: str) -> str:
    text = str(label or "").strip()
    if not text:
        return ""
    if any(ch.isspace() for ch in text) or '"' in text:
        escaped = text.replace('"', '\\"')
        return f'-label:"{escaped}"'
    return f"-label:{text}"


@dataclass
class GitHubCredentials:
    token: str
    source: str = "unknown"

    @classmethod
    def load(cls, token: Optional[str] = None) -> "GitHubCredentials":
        """Resolve the API token.

        Priority:
        1. explicit token (the ``repo-token`` input)
        2. INPUT_REPO-TOKEN, CHECKIN_REPO_TOKEN, GITHUB_TOKEN, GH_TOKEN env vars
        """
        if token is not None and str(token).strip():
            return cls(token=str(token).strip(), source="input:repo-token")
        for key in TOKEN_ENV_KEYS:
            value = os.getenv(key, "").strip()
            if value:
                return cls(token=value, source=f"env:{key}")
        raise GitHubAuthError(
            "Missing GitHub token. Pass the 'repo-token' input or set GITHUB_TOKEN."
        )


class GitHubClient:
    """Minimal GitHub REST client for the check-in run.

    Only the handful of endpoints the bot needs: issue search, issue comments,
    labels and new comments. List endpoints follow ``Link: rel="next"``.
    """

    def __init__(
        self,
        repository: str,
        credentials: Optional[GitHubCredentials] = None,
        base_url: Optional[str] = None,
        per_page: int = 100,
    ):
        owner, _, repo = str(repository).strip().partition("/")
        if not owner or not repo:
            raise ValueError(f"repository must look like 'owner/repo', got {repository!r}")
        self.owner = owner
        self.repo = repo
        self.credentials = credentials or GitHubCredentials.load()
        self.base_url = str(base_url or GITHUB_API_URL).strip().rstrip("/")
        self.per_page = per_page

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.credentials.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def _url(self, path: str) -> str:
        path = path.lstrip("/")
        return f"{self.base_url}/{path}"

    def _check_response(self, resp: Any) -> None:
        if resp.status_code in {401, 403}:
            try:
                data = resp.json()
            except Exception:
                data = {}
            message = (data if isinstance(data, dict) else {}).get("message") or "Authentication required"
            raise GitHubAuthError(f"GitHub auth error {resp.status_code}: {message}")

        if resp.status_code >= 400:
            try:
                data = resp.json()
            except Exception:
                data = {}
            message = (data if isinstance(data, dict) else {}).get("message") or resp.text
            raise RuntimeError(f"GitHub error {resp.status_code}: {message}")

    def _get_pages(self, path: str, params: Dict[str, Any], items_key: Optional[str] = None) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        url: Optional[str] = self._url(path)
        query: Optional[Dict[str, Any]] = dict(params, per_page=self.per_page)
        while url:
            try:
                resp = requests.get(url, headers=self._headers, params=query, timeout=30)
            except requests_exceptions.Timeout as e:
                raise RuntimeError(
                    f"Timed out while contacting GitHub for {path}. "
                    "Check that the API is reachable and try again."
                ) from e
            self._check_response(resp)

            payload = resp.json()
            if items_key is not None:
                payload = payload.get(items_key, []) if isinstance(payload, dict) else []
            if isinstance(payload, list):
                out.extend(item for item in payload if isinstance(item, dict))

            links = getattr(resp, "links", None) or {}
            url = (links.get("next") or {}).get("url")
            # The next link already carries the query string.
            query = None
        return out

    def search_open_items(self, exclude_label: Optional[str] = None) -> List[Dict[str, Any]]:
        terms = [f"repo:{self.repository}", "is:open"]
        label_term = search_label_term(exclude_label or "")
        if label_term:
            terms.append(label_term)
        return self._get_pages("search/issues", {"q": " ".join(terms)}, items_key="items")

    def get_issue(self, number: int) -> Dict[str, Any]:
        try:
            resp = requests.get(
                self._url(f"repos/{self.repository}/issues/{int(number)}"),
                headers=self._headers,
                timeout=30,
            )
        except requests_exceptions.Timeout as e:
            raise RuntimeError(f"Timed out while contacting GitHub for issue #{number}.") from e
        self._check_response(resp)
        return resp.json()

    def list_issue_comments(self, number: int) -> List[Dict[str, Any]]:
        return self._get_pages(f"repos/{self.repository}/issues/{int(number)}/comments", {})

    def add_labels(self, number: int, labels: List[str]) -> Any:
        clean = [str(label).strip() for label in labels if str(label).strip()]
        if not clean:
            raise ValueError("At least one label must be provided.")
        try:
            resp = requests.post(
                self._url(f"repos/{self.repository}/issues/{int(number)}/labels"),
                headers=self._headers,
                json={"labels": clean},
                timeout=30,
            )
        except requests_exceptions.Timeout as e:
            raise RuntimeError(f"Timed out while labeling #{number} on GitHub.") from e
        self._check_response(resp)
        return resp.json()

    def create_comment(self, number: int, body: str) -> Dict[str, Any]:
        if not str(body or "").strip():
            raise ValueError("Comment body must not be empty.")
        try:
            resp = requests.post(
                self._url(f"repos/{self.repository}/issues/{int(number)}/comments"),
                headers=self._headers,
                json={"body": body},
                timeout=60,
            )
        except requests_exceptions.Timeout as e:
            raise RuntimeError(
                f"Timed out while commenting on #{number}. "
                "GitHub may be slow or temporarily unavailable."
            ) from e
        self._check_response(resp)
        return resp.json()
