# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
GitHub REST API Client

Authenticated calls made on behalf of a linked GitHub account.
"""

from typing import Any, Dict, List, Optional
import httpx
import structlog

logger = structlog.get_logger(__name__)


class GitHubClient:
    """
    Minimal GitHub REST client.

    The access token is passed per call; the client holds no credentials.
    """

    def __init__(self, api_url: str = "https://api.github.com", timeout: float = 15.0):
        """
        Initialize GitHub client.

        Args:
            api_url: REST API base URL
            timeout: Timeout in seconds for every request
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    @staticmethod
    def _headers(access_token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def create_issue(
        self,
        access_token: str,
        owner: str,
        repo: str,
        title: str,
        body: str,
        labels: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        Create an issue in a repository.

        Args:
            access_token: GitHub access token
            owner: Repository owner
            repo: Repository name
            title: Issue title
            body: Issue body (markdown)
            labels: Labels to apply

        Returns:
            Issue object with number, html_url, etc.

        Raises:
            httpx.HTTPError: If issue creation fails
            ValueError: If the response body is not a JSON object
        """
        payload: Dict[str, Any] = {"title": title, "body": body}
        if labels:
            payload["labels"] = labels

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.api_url}/repos/{owner}/{repo}/issues",
                json=payload,
                headers=self._headers(access_token),
            )

            response.raise_for_status()
            issue = response.json()

            if not isinstance(issue, dict):
                raise ValueError("GitHub returned a non-object issue body")

            logger.info(
                "github_issue_created",
                owner=owner,
                repo=repo,
                issue_number=issue.get("number"),
                url=issue.get("html_url"),
            )

            return issue
