"""
HTTP client for the remote drive API.

Handles HTTP communication and error mapping for:
- /files: directory listing, metadata lookup and upload finalize
- /uploads/{uploadId}: chunk upload
- /events/stream: server-sent change events
"""

import logging
from typing import Dict, Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


class DriveAPIError(Exception):
    """Raised when a request fails in transport or returns a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ''):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def is_transient(self) -> bool:
        """True for failures worth retrying: 5xx, 429 and transport errors."""
        if self.status_code is None:
            return True
        return self.status_code >= 500 or self.status_code == 429


class DriveAPI:
    """
    HTTP client for the remote drive API.

    Status-based retries belong to the caller's pacer. The session adapter
    only retries failed connection attempts.
    """

    MAX_ERROR_BODY = 512

    def __init__(self, base_url: str, access_token: str = '', timeout: int = 30,
                 max_retries: int = 3):
        """
        Initialize the drive API client.

        Args:
            base_url: Base URL of the drive server (without the /api suffix)
            access_token: Bearer token, empty for unauthenticated servers
            timeout: Request timeout in seconds
            max_retries: Connection attempts before giving up
        """
        self.base_url = base_url.rstrip('/')
        self.api_root = f"{self.base_url}/api"
        self.timeout = timeout
        self.max_retries = max_retries
        self.logger = logging.getLogger(__name__)

        self.session = requests.Session()
        if access_token:
            self.session.headers["Authorization"] = f"Bearer {access_token}"

        retry_strategy = Retry(
            total=max_retries,
            connect=max_retries,
            read=0,
            status=0,
            other=0,
            raise_on_status=False,
            backoff_factor=0.5
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """
        Make HTTP request with error handling and logging.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path below /api
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            DriveAPIError: If the request fails or the status is not 2xx
        """
        url = f"{self.api_root}{endpoint}"
        kwargs.setdefault('timeout', self.timeout)

        try:
            self.logger.debug(f"Making {method} request to {url}")
            response = self.session.request(method=method, url=url, **kwargs)
            self.logger.debug(f"Response status: {response.status_code}")
            response.raise_for_status()
            return response

        except requests.exceptions.RequestException as e:
            status_code = None
            body = ''
            if e.response is not None:
                status_code = e.response.status_code
                body = (e.response.text or '')[:self.MAX_ERROR_BODY]
            error_msg = f"Drive API request failed: {method} {url} - {str(e)}"
            if body:
                error_msg = f"{error_msg} - {body}"
            self.logger.error(error_msg)
            raise DriveAPIError(error_msg, status_code=status_code, body=body) from e

    def _parse_json(self, response: requests.Response, method: str, endpoint: str) -> Dict[str, Any]:
        """Decode a JSON object body, mapping garbage to a permanent error."""
        try:
            data = response.json()
        except ValueError as e:
            raise DriveAPIError(
                f"Drive API returned a malformed response: {method} {endpoint}",
                status_code=response.status_code
            ) from e
        if not isinstance(data, dict):
            raise DriveAPIError(
                f"Drive API returned a malformed response: {method} {endpoint}",
                status_code=response.status_code
            )
        return data

    def list_files(self, parent_id: str, limit: int, cursor: str = '', page: int = 1) -> Dict[str, Any]:
        """
        List one page of a folder, ordered ascending by id.

        Args:
            parent_id: Folder identifier
            limit: Requested page size
            cursor: Id of the last item of the previous page, empty for the first page
            page: 1-based page number

        Returns:
            Decoded list response with "items" and "meta"

        Raises:
            DriveAPIError: If the API call fails
        """
        params = {
            "operation": "list",
            "parentId": parent_id,
            "limit": limit,
            "sort": "id",
            "order": "asc",
            "cursor": cursor,
            "page": page
        }
        response = self._make_request(method="GET", endpoint="/files", params=params)
        return self._parse_json(response, "GET", "/files")

    def get_file(self, file_id: str) -> Dict[str, Any]:
        """
        Get metadata for a single file.

        Raises:
            DriveAPIError: If the API call fails
        """
        if not file_id:
            raise ValueError("file_id cannot be empty")

        endpoint = f"/files/{file_id}"
        response = self._make_request(method="GET", endpoint=endpoint)
        return self._parse_json(response, "GET", endpoint)

    def upload_part(self, upload_id: str, data: bytes, params: Dict[str, Any]) -> None:
        """
        Upload one chunk of an upload session. The response body is ignored.

        Args:
            upload_id: Upload session identifier
            data: Raw chunk bytes
            params: Chunk query parameters (partNo, partName, channelId, ...)

        Raises:
            DriveAPIError: If the API call fails
        """
        self._make_request(
            method="POST",
            endpoint=f"/uploads/{upload_id}",
            params=params,
            data=data,
            headers={
                "Content-Type": "application/octet-stream",
                "Content-Length": str(len(data))
            }
        )

    def create_file(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Finalize an upload into a persisted file.

        Returns:
            The created item, which is the canonical metadata for the file

        Raises:
            DriveAPIError: If the API call fails
        """
        response = self._make_request(method="POST", endpoint="/files", json=body)
        return self._parse_json(response, "POST", "/files")

    def open_event_stream(self) -> requests.Response:
        """
        Open the server-sent events stream.

        The connection has no read timeout; the caller owns the response and
        must close it.

        Raises:
            DriveAPIError: If the connection cannot be established
        """
        return self._make_request(
            method="GET",
            endpoint="/events/stream",
            headers={"Accept": "text/event-stream"},
            stream=True,
            timeout=(self.timeout, None)
        )

    def health_check(self) -> bool:
        """
        Check if the drive server is reachable.

        Returns:
            True if server is healthy, False otherwise
        """
        try:
            self._make_request(method="GET", endpoint="/")
            return True
        except DriveAPIError as e:
            self.logger.warning(f"Drive API health check failed: {str(e)}")
            return False

    def close(self) -> None:
        self.session.close()
