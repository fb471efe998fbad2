"""HTTP client that uploads files to a share chunk by chunk."""

import base64
import time
import uuid
from pathlib import Path
from typing import Callable, Optional

import httpx

from common.logging_config import get_logger
from cli.config import Config

logger = get_logger(__name__)

MAX_CONSECUTIVE_RESYNCS = 5


class ShareClientError(Exception):
    """
    Error reported by the share server or raised while talking to it.
    """

    def __init__(
        self,
        detail: str,
        code: str = "UNKNOWN",
        status_code: Optional[int] = None,
        expected_chunk_index: Optional[int] = None,
    ):
        super().__init__(detail)
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.expected_chunk_index = expected_chunk_index

    @property
    def terminal(self) -> bool:
        """True for errors that retrying the same request cannot fix."""
        return self.code in ("MAX_SHARE_SIZE_EXCEEDED", "SHARE_LOCKED", "SHARE_NOT_FOUND", "INVALID_CHUNK")


class ShareClient:
    """HTTP client for the share API with retry and chunk resynchronization."""

    def __init__(self, config: Config, transport: Optional[httpx.BaseTransport] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize share client.

        Args:
            config: Configuration instance
            transport: Optional httpx transport (used by tests)
            sleep: Function used to wait between retries
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout(),
            transport=transport,
        )
        self._sleep = sleep
        self._chunk_size: Optional[int] = None
        logger.info(f"Initialized ShareClient [base_url={config.get_base_url()}]")

    def close(self) -> None:
        self.session.close()

    def _request_with_retry(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            ShareClientError: If the server stays unreachable after all retries
        """
        retry_config = self.config.get_retry_config()
        max_retries = retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})['X-Request-ID'] = request_id

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)
            except (httpx.ConnectError, httpx.TimeoutException) as e:
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={request_id}]"
                    )
                    self._sleep(delay)
                    continue
                raise ShareClientError(f"Cannot reach share server: {e}", code="NETWORK_ERROR") from e

            if response.status_code >= 500 and attempt < max_retries:
                delay = backoff ** attempt
                logger.warning(
                    f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                    f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={request_id}]"
                )
                self._sleep(delay)
                continue

            return response

    @staticmethod
    def _error_from(response: httpx.Response) -> ShareClientError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        return ShareClientError(
            detail=body.get('detail', response.text or f"HTTP {response.status_code}"),
            code=body.get('code', 'UNKNOWN'),
            status_code=response.status_code,
            expected_chunk_index=body.get('expected_chunk_index'),
        )

    def _json_or_raise(self, response: httpx.Response) -> dict:
        if response.status_code >= 400:
            raise self._error_from(response)
        return response.json()

    def get_chunk_size(self) -> int:
        if self._chunk_size is None:
            body = self._json_or_raise(self._request_with_retry('GET', '/configs'))
            self._chunk_size = int(body['chunk_size'])
        return self._chunk_size

    def get_share(self, share_id: str) -> dict:
        return self._json_or_raise(self._request_with_retry('GET', f'/shares/{share_id}'))

    def complete_share(self, share_id: str) -> dict:
        return self._json_or_raise(self._request_with_retry('POST', f'/shares/{share_id}/complete'))

    def revert_complete(self, share_id: str) -> dict:
        return self._json_or_raise(self._request_with_retry('DELETE', f'/shares/{share_id}/complete'))

    def upload_file(
        self,
        share_id: str,
        file_path: Path,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> dict:
        """
        Upload a file to a share one chunk at a time.

        When the server reports an unexpected chunk index the upload
        continues from the index the server expects instead of restarting.

        Args:
            share_id: Target share
            file_path: Local file to upload
            on_progress: Called with (bytes_sent, total_bytes) after each chunk

        Returns:
            Server response for the final chunk ({id, name, completed, bytes_received})

        Raises:
            ShareClientError: On terminal errors or when resynchronization keeps failing
        """
        chunk_size = self.get_chunk_size()
        file_size = file_path.stat().st_size
        total_chunks = max(1, -(-file_size // chunk_size))

        file_id = str(uuid.uuid4())
        chunk_index = 0
        resyncs = 0

        with open(file_path, 'rb') as f:
            while True:
                f.seek(chunk_index * chunk_size)
                data = f.read(chunk_size)

                params = {
                    'id': file_id,
                    'name': file_path.name,
                    'chunkIndex': chunk_index,
                    'totalChunks': total_chunks,
                }

                response = self._request_with_retry(
                    'POST',
                    f'/shares/{share_id}/files',
                    params=params,
                    content=base64.b64encode(data),
                    headers={'Content-Type': 'application/octet-stream'},
                )

                if response.status_code < 400:
                    body = response.json()
                    resyncs = 0
                    if on_progress:
                        on_progress(min((chunk_index + 1) * chunk_size, file_size), file_size)
                    if body['completed']:
                        logger.info(f"Uploaded {file_path.name} as {file_id} to share {share_id}")
                        return body
                    chunk_index += 1
                    continue

                error = self._error_from(response)
                if chunk_index == total_chunks - 1 and self._may_be_completed(error):
                    completed = self._find_completed_file(share_id, file_id)
                    if completed is not None:
                        return completed

                if error.code != 'UNEXPECTED_CHUNK_INDEX' or resyncs >= MAX_CONSECUTIVE_RESYNCS:
                    raise error

                resyncs += 1
                logger.warning(
                    f"Server expects chunk {error.expected_chunk_index} of {file_path.name}, "
                    f"not {chunk_index}; resuming from there"
                )
                chunk_index = error.expected_chunk_index

    @staticmethod
    def _may_be_completed(error: ShareClientError) -> bool:
        # A repeated last chunk finds no partial left, or the file already registered.
        if error.code == 'UNEXPECTED_CHUNK_INDEX':
            return error.expected_chunk_index == 0
        return error.code == 'INVALID_CHUNK'

    def _find_completed_file(self, share_id: str, file_id: str) -> Optional[dict]:
        """Check whether a last chunk whose response was lost did complete the file."""
        share = self.get_share(share_id)
        for shared_file in share.get('files', []):
            if shared_file['id'] == file_id:
                logger.info(f"File {file_id} was already completed on the server")
                return {
                    'id': file_id,
                    'name': shared_file['name'],
                    'completed': True,
                    'bytes_received': shared_file['size'],
                }
        return None
