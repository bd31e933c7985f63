"""HTTP client for the chunked upload server."""

import time
import uuid
from pathlib import Path
from typing import List, Optional

import httpx

from common.logging_config import get_logger
from cli.config import Config
from cli.utils import (
    chunk_count,
    compute_file_hash,
    finish_progress,
    format_file_size,
    iter_missing_chunks,
    read_chunk,
    show_progress,
)

logger = get_logger(__name__)

STALE_SESSION_HINT = (
    "The server still holds chunks from an earlier push of this file, probably made "
    "with a different chunk size than {chunk_size} bytes. Push again with the "
    "--chunk-size used the first time."
)


class UploadClientError(Exception):
    """Raised when the server rejects a request."""

    def __init__(self, message: str, code: str = 'UNKNOWN', status_code: int = 0):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class UploadClient:
    """HTTP client for the upload API with retry logic and error handling."""

    def __init__(self, config: Config):
        """
        Initialize upload client.

        Args:
            config: Configuration instance
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout()
        )
        self.request_id = None
        logger.info(f"Initialized UploadClient [base_url={config.get_base_url()}]")

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            endpoint: API endpoint path
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            ConnectionError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        headers = dict(kwargs.pop('headers', None) or {})
        headers['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, headers=headers, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if 400 <= response.status_code < 500:
                    logger.warning(
                        f"Client error: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                    )
                    return response

                if response.status_code >= 500 and attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                )

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Server may be overloaded.")
        if isinstance(last_exception, httpx.ConnectError):
            raise ConnectionError("Cannot connect to upload server. Is it running?")
        raise ConnectionError("Max retries exceeded")

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map HTTP errors to user-friendly messages.

        Args:
            response: HTTP response object

        Returns:
            User-friendly error message
        """
        detail, code = self._error_fields(response)

        error_messages = {
            'INVALID_INPUT': f'Invalid request: {detail}',
            'SESSION_NOT_FOUND': 'No chunks for this file on the server. Push it again.',
            'SESSION_INCOMPLETE': f'Upload is incomplete: {detail}',
            'DUPLICATE_CONTENT': 'This file was already uploaded.',
            'FILE_NOT_FOUND': 'File not found on server.',
            'FILE_TOO_LARGE': 'File too large for a single upload.',
            'STORAGE_WRITE_FAILURE': 'Server could not store the data. Please try again later.',
            'STORAGE_READ_FAILURE': 'Server could not read uploaded chunks. Push the file again.',
            'PERSISTENCE_FAILURE': 'Server could not record the file. Please try again later.',
        }

        if code in error_messages:
            return error_messages[code]

        status_messages = {
            400: 'Bad request',
            404: 'Not found',
            409: 'Conflict',
            413: 'File too large',
            422: 'Invalid request',
            500: 'Server error',
            503: 'Service unavailable',
            507: 'Insufficient storage',
        }

        message = status_messages.get(response.status_code, detail)
        return f"{message} (Code: {code})" if code != 'UNKNOWN' else message

    def _error_fields(self, response: httpx.Response) -> tuple:
        try:
            error_data = response.json()
        except ValueError:
            return (response.text or 'Unknown error'), 'UNKNOWN'
        if not isinstance(error_data, dict):
            return str(error_data), 'UNKNOWN'
        return str(error_data.get('detail', 'Unknown error')), error_data.get('code', 'UNKNOWN')

    def _expect(self, response: httpx.Response, *expected: int) -> dict:
        """
        Return the JSON body of a successful response.

        Raises:
            UploadClientError: If the status is not one of ``expected``
        """
        if response.status_code in expected:
            return response.json()
        _, code = self._error_fields(response)
        raise UploadClientError(self._format_error(response), code=code, status_code=response.status_code)

    def check_exists(self, content_hash: str) -> dict:
        response = self._request_with_retry('GET', '/upload/check', params={'hash': content_hash})
        return self._expect(response, 200)

    def get_uploaded_chunks(self, content_hash: str) -> List[int]:
        response = self._request_with_retry('GET', '/upload/chunks', params={'hash': content_hash})
        return self._expect(response, 200)['uploaded_chunks']

    def upload_chunk(self, content_hash: str, index: int, chunk_hash: str, data: bytes) -> dict:
        """
        Send one chunk.

        Args:
            content_hash: Hash of the whole file
            index: Zero-based chunk position
            chunk_hash: SHA-256 of the chunk bytes
            data: Chunk bytes

        Returns:
            Server's description of the stored chunk
        """
        response = self._request_with_retry(
            'POST',
            '/upload/chunk',
            files={'file': (f'{chunk_hash}-{index}', data, 'application/octet-stream')},
            data={'hash': content_hash, 'index': str(index), 'chunk_hash': chunk_hash},
        )
        return self._expect(response, 201)

    def merge(self, content_hash: str, filename: str, size: int, total_chunks: Optional[int] = None,
              mime_type: Optional[str] = None) -> dict:
        payload = {'hash': content_hash, 'filename': filename, 'size': size}
        if total_chunks is not None:
            payload['total_chunks'] = total_chunks
        if mime_type:
            payload['mime_type'] = mime_type
        response = self._request_with_retry('POST', '/upload/merge', json=payload)
        return self._expect(response, 201)

    def push_file(self, file_path: str, chunk_size: Optional[int] = None) -> str:
        """
        Upload a file through the chunked protocol.

        Skips the upload entirely when the server already holds the content,
        and only sends the chunks the server does not have yet.

        Args:
            file_path: Local file path
            chunk_size: Chunk size in bytes (config default if None)

        Returns:
            Success or error message
        """
        path = Path(file_path)
        if not path.is_file():
            return f"Error: File not found: {file_path}"

        file_size = path.stat().st_size
        if file_size == 0:
            return f"Error: Cannot upload empty file: {file_path}"

        chunk_size = chunk_size or self.config.get_chunk_size()
        total = chunk_count(file_size, chunk_size)
        logger.info(f"Pushing {file_path} ({file_size} bytes, {total} chunks of {chunk_size})")

        try:
            content_hash = compute_file_hash(path)

            existing = self.check_exists(content_hash)
            if existing['exists']:
                logger.info(f"Content {content_hash} already stored, skipping upload")
                return f"Already uploaded (instant):\n{self._format_record(existing['file'])}"

            uploaded = {i for i in self.get_uploaded_chunks(content_hash) if i < total}
            if uploaded:
                logger.info(f"Resuming {content_hash}: {len(uploaded)}/{total} chunks on server")

            sent = sum(min(chunk_size, file_size - i * chunk_size) for i in uploaded)
            for index in iter_missing_chunks(total, uploaded):
                chunk_hash, data = read_chunk(path, index, chunk_size)
                self.upload_chunk(content_hash, index, chunk_hash, data)
                sent += len(data)
                show_progress(path.name, sent, file_size)
            finish_progress()

            try:
                record = self.merge(content_hash, path.name, file_size, total_chunks=total)
            except UploadClientError as e:
                if e.code != 'DUPLICATE_CONTENT':
                    raise
                # another client finished the same content first
                record = self.check_exists(content_hash)['file']

            return f"Upload complete:\n{self._format_record(record)}"

        except UploadClientError as e:
            logger.warning(f"Push of {file_path} failed: {e} [code={e.code}]")
            if e.code == 'SESSION_INCOMPLETE':
                return f"Upload failed: {e}\n{STALE_SESSION_HINT.format(chunk_size=chunk_size)}"
            return f"Upload failed: {e}"
        except ConnectionError as e:
            logger.error(f"Connection error during push: {e}")
            return f"Error: {e}"
        except OSError as e:
            logger.error(f"Could not read {file_path}: {e}")
            return f"Error reading {file_path}: {e}"

    def status(self, file_path: str, chunk_size: Optional[int] = None) -> str:
        """
        Report what the server holds for a local file.

        Returns:
            Status message
        """
        path = Path(file_path)
        if not path.is_file():
            return f"Error: File not found: {file_path}"

        chunk_size = chunk_size or self.config.get_chunk_size()
        try:
            content_hash = compute_file_hash(path)
            existing = self.check_exists(content_hash)
            if existing['exists']:
                return f"Stored:\n{self._format_record(existing['file'])}"

            total = chunk_count(path.stat().st_size, chunk_size)
            uploaded = [i for i in self.get_uploaded_chunks(content_hash) if i < total]
            if not uploaded:
                return f"Not uploaded (hash {content_hash})"
            return f"Partially uploaded: {len(uploaded)}/{total} chunks (hash {content_hash})"
        except UploadClientError as e:
            return f"Status failed: {e}"
        except ConnectionError as e:
            return f"Error: {e}"
        except OSError as e:
            return f"Error reading {file_path}: {e}"

    def list_files(self, page: int = 1) -> str:
        """
        List stored files.

        Returns:
            Formatted listing or error message
        """
        try:
            response = self._request_with_retry('GET', '/files', params={'page': page})
            data = self._expect(response, 200)
        except UploadClientError as e:
            return f"List failed: {e}"
        except ConnectionError as e:
            return f"Error: {e}"

        items = data['items']
        if not items:
            return "No files found." if page == 1 else f"No files on page {page}."

        lines = [f"Files (page {data['page']}, {data['total']} total):"]
        for item in items:
            lines.append(
                f"  [{item['id']}] {item['original_name']} "
                f"({format_file_size(item['size'])}) -> {item['public_url']}"
            )
        return "\n".join(lines)

    def delete_file(self, file_id: int) -> str:
        try:
            response = self._request_with_retry('DELETE', f'/files/{file_id}')
            data = self._expect(response, 200)
        except UploadClientError as e:
            return f"Delete failed: {e}"
        except ConnectionError as e:
            return f"Error: {e}"
        return f"Deleted file {data['deleted']}"

    def _format_record(self, record: dict) -> str:
        return (
            f"  ID: {record['id']}\n"
            f"  Name: {record['original_name']}\n"
            f"  Size: {format_file_size(record['size'])}\n"
            f"  URL: {record['public_url']}"
        )
