"""HTTP client for communicating with the relay server."""

import math
import time
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import httpx

from common.constants import CODE_LENGTH, RETENTION_WINDOW_SECONDS, STREAM_PIECE_SIZE
from common.logging_config import get_logger
from cli.config import Config
from cli.utils import ProgressReporter, format_file_size, parse_content_disposition

logger = get_logger(__name__)


class RelayClient:
    """HTTP client for the relay API with retry logic and error handling."""

    def __init__(self, config: Config):
        """
        Initialize relay client.

        Args:
            config: Configuration instance
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout()
        )
        self.request_id = None
        logger.info(f"Initialized RelayClient [base_url={config.get_base_url()}]")

    def _calculate_upload_timeout(self, size: int) -> float:
        """
        Calculate timeout for an upload or merge based on payload size.

        Args:
            size: Size in bytes

        Returns:
            Timeout in seconds (30s base + 0.1s per MB)
        """
        base_timeout = 30.0
        size_mb = size / (1024 * 1024)
        return base_timeout + size_mb * 0.1

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
            method: HTTP method (GET, POST, etc.)
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
        if 'headers' not in kwargs:
            kwargs['headers'] = {}
        kwargs['headers']['X-Request-ID'] = self.request_id

        logger.debug(
            f"Making request: {method} {endpoint} [request_id={self.request_id}]"
        )

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)

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
                else:
                    logger.error(
                        f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                    )

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Server may be overloaded.")
        if isinstance(last_exception, httpx.ConnectError):
            raise ConnectionError("Cannot connect to relay server. Is it running?")
        raise ConnectionError("Max retries exceeded")

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map HTTP errors to user-friendly messages.

        Args:
            response: HTTP response object

        Returns:
            User-friendly error message
        """
        try:
            error_data = response.json()
            detail = error_data.get('error', 'Unknown error')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            detail = response.text if response.text else 'Unknown error'
            code = 'UNKNOWN'

        error_messages = {
            'CODE_NOT_FOUND': 'No file found for this code. Check the code and try again.',
            'CODE_EXPIRED': 'This code has expired. Ask the sender to upload the file again.',
            'EMPTY_CHUNK': 'Cannot upload an empty chunk.',
            'MISSING_FILE_NAME': 'File name is missing.',
            'INVALID_FILE_NAME': 'The server does not accept this file name.',
            'INVALID_CHUNK_INDEX': 'Invalid chunk index.',
            'NO_CHUNKS_FOUND': 'Server found no uploaded chunks for this file.',
            'EMPTY_RESULT': 'The merged file is empty.',
            'ARTIFACT_MISSING': 'The file for this code is missing on the server.',
            'STORAGE_ERROR': 'Server storage error. Please try again later.',
        }

        if code in error_messages:
            return error_messages[code]

        status_messages = {
            400: 'Bad request',
            404: 'Not found',
            410: 'Code expired',
            413: 'File too large',
            422: 'Invalid request',
            500: 'Server error',
            503: 'Service unavailable',
        }

        message = status_messages.get(response.status_code, detail)
        return f"{message} (Code: {code})" if code != 'UNKNOWN' else message

    def send(self, file_path: str) -> str:
        """
        Upload a file in chunks, merge it and return its retrieval code.

        Chunk uploads are retried on server errors. The merge is never
        retried: a failed merge may already have consumed chunks.

        Args:
            file_path: Path of the local file

        Returns:
            Result message with the download code
        """
        path = Path(file_path).expanduser()

        if not path.exists():
            return f"Error: File not found: {file_path}"
        if not path.is_file():
            return f"Error: Not a file: {file_path}"

        file_size = path.stat().st_size
        if file_size == 0:
            return f"Error: File is empty: {file_path}"

        file_name = path.name
        chunk_size = self.config.get_chunk_size()
        total_chunks = math.ceil(file_size / chunk_size)
        progress = ProgressReporter("Uploading", file_name, file_size)

        logger.info(f"Sending {file_name}: {file_size} bytes in {total_chunks} chunks")

        try:
            with open(path, 'rb') as f:
                for index in range(total_chunks):
                    data = f.read(chunk_size)
                    response = self._request_with_retry(
                        'POST',
                        '/api/upload-chunk',
                        files={'chunk': (file_name, data, 'application/octet-stream')},
                        data={'chunkIndex': str(index), 'fileName': file_name},
                        timeout=self._calculate_upload_timeout(len(data)),
                    )
                    if response.status_code != 200:
                        progress.abort()
                        return (
                            f"Error uploading chunk {index + 1}/{total_chunks} of {file_name}: "
                            f"{self._format_error(response)}"
                        )
                    progress.advance(len(data))

            progress.finish()

            response = self._request_with_retry(
                'POST',
                '/api/merge-file',
                max_retries=0,
                params={'fileName': file_name},
                timeout=self._calculate_upload_timeout(file_size),
            )
        except ConnectionError as e:
            progress.abort()
            logger.error(f"Connection error while sending {file_name}: {e}")
            return f"Error: {e}"
        except OSError as e:
            progress.abort()
            logger.error(f"Failed to read {file_path}: {e}")
            return f"Error reading file: {e}"

        if response.status_code != 200:
            return f"Error merging {file_name}: {self._format_error(response)}"

        code = response.json()['code']
        logger.info(f"Sent {file_name} [code={code}]")
        minutes = RETENTION_WINDOW_SECONDS // 60
        return (
            f"Upload complete: {file_name} ({format_file_size(file_size)})\n"
            f"Download code: {code}\n"
            f"The code is valid for {minutes} minutes."
        )

    def receive(self, code: str, output_path: str | None = None) -> str:
        """
        Download the file behind a retrieval code with progress feedback.

        Args:
            code: Retrieval code
            output_path: Optional output file or directory; defaults to the
                configured download directory

        Returns:
            Success message with download details
        """
        if len(code) != CODE_LENGTH or not code.isascii() or not code.isalnum():
            return f"Error: Invalid download code: {code!r} (expected {CODE_LENGTH} letters or digits)"

        try:
            with self.session.stream('GET', f'/api/download/{quote(code, safe="")}') as response:
                if response.status_code != 200:
                    response.read()
                    return f"Error: {self._format_error(response)}"

                file_name = parse_content_disposition(
                    response.headers.get('Content-Disposition')
                ) or code
                output_file = self._resolve_output_path(output_path, file_name)
                total_size = int(response.headers.get('Content-Length', 0))
                progress = ProgressReporter("Downloading", file_name, total_size)

                self._write_stream(response, output_file, progress)
                progress.finish()

        except httpx.ConnectError:
            return "Error: Cannot connect to relay server. Is it running?"
        except httpx.TimeoutException:
            return "Error: Request timed out. Server may be overloaded."
        except httpx.HTTPError as e:
            logger.error(f"Download interrupted: {e}")
            return f"Error: Download interrupted: {e}"
        except IOError as e:
            return f"Error writing file: {e}"

        if total_size and progress.done != total_size:
            output_file.unlink(missing_ok=True)
            return (
                f"Error: Download incomplete ({format_file_size(progress.done)} of "
                f"{format_file_size(total_size)})"
            )

        return (
            f"Downloaded: {file_name} ({format_file_size(progress.done)})\n"
            f"Saved to: {output_file.absolute()}"
        )

    def cleanup(self) -> str:
        """
        Trigger a server-side sweep of expired files.

        Returns:
            Server message with the number of removed entries
        """
        try:
            response = self._request_with_retry('GET', '/api/cleanup')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        return f"Cleanup complete: {response.json()['message']}"

    def _resolve_output_path(self, output_path: str | None, file_name: str) -> Path:
        """
        Pick the destination file and create its parent directory.

        Args:
            output_path: User-supplied file or directory (may be None)
            file_name: Name announced by the server

        Returns:
            Destination path
        """
        if output_path:
            output_file = Path(output_path).expanduser()
            if output_file.is_dir() or output_path.endswith(('/', '\\')):
                output_file = output_file / file_name
        else:
            output_file = self.config.get_download_dir() / file_name

        output_file.parent.mkdir(parents=True, exist_ok=True)
        return output_file

    def _write_stream(
        self,
        response: httpx.Response,
        output_file: Path,
        progress: ProgressReporter,
    ) -> None:
        """Write the response body to disk, removing the partial file on failure."""
        try:
            with open(output_file, 'wb') as f:
                for piece in response.iter_bytes(chunk_size=STREAM_PIECE_SIZE):
                    f.write(piece)
                    progress.advance(len(piece))
        except (httpx.HTTPError, OSError):
            progress.abort()
            output_file.unlink(missing_ok=True)
            raise

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
