"""
Uploading files to AWS S3 with temporary platform credentials.

Files smaller than ``S3_MIN_PART_SIZE`` are sent with a single
``PutObject``; larger files use a multipart upload whose parts are sent
concurrently by a thread pool.
"""

import logging
import queue
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, as_completed, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import BlackfynnError, MultipartUploadAborted, S3Error, S3MissingUploadIdError
from ..model import (
    AccessKey,
    ImportId,
    S3Bucket,
    S3File,
    S3Key,
    S3ServerSideEncryption,
    SecretKey,
    SessionToken,
    TemporaryCredential,
    UploadCredential,
    upload_key,
)
from ..model.upload import PathLike
from ..util.retry import retry
from .progress import Callback, ProgressCallback, ProgressUpdate, UploadProgress, as_callback


logger = logging.getLogger(__name__)

KB = 1024
MB = KB * KB
DEFAULT_CONCURRENCY_LIMIT = 4

# The smallest part size (in bytes) AWS allows for a multipart upload.
S3_MIN_PART_SIZE = 5 * MB


def create_s3_client(
    access_key: AccessKey,
    secret_key: SecretKey,
    session_token: SessionToken,
    region: Optional[str] = None,
):
    """Create a boto3 S3 client from temporary credentials."""
    return boto3.client(
        "s3",
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        aws_session_token=session_token,
        region_name=region,
    )


def s3_call(description: str, func: Callable[..., Any], **kwargs) -> Any:
    """Invoke an S3 client method, translating botocore failures to ``S3Error``."""
    try:
        return func(**kwargs)
    except (BotoCoreError, ClientError) as e:
        raise S3Error(f"{description} :: {e}") from e


@dataclass
class MultipartUploadResult:
    """The outcome of a multipart upload: completed, or aborted with a cause."""
    import_id: Optional[ImportId] = None
    output: Any = None
    error: Optional[BlackfynnError] = None

    @classmethod
    def complete(cls, import_id: ImportId, output: Any) -> "MultipartUploadResult":
        return cls(import_id=import_id, output=output)

    @classmethod
    def abort(cls, error: BlackfynnError, output: Any) -> "MultipartUploadResult":
        return cls(output=output, error=error)

    @property
    def is_completed(self) -> bool:
        return self.error is None

    @property
    def is_aborted(self) -> bool:
        return self.error is not None


class MultipartUploadFile:
    """An active multipart upload of one file to S3."""

    def __init__(
        self,
        s3_client,
        file: S3File,
        import_id: ImportId,
        upload_id: Optional[str],
        file_chunk_size: int,
        bucket: S3Bucket,
        key: S3Key,
        server_side_encryption: S3ServerSideEncryption,
        progress_queue: "queue.Queue[ProgressUpdate]",
        callback: ProgressCallback,
        concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
        max_attempts: int = 3,
    ):
        self.s3_client = s3_client
        self.file = file
        self.import_id = import_id
        self.upload_id = upload_id
        self.file_chunk_size = file_chunk_size
        self.bucket = bucket
        self.key = key
        self.server_side_encryption = server_side_encryption
        self.progress_queue = progress_queue
        self.callback = callback
        self.concurrency_limit = concurrency_limit
        self.max_attempts = max_attempts
        self.bytes_sent = 0
        self._lock = threading.Lock()
        # set on the first failed part; parts not yet sent are skipped
        self._failed = threading.Event()

    @property
    def file_name(self) -> str:
        return self.file.file_name

    @property
    def file_size(self) -> int:
        return self.file.size

    def _require_upload_id(self) -> str:
        if not self.upload_id:
            raise S3MissingUploadIdError(f"no upload id for {self.file_name}")
        return self.upload_id

    def _upload_part(self, chunk, file_path: Path) -> Optional[dict]:
        upload_id = self._require_upload_id()
        if self._failed.is_set():
            logger.debug("Skipping part %d of %s after a failure", chunk.part_number, self.file_name)
            return None
        body = chunk.read()

        @retry(max_attempts=self.max_attempts)
        def send():
            return s3_call(
                "upload part",
                self.s3_client.upload_part,
                Body=body,
                Bucket=self.bucket,
                ContentLength=len(body),
                Key=self.key,
                PartNumber=chunk.part_number,
                UploadId=upload_id,
            )

        try:
            output = send()
        except BlackfynnError:
            self._failed.set()
            raise

        with self._lock:
            self.bytes_sent += len(body)
            update = ProgressUpdate(
                part_number=chunk.part_number,
                is_multipart=True,
                import_id=self.import_id,
                file_path=file_path,
                bytes_sent=self.bytes_sent,
                size=self.file_size,
            )
            self.callback.on_update(update)
            self.progress_queue.put(update)

        logger.debug(
            "Uploaded part %d of %s (%d/%d bytes)",
            chunk.part_number, self.file_name, update.bytes_sent, self.file_size,
        )
        return {"ETag": output.get("ETag"), "PartNumber": chunk.part_number}

    def upload_parts(self, path: PathLike) -> list[dict]:
        """
        Upload every part of the file, at most ``concurrency_limit`` at a time.

        Parts complete out of order; the returned list is in completion
        order. The first failure is raised, and parts not yet sent are
        skipped.
        """
        self._require_upload_id()
        file_path = Path(path) / self.file_name
        chunks = list(self.file.chunks(path, self.file_chunk_size))

        parts = []
        with ThreadPoolExecutor(max_workers=self.concurrency_limit) as executor:
            futures = [executor.submit(self._upload_part, chunk, file_path) for chunk in chunks]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for future in pending:
                future.cancel()
            for future in as_completed(done):
                part = future.result()
                if part is not None:
                    parts.append(part)
        return parts

    def complete(self, parts: list[dict]) -> Any:
        upload_id = self._require_upload_id()
        # S3 rejects the request unless parts are sorted by part number
        ordered = sorted(parts, key=lambda p: p["PartNumber"])
        return s3_call(
            "multipart upload complete",
            self.s3_client.complete_multipart_upload,
            Bucket=self.bucket,
            Key=self.key,
            UploadId=upload_id,
            MultipartUpload={"Parts": ordered},
        )

    def abort(self) -> Any:
        upload_id = self._require_upload_id()
        return s3_call(
            "multipart upload abort",
            self.s3_client.abort_multipart_upload,
            Bucket=self.bucket,
            Key=self.key,
            UploadId=upload_id,
        )


class S3Uploader:
    """Uploads files to the platform's S3 bucket."""

    def __init__(
        self,
        server_side_encryption: S3ServerSideEncryption,
        access_key: AccessKey,
        secret_key: SecretKey,
        session_token: SessionToken,
        region: Optional[str] = None,
        s3_client=None,
        max_attempts: int = 3,
    ):
        self.server_side_encryption = server_side_encryption
        self.s3_client = s3_client or create_s3_client(access_key, secret_key, session_token, region)
        self.file_chunk_size = S3_MIN_PART_SIZE
        self.concurrency_limit = DEFAULT_CONCURRENCY_LIMIT
        self.max_attempts = max_attempts
        self._progress_queue: "queue.Queue[ProgressUpdate]" = queue.Queue()
        self._progress_taken = False

    @classmethod
    def from_credential(
        cls,
        credential: TemporaryCredential,
        server_side_encryption: Optional[S3ServerSideEncryption] = None,
        **kwargs,
    ) -> "S3Uploader":
        return cls(
            server_side_encryption or S3ServerSideEncryption.default(),
            credential.access_key,
            credential.secret_key,
            credential.session_token,
            region=credential.region,
            **kwargs,
        )

    def progress(self) -> UploadProgress:
        """
        Return the progress poller for this uploader.

        Raises:
            BlackfynnError: If the poller was already handed out.
        """
        if self._progress_taken:
            raise BlackfynnError("upload progress poller already taken")
        self._progress_taken = True
        return UploadProgress(self._progress_queue)

    def set_file_chunk_size(self, file_chunk_size: int) -> "S3Uploader":
        if file_chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {file_chunk_size}")
        self.file_chunk_size = file_chunk_size
        return self

    def set_concurrency_limit(self, limit: int) -> "S3Uploader":
        if limit < 1:
            raise ValueError(f"Concurrency limit must be at least 1, got {limit}")
        self.concurrency_limit = limit
        return self

    def upload(
        self,
        path: PathLike,
        files: list[S3File],
        import_id: ImportId,
        credentials: UploadCredential,
        callback: Optional[Callback] = None,
    ) -> Iterator[ImportId]:
        """
        Upload files to S3.

        Files below ``S3_MIN_PART_SIZE`` are sent with ``PutObject``, the
        rest as multipart uploads. Yields the import ID once per completed
        multipart file and once more after all small files are sent.

        Raises:
            MultipartUploadAborted: If a multipart upload had to be aborted.
            S3Error: If a small file could not be uploaded.
        """
        callback = as_callback(callback)
        small = [f for f in files if f.size < S3_MIN_PART_SIZE]
        large = [f for f in files if f.size >= S3_MIN_PART_SIZE]

        for result in self.multipart_upload_files(path, large, import_id, credentials, callback):
            if result.is_aborted:
                raise MultipartUploadAborted(result.error, result.output)
            yield result.import_id

        yield self.put_objects(path, small, import_id, credentials, callback)

    def _put_object(
        self,
        path: PathLike,
        file: S3File,
        import_id: ImportId,
        credentials: UploadCredential,
        callback: ProgressCallback,
    ) -> ImportId:
        key = upload_key(credentials.s3_key, import_id, file.file_name)
        request = {
            "Body": file.read_bytes(path),
            "Bucket": credentials.s3_bucket,
            "Key": key,
            "ServerSideEncryption": self.server_side_encryption.value,
        }
        if self.server_side_encryption is S3ServerSideEncryption.KMS:
            request["SSEKMSKeyId"] = credentials.encryption_key_id

        retry(max_attempts=self.max_attempts)(s3_call)("put object", self.s3_client.put_object, **request)

        update = ProgressUpdate(
            part_number=1,
            is_multipart=False,
            import_id=import_id,
            file_path=file.path_in(path),
            bytes_sent=file.size,
            size=file.size,
        )
        callback.on_update(update)
        self._progress_queue.put(update)
        logger.debug("Uploaded %s to s3://%s/%s", file.file_name, credentials.s3_bucket, key)
        return import_id

    def put_objects(
        self,
        path: PathLike,
        files: list[S3File],
        import_id: ImportId,
        credentials: UploadCredential,
        callback: Optional[Callback] = None,
    ) -> ImportId:
        """Upload a collection of small files concurrently with ``PutObject``."""
        callback = as_callback(callback)
        if not files:
            return import_id

        with ThreadPoolExecutor(max_workers=self.concurrency_limit) as executor:
            futures = [
                executor.submit(self._put_object, path, f, import_id, credentials, callback)
                for f in files
            ]
            for future in as_completed(futures):
                try:
                    future.result()
                except S3Error:
                    raise
                except OSError as e:
                    raise S3Error(f"put objects :: {e}") from e
        return import_id

    def _begin_multipart_upload(
        self,
        file: S3File,
        import_id: ImportId,
        credentials: UploadCredential,
        callback: ProgressCallback,
    ) -> MultipartUploadFile:
        bucket = credentials.s3_bucket
        key = upload_key(credentials.s3_key, import_id, file.file_name)

        output = retry(max_attempts=self.max_attempts)(s3_call)(
            "begin multipart upload",
            self.s3_client.create_multipart_upload,
            Bucket=bucket,
            Key=key,
            ServerSideEncryption=self.server_side_encryption.value,
        )
        logger.info("Started multipart upload of %s (%d bytes)", file.file_name, file.size)

        return MultipartUploadFile(
            self.s3_client,
            file,
            import_id,
            output.get("UploadId"),
            self.file_chunk_size,
            bucket,
            key,
            self.server_side_encryption,
            self._progress_queue,
            callback,
            concurrency_limit=self.concurrency_limit,
            max_attempts=self.max_attempts,
        )

    def _multipart_upload_file(
        self,
        path: PathLike,
        file: S3File,
        import_id: ImportId,
        credentials: UploadCredential,
        callback: ProgressCallback,
    ) -> MultipartUploadResult:
        multipart = self._begin_multipart_upload(file, import_id, credentials, callback)

        try:
            parts = multipart.upload_parts(path)
            output = multipart.complete(parts)
        except (BlackfynnError, OSError) as e:
            error = e if isinstance(e, BlackfynnError) else S3Error(f"upload parts :: {e}")
            logger.warning("Aborting multipart upload of %s: %s", file.file_name, error)
            return MultipartUploadResult.abort(error, multipart.abort())

        logger.info("Completed multipart upload of %s", file.file_name)
        return MultipartUploadResult.complete(import_id, output)

    def multipart_upload_files(
        self,
        path: PathLike,
        files: list[S3File],
        import_id: ImportId,
        credentials: UploadCredential,
        callback: Optional[Callback] = None,
    ) -> Iterator[MultipartUploadResult]:
        """Multipart upload each file in turn, yielding one result per file."""
        callback = as_callback(callback)
        for file in files:
            yield self._multipart_upload_file(path, file, import_id, credentials, callback)
