"""
Files selected for upload, their S3 chunks, and the platform's view of an
upload (previews and manifests).
"""

import math
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional, Union

from ..errors import InvalidUnicodePathError, JsonError, UploadFileError
from .package import PackageType
from .types import (
    ImportId,
    MultipartUploadId,
    S3EncryptionKeyId,
    UploadId,
    require,
    require_object,
)


PathLike = Union[str, os.PathLike]


@dataclass(frozen=True)
class ChunkedUploadProperties:
    chunk_size: int
    total_chunks: int

    def to_dict(self) -> dict:
        return {"chunkSize": self.chunk_size, "totalChunks": self.total_chunks}

    @classmethod
    def from_dict(cls, data: dict) -> "ChunkedUploadProperties":
        data = require_object(data, "ChunkedUploadProperties")
        return cls(
            chunk_size=int(require(data, "chunkSize")),
            total_chunks=int(require(data, "totalChunks")),
        )


class S3FileChunk:
    """One part of a file, read lazily from disk."""

    def __init__(self, path: PathLike, file_size: int, chunk_size: int, index: int):
        offset = chunk_size * index
        if offset > file_size:
            raise ValueError(f"Chunk {index} starts past the end of {path}")
        self.path = Path(path)
        self.file_size = file_size
        self.chunk_size = chunk_size
        self.index = index

    @property
    def offset(self) -> int:
        return self.chunk_size * self.index

    @property
    def length(self) -> int:
        return min(self.chunk_size, self.file_size - self.offset)

    @property
    def part_number(self) -> int:
        """The S3 multipart part number. S3 part numbers are 1-based."""
        return self.index + 1

    def read(self) -> bytes:
        with open(self.path, "rb") as f:
            f.seek(self.offset)
            data = f.read(self.length)
        if len(data) != self.length:
            raise UploadFileError(
                f"Short read on {self.path}: expected {self.length} bytes, got {len(data)}"
            )
        return data

    def __repr__(self) -> str:
        return f"S3FileChunk(path={str(self.path)!r}, part_number={self.part_number}, length={self.length})"


def file_chunks(path: PathLike, file_size: int, chunk_size: int) -> list[S3FileChunk]:
    """
    Divide a file into chunks of ``chunk_size`` bytes.

    There is always at least one chunk, so an empty file yields a single
    empty chunk.
    """
    if chunk_size <= 0:
        raise ValueError(f"Chunk size must be positive, got {chunk_size}")
    nchunks = max(1, math.ceil(file_size / chunk_size))
    return [S3FileChunk(path, file_size, chunk_size, i) for i in range(nchunks)]


@dataclass
class S3File:
    """A file to be uploaded."""
    file_name: str
    size: int
    upload_id: Optional[UploadId] = None
    chunked_upload: Optional[ChunkedUploadProperties] = None
    multipart_upload_id: Optional[MultipartUploadId] = None

    @staticmethod
    def _normalize(path: PathLike, file: PathLike) -> tuple[str, int]:
        """
        Check that ``path / file`` exists, is a regular file and has a name
        representable as UTF-8. Returns the file name and size.
        """
        joined = Path(path) / Path(file)
        try:
            file_path = joined.resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise UploadFileError(f"Could not read: {joined} ({e})") from e

        if not file_path.is_file():
            raise UploadFileError(f"Not a file: {file_path}")

        file_name = file_path.name
        try:
            file_name.encode("utf-8")
        except UnicodeEncodeError:
            raise InvalidUnicodePathError(file_path)

        return file_name, file_path.stat().st_size

    @classmethod
    def new(
        cls,
        path: PathLike,
        file: PathLike,
        upload_id: Optional[UploadId] = None,
    ) -> "S3File":
        file_name, size = cls._normalize(path, file)
        return cls(file_name=file_name, size=size, upload_id=upload_id)

    @classmethod
    def from_file_path(cls, file_path: PathLike, upload_id: Optional[UploadId] = None) -> "S3File":
        file_path = Path(file_path)
        if not file_path.name:
            raise UploadFileError(f"Could not destructure path: {file_path}")
        return cls.new(file_path.parent, file_path.name, upload_id)

    def with_chunk_size(self, chunk_size: Optional[int]) -> "S3File":
        if chunk_size is None:
            return replace(self, chunked_upload=None)
        if chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")
        return replace(
            self,
            chunked_upload=ChunkedUploadProperties(
                chunk_size=chunk_size,
                total_chunks=self.size // chunk_size + 1,
            ),
        )

    def with_multipart_upload_id(self, multipart_upload_id: Optional[MultipartUploadId]) -> "S3File":
        return replace(self, multipart_upload_id=multipart_upload_id)

    def path_in(self, from_path: PathLike) -> Path:
        return Path(from_path) / self.file_name

    def read_bytes(self, from_path: PathLike) -> bytes:
        return self.path_in(from_path).read_bytes()

    def chunks(self, from_path: PathLike, chunk_size: int) -> Iterator[S3FileChunk]:
        return iter(file_chunks(self.path_in(from_path), self.size, chunk_size))

    def to_dict(self) -> dict:
        return {
            "fileName": self.file_name,
            "uploadId": self.upload_id,
            "size": self.size,
            "chunkedUpload": self.chunked_upload.to_dict() if self.chunked_upload else None,
            "multipartUploadId": self.multipart_upload_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "S3File":
        data = require_object(data, "S3File")
        chunked = data.get("chunkedUpload")
        upload_id = data.get("uploadId")
        multipart_upload_id = data.get("multipartUploadId")
        return cls(
            file_name=require(data, "fileName"),
            size=int(require(data, "size")),
            upload_id=UploadId(int(upload_id)) if upload_id is not None else None,
            chunked_upload=ChunkedUploadProperties.from_dict(chunked) if chunked else None,
            multipart_upload_id=MultipartUploadId(multipart_upload_id) if multipart_upload_id else None,
        )


@dataclass
class PackagePreview:
    """A preview of how a collection of uploaded files will be packaged."""
    package_name: str
    import_id: ImportId
    files: list[S3File] = field(default_factory=list)
    package_type: Optional[PackageType] = None
    file_type: Optional[str] = None
    group_size: int = 0

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.files)

    @classmethod
    def from_dict(cls, data: dict) -> "PackagePreview":
        data = require_object(data, "PackagePreview")
        return cls(
            package_name=require(data, "packageName"),
            import_id=ImportId(require(data, "importId")),
            files=[S3File.from_dict(f) for f in data.get("files", [])],
            package_type=PackageType.parse(data.get("packageType")),
            file_type=data.get("fileType"),
            group_size=int(data.get("groupSize", 0)),
        )


class ETLJobType(Enum):
    UPLOAD = "upload"
    APPEND = "append"


@dataclass
class ManifestEntry:
    """A processing job created by the platform for a completed upload."""
    job_type: ETLJobType
    import_id: ImportId
    file_type: str
    uploaded_files: list[str]
    upload_directory: str
    storage_directory: str
    encryption_key: S3EncryptionKeyId
    size: int
    package_type: Optional[PackageType] = None

    @property
    def files(self) -> list[str]:
        """Uploaded files, relative to the platform's S3 bucket."""
        return self.uploaded_files

    @classmethod
    def from_dict(cls, data: dict) -> "ManifestEntry":
        data = require_object(data, "ManifestEntry")
        manifest = require_object(require(data, "manifest"), "ManifestEntry.manifest")
        content = require_object(require(manifest, "content"), "ManifestEntry.content")
        job_type = require(manifest, "type")
        try:
            job_type = ETLJobType(job_type.lower())
        except (ValueError, AttributeError):
            raise JsonError(f"Invalid ETL job type: {job_type}")
        return cls(
            job_type=job_type,
            import_id=ImportId(require(manifest, "importId")),
            file_type=require(content, "fileType"),
            uploaded_files=list(content.get("uploadedFiles", [])),
            upload_directory=require(content, "uploadDirectory"),
            storage_directory=require(content, "storageDirectory"),
            encryption_key=S3EncryptionKeyId(require(content, "encryptionKey")),
            size=int(require(content, "size")),
            package_type=PackageType.parse(content.get("packageType")),
        )
