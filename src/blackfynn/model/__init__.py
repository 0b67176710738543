# Platform resource models
from .types import (
    AccessKey,
    DatasetId,
    ImportId,
    ModelId,
    MultipartUploadId,
    OrganizationId,
    PackageId,
    RecordId,
    S3Bucket,
    S3EncryptionKeyId,
    S3Key,
    SecretKey,
    SessionToken,
    TeamId,
    UploadId,
    parse_datetime,
)
from .aws import S3ServerSideEncryption, S3UploadKey, upload_key
from .account import Organization, Team, User
from .package import Channel, Dataset, File, FileObjectType, Package, PackageState, PackageType
from .security import TemporaryCredential, UploadCredential
from .concept import Model, Record, RecordDatum
from .upload import (
    ChunkedUploadProperties,
    ETLJobType,
    ManifestEntry,
    PackagePreview,
    S3File,
    S3FileChunk,
    file_chunks,
)

__all__ = [
    "AccessKey",
    "DatasetId",
    "ImportId",
    "ModelId",
    "MultipartUploadId",
    "OrganizationId",
    "PackageId",
    "RecordId",
    "S3Bucket",
    "S3EncryptionKeyId",
    "S3Key",
    "SecretKey",
    "SessionToken",
    "TeamId",
    "UploadId",
    "parse_datetime",
    "S3ServerSideEncryption",
    "S3UploadKey",
    "upload_key",
    "Organization",
    "Team",
    "User",
    "Channel",
    "Dataset",
    "File",
    "FileObjectType",
    "Package",
    "PackageState",
    "PackageType",
    "TemporaryCredential",
    "UploadCredential",
    "Model",
    "Record",
    "RecordDatum",
    "ChunkedUploadProperties",
    "ETLJobType",
    "ManifestEntry",
    "PackagePreview",
    "S3File",
    "S3FileChunk",
    "file_chunks",
]
