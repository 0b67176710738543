"""
Unit tests for the S3 uploader.
"""

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from blackfynn.api.s3 import (
    DEFAULT_CONCURRENCY_LIMIT,
    MB,
    S3_MIN_PART_SIZE,
    MultipartUploadFile,
    MultipartUploadResult,
    S3Uploader,
    s3_call,
)
from blackfynn.errors import (
    BlackfynnError,
    MultipartUploadAborted,
    S3Error,
    S3MissingUploadIdError,
)
from blackfynn.model import S3File, S3ServerSideEncryption

from fixtures import FakeS3Client, SlowS3Client


KMS_KEY = "arn:aws:kms:us-east-1:000000000000:key/example"


def slow_down():
    return ClientError({"Error": {"Code": "SlowDown", "Message": "Please reduce your request rate"}}, "UploadPart")


class NoUploadIdS3Client(FakeS3Client):
    def create_multipart_upload(self, **kwargs):
        self._record("create_multipart_upload", kwargs)
        return {}


class TestS3Call:
    """Tests for botocore error translation."""

    def test_client_error(self):
        def fail(**kwargs):
            raise slow_down()

        with pytest.raises(S3Error, match="put object"):
            s3_call("put object", fail, Bucket="b")

    def test_botocore_error(self):
        def fail(**kwargs):
            raise EndpointConnectionError(endpoint_url="https://s3.example")

        with pytest.raises(S3Error):
            s3_call("put object", fail)

    def test_passes_kwargs(self):
        assert s3_call("echo", lambda **kw: kw, Key="k") == {"Key": "k"}


class TestMultipartUploadResult:
    """Tests for MultipartUploadResult."""

    def test_complete(self):
        result = MultipartUploadResult.complete("import-1", {"Location": "x"})
        assert result.is_completed
        assert not result.is_aborted
        assert result.import_id == "import-1"

    def test_abort(self):
        error = S3Error("boom")
        result = MultipartUploadResult.abort(error, {"RequestCharged": "requester"})
        assert result.is_aborted
        assert result.error is error


class TestUploaderSettings:
    """Tests for uploader configuration."""

    def test_defaults(self, uploader):
        assert uploader.file_chunk_size == S3_MIN_PART_SIZE == 5 * MB
        assert uploader.concurrency_limit == DEFAULT_CONCURRENCY_LIMIT == 4

    def test_setters_chain(self, uploader):
        assert uploader.set_file_chunk_size(MB).set_concurrency_limit(2) is uploader
        assert uploader.file_chunk_size == MB
        assert uploader.concurrency_limit == 2

    def test_invalid_settings(self, uploader):
        with pytest.raises(ValueError):
            uploader.set_file_chunk_size(0)
        with pytest.raises(ValueError):
            uploader.set_concurrency_limit(0)

    def test_progress_taken_once(self, uploader):
        uploader.progress()
        with pytest.raises(BlackfynnError, match="already taken"):
            uploader.progress()


class TestPutObjects:
    """Tests for small file uploads."""

    def test_put_objects_kms(self, uploader, s3_client, upload_dir, upload_credential):
        files = [S3File.new(upload_dir, "a.txt"), S3File.new(upload_dir, "b.csv")]
        seen = []

        result = uploader.put_objects(upload_dir, files, "import-1", upload_credential, seen.append)

        assert result == "import-1"
        assert s3_client.objects == {
            "ada@example.org/data/import-1/a.txt": b"abc",
            "ada@example.org/data/import-1/b.csv": b"x,y\n1,2\n",
        }
        for name, kwargs in s3_client.calls:
            assert kwargs["Bucket"] == "platform-uploads"
            assert kwargs["ServerSideEncryption"] == "aws:kms"
            assert kwargs["SSEKMSKeyId"] == KMS_KEY
        assert sorted((u.file_path.name, u.bytes_sent, u.is_multipart) for u in seen) == [
            ("a.txt", 3, False),
            ("b.csv", 8, False),
        ]
        assert all(u.completed for u in seen)

    def test_put_objects_aes256(self, s3_client, upload_dir, upload_credential):
        uploader = S3Uploader(
            S3ServerSideEncryption.AES256, "a", "s", "t", s3_client=s3_client
        )
        uploader.put_objects(upload_dir, [S3File.new(upload_dir, "a.txt")], "import-1", upload_credential)
        (_, kwargs), = s3_client.calls
        assert kwargs["ServerSideEncryption"] == "AES256"
        assert "SSEKMSKeyId" not in kwargs

    def test_put_objects_no_files(self, uploader, s3_client, upload_dir, upload_credential):
        assert uploader.put_objects(upload_dir, [], "import-1", upload_credential) == "import-1"
        assert s3_client.calls == []

    def test_put_object_failure(self, upload_dir, upload_credential):
        class FailingPut(FakeS3Client):
            def put_object(self, **kwargs):
                self._record("put_object", kwargs)
                raise slow_down()

        s3_client = FailingPut()
        uploader = S3Uploader(S3ServerSideEncryption.KMS, "a", "s", "t", s3_client=s3_client)
        with pytest.raises(S3Error, match="put object"):
            uploader.put_objects(upload_dir, [S3File.new(upload_dir, "a.txt")], "import-1", upload_credential)
        assert s3_client.names() == ["put_object"] * 3

    def test_progress_poller_sees_put_objects(self, uploader, upload_dir, upload_credential):
        progress = uploader.progress()
        uploader.put_objects(upload_dir, [S3File.new(upload_dir, "a.txt")], "import-1", upload_credential)
        assert progress.completed
        assert progress.bytes_sent == 3


class TestMultipartUpload:
    """Tests for multipart uploads."""

    def test_parts_uploaded_and_sorted(self, uploader, s3_client, large_file, upload_credential):
        uploader.set_file_chunk_size(MB).set_concurrency_limit(3)
        file = S3File.from_file_path(large_file)

        results = list(uploader.multipart_upload_files(large_file.parent, [file], "import-1", upload_credential))

        assert len(results) == 1 and results[0].is_completed
        key = "ada@example.org/data/import-1/big.bin"
        create = [kw for name, kw in s3_client.calls if name == "create_multipart_upload"][0]
        assert create == {"Bucket": "platform-uploads", "Key": key, "ServerSideEncryption": "aws:kms"}

        complete = [kw for name, kw in s3_client.calls if name == "complete_multipart_upload"][0]
        parts = complete["MultipartUpload"]["Parts"]
        assert [p["PartNumber"] for p in parts] == [1, 2, 3, 4, 5, 6]
        assert parts[0] == {"ETag": '"etag-1"', "PartNumber": 1}
        assert complete["UploadId"] == f"mpu-{key}"

        body = b"".join(s3_client.parts[(key, n)] for n in range(1, 7))
        assert body == large_file.read_bytes()

    def test_progress_is_cumulative(self, uploader, large_file, upload_credential):
        uploader.set_file_chunk_size(MB)
        progress = uploader.progress()
        seen = []
        file = S3File.from_file_path(large_file)

        list(uploader.multipart_upload_files(large_file.parent, [file], "import-1", upload_credential, seen.append))

        assert len(seen) == 6
        sent = [u.bytes_sent for u in seen]
        assert sent == sorted(sent)
        assert sent[-1] == file.size
        assert all(u.is_multipart for u in seen)
        assert progress.completed
        assert progress.bytes_sent == file.size

    def test_part_failure_aborts(self, large_file, upload_credential, no_sleep):
        s3_client = FakeS3Client(fail_parts={2}, part_error=slow_down())
        uploader = S3Uploader(S3ServerSideEncryption.KMS, "a", "s", "t", s3_client=s3_client)
        file = S3File.from_file_path(large_file)

        (result,) = uploader.multipart_upload_files(large_file.parent, [file], "import-1", upload_credential)

        assert result.is_aborted
        assert isinstance(result.error, S3Error)
        assert result.output == {"RequestCharged": "requester"}
        names = s3_client.names()
        assert names.count("upload_part") == 1 + 3
        assert "complete_multipart_upload" not in names
        assert names[-1] == "abort_multipart_upload"

    def test_complete_failure_aborts(self, large_file, upload_credential):
        complete_error = ClientError({"Error": {"Code": "InvalidPart", "Message": "x"}}, "CompleteMultipartUpload")
        s3_client = FakeS3Client(fail_complete=complete_error)
        uploader = S3Uploader(S3ServerSideEncryption.KMS, "a", "s", "t", s3_client=s3_client)
        file = S3File.from_file_path(large_file)

        (result,) = uploader.multipart_upload_files(large_file.parent, [file], "import-1", upload_credential)

        assert result.is_aborted
        assert "multipart upload complete" in str(result.error)
        assert s3_client.names()[-1] == "abort_multipart_upload"

    def test_parts_finishing_out_of_order_are_sorted(self, large_file, upload_credential):
        s3_client = SlowS3Client()
        uploader = S3Uploader(S3ServerSideEncryption.KMS, "a", "s", "t", s3_client=s3_client)
        uploader.set_file_chunk_size(MB).set_concurrency_limit(3)
        file = S3File.from_file_path(large_file)

        (result,) = uploader.multipart_upload_files(large_file.parent, [file], "import-1", upload_credential)

        assert result.is_completed
        assert s3_client.finished != sorted(s3_client.finished)
        complete = [kw for name, kw in s3_client.calls if name == "complete_multipart_upload"][0]
        assert [p["PartNumber"] for p in complete["MultipartUpload"]["Parts"]] == [1, 2, 3, 4, 5, 6]

    @pytest.mark.parametrize("limit", [1, 2, 4])
    def test_concurrency_limit_bounds_parts_in_flight(self, large_file, upload_credential, limit):
        s3_client = SlowS3Client(delay=0.005)
        uploader = S3Uploader(S3ServerSideEncryption.KMS, "a", "s", "t", s3_client=s3_client)
        uploader.set_file_chunk_size(MB).set_concurrency_limit(limit)
        file = S3File.from_file_path(large_file)

        (result,) = uploader.multipart_upload_files(large_file.parent, [file], "import-1", upload_credential)

        assert result.is_completed
        assert 1 <= s3_client.peak <= limit
        assert sorted(s3_client.finished) == [1, 2, 3, 4, 5, 6]

    def test_no_parts_sent_after_failure(self, large_file, upload_credential):
        s3_client = FakeS3Client(fail_parts={2}, part_error=slow_down())
        uploader = S3Uploader(S3ServerSideEncryption.KMS, "a", "s", "t", s3_client=s3_client)
        uploader.set_file_chunk_size(MB).set_concurrency_limit(1)
        file = S3File.from_file_path(large_file)

        (result,) = uploader.multipart_upload_files(large_file.parent, [file], "import-1", upload_credential)

        assert result.is_aborted
        sent = [kw["PartNumber"] for name, kw in s3_client.calls if name == "upload_part"]
        assert sent == [1, 2, 2, 2]
        assert s3_client.names()[-1] == "abort_multipart_upload"

    def test_missing_upload_id(self, large_file, upload_credential):
        uploader = S3Uploader(S3ServerSideEncryption.KMS, "a", "s", "t", s3_client=NoUploadIdS3Client())
        file = S3File.from_file_path(large_file)
        with pytest.raises(S3MissingUploadIdError):
            list(uploader.multipart_upload_files(large_file.parent, [file], "import-1", upload_credential))

    def test_multipart_file_requires_upload_id(self, s3_client, large_file):
        multipart = MultipartUploadFile(
            s3_client,
            S3File.from_file_path(large_file),
            "import-1",
            None,
            S3_MIN_PART_SIZE,
            "bucket",
            "key",
            S3ServerSideEncryption.KMS,
            None,
            None,
        )
        with pytest.raises(S3MissingUploadIdError):
            multipart.complete([])
        with pytest.raises(S3MissingUploadIdError):
            multipart.abort()
        with pytest.raises(S3MissingUploadIdError):
            multipart.upload_parts(large_file.parent)
        assert s3_client.calls == []


class TestUpload:
    """Tests for the combined upload entry point."""

    def test_upload_partitions_by_size(self, uploader, s3_client, large_file, upload_credential):
        (large_file.parent / "small.txt").write_bytes(b"hello")
        files = [S3File.from_file_path(large_file), S3File.new(large_file.parent, "small.txt")]

        import_ids = list(uploader.upload(large_file.parent, files, "import-1", upload_credential))

        assert import_ids == ["import-1", "import-1"]
        names = s3_client.names()
        assert names.count("put_object") == 1
        assert names.count("upload_part") == 2
        assert names.count("complete_multipart_upload") == 1
        assert list(s3_client.objects) == ["ada@example.org/data/import-1/small.txt"]

    def test_upload_small_files_only(self, uploader, s3_client, upload_dir, upload_credential):
        files = [S3File.new(upload_dir, "a.txt")]
        assert list(uploader.upload(upload_dir, files, "import-1", upload_credential)) == ["import-1"]
        assert "create_multipart_upload" not in s3_client.names()

    def test_upload_raises_on_abort(self, large_file, upload_credential):
        s3_client = FakeS3Client(fail_parts={1}, part_error=slow_down())
        uploader = S3Uploader(S3ServerSideEncryption.KMS, "a", "s", "t", s3_client=s3_client)
        files = [S3File.from_file_path(large_file)]

        with pytest.raises(MultipartUploadAborted) as excinfo:
            list(uploader.upload(large_file.parent, files, "import-1", upload_credential))

        assert isinstance(excinfo.value.cause, S3Error)
        assert excinfo.value.abort_output == {"RequestCharged": "requester"}
