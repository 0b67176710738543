"""
Pytest configuration and shared fixtures.
"""

import importlib
import sys
from pathlib import Path
from types import SimpleNamespace
import pytest

# Add src and the tests directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from blackfynn.api import Blackfynn, S3Uploader
from blackfynn.config import Config, Environment
from blackfynn.model import S3ServerSideEncryption, UploadCredential

from fixtures import UPLOAD_CREDENTIAL, FakeS3Client, FakeSession


# ============================================================================
# Pytest Hooks
# ============================================================================


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: mark as integration test")
    config.addinivalue_line("markers", "network: mark as requiring network access")


# ============================================================================
# Base Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    """Make retry backoff instantaneous; returns the recorded delays."""
    delays = []
    # blackfynn.util.retry is shadowed by the decorator of the same name
    retry_module = importlib.import_module("blackfynn.util.retry")
    monkeypatch.setattr(retry_module, "time", SimpleNamespace(sleep=delays.append))
    return delays


@pytest.fixture
def config():
    """A development environment configuration."""
    return Config(env=Environment.DEVELOPMENT)


@pytest.fixture
def session():
    """A fake HTTP session with no routes."""
    return FakeSession()


@pytest.fixture
def client(config, session):
    """A client talking to the fake session."""
    return Blackfynn(config, session=session)


@pytest.fixture
def logged_in_client(client):
    """A client holding a session token and organization."""
    return client.with_session_token("session-abc").with_current_organization("N:organization:0001")


# ============================================================================
# Upload Fixtures
# ============================================================================


@pytest.fixture
def upload_credential():
    return UploadCredential.from_dict(UPLOAD_CREDENTIAL)


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def uploader(s3_client):
    """An uploader backed by a fake S3 client."""
    return S3Uploader(
        S3ServerSideEncryption.KMS,
        "ASIAEXAMPLE",
        "secret-example",
        "token-example",
        s3_client=s3_client,
    )


# ============================================================================
# Temporary File Fixtures
# ============================================================================


@pytest.fixture
def upload_dir(tmp_path):
    """A directory with two small files to upload."""
    (tmp_path / "a.txt").write_bytes(b"abc")
    (tmp_path / "b.csv").write_bytes(b"x,y\n1,2\n")
    return tmp_path


@pytest.fixture
def large_file(tmp_path):
    """A file just over the multipart threshold (5 MiB + 10 bytes)."""
    path = tmp_path / "big.bin"
    path.write_bytes(bytes(range(256)) * (5 * 4096) + b"0123456789")
    return path
