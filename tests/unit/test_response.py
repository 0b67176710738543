"""
Unit tests for response envelopes.
"""

import pytest

from blackfynn.api import response
from blackfynn.errors import JsonError
from blackfynn.model import FileObjectType

from fixtures import DATASET, ORGANIZATIONS, PACKAGE, SESSION, TEAM, manifest, upload_preview


class TestApiSession:
    """Tests for the login response."""

    def test_snake_case(self):
        session = response.ApiSession.from_dict(SESSION)
        assert session.session_token == "session-abc"
        assert session.organization == "N:organization:0001"
        assert session.expires_in == 3600

    def test_camel_case(self):
        session = response.ApiSession.from_dict({"sessionToken": "t", "expiresIn": "60"})
        assert session.session_token == "t"
        assert session.organization is None
        assert session.expires_in == 60

    def test_missing_token(self):
        with pytest.raises(JsonError, match="session token"):
            response.ApiSession.from_dict({"organization": "N:organization:0001"})

    def test_token_not_in_repr(self):
        assert "session-abc" not in repr(response.ApiSession.from_dict(SESSION))


class TestEnvelopes:
    """Tests for resource envelopes."""

    def test_organizations(self):
        orgs = response.Organizations.from_dict(ORGANIZATIONS)
        assert len(orgs) == 2
        first, second = list(orgs)
        assert first.is_admin
        assert first.owners[0].email == "ada@example.org"
        assert second.into_inner().name == "Difference Engines"
        assert not second.is_owner

    def test_team(self):
        team = response.Team.from_dict(TEAM)
        assert team.into_inner().name == "Curators"
        assert team.member_count == 4

    def test_package_with_objects(self):
        package = response.Package.from_dict(PACKAGE)
        assert package.into_inner().name == "scan.nii"
        assert package.channels[0].into_inner().name == "ch1"
        assert package.children is None
        source = package.objects.source[0].into_inner()
        assert source.object_type is FileObjectType.SOURCE
        assert package.objects.view is None

    def test_dataset_with_children(self):
        dataset = response.Dataset.from_dict(DATASET)
        assert dataset.into_inner().id == "N:dataset:1234"
        assert dataset.owner == "N:user:1111"
        assert [c.into_inner().id for c in dataset.children] == ["N:package:5678"]

    def test_dataset_missing_owner(self):
        data = dict(DATASET)
        del data["owner"]
        with pytest.raises(JsonError, match="owner"):
            response.Dataset.from_dict(data)

    def test_upload_preview(self):
        preview = response.UploadPreview.from_dict(upload_preview([("a.txt", 3)]))
        packages = list(preview)
        assert len(packages) == 1
        assert packages[0].files[0].file_name == "a.txt"

    def test_manifest(self):
        result = response.Manifest.from_list(manifest())
        assert len(result) == 1
        assert next(iter(result)).import_id == "import-1"

    def test_empty_manifest(self):
        assert len(response.Manifest.from_list(None)) == 0

    def test_manifest_not_a_list(self):
        with pytest.raises(JsonError, match="Expected a JSON array for Manifest"):
            response.Manifest.from_list(manifest()[0])

    def test_manifest_entry_with_wrong_shape(self):
        entry = {"manifest": ["not", "an", "object"]}
        with pytest.raises(JsonError, match="ManifestEntry.manifest"):
            response.Manifest.from_list([entry])

    @pytest.mark.parametrize(
        "envelope",
        [response.Organizations, response.Organization, response.Team, response.Package, response.Dataset],
    )
    def test_envelope_from_none(self, envelope):
        with pytest.raises(JsonError, match="got NoneType"):
            envelope.from_dict(None)
