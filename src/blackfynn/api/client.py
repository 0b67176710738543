"""
Client for the Blackfynn platform REST API.
"""

import json
import logging
from typing import Any, Iterable, Optional

import requests

from .. import model
from ..config import Config
from ..errors import ApiError, HttpError, JsonError
from ..model.types import require_list
from ..model.upload import PathLike
from ..util.retry import retry
from . import request as payloads
from . import response
from .s3 import S3Uploader


logger = logging.getLogger(__name__)


def _bool_param(value: bool) -> str:
    return "true" if value else "false"


class Blackfynn:
    """
    Synchronous client for the Blackfynn platform.

    Holds the configuration, an HTTP session and the current session token
    and organization. A session token is obtained with ``login`` and is
    sent with every following request.
    """

    def __init__(self, config: Optional[Config] = None, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: Client configuration (default: read from the environment).
            session: HTTP session to send requests with (for testing).
        """
        self.config = config if config is not None else Config.from_env()
        self.session = session if session is not None else requests.Session()
        self._session_token: Optional[model.SessionToken] = None
        self._current_organization: Optional[model.OrganizationId] = None

    # Session state

    def has_session(self) -> bool:
        return self._session_token is not None

    @property
    def session_token(self) -> Optional[model.SessionToken]:
        return self._session_token

    def set_session_token(self, token: Optional[model.SessionToken]) -> None:
        self._session_token = token

    def with_session_token(self, token: Optional[model.SessionToken]) -> "Blackfynn":
        self.set_session_token(token)
        return self

    @property
    def current_organization(self) -> Optional[model.OrganizationId]:
        return self._current_organization

    def set_current_organization(self, organization_id: Optional[model.OrganizationId]) -> None:
        self._current_organization = organization_id

    def with_current_organization(self, organization_id: Optional[model.OrganizationId]) -> "Blackfynn":
        self.set_current_organization(organization_id)
        return self

    # Request core

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self._session_token is not None:
            headers["X-SESSION-ID"] = self._session_token
        return headers

    def _send(self, method: str, url: str, params: Optional[dict], payload: Optional[dict]) -> Any:
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                data=json.dumps(payload) if payload is not None else None,
                headers=self._headers(),
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise HttpError(f"{method} {url} :: {e}") from e

        if resp.status_code >= 400:
            raise ApiError(resp.status_code, resp.text)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise JsonError(f"Invalid JSON response from {method} {url}: {e}") from e

    def request(
        self,
        method: str,
        route: str,
        params: Optional[dict] = None,
        payload: Optional[Any] = None,
    ) -> Any:
        """
        Send a request to the API and decode its JSON response.

        Every method is retried on rate limiting, server errors and transport
        failures, up to ``Config.max_retries`` attempts. This includes
        ``POST``: a create whose response was lost may be applied twice.

        Args:
            method: HTTP method.
            route: Path below the API base URL, e.g. ``/datasets/``.
            params: Query parameters.
            payload: Request body; request payload objects are rendered
                with their ``to_dict``.

        Returns:
            The decoded JSON body, or None for an empty body.

        Raises:
            ApiError: If the API answers with a 4xx or 5xx status.
            HttpError: If the request could not be delivered.
            JsonError: If the body is not valid JSON.
        """
        url = f"{self.config.api_url()}{route}"
        if payload is not None and hasattr(payload, "to_dict"):
            payload = payload.to_dict()

        send = retry(max_attempts=self.config.max_retries)(self._send)
        return send(method, url, params, payload)

    def get(self, route: str, params: Optional[dict] = None) -> Any:
        return self.request("GET", route, params=params)

    def post(self, route: str, params: Optional[dict] = None, payload: Optional[Any] = None) -> Any:
        return self.request("POST", route, params=params, payload=payload)

    def put(self, route: str, params: Optional[dict] = None, payload: Optional[Any] = None) -> Any:
        return self.request("PUT", route, params=params, payload=payload)

    def delete(self, route: str, params: Optional[dict] = None) -> Any:
        return self.request("DELETE", route, params=params)

    # Account

    def login(self, api_key: str, api_secret: str) -> response.ApiSession:
        """
        Log in with an API key and secret.

        On success the session token and organization are kept for later
        requests. A failed login leaves the current session untouched.
        """
        data = self.post("/account/api/session", payload=payloads.ApiLogin(api_key, api_secret))
        session = response.ApiSession.from_dict(data)
        self._session_token = session.session_token
        self._current_organization = session.organization
        logger.info("Logged in to %s", self.config.env.value)
        return session

    def logout(self) -> None:
        self._session_token = None
        self._current_organization = None

    def get_user(self) -> model.User:
        return model.User.from_dict(self.get("/user/"))

    def set_preferred_organization(self, organization_id: model.OrganizationId) -> model.User:
        """Make an organization the user's preferred one and switch to it."""
        update = payloads.UserUpdate(organization=organization_id)
        user = model.User.from_dict(self.put("/user/", payload=update))
        self._current_organization = user.preferred_organization or organization_id
        return user

    # Organizations

    def organizations(self) -> response.Organizations:
        return response.Organizations.from_dict(self.get("/organizations/"))

    def organization_by_id(self, organization_id: model.OrganizationId) -> response.Organization:
        return response.Organization.from_dict(self.get(f"/organizations/{organization_id}"))

    def members(self, organization_id: model.OrganizationId) -> list[model.User]:
        data = self.get(f"/organizations/{organization_id}/members")
        return [model.User.from_dict(u) for u in require_list(data, "members")]

    def teams(self, organization_id: model.OrganizationId) -> list[response.Team]:
        data = self.get(f"/organizations/{organization_id}/teams")
        return [response.Team.from_dict(t) for t in require_list(data, "teams")]

    # Datasets

    def datasets(self) -> list[response.Dataset]:
        data = self.get("/datasets/")
        return [response.Dataset.from_dict(d) for d in require_list(data, "datasets")]

    def dataset_by_id(self, dataset_id: model.DatasetId) -> response.Dataset:
        return response.Dataset.from_dict(self.get(f"/datasets/{dataset_id}"))

    def create_dataset(
        self,
        name: str,
        description: Optional[str] = None,
        automatically_process_packages: bool = False,
    ) -> response.Dataset:
        payload = payloads.CreateDataset(name, description, automatically_process_packages)
        return response.Dataset.from_dict(self.post("/datasets", payload=payload))

    def update_dataset(
        self,
        dataset_id: model.DatasetId,
        name: str,
        description: Optional[str] = None,
    ) -> response.Dataset:
        payload = payloads.UpdateDataset(name, description)
        return response.Dataset.from_dict(self.put(f"/datasets/{dataset_id}", payload=payload))

    def delete_dataset(self, dataset_id: model.DatasetId) -> None:
        self.delete(f"/datasets/{dataset_id}")

    # Packages

    def package_by_id(
        self,
        package_id: model.PackageId,
        include: Optional[Iterable[model.FileObjectType]] = None,
    ) -> response.Package:
        """
        Fetch a package.

        Args:
            package_id: The package to fetch.
            include: Object types (source, file, view) to include in the
                package's ``objects`` map.
        """
        params = None
        if include:
            params = {"include": ",".join(model.FileObjectType(t).value for t in include)}
        return response.Package.from_dict(self.get(f"/packages/{package_id}", params=params))

    def create_package(
        self,
        name: str,
        package_type: model.PackageType,
        dataset_id: model.DatasetId,
    ) -> response.Package:
        payload = payloads.CreatePackage(name, package_type, dataset_id)
        return response.Package.from_dict(self.post("/packages", payload=payload))

    def update_package(self, package_id: model.PackageId, name: str) -> response.Package:
        payload = payloads.UpdatePackage(name)
        return response.Package.from_dict(self.put(f"/packages/{package_id}", payload=payload))

    # Models and records

    def models(self, dataset_id: model.DatasetId) -> list[model.Model]:
        data = self.get(f"/datasets/{dataset_id}/concepts")
        return [model.Model.from_dict(m) for m in require_list(data, "models")]

    def create_model(self, dataset_id: model.DatasetId, payload: payloads.CreateModel) -> model.Model:
        return model.Model.from_dict(self.post(f"/datasets/{dataset_id}/concepts", payload=payload))

    def update_model(
        self,
        dataset_id: model.DatasetId,
        model_id: model.ModelId,
        payload: payloads.UpdateModel,
    ) -> model.Model:
        data = self.put(f"/datasets/{dataset_id}/concepts/{model_id}", payload=payload)
        return model.Model.from_dict(data)

    def records(self, dataset_id: model.DatasetId, model_id: model.ModelId) -> list[model.Record]:
        data = self.get(f"/datasets/{dataset_id}/concepts/{model_id}/instances")
        return [model.Record.from_dict(r) for r in require_list(data, "records")]

    def create_record(
        self,
        dataset_id: model.DatasetId,
        model_id: model.ModelId,
        payload: payloads.CreateRecord,
    ) -> model.Record:
        data = self.post(f"/datasets/{dataset_id}/concepts/{model_id}/instances", payload=payload)
        return model.Record.from_dict(data)

    # Credentials

    def grant_upload(self, dataset_id: model.DatasetId) -> model.UploadCredential:
        data = self.get(f"/security/user/credentials/upload/{dataset_id}")
        return model.UploadCredential.from_dict(data)

    def grant_streaming(self) -> model.TemporaryCredential:
        return model.TemporaryCredential.from_dict(self.get("/security/user/credentials/streaming"))

    # Uploads

    def preview_upload(
        self,
        path: PathLike,
        files: list[PathLike],
        append: bool = False,
    ) -> response.UploadPreview:
        """
        Ask the platform how a set of files will be packaged.

        Args:
            path: Directory the files are relative to.
            files: File names (or relative paths) below ``path``.
            append: Whether the files are appended to an existing package.

        Raises:
            UploadFileError: If a file does not exist or is not a file.
            InvalidUnicodePathError: If a file name is not valid UTF-8.
        """
        s3_files = [
            model.S3File.new(path, f, upload_id=model.UploadId(i))
            for i, f in enumerate(files)
        ]
        data = self.post(
            "/files/upload/preview",
            params={"append": _bool_param(append)},
            payload=payloads.PreviewPackage(s3_files),
        )
        return response.UploadPreview.from_dict(data)

    def s3_uploader(self, temp_credentials: model.TemporaryCredential) -> S3Uploader:
        """Create an S3 uploader from temporary credentials."""
        return S3Uploader.from_credential(
            temp_credentials,
            self.config.s3_server_side_encryption,
            max_attempts=self.config.max_retries,
        )

    def complete_upload(
        self,
        import_id: model.ImportId,
        dataset_id: model.DatasetId,
        destination_id: Optional[model.PackageId] = None,
        append: bool = False,
    ) -> response.Manifest:
        """Tell the platform every file of an import is in S3 and start processing."""
        params = {"append": _bool_param(append), "datasetId": dataset_id}
        if destination_id is not None:
            params["destinationId"] = destination_id
        data = self.post(f"/files/upload/complete/{import_id}", params=params)
        return response.Manifest.from_list(data)
