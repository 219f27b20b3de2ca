"""Classification of source and destination strings into storage locations."""

import os
import re
from typing import Annotated, Literal, Union
from urllib.parse import unquote, urlsplit

from pydantic import BaseModel, Field

from multicloud_s2t.exceptions import SourceNotFoundError

from .models import Provider

# Region implied by S3 endpoints that do not name one.
S3_LEGACY_GLOBAL_REGION = "us-east-1"

AWS_REGION_PATTERN = r"[a-z]{2}(?:-gov)?-[a-z]+-\d+"

# Endpoint label after "s3." or "s3-", e.g. "eu-west-1", "dualstack.eu-west-1",
# "accelerate" or "website-us-east-1".
_S3_LABEL = r"(?:[.-](?P<label>(?:dualstack\.)?[a-z0-9-]+(?:\.dualstack)?))?"
_S3_PATH_STYLE_HOST = re.compile(rf"^s3{_S3_LABEL}\.amazonaws\.com$")
_S3_VIRTUAL_HOST = re.compile(rf"^(?P<bucket>.+?)\.s3{_S3_LABEL}\.amazonaws\.com$")
_S3_LEGACY_LABELS = {"external-1": S3_LEGACY_GLOBAL_REGION}
_GCS_PATH_STYLE_HOSTS = ("storage.cloud.google.com", "storage.googleapis.com")
_GCS_VIRTUAL_HOST_SUFFIX = ".storage.googleapis.com"


class ObjectLocation(BaseModel, frozen=True):
    """An object on the native storage service of a backend."""

    kind: Literal["object"] = "object"
    provider: Provider
    bucket: str
    key: str = ""
    region: str = ""

    def __str__(self) -> str:
        scheme = "s3" if self.provider == Provider.AWS else "gs"
        return f"{scheme}://{self.bucket}/{self.key}"


class RemoteUrlLocation(BaseModel, frozen=True):
    """A file reachable over plain HTTP(S)."""

    kind: Literal["remote_url"] = "remote_url"
    url: str

    def __str__(self) -> str:
        return self.url


class LocalFileLocation(BaseModel, frozen=True):
    """A file on the local filesystem."""

    kind: Literal["local"] = "local"
    path: str

    def __str__(self) -> str:
        return self.path


StorageLocation = Annotated[
    Union[ObjectLocation, RemoteUrlLocation, LocalFileLocation],
    Field(discriminator="kind"),
]


def is_aws_region(value: str) -> bool:
    return re.fullmatch(AWS_REGION_PATTERN, value) is not None


def _region_from_label(label: str | None) -> str:
    """Region named by an S3 endpoint label, or "" when it names none.

    Accelerate and website endpoints carry no usable region, so the caller
    falls back to other hints.
    """
    if label is None:
        return S3_LEGACY_GLOBAL_REGION
    label = label.removeprefix("dualstack.")
    if label in _S3_LEGACY_LABELS:
        return _S3_LEGACY_LABELS[label]
    return label if is_aws_region(label) else ""


def parse_s3_url(url: str) -> ObjectLocation | None:
    """Parses ``s3://`` URIs and virtual-hosted or path-style S3 URLs."""
    parts = urlsplit(url)
    if parts.scheme == "s3":
        return ObjectLocation(
            provider=Provider.AWS,
            bucket=parts.netloc,
            key=unquote(parts.path.lstrip("/")),
        )
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return None

    host = parts.hostname
    path = unquote(parts.path.lstrip("/"))

    match = _S3_PATH_STYLE_HOST.match(host)
    if match:
        bucket, _, key = path.partition("/")
        if not bucket:
            return None
        return ObjectLocation(
            provider=Provider.AWS,
            bucket=bucket,
            key=key,
            region=_region_from_label(match.group("label")),
        )

    match = _S3_VIRTUAL_HOST.match(host)
    if match:
        return ObjectLocation(
            provider=Provider.AWS,
            bucket=match.group("bucket"),
            key=path,
            region=_region_from_label(match.group("label")),
        )
    return None


def parse_gcs_url(url: str) -> ObjectLocation | None:
    """Parses ``gs://`` URIs and Cloud Storage object URLs."""
    parts = urlsplit(url)
    if parts.scheme == "gs":
        return ObjectLocation(
            provider=Provider.GCP,
            bucket=parts.netloc,
            key=unquote(parts.path.lstrip("/")),
        )
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return None

    host = parts.hostname
    path = unquote(parts.path.lstrip("/"))

    if host in _GCS_PATH_STYLE_HOSTS:
        bucket, _, key = path.partition("/")
        if not bucket:
            return None
        return ObjectLocation(provider=Provider.GCP, bucket=bucket, key=key)

    if host.endswith(_GCS_VIRTUAL_HOST_SUFFIX):
        bucket = host[: -len(_GCS_VIRTUAL_HOST_SUFFIX)]
        return ObjectLocation(provider=Provider.GCP, bucket=bucket, key=path)
    return None


def is_aws_url(url: str) -> bool:
    return parse_s3_url(url) is not None


def is_gcs_url(url: str) -> bool:
    return parse_gcs_url(url) is not None


def is_remote_url(url: str) -> bool:
    return urlsplit(url).scheme in ("http", "https")


def classify_location(
    url: str, must_exist: bool = True
) -> ObjectLocation | RemoteUrlLocation | LocalFileLocation:
    """
    Derives the storage location a source or destination string refers to.

    Backend storage conventions are tried first, then generic HTTP(S) URLs.
    Everything else is treated as a local path.

    Args:
        url: Source or destination string.
        must_exist: Whether a local path has to exist.

    Returns:
        The matching location variant.

    Raises:
        SourceNotFoundError: If the string is a local path that does not
            exist and ``must_exist`` is set.
    """
    location = parse_s3_url(url) or parse_gcs_url(url)
    if location is not None:
        return location
    if is_remote_url(url):
        return RemoteUrlLocation(url=url)
    if must_exist and not os.path.exists(url):
        raise SourceNotFoundError(url)
    return LocalFileLocation(path=url)


def object_url(location: ObjectLocation) -> str:
    """Renders an object location in the form its backend reads it."""
    if location.provider == Provider.AWS and location.region:
        return (
            f"https://{location.bucket}.s3.{location.region}.amazonaws.com/"
            f"{location.key}"
        )
    return str(location)


def get_file_type(file_name: str) -> str:
    """
    Returns the last file extension of a name, path or URL without the dot.

    ``"test.tar.gz"`` yields ``"gz"``; names without extension yield ``""``.
    """
    path = urlsplit(file_name).path if "://" in file_name else file_name
    base_name = path.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in base_name:
        return ""
    return base_name.rsplit(".", 1)[1]


class StagedArtifact(BaseModel, frozen=True):
    """Temporary object created to satisfy a backend's input constraints."""

    location: ObjectLocation
    delete_after_use: bool = True
