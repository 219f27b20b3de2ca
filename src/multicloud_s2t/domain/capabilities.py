"""Static knowledge of what each transcription backend can do."""

import re
from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel

from .locations import AWS_REGION_PATTERN
from .models import Provider

# Speech-to-Text locations: "global", the "us" and "eu" multi-regions, or a
# Compute region such as "europe-west4".
GCP_REGION_PATTERN = r"global|us|eu|[a-z]+-[a-z]+\d+"


class BackendCapabilities(BaseModel, frozen=True):
    """Optional features and input constraints of one backend."""

    language_identification: bool = False
    multi_language_identification: bool = False
    content_redaction: bool = False
    automatic_punctuation: bool = False
    spoken_punctuation: bool = False
    spoken_emojis: bool = False
    profanity_filter: bool = False
    audio_formats: frozenset[str] = frozenset()
    job_based: bool = False
    direct_file_input: bool = False
    direct_remote_url_input: bool = False
    default_region: str
    region_pattern: str

    def supports_file_type(self, file_type: str) -> bool:
        return file_type.lower() in self.audio_formats

    def accepts_region(self, region: str) -> bool:
        return re.fullmatch(self.region_pattern, region) is not None


AWS_CAPABILITIES = BackendCapabilities(
    language_identification=True,
    multi_language_identification=True,
    content_redaction=True,
    audio_formats=frozenset({"mp3", "mp4", "wav", "flac", "ogg", "amr", "webm", "m4a"}),
    job_based=True,
    default_region="us-east-1",
    region_pattern=AWS_REGION_PATTERN,
)

GCP_CAPABILITIES = BackendCapabilities(
    automatic_punctuation=True,
    spoken_punctuation=True,
    spoken_emojis=True,
    profanity_filter=True,
    audio_formats=frozenset(
        {"flac", "wav", "mp3", "ogg", "opus", "amr", "awb", "webm", "spx"}
    ),
    default_region="global",
    region_pattern=GCP_REGION_PATTERN,
)

CAPABILITIES: Mapping[Provider, BackendCapabilities] = MappingProxyType(
    {
        Provider.AWS: AWS_CAPABILITIES,
        Provider.GCP: GCP_CAPABILITIES,
    }
)
