"""Handler layer exports."""

from .job_poller import JobPoller
from .source_stager import SourceStager, StagingOutcome

__all__ = ["JobPoller", "SourceStager", "StagingOutcome"]
