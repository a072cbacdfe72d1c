"""Job record data model for folder verification jobs."""

import json
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


class JobState(str, Enum):
    INIT = "init"
    DOWNLOAD_SRC = "download_src"
    DOWNLOAD_DST = "download_dst"
    COMPARE = "compare"
    SUCCESS = "success"
    FAILED = "failed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES

    def can_transition_to(self, new_state: "JobState") -> bool:
        """Forward-only along the pipeline; any live state may jump to ERROR."""
        if self.is_terminal:
            return False
        if new_state == JobState.ERROR:
            return True
        return new_state in _NEXT_STATES[self]


_TERMINAL_STATES = {JobState.SUCCESS, JobState.FAILED, JobState.ERROR}

_NEXT_STATES = {
    JobState.INIT: {JobState.DOWNLOAD_SRC},
    JobState.DOWNLOAD_SRC: {JobState.DOWNLOAD_DST},
    JobState.DOWNLOAD_DST: {JobState.COMPARE},
    JobState.COMPARE: {JobState.SUCCESS, JobState.FAILED},
}


class DiffResult(BaseModel):
    """Relative paths under the destination that do not match the source."""
    missing: List[str] = Field(default_factory=list)
    mismatch: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.missing and not self.mismatch


class JobRecord(BaseModel):
    """Snapshot of a job's persisted fields.

    Every field is optional: a record read for an unknown or expired job id
    comes back with all fields set to None.
    """
    id: Optional[str] = None
    state: Optional[JobState] = None
    download_count: Optional[int] = None
    comment: Optional[str] = None
    src_folder_id: Optional[str] = None
    src_folder_path: Optional[str] = None
    dst_folder_id: Optional[str] = None
    dst_folder_path: Optional[str] = None
    diff_json: Optional[Dict[str, List[str]]] = None

    @field_validator("diff_json", mode="before")
    @classmethod
    def _decode_diff(cls, value: Any) -> Any:
        if isinstance(value, (str, bytes)):
            return json.loads(value)
        return value

    @property
    def is_known(self) -> bool:
        return self.id is not None

    def as_fields(self) -> Dict[str, Any]:
        """Flat field map for status queries."""
        return self.model_dump(mode="json")


# Field names in their persisted order
RECORD_FIELDS = tuple(JobRecord.model_fields.keys())


class RegisterResult(BaseModel):
    """Outcome of registering a verification job."""
    success: bool
    job_id: Optional[str] = None
    message: Optional[str] = None
