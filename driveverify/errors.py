"""Exception classes for the drive replica verifier."""


class DriveVerifyError(Exception):
    """Base exception for all application errors."""

    pass


class MalformedFolderIdError(DriveVerifyError):
    """A folder URL or id does not contain a valid folder identifier."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Malformed Folder ID: {value}")


class DownloadError(DriveVerifyError):
    """The gdrive CLI failed to download a folder."""

    def __init__(self, folder_id: str, reason: str) -> None:
        self.folder_id = folder_id
        super().__init__(f"Failed to download folder {folder_id}: {reason}")


class JobStoreError(DriveVerifyError):
    """Reading or writing a job record failed."""

    pass


class InvalidTransitionError(DriveVerifyError):
    """A job state change would move the state machine backwards."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Invalid job state transition: {current} -> {requested}")


class JobExpiredError(DriveVerifyError):
    """The job's record expired (or was cleared) while the job was running."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job {job_id} has no record; it expired or was cleared")
