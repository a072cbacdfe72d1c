"""Folder identifier parsing for Google Drive URLs."""

import re

from driveverify.errors import MalformedFolderIdError

FOLDER_ID_PATTERN = re.compile(r"[a-zA-Z0-9\-_]+")

_QUERY_ID_PATTERN = re.compile(r"^http.*id=([a-zA-Z0-9\-_]+)")
_FOLDERS_PATH_PATTERN = re.compile(r"^http.*/folders/([a-zA-Z0-9\-_]+)")


def sanity_check(folder_id: str) -> None:
    """Raise MalformedFolderIdError unless folder_id has the identifier shape."""
    if not FOLDER_ID_PATTERN.fullmatch(folder_id):
        raise MalformedFolderIdError(folder_id)


def extract_folder_id(value: str) -> str:
    """Return the folder id from a Drive URL or a raw id.

    Supported shapes:
        https://drive.google.com/open?id=<ID>
        https://drive.google.com/drive/folders/<ID>
        <ID>
    """
    value = value.strip()
    for pattern in (_QUERY_ID_PATTERN, _FOLDERS_PATH_PATTERN):
        match = pattern.match(value)
        if match:
            return match.group(1)

    sanity_check(value)
    return value
