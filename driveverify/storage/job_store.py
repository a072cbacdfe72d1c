"""Redis-backed job records with TTL-based expiry."""

import logging
from typing import Any, Mapping, Optional

import redis

from driveverify.errors import JobStoreError
from driveverify.jobs.models import RECORD_FIELDS, JobRecord, JobState

logger = logging.getLogger(__name__)


class JobStore:
    """Typed accessor for one hash per job, keyed "<prefix><job_id>".

    Each job owns a disjoint key, so every operation is a single-key command
    and no cross-key transactions are needed.
    """

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = "verify-",
        registration_ttl: int = 300,
        job_ttl: int = 1800,
    ):
        self._client = client
        self._key_prefix = key_prefix
        self.registration_ttl = registration_ttl
        self.job_ttl = job_ttl

    def key(self, job_id: str) -> str:
        return f"{self._key_prefix}{job_id}"

    def initialize(self, job_id: str, src_folder_id: str, dst_folder_id: str) -> None:
        """Write the initial record and start the registration TTL."""
        key = self.key(job_id)
        fields = {
            "id": job_id,
            "state": JobState.INIT.value,
            "download_count": 0,
            "comment": "",
            "diff_json": "{}",
            "src_folder_id": src_folder_id,
            "dst_folder_id": dst_folder_id,
        }
        try:
            with self._client.pipeline(transaction=True) as pipe:
                pipe.hset(key, mapping=fields)
                pipe.expire(key, self.registration_ttl)
                pipe.execute()
        except redis.RedisError as e:
            raise JobStoreError(f"Failed to initialize {key}: {e}") from e

    def get(self, job_id: str) -> JobRecord:
        """Read all fields; unknown or expired ids give an all-None record."""
        try:
            values = self._client.hmget(self.key(job_id), list(RECORD_FIELDS))
        except redis.RedisError as e:
            raise JobStoreError(f"Failed to read {self.key(job_id)}: {e}") from e
        data = {
            field: _decode(value)
            for field, value in zip(RECORD_FIELDS, values)
            if value is not None
        }
        return JobRecord(**data)

    def set_field(self, job_id: str, field: str, value: Any) -> None:
        self.set_fields(job_id, {field: value})

    def set_fields(self, job_id: str, fields: Mapping[str, Any]) -> None:
        try:
            self._client.hset(self.key(job_id), mapping=dict(fields))
        except redis.RedisError as e:
            raise JobStoreError(f"Failed to write {self.key(job_id)}: {e}") from e

    def increment(self, job_id: str, field: str, amount: int = 1) -> int:
        try:
            return self._client.hincrby(self.key(job_id), field, amount)
        except redis.RedisError as e:
            raise JobStoreError(f"Failed to increment {self.key(job_id)}: {e}") from e

    def touch_ttl(self, job_id: str, ttl: Optional[int] = None) -> None:
        """Push the record's expiry out to ttl seconds (job_ttl by default)."""
        try:
            self._client.expire(self.key(job_id), ttl or self.job_ttl)
        except redis.RedisError as e:
            raise JobStoreError(f"Failed to refresh TTL of {self.key(job_id)}: {e}") from e

    def exists(self, job_id: str) -> bool:
        try:
            return self._client.exists(self.key(job_id)) > 0
        except redis.RedisError as e:
            raise JobStoreError(f"Failed to read {self.key(job_id)}: {e}") from e

    def delete(self, job_id: str) -> None:
        try:
            self._client.delete(self.key(job_id))
        except redis.RedisError as e:
            raise JobStoreError(f"Failed to delete {self.key(job_id)}: {e}") from e

    def delete_all_matching(self, prefix: Optional[str] = None) -> int:
        """Delete every record whose key starts with prefix. Returns count."""
        pattern = f"{prefix or self._key_prefix}*"
        removed = 0
        try:
            for key in self._client.scan_iter(match=pattern):
                removed += self._client.delete(key)
        except redis.RedisError as e:
            raise JobStoreError(f"Failed to clear {pattern}: {e}") from e
        logger.info(f"Cleared {removed} job record(s) matching {pattern}")
        return removed


def _decode(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value
