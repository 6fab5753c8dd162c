import asyncio
import hashlib


def hash_str(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class LockTable:
    """
    Fixed set of asyncio locks sharded by session id.

    The same session id always maps to the same lock, so work on one session
    is serialized, while unrelated sessions only contend when they hash to the
    same shard. The table never grows with the number of sessions.
    """

    def __init__(self, shards: int = 64):
        if shards < 1:
            raise ValueError(f"shards must be >= 1, got {shards}")
        self.shards = shards
        # created lazily so each lock is bound to the loop that first uses it
        self._locks: dict[int, asyncio.Lock] = {}

    def shard_of(self, key: str) -> int:
        return int(hash_str(key)[:16], 16) % self.shards

    def lock_for(self, key: str) -> asyncio.Lock:
        idx = self.shard_of(key)
        lock = self._locks.get(idx)
        if lock is None:
            lock = self._locks[idx] = asyncio.Lock()
        return lock
