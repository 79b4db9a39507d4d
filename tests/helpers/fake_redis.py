from redis.exceptions import ConnectionError as RedisConnectionError


class FakeRedis:
    """
    Minimal async stand-in for redis.asyncio.Redis (decode_responses=True).
    Records every mutation in `mutations` so tests can assert on writes.
    """
    def __init__(self, data=None, fail_reads=False, fail_writes=False):
        self.data = dict(data or {})
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.reads = []
        self.mutations = []

    async def get(self, key):
        self.reads.append(key)
        if self.fail_reads:
            raise RedisConnectionError("connection refused")
        return self.data.get(key)

    async def set(self, key, value):
        if self.fail_writes:
            raise RedisConnectionError("connection refused")
        self.mutations.append(("set", key))
        self.data[key] = value

    async def delete(self, key):
        if self.fail_writes:
            raise RedisConnectionError("connection refused")
        self.mutations.append(("delete", key))
        self.data.pop(key, None)

    async def aclose(self):
        pass
