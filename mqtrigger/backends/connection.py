from typing import Mapping

import redis.asyncio
from redis.asyncio import Redis

USERNAME_SECRET = "username"
PASSWORD_SECRET = "password"


def redis_connection_kwargs(secrets: Mapping[str, bytes]) -> dict[str, str]:
    """Map known credential names to redis connection arguments."""
    kwargs = {}
    if USERNAME_SECRET in secrets:
        kwargs["username"] = secrets[USERNAME_SECRET].decode()
    if PASSWORD_SECRET in secrets:
        kwargs["password"] = secrets[PASSWORD_SECRET].decode()
    return kwargs


async def connect_redis(url: str, secrets: Mapping[str, bytes]) -> Redis:
    """Open a redis client and make sure the server answers."""
    client = redis.asyncio.from_url(url, **redis_connection_kwargs(secrets))
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise
    return client
