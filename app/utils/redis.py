import redis


def limiter(redis_client: redis.Redis, key: str, limit: int, window: int):
    """
    Fixed window rate limiter. `key` should be an ip address or an admin id.

    Return a couple of booleans: the first is True if the request can be processed,
    the second is True the first time the limit is reached, when an alert should be issued.
    """
    # Fixed window: see https://konghq.com/blog/how-to-design-a-scalable-rate-limiting-algorithm.
    nb = redis_client.incr(f"ratelimit:{key}")
    if nb == 1:
        redis_client.expire(f"ratelimit:{key}", window)
    elif nb == limit:
        return False, True
    elif nb > limit:
        return False, False
    return True, False
