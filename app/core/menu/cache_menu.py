import logging
import re

import redis
from pydantic import ValidationError

from app.core.menu import schemas_menu

hemis_error_logger = logging.getLogger("hemis.error")


def escape_pattern(value: str) -> str:
    """
    Escape the glob special characters of a value used in a Redis SCAN pattern
    """
    return re.sub(r"([*?\[\]\\])", r"\\\1", value)


class MenuCache:
    """
    Redis backed cache for filtered menus.

    Entries are keyed by user, role and locale: `menu:user:{user_id}:role:{role_id}:locale:{locale}`.
    The role is part of the key, switching role can never serve the menu built for the previous one.
    An admin without active role gets an empty role segment, role codes are never empty.

    Every Redis error is logged and reported to the caller as a cache miss or a failed write,
    menus are then computed without the cache. Without a Redis client, the cache is disabled.
    """

    KEY_PREFIX = "menu:"

    def __init__(self, redis_client: redis.Redis | None, ttl: int):
        self.redis_client = redis_client
        self.ttl = ttl

    @property
    def enabled(self) -> bool:
        return self.redis_client is not None

    @classmethod
    def get_key(cls, user_id: str, role_id: str | None, locale: str) -> str:
        return f"{cls.KEY_PREFIX}user:{user_id}:role:{role_id or ''}:locale:{locale}"

    def get(
        self,
        user_id: str,
        role_id: str | None,
        locale: str,
    ) -> schemas_menu.MenuCacheEntry | None:
        if self.redis_client is None:
            return None

        key = self.get_key(user_id=user_id, role_id=role_id, locale=locale)
        try:
            raw_entry = self.redis_client.get(key)
        except redis.exceptions.RedisError:
            hemis_error_logger.exception(
                f"Menu cache: could not read {key}, the menu will be computed without cache",
            )
            return None

        if raw_entry is None:
            return None

        try:
            return schemas_menu.MenuCacheEntry.model_validate_json(raw_entry)
        except ValidationError:
            hemis_error_logger.warning(
                f"Menu cache: invalid entry for {key}, it will be replaced",
            )
            return None

    def store(
        self,
        user_id: str,
        role_id: str | None,
        locale: str,
        entry: schemas_menu.MenuCacheEntry,
    ) -> bool:
        """
        Store a menu. Return False if the entry could not be cached.
        """
        if self.redis_client is None:
            return False

        key = self.get_key(user_id=user_id, role_id=role_id, locale=locale)
        try:
            self.redis_client.set(key, entry.model_dump_json(), ex=self.ttl)
        except redis.exceptions.RedisError:
            hemis_error_logger.exception(
                f"Menu cache: could not write {key}",
            )
            return False
        return True

    def invalidate_user(self, user_id: str) -> int:
        """
        Delete the cached menus of a user, for every role and locale
        """
        return self._delete_matching(
            f"{self.KEY_PREFIX}user:{escape_pattern(user_id)}:*",
        )

    def invalidate_role(self, role_id: str) -> int:
        """
        Delete the cached menus built for a role, for every user and locale
        """
        return self._delete_matching(
            f"{self.KEY_PREFIX}user:*:role:{escape_pattern(role_id)}:locale:*",
        )

    def invalidate_all(self) -> int:
        return self._delete_matching(f"{self.KEY_PREFIX}*")

    def _delete_matching(self, pattern: str) -> int:
        """
        Delete every key matching `pattern` and return how many were deleted.
        Keys are listed with SCAN, KEYS is never used.
        """
        if self.redis_client is None:
            return 0

        try:
            keys = list(self.redis_client.scan_iter(match=pattern, count=500))
            if keys:
                self.redis_client.delete(*keys)
        except redis.exceptions.RedisError:
            hemis_error_logger.exception(
                f"Menu cache: could not invalidate {pattern}, stale menus may be served until they expire",
            )
            return 0
        return len(keys)
