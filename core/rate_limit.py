from __future__ import annotations

import math
import time
from dataclasses import dataclass

from fastapi import Request
from limits import RateLimitItem, parse
from limits.storage import Storage, storage_from_string
from limits.strategies import MovingWindowRateLimiter

from core.errors import too_many_requests
from core.settings import Settings

_NAMESPACE = "public-upload"


@dataclass(frozen=True)
class PublicUploadRules:
    token_lookup_per_source: RateLimitItem
    upload_per_token: RateLimitItem
    upload_per_source: RateLimitItem


def source_address(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else "unknown"


class PublicUploadRateLimiter:
    """Throttles the anonymous upload-link endpoints by token and by source."""

    def __init__(self, storage: Storage, rules: PublicUploadRules) -> None:
        self._limiter = MovingWindowRateLimiter(storage)
        self._rules = rules

    @classmethod
    def from_settings(cls, settings: Settings) -> "PublicUploadRateLimiter":
        rules = PublicUploadRules(
            token_lookup_per_source=parse(settings.public_token_lookup_rate),
            upload_per_token=parse(settings.public_upload_rate_per_token),
            upload_per_source=parse(settings.public_upload_rate_per_source),
        )
        return cls(storage_from_string(settings.rate_limit_storage_uri), rules)

    def _hit(self, rule: RateLimitItem, scope: str, key: str, cost: int) -> None:
        allowed = self._limiter.hit(rule, _NAMESPACE, scope, key, cost=cost)
        if allowed:
            return

        reset_time, remaining = self._limiter.get_window_stats(rule, _NAMESPACE, scope, key)
        seconds_until_reset = max(math.ceil(reset_time - time.time()), 1)
        raise too_many_requests(
            retry_after_seconds=seconds_until_reset,
            scope=scope,
            headers={
                "X-RateLimit-Limit": str(rule.amount),
                "X-RateLimit-Remaining": str(max(remaining, 0)),
                "X-RateLimit-Reset": str(seconds_until_reset),
            },
        )

    def check_token_lookup(self, request: Request) -> None:
        self._hit(self._rules.token_lookup_per_source, "lookup-source", source_address(request), cost=1)

    def check_upload(self, request: Request, token: str, file_count: int = 1) -> None:
        cost = max(file_count, 1)
        self._hit(self._rules.upload_per_source, "upload-source", source_address(request), cost=cost)
        self._hit(self._rules.upload_per_token, "upload-token", token, cost=cost)
