"""`Cache-Control` header model for static resources."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Optional

from app_config_schema import CacheControlSettings


@dataclass(frozen=True)
class CacheControl:
    max_age: Optional[int] = None
    no_cache: bool = False
    no_store: bool = False
    must_revalidate: bool = False
    no_transform: bool = False
    cache_public: bool = False
    cache_private: bool = False
    proxy_revalidate: bool = False
    s_max_age: Optional[int] = None
    stale_if_error: Optional[int] = None
    stale_while_revalidate: Optional[int] = None

    @classmethod
    def empty(cls) -> "CacheControl":
        return cls()

    @classmethod
    def no_store_policy(cls) -> "CacheControl":
        return cls(no_store=True)

    @classmethod
    def no_cache_policy(cls) -> "CacheControl":
        return cls(no_cache=True)

    @classmethod
    def from_settings(cls, settings: CacheControlSettings) -> Optional["CacheControl"]:
        """Build the policy for configured directives, or None when none are set.

        `no_store` wins over `no_cache`, which wins over `max_age`.
        """
        customized = any(
            getattr(settings, item.name) not in (None, False)
            for item in fields(settings)
        )
        if not customized:
            return None

        if settings.no_store:
            base = dict(no_store=True)
        elif settings.no_cache:
            base = dict(no_cache=True)
        elif settings.max_age is not None:
            base = dict(max_age=settings.max_age)
        else:
            base = {}

        return cls(
            **base,
            must_revalidate=settings.must_revalidate,
            no_transform=settings.no_transform,
            cache_public=settings.cache_public,
            cache_private=settings.cache_private,
            proxy_revalidate=settings.proxy_revalidate,
            s_max_age=settings.s_max_age,
            stale_if_error=settings.stale_if_error,
            stale_while_revalidate=settings.stale_while_revalidate,
        )

    def header_value(self) -> Optional[str]:
        directives = []
        if self.max_age is not None:
            directives.append(f"max-age={self.max_age}")
        if self.no_cache:
            directives.append("no-cache")
        if self.no_store:
            directives.append("no-store")
        if self.must_revalidate:
            directives.append("must-revalidate")
        if self.no_transform:
            directives.append("no-transform")
        if self.cache_public:
            directives.append("public")
        if self.cache_private:
            directives.append("private")
        if self.proxy_revalidate:
            directives.append("proxy-revalidate")
        if self.s_max_age is not None:
            directives.append(f"s-maxage={self.s_max_age}")
        if self.stale_if_error is not None:
            directives.append(f"stale-if-error={self.stale_if_error}")
        if self.stale_while_revalidate is not None:
            directives.append(f"stale-while-revalidate={self.stale_while_revalidate}")
        return ", ".join(directives) or None
