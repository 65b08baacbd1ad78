"""Dataclass schema objects used by runtime configuration loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

DEFAULT_CONFIG_FILE = "config.toml"


class AppConfigurationError(Exception):
    """Raised when application configuration fails."""


@dataclass(frozen=True)
class ServerSettings:
    """HTTP listener settings from `[server]`."""
    host: str = "127.0.0.1"
    port: int = 8090


@dataclass(frozen=True)
class ExtensionSettings:
    """Extension storage settings from `[halo.extension]`."""
    store_directory: Optional[Path] = None


@dataclass(frozen=True)
class FrameOptionsSettings:
    disabled: bool = False
    mode: str = "SAMEORIGIN"


@dataclass(frozen=True)
class ReferrerOptionsSettings:
    policy: str = "strict-origin-when-cross-origin"


@dataclass(frozen=True)
class SecuritySettings:
    """Response security header settings from `[halo.security]`."""
    frame_options: FrameOptionsSettings = field(default_factory=FrameOptionsSettings)
    referrer_options: ReferrerOptionsSettings = field(
        default_factory=ReferrerOptionsSettings
    )


@dataclass(frozen=True)
class ConsoleSettings:
    """Console single-page app settings from `[halo.console]`."""
    location: Path


@dataclass(frozen=True)
class ThemeInitializerSettings:
    disabled: bool = False
    location: str = ""


@dataclass(frozen=True)
class ThemeSettings:
    """Theme bootstrap settings from `[halo.theme]`."""
    initializer: ThemeInitializerSettings = field(
        default_factory=ThemeInitializerSettings
    )


@dataclass(frozen=True)
class ResourceMapping:
    """One `[[halo.attachment.resource_mappings]]` entry.

    Locations are relative to the attachments root and are checked against
    directory traversal when the resource table is built.
    """
    path_pattern: str
    locations: tuple[str, ...]


@dataclass(frozen=True)
class AttachmentSettings:
    """Attachment serving settings from `[halo.attachment]`."""
    resource_mappings: tuple[ResourceMapping, ...] = ()


@dataclass(frozen=True)
class CacheSettings:
    """One named cache from `[halo.caches.<name>]`."""
    disabled: bool = False


@dataclass(frozen=True)
class HaloProperties:
    """Process-wide application properties loaded from `[halo]`."""
    work_dir: Path
    console: ConsoleSettings
    external_url: Optional[str] = None
    use_absolute_permalink: bool = False
    initial_extension_locations: frozenset[str] = frozenset()
    required_extension_disabled: bool = False
    extension: ExtensionSettings = field(default_factory=ExtensionSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    theme: ThemeSettings = field(default_factory=ThemeSettings)
    attachment: AttachmentSettings = field(default_factory=AttachmentSettings)
    caches: Mapping[str, CacheSettings] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def attachments_root(self) -> Path:
        return self.work_dir / "attachments"

    @property
    def static_root(self) -> Path:
        return self.work_dir / "static"


@dataclass(frozen=True)
class CacheControlSettings:
    """HTTP cache directives from `[web.resources.cache.cachecontrol]`."""
    max_age: Optional[int] = None
    s_max_age: Optional[int] = None
    no_cache: bool = False
    no_store: bool = False
    must_revalidate: bool = False
    no_transform: bool = False
    cache_public: bool = False
    cache_private: bool = False
    proxy_revalidate: bool = False
    stale_while_revalidate: Optional[int] = None
    stale_if_error: Optional[int] = None


@dataclass(frozen=True)
class ResourceCacheSettings:
    """Static resource caching from `[web.resources.cache]`."""
    use_last_modified: bool = True
    cachecontrol: CacheControlSettings = field(default_factory=CacheControlSettings)


@dataclass(frozen=True)
class WebResourcesSettings:
    """Static resource settings from `[web.resources]`."""
    static_locations: tuple[Path, ...] = ()
    cache: ResourceCacheSettings = field(default_factory=ResourceCacheSettings)


@dataclass(frozen=True)
class AppConfig:
    """Complete typed runtime configuration loaded from `config.toml`."""
    server: ServerSettings
    halo: HaloProperties
    web_resources: WebResourcesSettings
    source_file: str
