"""Typed parser for config.toml sections into immutable app settings."""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

from app_config_schema import (
    AppConfig,
    AppConfigurationError,
    AttachmentSettings,
    CacheControlSettings,
    CacheSettings,
    ConsoleSettings,
    ExtensionSettings,
    FrameOptionsSettings,
    HaloProperties,
    ReferrerOptionsSettings,
    ResourceCacheSettings,
    ResourceMapping,
    SecuritySettings,
    ServerSettings,
    ThemeInitializerSettings,
    ThemeSettings,
    WebResourcesSettings,
)

_ALLOWED_FRAME_OPTION_MODES = {"DENY", "SAMEORIGIN"}


def parse_app_config(
    raw: Mapping[str, Any],
    *,
    base_dir: Path,
    source_file: str,
) -> AppConfig:
    """Parse raw TOML mappings into strongly typed application settings."""
    server = _parse_server_settings(_section(raw, "server"))
    halo = _parse_halo_properties(_section(raw, "halo"), base_dir=base_dir)
    web = _section(raw, "web")
    web_resources = _parse_web_resources_settings(
        _section(web, "resources", "web"),
        base_dir=base_dir,
    )

    return AppConfig(
        server=server,
        halo=halo,
        web_resources=web_resources,
        source_file=source_file,
    )


def _parse_server_settings(section: Mapping[str, Any]) -> ServerSettings:
    return ServerSettings(
        host=_as_str(section.get("host", "127.0.0.1"), "server.host"),
        port=_as_int(section.get("port", 8090), "server.port"),
    )


def _parse_halo_properties(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> HaloProperties:
    work_dir = Path(
        _resolve_path(base_dir, _required_str(section, "work_dir", "halo"))
    )

    console_raw = _section(section, "console", "halo")
    console_location = _as_str(
        console_raw.get("location", ""),
        "halo.console.location",
    )
    console = ConsoleSettings(
        location=(
            Path(_resolve_path(base_dir, console_location))
            if console_location
            else work_dir / "console"
        ),
    )

    extension_raw = _section(section, "extension", "halo")
    store_directory = _as_str(
        extension_raw.get("store_directory", ""),
        "halo.extension.store_directory",
    )

    return HaloProperties(
        work_dir=work_dir,
        console=console,
        external_url=_as_url(section.get("external_url"), "halo.external_url"),
        use_absolute_permalink=_as_bool(
            section.get("use_absolute_permalink", False),
            "halo.use_absolute_permalink",
        ),
        initial_extension_locations=frozenset(
            _as_str_list(
                section.get("initial_extension_locations", []),
                "halo.initial_extension_locations",
            )
        ),
        required_extension_disabled=_as_bool(
            section.get("required_extension_disabled", False),
            "halo.required_extension_disabled",
        ),
        extension=ExtensionSettings(
            store_directory=(
                Path(_resolve_path(base_dir, store_directory))
                if store_directory
                else None
            ),
        ),
        security=_parse_security_settings(_section(section, "security", "halo")),
        theme=_parse_theme_settings(_section(section, "theme", "halo")),
        attachment=_parse_attachment_settings(
            _section(section, "attachment", "halo")
        ),
        caches=_parse_caches(_section(section, "caches", "halo")),
    )


def _parse_security_settings(section: Mapping[str, Any]) -> SecuritySettings:
    frame_raw = _section(section, "frame_options", "halo.security")
    mode = _as_str(
        frame_raw.get("mode", "SAMEORIGIN"),
        "halo.security.frame_options.mode",
    ).upper()
    if mode not in _ALLOWED_FRAME_OPTION_MODES:
        allowed = ", ".join(sorted(_ALLOWED_FRAME_OPTION_MODES))
        raise AppConfigurationError(
            f"halo.security.frame_options.mode must be one of: {allowed}."
        )
    referrer_raw = _section(section, "referrer_options", "halo.security")
    return SecuritySettings(
        frame_options=FrameOptionsSettings(
            disabled=_as_bool(
                frame_raw.get("disabled", False),
                "halo.security.frame_options.disabled",
            ),
            mode=mode,
        ),
        referrer_options=ReferrerOptionsSettings(
            policy=_as_str(
                referrer_raw.get("policy", "strict-origin-when-cross-origin"),
                "halo.security.referrer_options.policy",
            ),
        ),
    )


def _parse_theme_settings(section: Mapping[str, Any]) -> ThemeSettings:
    initializer_raw = _section(section, "initializer", "halo.theme")
    return ThemeSettings(
        initializer=ThemeInitializerSettings(
            disabled=_as_bool(
                initializer_raw.get("disabled", False),
                "halo.theme.initializer.disabled",
            ),
            location=_as_str(
                initializer_raw.get("location", ""),
                "halo.theme.initializer.location",
            ),
        ),
    )


def _parse_attachment_settings(section: Mapping[str, Any]) -> AttachmentSettings:
    raw_mappings = section.get("resource_mappings", [])
    if raw_mappings is None:
        raw_mappings = []
    if not isinstance(raw_mappings, list):
        raise AppConfigurationError(
            "halo.attachment.resource_mappings must be an array of tables."
        )

    mappings = []
    for index, item in enumerate(raw_mappings):
        field = f"halo.attachment.resource_mappings[{index}]"
        if not isinstance(item, Mapping):
            raise AppConfigurationError(f"{field} must be a table.")
        path_pattern = _required_str(item, "path_pattern", field)
        if not path_pattern.startswith("/"):
            raise AppConfigurationError(f"{field}.path_pattern must start with '/'.")
        locations = _as_str_list(item.get("locations", []), f"{field}.locations")
        if not locations:
            raise AppConfigurationError(f"{field}.locations cannot be empty.")
        mappings.append(
            ResourceMapping(path_pattern=path_pattern, locations=tuple(locations))
        )
    return AttachmentSettings(resource_mappings=tuple(mappings))


def _parse_caches(section: Mapping[str, Any]) -> Mapping[str, CacheSettings]:
    caches: dict[str, CacheSettings] = {}
    for name in section:
        cache_raw = _section(section, name, "halo.caches")
        caches[name] = CacheSettings(
            disabled=_as_bool(
                cache_raw.get("disabled", False),
                f"halo.caches.{name}.disabled",
            ),
        )
    return MappingProxyType(caches)


def _parse_web_resources_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> WebResourcesSettings:
    cache_raw = _section(section, "cache", "web.resources")
    control_raw = _section(cache_raw, "cachecontrol", "web.resources.cache")
    prefix = "web.resources.cache.cachecontrol"
    cachecontrol = CacheControlSettings(
        max_age=_as_optional_seconds(control_raw.get("max_age"), f"{prefix}.max_age"),
        s_max_age=_as_optional_seconds(
            control_raw.get("s_max_age"),
            f"{prefix}.s_max_age",
        ),
        no_cache=_as_bool(control_raw.get("no_cache", False), f"{prefix}.no_cache"),
        no_store=_as_bool(control_raw.get("no_store", False), f"{prefix}.no_store"),
        must_revalidate=_as_bool(
            control_raw.get("must_revalidate", False),
            f"{prefix}.must_revalidate",
        ),
        no_transform=_as_bool(
            control_raw.get("no_transform", False),
            f"{prefix}.no_transform",
        ),
        cache_public=_as_bool(
            control_raw.get("cache_public", False),
            f"{prefix}.cache_public",
        ),
        cache_private=_as_bool(
            control_raw.get("cache_private", False),
            f"{prefix}.cache_private",
        ),
        proxy_revalidate=_as_bool(
            control_raw.get("proxy_revalidate", False),
            f"{prefix}.proxy_revalidate",
        ),
        stale_while_revalidate=_as_optional_seconds(
            control_raw.get("stale_while_revalidate"),
            f"{prefix}.stale_while_revalidate",
        ),
        stale_if_error=_as_optional_seconds(
            control_raw.get("stale_if_error"),
            f"{prefix}.stale_if_error",
        ),
    )

    static_locations = _as_str_list(
        section.get("static_locations", []),
        "web.resources.static_locations",
    )
    return WebResourcesSettings(
        static_locations=tuple(
            Path(_resolve_path(base_dir, location)) for location in static_locations
        ),
        cache=ResourceCacheSettings(
            use_last_modified=_as_bool(
                cache_raw.get("use_last_modified", True),
                "web.resources.cache.use_last_modified",
            ),
            cachecontrol=cachecontrol,
        ),
    )


def _section(
    root: Mapping[str, Any],
    name: str,
    parent: Optional[str] = None,
) -> Mapping[str, Any]:
    raw = root.get(name, {})
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        qualified = f"{parent}.{name}" if parent else name
        raise AppConfigurationError(f"[{qualified}] must be a table.")
    return raw


def _required_str(section: Mapping[str, Any], field: str, section_name: str) -> str:
    value = section.get(field)
    text = _as_str(value, f"{section_name}.{field}")
    if not text:
        raise AppConfigurationError(f"{section_name}.{field} is required.")
    return text


def _as_str(value: Any, field: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    raise AppConfigurationError(f"{field} must be a string.")


def _as_str_list(value: Any, field: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise AppConfigurationError(f"{field} must be an array of strings.")
    items = []
    for item in value:
        if not isinstance(item, str):
            raise AppConfigurationError(f"{field} must be an array of strings.")
        text = item.strip()
        if text:
            items.append(text)
    return items


def _as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    raise AppConfigurationError(f"{field} must be a boolean.")


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be an integer.") from error
    raise AppConfigurationError(f"{field} must be an integer.")


def _as_optional_seconds(value: Any, field: str) -> Optional[int]:
    if value is None:
        return None
    seconds = _as_int(value, field)
    if seconds < 0:
        raise AppConfigurationError(f"{field} must be >= 0, got: {seconds}")
    return seconds


def _as_url(value: Any, field: str) -> Optional[str]:
    text = _as_str(value, field)
    if not text:
        return None
    parts = urlsplit(text)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise AppConfigurationError(
            f"{field} must be an absolute http(s) URL, got: {text}"
        )
    return text


def _resolve_path(base_dir: Path, raw: str) -> str:
    if not raw:
        return ""
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return str(path)
