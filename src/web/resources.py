"""Static resource handlers mapping URL patterns to filesystem locations."""

from __future__ import annotations

import logging
from datetime import timezone
from email.utils import formatdate, parsedate_to_datetime
from pathlib import Path
from typing import Optional

from websockets.http11 import Response

from app_config_schema import HaloProperties, WebResourcesSettings

from .cache_control import CacheControl
from .console import CONSOLE_ASSETS_PATH_PATTERN
from .errors import PathTraversalError, ResourceResolutionError
from .http import HttpRequest, make_response
from .path_pattern import PathPattern
from .static_files import (
    check_directory_traversal,
    guess_content_type,
    resolve_encoded_variant,
    resolve_static_file,
)

UPLOAD_PATH_PATTERN = "/upload/**"
STATIC_FALLBACK_PATH_PATTERN = "/**"

_SUPPORTED_METHODS = ("GET", "HEAD")


class ResourceHandlerRegistration:
    """Locations and caching policy served under one URL pattern."""

    def __init__(self, path_pattern: str):
        self.path_pattern = PathPattern(path_pattern)
        self.locations: list[Path] = []
        self.cache_control: Optional[CacheControl] = None
        self.use_last_modified = True
        self.encoded = False

    def __repr__(self) -> str:
        return (
            f"ResourceHandlerRegistration({self.path_pattern.pattern!r}, "
            f"locations={[str(location) for location in self.locations]})"
        )

    def add_resource_locations(self, *locations: Path) -> "ResourceHandlerRegistration":
        for location in locations:
            location = Path(location)
            if location not in self.locations:
                self.locations.append(location)
        return self

    def set_cache_control(
        self,
        cache_control: Optional[CacheControl],
    ) -> "ResourceHandlerRegistration":
        self.cache_control = cache_control
        return self

    def set_use_last_modified(self, enabled: bool) -> "ResourceHandlerRegistration":
        self.use_last_modified = enabled
        return self

    def resource_chain(self, *, encoded: bool) -> "ResourceHandlerRegistration":
        """Serve `.br`/`.gz` siblings to clients that accept them."""
        self.encoded = encoded
        return self

    def matches(self, request: HttpRequest) -> bool:
        return self.path_pattern.matches(request.path)

    def handle(self, request: HttpRequest) -> Optional[Response]:
        """Serve the request from the first location holding the file.

        Returns None when no location has it.
        """
        cache_header = self.cache_control.header_value() if self.cache_control else None
        if request.method not in _SUPPORTED_METHODS:
            return make_response(
                405,
                headers={"Allow": ", ".join(_SUPPORTED_METHODS)},
            )

        relative = self.path_pattern.extract_path_within_pattern(request.path)
        resolved = None
        for location in self.locations:
            resolved = resolve_static_file(location, relative)
            if resolved is not None:
                break
        if resolved is None:
            return None

        served, encoding = (
            resolve_encoded_variant(resolved, request.header("Accept-Encoding"))
            if self.encoded
            else (resolved, None)
        )

        try:
            modified = served.stat().st_mtime
        except OSError as error:
            raise ResourceResolutionError(served, str(error)) from error

        headers: dict[str, str] = {}
        if self.encoded:
            headers["Vary"] = "Accept-Encoding"
        if self.use_last_modified:
            headers["Last-Modified"] = formatdate(modified, usegmt=True)
            if _not_modified_since(request.header("If-Modified-Since"), modified):
                return make_response(304, cache_control=cache_header, headers=headers)

        try:
            body = served.read_bytes()
        except OSError as error:
            raise ResourceResolutionError(served, str(error)) from error
        if encoding is not None:
            headers["Content-Encoding"] = encoding

        if request.method == "HEAD":
            headers["Content-Length"] = str(len(body))
            body = b""

        return make_response(
            200,
            body,
            guess_content_type(resolved),
            cache_control=cache_header,
            headers=headers,
        )


class ResourceHandlerRegistry:
    """Ordered resource registrations, at most one per URL pattern."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("halo.web.resources")
        self._registrations: dict[str, ResourceHandlerRegistration] = {}

    @property
    def registrations(self) -> tuple[ResourceHandlerRegistration, ...]:
        return tuple(self._registrations.values())

    def add_resource_handler(self, path_pattern: str) -> ResourceHandlerRegistration:
        """Return the registration for `path_pattern`, creating it if needed.

        Registering a pattern twice yields the same registration: locations
        accumulate in order and the latest cache settings win.
        """
        registration = self._registrations.get(path_pattern)
        if registration is None:
            registration = ResourceHandlerRegistration(path_pattern)
            self._registrations[path_pattern] = registration
            self._logger.debug("Registered resource handler for %s", path_pattern)
        return registration

    def lookup(self, request: HttpRequest) -> Optional[ResourceHandlerRegistration]:
        """Return the most specific matching registration.

        Ties go to the earlier registration.
        """
        candidates = [
            registration
            for registration in self._registrations.values()
            if registration.matches(request)
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda registration: registration.path_pattern.specificity)


def configure_resource_handlers(
    registry: ResourceHandlerRegistry,
    properties: HaloProperties,
    resources: WebResourcesSettings,
    *,
    logger: Optional[logging.Logger] = None,
) -> ResourceHandlerRegistry:
    """Register upload, console asset, attachment and static fallback handlers.

    Every attachment location is checked before anything is registered, so a
    traversal error leaves the registry untouched.
    """
    logger = logger or logging.getLogger("halo.web.resources")
    attachments_root = properties.attachments_root
    cache_control = CacheControl.from_settings(resources.cache.cachecontrol)
    use_last_modified = resources.cache.use_last_modified

    mappings: list[tuple[str, list[Path]]] = []
    for mapping in properties.attachment.resource_mappings:
        locations = []
        for location in mapping.locations:
            path = attachments_root / location
            try:
                check_directory_traversal(attachments_root, path)
            except PathTraversalError:
                logger.error(
                    "Resource mapping %s escapes attachments root: root=%s, location=%s",
                    mapping.path_pattern,
                    attachments_root,
                    path,
                )
                raise
            locations.append(path)
        mappings.append((mapping.path_pattern, locations))

    registry.add_resource_handler(UPLOAD_PATH_PATTERN).add_resource_locations(
        attachments_root / "upload"
    ).set_use_last_modified(use_last_modified).set_cache_control(cache_control)

    registry.add_resource_handler(CONSOLE_ASSETS_PATH_PATTERN).add_resource_locations(
        properties.console.location / "assets"
    ).set_cache_control(cache_control).set_use_last_modified(
        use_last_modified
    ).resource_chain(encoded=True)

    # A mapping for the upload pattern lands on the mandatory registration.
    for path_pattern, locations in mappings:
        registry.add_resource_handler(path_pattern).add_resource_locations(
            *locations
        ).set_cache_control(cache_control).set_use_last_modified(use_last_modified)
        logger.info(
            "Serving %s from %s",
            path_pattern,
            ", ".join(str(location) for location in locations),
        )

    registry.add_resource_handler(STATIC_FALLBACK_PATH_PATTERN).add_resource_locations(
        properties.static_root,
        *resources.static_locations,
    ).set_cache_control(CacheControl.no_cache_policy()).set_use_last_modified(True)

    return registry


def _not_modified_since(header: Optional[str], modified: float) -> bool:
    if not header:
        return False
    try:
        since = parsedate_to_datetime(header)
    except (TypeError, ValueError):
        return False
    if since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    return int(modified) <= since.timestamp()
