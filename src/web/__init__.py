"""HTTP routing, static resource mapping and the console shell."""

from .config import WebServerConfig
from .console import ConsoleIndexResponder, console_index_predicate
from .errors import (
    PathTraversalError,
    ResourceResolutionError,
    ServerConfigurationError,
    WebError,
)
from .resources import ResourceHandlerRegistry, configure_resource_handlers
from .router import Route, Router, build_router
from .service import HaloWebServer
from .static_files import check_directory_traversal

__all__ = [
    "ConsoleIndexResponder",
    "HaloWebServer",
    "PathTraversalError",
    "ResourceHandlerRegistry",
    "ResourceResolutionError",
    "Route",
    "Router",
    "ServerConfigurationError",
    "WebError",
    "WebServerConfig",
    "build_router",
    "check_directory_traversal",
    "configure_resource_handlers",
    "console_index_predicate",
]
