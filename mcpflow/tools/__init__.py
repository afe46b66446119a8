"""
Built-in services and their registration.
"""
from typing import Optional

from .filesystem import FileSystem
from .filesystem_schema import READ_FILE_SCHEMA, WRITE_FILE_SCHEMA, LIST_DIRECTORY_SCHEMA
from .websearch import web_search, fetch_url
from .websearch_schema import WEB_SEARCH_SCHEMA, FETCH_URL_SCHEMA
from ..core.tool_registry import ServiceRegistry

FILE_SYSTEM_ID = "filesystem"
WEB_SEARCH_ID = "websearch"


def initialize_tools(
    registry: Optional[ServiceRegistry] = None,
    *,
    workspace_root: Optional[str] = None,
    connect: bool = True,
) -> ServiceRegistry:
    """Register the File System and Web Search services with *registry*."""
    registry = registry or ServiceRegistry()

    files = FileSystem(workspace_root)
    registry.register_service(FILE_SYSTEM_ID, "File System", "Files under the workspace root")
    registry.register_from_schema(FILE_SYSTEM_ID, READ_FILE_SCHEMA, files.read_file)
    registry.register_from_schema(FILE_SYSTEM_ID, WRITE_FILE_SCHEMA, files.write_file)
    registry.register_from_schema(FILE_SYSTEM_ID, LIST_DIRECTORY_SCHEMA, files.list_directory)

    registry.register_service(WEB_SEARCH_ID, "Web Search", "Instant-answer web search")
    registry.register_from_schema(WEB_SEARCH_ID, WEB_SEARCH_SCHEMA, web_search)
    registry.register_from_schema(WEB_SEARCH_ID, FETCH_URL_SCHEMA, fetch_url)

    if connect:
        registry.connect(FILE_SYSTEM_ID)
        registry.connect(WEB_SEARCH_ID)
    return registry


__all__ = [
    "FileSystem",
    "web_search",
    "fetch_url",
    "READ_FILE_SCHEMA",
    "WRITE_FILE_SCHEMA",
    "LIST_DIRECTORY_SCHEMA",
    "WEB_SEARCH_SCHEMA",
    "FETCH_URL_SCHEMA",
    "FILE_SYSTEM_ID",
    "WEB_SEARCH_ID",
    "initialize_tools",
]
