from __future__ import annotations

import asyncio
import inspect
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Any, Callable, Optional, get_type_hints

from pydantic import BaseModel, Field

from mcpflow.core.errors import ServiceUnavailable, ToolError
from mcpflow.core.schema import validate_arguments


class ServiceStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    ERROR = "error"


@dataclass
class ToolDefinition:
    """A callable capability offered by a service."""
    name: str
    description: str
    input_schema: Dict[str, Any]
    function: Callable

    def to_openai_format(self, prefix: str = "") -> Dict[str, Any]:
        """Convert to OpenAI function calling format."""
        return {
            "type": "function",
            "function": {
                "name": f"{prefix}{self.name}",
                "description": self.description,
                "parameters": self.input_schema
            }
        }


@dataclass
class ServiceInfo:
    """A tool-providing service and its connection state."""
    id: str
    name: str
    description: str = ""
    enabled: bool = True
    status: ServiceStatus = ServiceStatus.DISCONNECTED
    tools: List[ToolDefinition] = field(default_factory=list)
    last_error: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.enabled and self.status == ServiceStatus.CONNECTED

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        for tool in self.tools:
            if tool.name == name:
                return tool
        return None

    def to_summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "enabled": self.enabled,
            "status": self.status.value,
            "last_error": self.last_error,
            "tools": [
                {"name": t.name, "description": t.description, "input_schema": t.input_schema}
                for t in self.tools
            ],
        }


@dataclass
class AvailableTool:
    service: str
    tool: str
    input_schema: Dict[str, Any]


class ToolResult(BaseModel):
    success: bool = True
    result: Any = None
    timestamp: datetime = Field(default_factory=datetime.now)


def service_key(name: str) -> str:
    """Normalise a service name: 'File System', 'FileSystem' and 'file_system' match."""
    return re.sub(r"[^0-9a-z]", "", name.lower())


class ServiceRegistry:
    """Registry of services and their tools, with connection bookkeeping."""

    def __init__(self):
        self._services: Dict[str, ServiceInfo] = {}
        self.logger = logging.getLogger(__name__)

    def register_service(
        self,
        service_id: str,
        name: str,
        description: str = "",
        enabled: bool = True,
    ) -> ServiceInfo:
        """Add a service (initially disconnected) or return the existing one."""
        if service_id in self._services:
            return self._services[service_id]
        service = ServiceInfo(id=service_id, name=name, description=description, enabled=enabled)
        self._services[service_id] = service
        self.logger.info(f"🧩 Registered service: {name} ({service_id})")
        return service

    def register_tool(
        self,
        service_id: str,
        name: str,
        function: Callable,
        description: str,
        input_schema: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Register a tool with a service.

        Parameters
        ----------
        service_id : str
            Service that offers the tool.
        name : str
            Tool name.
        function : Callable
            The actual function to call.
        description : str
            Description of what the tool does.
        input_schema : Dict[str, Any], optional
            JSON schema for parameters. If None, will be auto-generated.
        """
        service = self._require(service_id)
        if input_schema is None:
            input_schema = self._generate_parameters_schema(function)

        tool_def = ToolDefinition(
            name=name,
            description=description,
            input_schema=input_schema,
            function=function
        )
        service.tools = [t for t in service.tools if t.name != name] + [tool_def]
        self.logger.info(f"🔧 Registered tool: {service.name}.{name}")

    def register_from_schema(
        self,
        service_id: str,
        schema: Dict[str, Any],
        function: Callable
    ) -> None:
        """
        Register a tool from an existing schema definition.

        Parameters
        ----------
        service_id : str
            Service that offers the tool.
        schema : Dict[str, Any]
            Tool schema with ``name``, ``description`` and ``parameters``.
        function : Callable
            The actual function to call.
        """
        self.register_tool(
            service_id,
            schema["name"],
            function,
            schema["description"],
            schema["parameters"],
        )

    def connect(self, service_id: str) -> ServiceInfo:
        """Mark a service connected. A service without tools ends in ``error``."""
        service = self._require(service_id)
        service.status = ServiceStatus.CONNECTING
        if not service.tools:
            service.status = ServiceStatus.ERROR
            service.last_error = f"Service {service.name} exposes no tools"
            self.logger.error(f"❌ Could not connect {service.name}: {service.last_error}")
            return service
        service.status = ServiceStatus.CONNECTED
        service.last_error = None
        self.logger.info(f"🔌 Connected service: {service.name} ({len(service.tools)} tools)")
        return service

    def disconnect(self, service_id: str) -> ServiceInfo:
        service = self._require(service_id)
        service.status = ServiceStatus.DISCONNECTED
        self.logger.info(f"🔌 Disconnected service: {service.name}")
        return service

    def set_enabled(self, service_id: str, enabled: bool) -> ServiceInfo:
        service = self._require(service_id)
        service.enabled = enabled
        return service

    def get_service(self, service_id: str) -> Optional[ServiceInfo]:
        return self._services.get(service_id)

    def get_all_services(self) -> List[ServiceInfo]:
        return list(self._services.values())

    def list_available(self) -> List[ServiceInfo]:
        """Services that are enabled and connected."""
        return [s for s in self._services.values() if s.available]

    def list_tools(self) -> List[AvailableTool]:
        """Every tool of every available service, flattened."""
        return [
            AvailableTool(service=s.name, tool=t.name, input_schema=t.input_schema)
            for s in self.list_available()
            for t in s.tools
        ]

    def resolve(self, name: str) -> Optional[ServiceInfo]:
        """Find a service by name (or id), whatever its state."""
        key = service_key(name)
        for service in self._services.values():
            if service.id == name or service_key(service.name) == key:
                return service
        return None

    def get_openai_tools(self) -> List[Dict[str, Any]]:
        """All available tools in OpenAI function calling format."""
        return [
            tool.to_openai_format(prefix=f"{service_key(s.name)}_")
            for s in self.list_available()
            for tool in s.tools
        ]

    def clear(self) -> None:
        """Remove all services."""
        self._services.clear()
        self.logger.info("🧹 Cleared all services from registry")

    def _require(self, service_id: str) -> ServiceInfo:
        service = self._services.get(service_id)
        if service is None:
            raise KeyError(f"Service '{service_id}' not found in registry")
        return service

    def _generate_parameters_schema(self, function: Callable) -> Dict[str, Any]:
        """
        Auto-generate JSON schema from function signature.

        Parameters
        ----------
        function : Callable
            Function to generate schema for.

        Returns
        -------
        Dict[str, Any]
            JSON schema for the function parameters.
        """
        try:
            sig = inspect.signature(function)
            type_hints = get_type_hints(function)
        except (TypeError, ValueError, NameError) as e:
            self.logger.warning(f"Failed to auto-generate schema for {function.__name__}: {e}")
            return {
                "type": "object",
                "properties": {},
                "required": []
            }

        properties = {}
        required = []

        for param_name, param in sig.parameters.items():
            if param_name in ['self', 'cls']:
                continue

            param_type = type_hints.get(param_name, str)

            # Convert Python types to JSON schema types
            if param_type in [bool]:
                schema_type = "boolean"
            elif param_type in [int]:
                schema_type = "integer"
            elif param_type in [float]:
                schema_type = "number"
            elif param_type in [list, List]:
                schema_type = "array"
            elif param_type in [dict, Dict]:
                schema_type = "object"
            else:
                schema_type = "string"  # Default fallback

            properties[param_name] = {
                "type": schema_type,
                "description": f"Parameter {param_name}"
            }

            if param.default == inspect.Parameter.empty:
                required.append(param_name)

        return {
            "type": "object",
            "properties": properties,
            "required": required
        }


class ToolInvoker:
    """Executes a named tool of a registered service."""

    def __init__(self, registry: ServiceRegistry):
        self.registry = registry
        self.logger = logging.getLogger(__name__)

    async def call(self, service: str, tool: str, arguments: Dict[str, Any]) -> ToolResult:
        """
        Execute a tool with the given arguments.

        Parameters
        ----------
        service : str
            Name of the service offering the tool.
        tool : str
            Name of the tool to execute.
        arguments : Dict[str, Any]
            Arguments to pass to the tool.

        Returns
        -------
        ToolResult
            Result of the tool execution.

        Raises
        ------
        ServiceUnavailable
            The service is unknown, disabled or not connected.
        ToolError
            The tool is unknown, the arguments are invalid or the tool failed.
        """
        info = self.registry.resolve(service)
        if info is None or not info.available:
            raise ServiceUnavailable(service)

        tool_def = info.get_tool(tool)
        if tool_def is None:
            raise ToolError(f"Tool '{tool}' not found in service {info.name}")

        try:
            cleaned = validate_arguments(tool_def.input_schema, arguments, name=tool)
        except ValueError as e:
            raise ToolError(str(e)) from e

        self.logger.debug(f"🔧 {info.name}.{tool}({cleaned})")
        try:
            if asyncio.iscoroutinefunction(tool_def.function):
                output = await tool_def.function(**cleaned)
            else:
                # blocking tools must not stall other steps of the wavefront
                output = await asyncio.to_thread(tool_def.function, **cleaned)
        except ToolError:
            raise
        except Exception as e:
            raise ToolError(str(e) or e.__class__.__name__) from e

        return ToolResult(success=True, result=output)
