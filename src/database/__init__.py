"""MySQL connection gateway for the MCP MySQL gateway."""

from .descriptor import ConnectionDescriptor, parse_descriptor
from .gateway import ConnectionGateway
from .connectors import MySQLConnector

__all__ = [
    "ConnectionDescriptor",
    "parse_descriptor",
    "ConnectionGateway",
    "MySQLConnector"
]
