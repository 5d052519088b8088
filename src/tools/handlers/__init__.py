"""Tool handlers package."""

from tools.handlers.mysql_handler import MySQLHandler
from tools.handlers.connection_handler import ConnectionHandler
from tools.handlers.schema_handler import SchemaHandler
from tools.handlers.openapi_handler import OpenAPIHandler
from tools.handlers.http_handler import HTTPRequestHandler

__all__ = [
    'MySQLHandler',
    'ConnectionHandler',
    'SchemaHandler',
    'OpenAPIHandler',
    'HTTPRequestHandler',
]
