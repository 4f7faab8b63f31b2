"""Shared constants for GraphQL Bridge."""

SERVER_NAME = "GraphQL Bridge"
SERVER_VERSION = "0.1.0"

# Network defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 4000

# HTTP paths
GRAPHQL_PATH = "/graphql"
HEALTH_PATH = "/healthz"

# Logging defaults
LOG_DIR = "logs"
DEFAULT_LOG_LEVEL = "INFO"

# Keys under ``scope["state"]`` shared between middleware layers
PARSED_BODY_STATE_KEY = "parsed_body"
GRAPHQL_ERROR_STATE_KEY = "graphql_error"

# Body parser defaults
DEFAULT_MAX_BODY_SIZE = 1024 * 1024  # bytes
DEFAULT_ENABLE_TYPES = ("json", "form")

# Multi-valued headers are joined the way the Fetch API ``Headers`` does
HEADER_VALUE_SEPARATOR = ", "

DEFAULT_STATUS = 200

BODY_NOT_PARSED_MESSAGE = (
    "`request.state.parsed_body` is not set; this probably means you forgot to set up the "
    "`BodyParserMiddleware` before the GraphQL middleware."
)
