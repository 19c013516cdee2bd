"""HTTP constants for the network layer.

Centralizes all HTTP-related constants to avoid duplication across modules.
"""

# HTTP Status Code Ranges
HTTP_STATUS_MIN = 100
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_REDIRECTION_MIN = 300
HTTP_STATUS_CLIENT_ERROR_MIN = 400
HTTP_STATUS_SERVER_ERROR_MIN = 500
HTTP_STATUS_MAX = 599

# Individual status codes with special handling
HTTP_STATUS_NO_CONTENT = 204
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_FORBIDDEN = 403

# Re-authentication bounds
DEFAULT_MAX_REAUTHENTICATION_ATTEMPTS = 1
MAX_REAUTHENTICATION_ATTEMPTS_LIMIT = 5

# Worker pool and challenge defaults
DEFAULT_MAX_WORKERS = 4
DEFAULT_CHALLENGE_TIMEOUT_SECONDS = 30.0

# Header carrying the identity challenge on a 401
WWW_AUTHENTICATE_HEADER = "www-authenticate"
