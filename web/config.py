"""
Web portal configuration.
"""
from core.config import config, VERSION

# Web server settings
WEB_HOST = config.web.host
WEB_PORT = config.web.port

# Session cookie
SESSION_COOKIE = config.auth.session_cookie
SESSION_MAX_AGE = config.auth.session_max_age
COOKIE_SECURE = config.auth.cookie_secure

__all__ = ["WEB_HOST", "WEB_PORT", "SESSION_COOKIE", "SESSION_MAX_AGE", "COOKIE_SECURE", "VERSION"]
