from .auth_backend import HttpAuthBackend
from .lms_backend import HttpLmsBackend

__all__ = ["HttpAuthBackend", "HttpLmsBackend"]
