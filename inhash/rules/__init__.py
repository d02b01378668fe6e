from .loader import load_rules
from .models import Rules

__all__ = ["Rules", "load_rules"]
