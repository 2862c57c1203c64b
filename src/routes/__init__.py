"""
Alarmist Route Blueprints
"""

from .alarm import alarm_bp
from .health import health_bp

__all__ = [
    "alarm_bp",
    "health_bp",
]
