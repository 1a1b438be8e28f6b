"""Configuration package.

Note: Do not import and construct settings at package import time to keep
test collection free from environment requirements. Import from
``deltamap.config.settings`` directly where needed.
"""

__all__: list[str] = []
