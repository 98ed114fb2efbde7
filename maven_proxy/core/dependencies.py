from typing import Optional

from maven_proxy.core.config import Settings
from maven_proxy.services.gateway import ContentGateway

_settings: Optional[Settings] = None
_gateway: Optional[ContentGateway] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def get_gateway() -> ContentGateway:
    global _gateway
    if _gateway is None:
        _gateway = ContentGateway(get_settings())
    return _gateway
