from market_monitor.services.container import ServiceConfig, ServiceContainer

__all__ = ["ServiceConfig", "ServiceContainer"]
