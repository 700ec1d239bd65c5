from market_monitor.cli.app import app

__all__ = ["app"]
