from market_monitor.cli import app

app()
