"""cronguard CLI: inspect cron expressions before scheduling them."""

from cronguard.cli.app import app

__all__ = ["app"]
