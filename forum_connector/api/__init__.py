"""Flask blueprints exposing the forum directory to the host application."""
