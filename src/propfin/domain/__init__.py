"""Domain layer for propfin application."""
