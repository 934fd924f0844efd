"""Payload sources, handlers and sinks of the coordinates and graphs pipelines."""
