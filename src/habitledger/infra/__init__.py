"""Persistence infrastructure: engine bootstrap and SQLModel repositories."""
