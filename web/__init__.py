"""
Web application package for the chess bot.

Provides a FastAPI-based REST API through which a browser UI can query
positions, request engine moves, and ask for hints.
"""
