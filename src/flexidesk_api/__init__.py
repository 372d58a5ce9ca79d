"""FastAPI gateway exposing FlexiDesk page views under /api."""
