"""
Tasks Backend package.

Exposes an arbitrary Notion database as a uniform task-list API. The
translation layer lives in ``codec``, ``schema_cache`` and ``translator``;
``main`` holds the FastAPI app.
"""
