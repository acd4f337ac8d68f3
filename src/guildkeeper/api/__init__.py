"""
Dashboard HTTP API.

- **app.py**: ``create_app`` building the FastAPI application
- **schemas.py**: pydantic request/response models (camelCase JSON)
- **server.py**: uvicorn runner sharing the bot's event loop
"""
