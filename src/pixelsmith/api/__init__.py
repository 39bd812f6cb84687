"""Pixelsmith HTTP API layer.

Modules
-------
main
    FastAPI application with all route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for JSON request and response bodies.
uploads
    Validation and resizing of uploaded images.
"""
