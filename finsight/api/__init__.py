"""
HTTP surface: FastAPI application, endpoints and services.
"""
