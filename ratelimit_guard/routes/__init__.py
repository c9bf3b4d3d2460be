"""
API Routes Package

- demo.py: Example endpoints for each rate limiting mode

Routes are registered in main.py using FastAPI's router system.
"""
