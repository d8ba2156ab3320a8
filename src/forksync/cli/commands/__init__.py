"""Command implementations for the forksync CLI.

Each module exposes one command function; ``forksync/__init__.py`` registers
them on the typer app.
"""
