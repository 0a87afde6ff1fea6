"""
Curio — Atelier Package
========================

What:  Everything about the spatial canvas that is not an HTTP route.

Module Inventory:
    - rules.py:    sanitizers and coercions shared by server and client
    - canvas.py:   per-board canvas state machine (client side)
    - autosave.py: httpx layout client and debounced persistence (client side)

The server-side read/patch lives in curio.services.layout_service.
"""
