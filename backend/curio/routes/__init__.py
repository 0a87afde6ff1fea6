"""
Curio Backend — API Routes Package
===================================

Route Inventory:
    - boards.py:    /api/boards, /api/boards/{id}, /api/boards/by-slug/{slug}
    - cards.py:     /api/boards/{id}/cards, /api/cards/{id}
    - atelier.py:   GET/PATCH /api/boards/{id}/atelier-layout
    - invites.py:   /api/boards/{id}/invites, /api/invites/{token}/redeem
    - profile.py:   /api/profile
    - extension.py: /api/extension/boards, /api/extension/save
    - health.py:    GET /health

Routes stay thin: read the request, call a service, shape the response.
"""
