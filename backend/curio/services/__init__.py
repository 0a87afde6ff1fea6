"""
Curio Backend — Services Layer
===============================

What:  Business logic between routes (HTTP) and the database.
How:   Stateless service classes with module-level singletons. Every method
       takes the request's AsyncSession, only flushes, and raises Curio
       exceptions; the session dependency commits or rolls back.

Service Inventory:
    - AuthService:    session cookie → user id
    - BoardService:   board CRUD, read access, soft delete / restore
    - CardService:    card CRUD with YouTube metadata, soft delete / restore
    - LayoutService:  Atelier layout snapshot and transactional patch
    - InviteService:  invite tokens and membership
    - ProfileService: own profile and public boards
    - CaptureService: browser-extension quick save and inbox board
"""
