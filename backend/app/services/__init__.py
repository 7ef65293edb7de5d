# Services package init
"""
Userbase Backend - Services Layer
==================================

What:  Request-handling layer between routes (HTTP) and repositories (persistence).
How:   Services are built per request around a repository bound to that
       request's session (see app/routes/users.py dependencies).

Service Inventory:
    - UserService: list / get / create / update / delete for /api/users
"""
