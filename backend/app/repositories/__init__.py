# Repositories package init
"""
Userbase Backend - Repository Layer
====================================

What:  Translates CRUD intents into ORM operations on one AsyncSession.
Why:   Keeps SQL out of the services; services never see a query object.

Contract:
    - Missing rows are reported as None / False, never as exceptions
    - Methods flush but never commit; the request's session dependency
      commits on success and rolls back on error
    - Inputs are assumed already validated (page/limit ranges, field rules)
"""
