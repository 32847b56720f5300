"""Service layer for catalog business rules.

Routes (HTTP) -> Services (business rules) -> Repositories (database)

Services are module-level async functions taking the request ``AsyncSession``.
They raise ``core.exceptions`` errors for uniqueness, existence and
reference checks, and return ORM objects; routes convert them to response
schemas. Services only flush; ``get_db`` owns the commit.
"""
