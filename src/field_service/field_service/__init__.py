"""Field Service attendance package.

Feature modules (attendance, activities, users, ...) each carry a domain model,
a repository protocol with a MySQL implementation, a service holding the
business rules and a thin Flask controller.
"""
