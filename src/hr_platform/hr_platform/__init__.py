"""HR Platform package.

Feature modules (users, holidays, attendance, leaves, ...) each own a domain
model, a repository interface with its MySQL implementation, and a service
layer. Flask controllers and CLI commands stay thin on top of the services.
"""
