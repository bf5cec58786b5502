"""
Service layer.

Each service encapsulates the business logic for one domain and raises
the errors from ``core.errors``; API handlers only translate those
errors into HTTP responses.
"""
