"""Infrastructure adapters: database, HTTP and observability."""
