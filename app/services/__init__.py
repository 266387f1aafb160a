"""Service layer talking to the hosted table API."""
