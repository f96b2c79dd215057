"""External collaborator adapters."""
