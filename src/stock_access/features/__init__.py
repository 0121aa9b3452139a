"""Feature modules: roles, events and permissions."""
