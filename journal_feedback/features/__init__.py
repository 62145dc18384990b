"""Feature modules for the journal feedback service."""
