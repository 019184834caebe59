"""Backend integrations."""
