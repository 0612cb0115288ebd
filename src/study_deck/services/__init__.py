"""Pure scheduling, ownership and queue logic."""
