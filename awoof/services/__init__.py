"""Services Layer — use-case handlers for auth, verification, payments and catalog."""
