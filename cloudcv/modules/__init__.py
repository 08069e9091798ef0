"""Native bindings exposed to the dynamic runtime."""
