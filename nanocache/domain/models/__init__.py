"""Value objects and record types shared across layers."""
