"""Service layer: linked-account repository and the Polar account lifecycle."""
