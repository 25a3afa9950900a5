"""Domain models and errors (Pydantic v2): badges, ownership and proofs."""
