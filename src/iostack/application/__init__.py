"""Application layer: the client embedders talk to."""
