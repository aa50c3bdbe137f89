"""Snapshot decoders for the supported document encodings."""
