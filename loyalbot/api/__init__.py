"""HTTP surface and process lifecycle."""
