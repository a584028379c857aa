"""HTTP boundary for triggering and inspecting legacy migrations."""
