"""Interactive operator console (prompt_toolkit)."""
