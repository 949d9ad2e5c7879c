"""Built-in ``wefy`` sub-commands."""
