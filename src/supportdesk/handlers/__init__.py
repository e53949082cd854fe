"""Lambda handlers; ``handlers.main.lambda_handler`` is the single entrypoint."""
