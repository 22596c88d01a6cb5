"""Log-file uploads and the state file."""
