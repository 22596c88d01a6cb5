"""Log record grammar, bottom-up run-log parser and materializer."""
