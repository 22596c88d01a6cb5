"""Run-log directory scanning and the read-through data service."""
