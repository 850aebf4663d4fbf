"""Core dashboard logic: state machine, log, gate, session and advisory."""
