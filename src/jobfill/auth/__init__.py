"""Job-site login: known-site registry and the authentication state machine."""
