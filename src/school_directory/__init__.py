"""School directory service: submit, validate, store and browse school records."""
