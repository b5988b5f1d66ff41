"""Pure workflow rules: status transitions, validation and catalogues. No I/O."""
