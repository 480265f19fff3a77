"""Form field classification and autofill mapping."""
