"""Resume decoding, extraction, assembly and completeness checks."""
