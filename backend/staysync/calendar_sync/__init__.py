"""Calendar engine: feed parsing, range math, external replace, availability and view annotation."""
