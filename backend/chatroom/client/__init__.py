"""Client-side helpers for consuming the message stream."""
