"""Core value types and record helpers."""
