"""Binary format readers."""
