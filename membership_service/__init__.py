"""User/account membership service."""
