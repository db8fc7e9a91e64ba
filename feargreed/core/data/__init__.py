"""Storage layer for daily index records."""
