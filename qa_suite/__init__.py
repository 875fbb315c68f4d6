"""End-to-end and API test suite for the knowledge hub application."""
