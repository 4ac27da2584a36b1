"""Fetching data from the Peloton API."""
