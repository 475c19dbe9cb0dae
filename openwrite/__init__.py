"""OpenWrite: a collaborative novel-writing API."""
