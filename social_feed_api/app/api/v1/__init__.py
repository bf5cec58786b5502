"""Version 1 of the Social Feed API."""
