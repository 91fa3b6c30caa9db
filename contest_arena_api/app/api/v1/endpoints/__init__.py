"""Domain routers for API v1: users, contests, payments, creator applications."""
