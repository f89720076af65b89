"""Pressroom — static blog builder."""
